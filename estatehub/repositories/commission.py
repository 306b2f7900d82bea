"""
Commission rate repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from estatehub.repositories.base import BaseRepository
from estatehub.models.commission import CommissionRate
from estatehub.models.user import UserRole
from typing import Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class CommissionRateRepository(BaseRepository[CommissionRate]):
    """Queries over admin-managed commission rates."""

    def __init__(self, db: AsyncSession):
        super().__init__(CommissionRate, db)

    async def get_active(self, role: UserRole) -> Optional[CommissionRate]:
        """The newest active rate for a role."""
        try:
            result = await self.db.execute(
                select(CommissionRate)
                .where(CommissionRate.role == role, CommissionRate.is_active.is_(True))
                .order_by(CommissionRate.updated_at.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to load active commission rate for {role.value}: {e}")
            raise

    async def deactivate_others(self, role: UserRole, keep_id: uuid.UUID) -> int:
        """Switch off every other active rate for a role; flushes only."""
        try:
            result = await self.db.execute(
                update(CommissionRate)
                .where(
                    CommissionRate.role == role,
                    CommissionRate.is_active.is_(True),
                    CommissionRate.id != keep_id,
                )
                .values(is_active=False)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount
        except Exception as e:
            logger.error(f"Failed to deactivate commission rates for {role.value}: {e}")
            raise
