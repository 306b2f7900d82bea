"""
Unit repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from estatehub.repositories.base import BaseRepository
from estatehub.models.unit import Unit, UnitStatus
from typing import List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class UnitRepository(BaseRepository[Unit]):
    """Queries over the units of a listing."""

    def __init__(self, db: AsyncSession):
        super().__init__(Unit, db)

    async def list_for_property(self, property_id: uuid.UUID, status: Optional[UnitStatus] = None) -> List[Unit]:
        """Units of a listing ordered by name."""
        try:
            query = select(Unit).where(Unit.property_id == property_id)
            if status is not None:
                query = query.where(Unit.status == status)
            result = await self.db.execute(query.order_by(Unit.unit_name.asc()))
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list units for property {property_id}: {e}")
            raise

    async def get_by_name(self, property_id: uuid.UUID, unit_name: str) -> Optional[Unit]:
        try:
            result = await self.db.execute(
                select(Unit).where(Unit.property_id == property_id, func.lower(Unit.unit_name) == unit_name.lower())
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to look up unit {unit_name!r} on property {property_id}: {e}")
            raise
