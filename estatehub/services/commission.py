"""
Commission rate service. Admins manage the rate table; payments read the
active agent rate and fall back to ``settings.commission_rate`` when none
is active.
"""

from typing import List, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.config import settings
from estatehub.models.commission import CommissionRate
from estatehub.models.user import User, UserRole
from estatehub.repositories.commission import CommissionRateRepository
from estatehub.schemas.payment import CommissionRateCreate, CommissionRateUpdate
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class CommissionRateService:
    """Admin-managed commission rates."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.rate_repo = CommissionRateRepository(db_session)

    async def rate_for(self, role: UserRole = UserRole.AGENT) -> Decimal:
        """Commission multiplier in force for a role."""
        active = await self.rate_repo.get_active(role)
        return active.fraction if active else settings.commission_rate

    async def list_rates(self, admin: User, role: Optional[UserRole] = None) -> List[CommissionRate]:
        self._require_admin(admin)
        return await self.rate_repo.get_multi(limit=200, filters={"role": role}, order_by="-created_at")

    async def create_rate(self, admin: User, rate_data: CommissionRateCreate) -> CommissionRate:
        """
        Add a rate. An active rate replaces the role's current one.
        """
        self._require_admin(admin)
        try:
            rate = await self.rate_repo.create(rate_data.model_dump(), commit=False)
            if rate.is_active:
                await self.rate_repo.deactivate_others(rate.role, rate.id)
            await self.db.commit()
            await self.db.refresh(rate)
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create commission rate: {e}")
            raise BadRequestError(f"Failed to create commission rate: {str(e)}")

        logger.info(f"Commission rate {rate.rate}% for {rate.role.value} created by {admin.email}")
        return rate

    async def update_rate(self, admin: User, rate_id: uuid.UUID, rate_data: CommissionRateUpdate) -> CommissionRate:
        """
        Change a rate. Activating it switches off the role's other rates.

        Raises:
            NotFoundError: If the rate doesn't exist
            ValidationError: If no fields are given
        """
        self._require_admin(admin)
        rate = await self._get_rate(rate_id)
        update_data = rate_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        try:
            for field, value in update_data.items():
                setattr(rate, field, value)
            rate = await self.rate_repo.save(rate, commit=False)
            if rate.is_active:
                await self.rate_repo.deactivate_others(rate.role, rate.id)
            await self.db.commit()
            await self.db.refresh(rate)
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update commission rate {rate_id}: {e}")
            raise BadRequestError(f"Failed to update commission rate: {str(e)}")

        logger.info(f"Commission rate {rate_id} updated by {admin.email}")
        return rate

    async def delete_rate(self, admin: User, rate_id: uuid.UUID) -> bool:
        self._require_admin(admin)
        await self._get_rate(rate_id)
        deleted = await self.rate_repo.delete(rate_id)
        logger.info(f"Commission rate {rate_id} deleted by {admin.email}")
        return deleted

    async def _get_rate(self, rate_id: uuid.UUID) -> CommissionRate:
        rate = await self.rate_repo.get_by_id(rate_id)
        if not rate:
            raise NotFoundError("Commission rate", str(rate_id))
        return rate

    @staticmethod
    def _require_admin(user: User) -> None:
        if not user.is_admin:
            raise InsufficientPermissionsError("manage commission rates")
