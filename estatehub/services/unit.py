"""
Unit service: landlords split a listing into individually priced units.

Once a listing has unit rows its ``total_units`` and ``available_units``
are derived from them and kept in step on every unit change.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.models.booking import BookingStatus
from estatehub.models.property import Property
from estatehub.models.unit import Unit, UnitStatus
from estatehub.models.user import User
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.unit import UnitRepository
from estatehub.schemas.unit import UnitCreate, UnitUpdate
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class UnitService:
    """Unit inventory of a listing."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.unit_repo = UnitRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def sync_counts(self, property_obj: Property) -> Property:
        """
        Recompute a listing's unit counts from its unit rows; flushes only.

        Listings without unit rows keep their hand-entered counts.
        """
        units = await self.unit_repo.list_for_property(property_obj.id)
        if not units:
            return property_obj
        property_obj.total_units = len(units)
        property_obj.available_units = sum(1 for unit in units if unit.is_available)
        return await self.property_repo.save(property_obj, commit=False)

    async def has_units(self, property_id: uuid.UUID) -> bool:
        return await self.unit_repo.count({"property_id": property_id}) > 0

    async def list_units(
        self,
        property_id: uuid.UUID,
        viewer: Optional[User] = None,
        available_only: bool = False
    ) -> List[Unit]:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not property_obj.is_visible_to(viewer):
            raise PropertyNotFoundError(str(property_id))
        return await self.unit_repo.list_for_property(
            property_id, status=UnitStatus.AVAILABLE if available_only else None
        )

    async def create_unit(self, property_id: uuid.UUID, unit_data: UnitCreate, user: User) -> Unit:
        """
        Add a unit to a listing the caller manages.

        Raises:
            PropertyNotFoundError: If the listing doesn't exist
            PropertyOwnershipError: If the caller doesn't own the listing
            ConflictError: If the listing already has a unit with that name
        """
        property_obj = await self._get_managed_property(property_id, user)
        if await self.unit_repo.get_by_name(property_id, unit_data.unit_name):
            raise ConflictError(f"Unit '{unit_data.unit_name}' already exists on this property", error_code="DUPLICATE_UNIT")

        try:
            unit = await self.unit_repo.create({
                "property_id": property_id,
                "unit_name": unit_data.unit_name,
                "price": unit_data.price,
                "amenities": unit_data.amenities,
                "status": UnitStatus.AVAILABLE,
            }, commit=False)
            await self.sync_counts(property_obj)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to add unit to property {property_id}: {e}")
            raise BadRequestError(f"Failed to add unit: {str(e)}")

        logger.info(f"Unit {unit.id} ({unit.unit_name}) added to property {property_id} by {user.email}")
        return unit

    async def update_unit(self, unit_id: uuid.UUID, unit_data: UnitUpdate, user: User) -> Unit:
        """
        Rename, reprice or change the status of a unit.

        Raises:
            ValidationError: If no fields are given
            ConflictError: If the new name is taken on the listing
        """
        unit = await self._get_managed_unit(unit_id, user)
        update_data = unit_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        new_name = update_data.get("unit_name")
        if new_name and new_name.lower() != unit.unit_name.lower():
            if await self.unit_repo.get_by_name(unit.property_id, new_name):
                raise ConflictError(f"Unit '{new_name}' already exists on this property", error_code="DUPLICATE_UNIT")

        try:
            for field, value in update_data.items():
                setattr(unit, field, value)
            unit = await self.unit_repo.save(unit, commit=False)
            await self.sync_counts(unit.listing)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update unit {unit_id}: {e}")
            raise BadRequestError(f"Failed to update unit: {str(e)}")

        logger.info(f"Unit {unit_id} updated by {user.email}")
        return unit

    async def delete_unit(self, unit_id: uuid.UUID, user: User) -> bool:
        """
        Remove an available unit that no pending booking points at.

        Raises:
            ConflictError: If the unit is booked, occupied or has a pending booking
        """
        unit = await self._get_managed_unit(unit_id, user)
        if not unit.is_available:
            raise ConflictError(f"A {unit.status.value} unit cannot be deleted", error_code="UNIT_IN_USE")
        if await BookingRepository(self.db).count({"unit_id": unit.id, "status": BookingStatus.PENDING}):
            raise ConflictError("This unit has pending bookings", error_code="UNIT_IN_USE")

        property_obj = unit.listing
        try:
            await self.db.delete(unit)
            await self.db.flush()
            await self.sync_counts(property_obj)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete unit {unit_id}: {e}")
            raise BadRequestError(f"Failed to delete unit: {str(e)}")

        logger.info(f"Unit {unit_id} deleted by {user.email}")
        return True

    async def _get_managed_property(self, property_id: uuid.UUID, user: User) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        if not user.can_manage_property(property_obj.landlord_id):
            raise PropertyOwnershipError()
        return property_obj

    async def _get_managed_unit(self, unit_id: uuid.UUID, user: User) -> Unit:
        unit = await self.unit_repo.get_by_id(unit_id)
        if not unit:
            raise NotFoundError("Unit", str(unit_id))
        if not user.can_manage_property(unit.listing.landlord_id):
            raise PropertyOwnershipError()
        return unit
