"""
Booking service for rental requests and landlord approval.
"""

from typing import List, Optional, Tuple
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.models.booking import Booking, BookingStatus
from estatehub.models.property import PropertyStatus
from estatehub.models.unit import UnitStatus
from estatehub.models.user import User
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.unit import UnitRepository
from estatehub.schemas.engagement import BookingCreate
from estatehub.services.unit import UnitService
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyStatusError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class BookingService:
    """
    Booking rules: clients request and cancel, landlords decide.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.booking_repo = BookingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.unit_repo = UnitRepository(db_session)
        self.units = UnitService(db_session)

    async def create_booking(self, client: User, booking_data: BookingCreate) -> Booking:
        """
        Request a booking on an active listing with free units.

        Listings split into units are booked one unit at a time and priced
        from that unit; other listings use the listing price. Either way the
        amount is the monthly price times the number of months.

        Raises:
            PropertyNotFoundError: If the listing doesn't exist or is hidden
            PropertyStatusError: If the listing is not active
            ValidationError: If the listing has units and none was chosen
            NotFoundError: If the chosen unit is not part of the listing
            ConflictError: If no units, or not the chosen unit, are available
        """
        property_obj = await self.property_repo.get_by_id(booking_data.property_id)
        if not property_obj or not property_obj.is_visible_to(client):
            raise PropertyNotFoundError(str(booking_data.property_id))
        if property_obj.landlord_id == client.id:
            raise ForbiddenError("You cannot book your own property")
        if property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyStatusError("Only active properties can be booked")

        unit = None
        if booking_data.unit_id is not None:
            unit = await self.unit_repo.get_by_id(booking_data.unit_id)
            if not unit or unit.property_id != property_obj.id:
                raise NotFoundError("Unit", str(booking_data.unit_id))
            if not unit.is_available:
                raise ConflictError(f"Unit '{unit.unit_name}' is not available", error_code="UNIT_UNAVAILABLE")
        elif await self.units.has_units(property_obj.id):
            raise ValidationError(
                "Choose a unit to book",
                field_errors=[{"field": "unit_id", "message": "This property is booked per unit"}]
            )

        if property_obj.available_units <= 0:
            raise ConflictError("No units are available for this property", error_code="NO_UNITS_AVAILABLE")

        monthly = unit.price if unit is not None else property_obj.price
        amount = (monthly * booking_data.duration_months).quantize(CENTS)
        booking = await self.booking_repo.create({
            "property_id": property_obj.id,
            "client_id": client.id,
            "unit_id": unit.id if unit is not None else None,
            "start_date": booking_data.start_date,
            "duration_months": booking_data.duration_months,
            "amount": amount,
            "message": booking_data.message,
            "status": BookingStatus.PENDING,
        })
        logger.info(f"Booking {booking.id} requested by {client.email} for property {property_obj.id}")
        return booking

    async def get_booking(self, booking_id: uuid.UUID, user: User) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if not (user.is_admin or user.id == booking.client_id or user.id == booking.listing.landlord_id):
            raise ForbiddenError("You cannot view this booking")
        return booking

    async def get_my_booking(self, property_id: uuid.UUID, client: User) -> Booking:
        booking = await self.booking_repo.get_latest_for_client(client.id, property_id)
        if not booking:
            raise NotFoundError("Booking")
        return booking

    async def cancel_booking(self, booking_id: uuid.UUID, client: User) -> Booking:
        """
        Cancel a pending booking.

        Raises:
            ForbiddenError: If the caller did not make the booking
            InvalidTransitionError: If the booking is no longer pending
        """
        booking = await self.get_booking(booking_id, client)
        if booking.client_id != client.id:
            raise ForbiddenError("Only the client can cancel a booking")
        return await self._move(booking, BookingStatus.CANCELLED, client)

    async def approve_booking(self, booking_id: uuid.UUID, landlord: User) -> Booking:
        """
        Approve a pending booking and take its unit off the listing.

        A booking on a named unit marks that unit booked and re-derives the
        listing's counts; otherwise one unit is taken off the count.

        Raises:
            ConflictError: If the listing has no units left or the unit is taken
        """
        booking = await self._get_landlord_booking(booking_id, landlord)
        if not booking.can_transition_to(BookingStatus.APPROVED):
            raise InvalidTransitionError("booking", booking.status.value, BookingStatus.APPROVED.value)

        property_obj = booking.listing
        unit = booking.unit
        if unit is not None and not unit.is_available:
            raise ConflictError(f"Unit '{unit.unit_name}' is not available", error_code="UNIT_UNAVAILABLE")
        if property_obj.available_units <= 0:
            raise ConflictError("No units are available for this property", error_code="NO_UNITS_AVAILABLE")

        try:
            if unit is not None:
                unit.status = UnitStatus.BOOKED
                await self.unit_repo.save(unit, commit=False)
                await self.units.sync_counts(property_obj)
            else:
                property_obj.available_units -= 1
                await self.property_repo.save(property_obj, commit=False)
            booking.status = BookingStatus.APPROVED
            await self.booking_repo.save(booking, commit=False)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to approve booking {booking_id}: {e}")
            raise BadRequestError(f"Failed to approve booking: {str(e)}")

        logger.info(f"Booking {booking_id} approved by {landlord.email}")
        return booking

    async def reject_booking(self, booking_id: uuid.UUID, landlord: User) -> Booking:
        booking = await self._get_landlord_booking(booking_id, landlord)
        return await self._move(booking, BookingStatus.REJECTED, landlord)

    async def complete_booking(self, booking_id: uuid.UUID, landlord: User) -> Booking:
        booking = await self._get_landlord_booking(booking_id, landlord)
        return await self._move(booking, BookingStatus.COMPLETED, landlord)

    async def list_client_bookings(
        self,
        client: User,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Booking], int]:
        return await self.booking_repo.list_bookings(client_id=client.id, status=status, skip=skip, limit=limit)

    async def list_landlord_bookings(
        self,
        landlord: User,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Booking], int]:
        if not landlord.is_landlord:
            raise InsufficientPermissionsError("view booking requests")
        return await self.booking_repo.list_bookings(landlord_id=landlord.id, status=status, skip=skip, limit=limit)

    async def _get_landlord_booking(self, booking_id: uuid.UUID, landlord: User) -> Booking:
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if not landlord.can_manage_property(booking.listing.landlord_id):
            raise ForbiddenError("Only the property owner can manage this booking")
        return booking

    async def _move(self, booking: Booking, new_status: BookingStatus, user: User) -> Booking:
        if not booking.can_transition_to(new_status):
            raise InvalidTransitionError("booking", booking.status.value, new_status.value)
        booking.status = new_status
        booking = await self.booking_repo.save(booking)
        logger.info(f"Booking {booking.id} is now {new_status.value} ({user.email})")
        return booking
