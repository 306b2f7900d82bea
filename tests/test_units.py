"""
Tests for per-unit inventory.
Covers unit CRUD, count syncing on the listing and booking a named unit.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from httpx import AsyncClient

from estatehub.config import settings
from estatehub.models.user import User
from estatehub.models.property import Property
from estatehub.models.booking import BookingStatus
from estatehub.models.unit import UnitStatus
from estatehub.schemas.engagement import BookingCreate
from estatehub.schemas.property import PropertyUpdate
from estatehub.schemas.unit import UnitCreate, UnitUpdate
from estatehub.services.booking import BookingService
from estatehub.services.property import PropertyService
from estatehub.services.unit import UnitService
from estatehub.utils.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ValidationError,
)
from tests.conftest import auth_headers

API = settings.api_v1_prefix


def booking_for(property_obj: Property, unit=None, months: int = 2) -> BookingCreate:
    return BookingCreate(
        property_id=property_obj.id,
        unit_id=unit.id if unit is not None else None,
        start_date=date.today() + timedelta(days=7),
        duration_months=months,
    )


class TestUnitService:
    """Unit CRUD and listing counts."""

    async def test_units_drive_listing_counts(self, db_session, test_property: Property, test_landlord: User):
        service = UnitService(db_session)

        await service.create_unit(test_property.id, UnitCreate(unit_name="A1", price=Decimal("450")), test_landlord)
        await service.create_unit(test_property.id, UnitCreate(unit_name="A2", price=Decimal("520")), test_landlord)
        b1 = await service.create_unit(test_property.id, UnitCreate(unit_name="B1", price=Decimal("600")), test_landlord)
        await service.update_unit(b1.id, UnitUpdate(status=UnitStatus.OCCUPIED), test_landlord)

        await db_session.refresh(test_property)
        assert test_property.total_units == 3
        assert test_property.available_units == 2

        units = await service.list_units(test_property.id)
        assert [u.unit_name for u in units] == ["A1", "A2", "B1"]
        available = await service.list_units(test_property.id, available_only=True)
        assert [u.unit_name for u in available] == ["A1", "A2"]

    async def test_duplicate_name_on_same_listing(self, db_session, test_property: Property, test_landlord: User):
        service = UnitService(db_session)
        await service.create_unit(test_property.id, UnitCreate(unit_name="Room 1", price=Decimal("300")), test_landlord)

        with pytest.raises(ConflictError) as exc_info:
            await service.create_unit(test_property.id, UnitCreate(unit_name="room 1", price=Decimal("310")), test_landlord)
        assert exc_info.value.error_code == "DUPLICATE_UNIT"

    async def test_only_owner_manages_units(self, db_session, test_property: Property, other_landlord: User):
        with pytest.raises(PropertyOwnershipError):
            await UnitService(db_session).create_unit(
                test_property.id, UnitCreate(unit_name="X", price=Decimal("100")), other_landlord
            )

    async def test_hidden_listing_units_are_not_public(self, db_session, draft_property: Property):
        with pytest.raises(PropertyNotFoundError):
            await UnitService(db_session).list_units(draft_property.id)

    async def test_delete_unit(self, db_session, test_property: Property, test_landlord: User):
        service = UnitService(db_session)
        keep = await service.create_unit(test_property.id, UnitCreate(unit_name="Keep", price=Decimal("300")), test_landlord)
        drop = await service.create_unit(test_property.id, UnitCreate(unit_name="Drop", price=Decimal("300")), test_landlord)

        assert await service.delete_unit(drop.id, test_landlord) is True

        await db_session.refresh(test_property)
        assert test_property.total_units == 1
        assert [u.id for u in await service.list_units(test_property.id)] == [keep.id]

    async def test_booked_unit_cannot_be_deleted(self, db_session, test_property: Property, test_landlord: User):
        service = UnitService(db_session)
        unit = await service.create_unit(test_property.id, UnitCreate(unit_name="C1", price=Decimal("300")), test_landlord)
        await service.update_unit(unit.id, UnitUpdate(status=UnitStatus.BOOKED), test_landlord)

        with pytest.raises(ConflictError) as exc_info:
            await service.delete_unit(unit.id, test_landlord)
        assert exc_info.value.error_code == "UNIT_IN_USE"

    async def test_unit_with_pending_booking_cannot_be_deleted(
        self,
        db_session,
        test_property: Property,
        test_landlord: User,
        test_student: User
    ):
        unit = await UnitService(db_session).create_unit(
            test_property.id, UnitCreate(unit_name="D1", price=Decimal("300")), test_landlord
        )
        await BookingService(db_session).create_booking(test_student, booking_for(test_property, unit))

        with pytest.raises(ConflictError):
            await UnitService(db_session).delete_unit(unit.id, test_landlord)

    async def test_counts_locked_once_units_exist(
        self,
        db_session,
        test_property: Property,
        test_landlord: User
    ):
        await UnitService(db_session).create_unit(
            test_property.id, UnitCreate(unit_name="E1", price=Decimal("300")), test_landlord
        )

        with pytest.raises(BusinessRuleViolationError):
            await PropertyService(db_session).update_property(
                test_property.id, PropertyUpdate(total_units=5), test_landlord
            )


class TestUnitBookings:
    """Bookings that reference a unit."""

    async def test_unit_price_sets_amount(
        self,
        db_session,
        test_property: Property,
        test_landlord: User,
        test_student: User
    ):
        unit = await UnitService(db_session).create_unit(
            test_property.id, UnitCreate(unit_name="Studio", price=Decimal("420.50")), test_landlord
        )

        booking = await BookingService(db_session).create_booking(test_student, booking_for(test_property, unit, 3))

        assert booking.unit_id == unit.id
        assert booking.amount == Decimal("1261.50")
        assert booking.to_dict()["unit_name"] == "Studio"

    async def test_listing_with_units_requires_a_unit(
        self,
        db_session,
        test_property: Property,
        test_landlord: User,
        test_student: User
    ):
        await UnitService(db_session).create_unit(
            test_property.id, UnitCreate(unit_name="F1", price=Decimal("300")), test_landlord
        )

        with pytest.raises(ValidationError) as exc_info:
            await BookingService(db_session).create_booking(test_student, booking_for(test_property))
        assert exc_info.value.field_errors[0]["field"] == "unit_id"

    async def test_unit_of_another_listing(
        self,
        db_session,
        test_property: Property,
        assigned_property: Property,
        test_landlord: User,
        test_student: User
    ):
        elsewhere = await UnitService(db_session).create_unit(
            assigned_property.id, UnitCreate(unit_name="G1", price=Decimal("300")), test_landlord
        )

        with pytest.raises(NotFoundError):
            await BookingService(db_session).create_booking(test_student, booking_for(test_property, elsewhere))

    async def test_approval_books_the_unit(
        self,
        db_session,
        test_property: Property,
        test_landlord: User,
        test_student: User,
        other_student: User
    ):
        units = UnitService(db_session)
        h1 = await units.create_unit(test_property.id, UnitCreate(unit_name="H1", price=Decimal("300")), test_landlord)
        await units.create_unit(test_property.id, UnitCreate(unit_name="H2", price=Decimal("300")), test_landlord)
        service = BookingService(db_session)
        first = await service.create_booking(test_student, booking_for(test_property, h1))
        second = await service.create_booking(other_student, booking_for(test_property, h1))

        await service.approve_booking(first.id, test_landlord)

        await db_session.refresh(h1)
        await db_session.refresh(test_property)
        assert h1.status == UnitStatus.BOOKED
        assert test_property.total_units == 2
        assert test_property.available_units == 1

        with pytest.raises(ConflictError) as exc_info:
            await service.approve_booking(second.id, test_landlord)
        assert exc_info.value.error_code == "UNIT_UNAVAILABLE"
        await db_session.refresh(second)
        assert second.status == BookingStatus.PENDING

        with pytest.raises(ConflictError):
            await service.create_booking(other_student, booking_for(test_property, h1))


class TestUnitEndpoints:
    async def test_unit_lifecycle(
        self,
        async_client: AsyncClient,
        test_property: Property,
        test_landlord: User,
        test_student: User
    ):
        created = await async_client.post(
            f"{API}/properties/{test_property.id}/units",
            headers=auth_headers(test_landlord),
            json={"unit_name": "Room 7", "price": 350, "amenities": ["desk", " desk ", ""]}
        )
        assert created.status_code == 201
        unit_id = created.json()["id"]
        assert created.json()["amenities"] == ["desk"]

        listing = await async_client.get(f"{API}/properties/{test_property.id}/units")
        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert listing.json()["available"] == 1

        forbidden = await async_client.post(
            f"{API}/properties/{test_property.id}/units",
            headers=auth_headers(test_student),
            json={"unit_name": "Room 8", "price": 350}
        )
        assert forbidden.status_code == 403

        booking = await async_client.post(
            f"{API}/bookings",
            headers=auth_headers(test_student),
            json={
                "property_id": str(test_property.id),
                "unit_id": unit_id,
                "start_date": (date.today() + timedelta(days=3)).isoformat(),
                "duration_months": 2,
            }
        )
        assert booking.status_code == 201
        assert booking.json()["amount"] == 700.0
        assert booking.json()["unit_name"] == "Room 7"

        blocked = await async_client.delete(f"{API}/units/{unit_id}", headers=auth_headers(test_landlord))
        assert blocked.status_code == 409

        renamed = await async_client.patch(
            f"{API}/units/{unit_id}", headers=auth_headers(test_landlord), json={"unit_name": "Room 7A"}
        )
        assert renamed.status_code == 200
        assert renamed.json()["unit_name"] == "Room 7A"
