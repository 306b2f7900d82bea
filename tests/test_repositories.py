"""
Tests for repository classes.
Covers CRUD helpers, search filters and the aggregate queries behind dashboards.
"""

import pytest
from decimal import Decimal

from estatehub.database import utcnow
from estatehub.models.user import User, UserRole
from estatehub.models.property import Property, PropertyType, PropertyStatus
from estatehub.models.agent_request import RequestStatus, RequestInitiator
from estatehub.models.booking import BookingStatus
from estatehub.models.transaction import CommissionStatus, PaymentStatus
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.property import PropertyRepository, PropertySearchFilters
from estatehub.repositories.transaction import TransactionRepository
from estatehub.repositories.user import UserRepository
from estatehub.repositories.wishlist import SavedPropertyRepository, PropertyViewRepository
from tests.conftest import UserFactory, PropertyFactory, BookingFactory


class TestUserRepository:
    """Test UserRepository functionality."""

    async def test_create_user_hashes_password(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="New.User@Example.com")

        assert user.id is not None
        assert user.email == "new.user@example.com"
        assert user.hashed_password != "testpassword123"
        assert user.role == UserRole.STUDENT

    async def test_create_user_duplicate_email(self, user_repository: UserRepository, test_student: User):
        with pytest.raises(ValueError, match="already exists"):
            await UserFactory.create_user(user_repository, email=test_student.email)

    async def test_get_by_email_is_case_insensitive(self, user_repository: UserRepository, test_landlord: User):
        user = await user_repository.get_by_email("LANDLORD@example.com")
        assert user.id == test_landlord.id

    async def test_authenticate_user(self, user_repository: UserRepository, test_agent: User):
        assert (await user_repository.authenticate_user(test_agent.email, "testpassword123")).id == test_agent.id
        assert await user_repository.authenticate_user(test_agent.email, "wrong-password") is None

    async def test_user_statistics(
        self,
        user_repository: UserRepository,
        test_student: User,
        test_landlord: User,
        test_inactive_user: User
    ):
        stats = await user_repository.get_user_statistics()

        assert stats["total_users"] == 3
        assert stats["active_users"] == 2
        assert stats["inactive_users"] == 1
        assert stats["users_by_role"]["student"] == 1
        assert stats["users_by_role"]["landlord"] == 1


class TestPropertyRepository:
    """Test property search and statistics."""

    async def _seed(self, repo: PropertyRepository, landlord: User):
        await PropertyFactory.create_property(
            repo, landlord.id, title="Cheap Room", price=Decimal("300.00"), bedrooms=1, amenities=["wifi"]
        )
        await PropertyFactory.create_property(
            repo, landlord.id, title="Family House", property_type=PropertyType.HOUSE,
            price=Decimal("1200.00"), bedrooms=4, city="Abuja", amenities=["parking", "garden"]
        )
        await PropertyFactory.create_property(
            repo, landlord.id, title="Hidden Draft", price=Decimal("400.00"), status=PropertyStatus.DRAFT
        )

    async def test_create_property_with_images(self, test_property: Property):
        assert len(test_property.images) == 2
        assert test_property.primary_image.image_url == "https://cdn.example.com/p/1.jpg"

    async def test_create_property_validation(self, property_repository: PropertyRepository, test_landlord: User):
        with pytest.raises(ValueError, match="cannot exceed total units"):
            await PropertyFactory.create_property(
                property_repository, test_landlord.id, total_units=1, available_units=2
            )

    async def test_search_by_price_range(self, property_repository: PropertyRepository, test_landlord: User):
        await self._seed(property_repository, test_landlord)
        filters = PropertySearchFilters(
            min_price=Decimal("250"), max_price=Decimal("500"), status=PropertyStatus.ACTIVE
        )

        properties, total = await property_repository.search_properties(filters)

        assert total == 1
        assert properties[0].title == "Cheap Room"

    async def test_search_by_city_and_type(self, property_repository: PropertyRepository, test_landlord: User):
        await self._seed(property_repository, test_landlord)
        filters = PropertySearchFilters(city="abuja", property_type=PropertyType.HOUSE)

        properties, total = await property_repository.search_properties(filters)

        assert total == 1
        assert properties[0].title == "Family House"

    async def test_search_by_amenity(self, property_repository: PropertyRepository, test_landlord: User):
        await self._seed(property_repository, test_landlord)

        properties, total = await property_repository.search_properties(
            PropertySearchFilters(amenities=["garden"])
        )

        assert total == 1
        assert properties[0].title == "Family House"

    async def test_search_text_and_sorting(self, property_repository: PropertyRepository, test_landlord: User):
        await self._seed(property_repository, test_landlord)

        properties, total = await property_repository.search_properties(
            PropertySearchFilters(status=PropertyStatus.ACTIVE), order_by="price", order_direction="asc"
        )

        assert total == 2
        assert [p.price for p in properties] == [Decimal("300.00"), Decimal("1200.00")]

        properties, total = await property_repository.search_properties(PropertySearchFilters(search_text="family"))
        assert total == 1

    async def test_wildcards_in_search_match_literally(
        self,
        property_repository: PropertyRepository,
        test_landlord: User
    ):
        await self._seed(property_repository, test_landlord)
        await PropertyFactory.create_property(
            property_repository, test_landlord.id, title="100% Furnished", city="Port_Harcourt"
        )

        _, total = await property_repository.search_properties(PropertySearchFilters(city="_"))
        assert total == 1

        _, total = await property_repository.search_properties(PropertySearchFilters(city="%"))
        assert total == 0

        properties, total = await property_repository.search_properties(PropertySearchFilters(search_text="100%"))
        assert total == 1
        assert properties[0].title == "100% Furnished"

    async def test_featured_only_returns_active(self, property_repository: PropertyRepository, test_landlord: User):
        await PropertyFactory.create_property(property_repository, test_landlord.id, title="Star", is_featured=True)
        await PropertyFactory.create_property(
            property_repository, test_landlord.id, title="Featured Draft",
            is_featured=True, status=PropertyStatus.DRAFT
        )

        featured = await property_repository.get_featured_properties()

        assert [p.title for p in featured] == ["Star"]

    async def test_similar_excludes_reference(self, property_repository: PropertyRepository, test_landlord: User):
        await self._seed(property_repository, test_landlord)
        reference = await PropertyFactory.create_property(property_repository, test_landlord.id, title="Reference")

        similar = await property_repository.get_similar_properties(reference)

        assert reference.id not in [p.id for p in similar]
        assert all(p.status == PropertyStatus.ACTIVE for p in similar)

    async def test_statistics(self, property_repository: PropertyRepository, test_landlord: User, other_landlord: User):
        await self._seed(property_repository, test_landlord)
        await PropertyFactory.create_property(property_repository, other_landlord.id, title="Elsewhere")

        stats = await property_repository.get_property_statistics(test_landlord.id)

        assert stats["total_properties"] == 3
        assert stats["properties_by_status"]["active"] == 2
        assert stats["properties_by_status"]["draft"] == 1
        assert stats["properties_by_status"]["sold"] == 0
        assert stats["properties_by_agent_status"]["unassigned"] == 3
        assert stats["average_active_price"] == 750.0


class TestAgentRequestRepository:
    async def test_latest_status_by_property(
        self,
        db_session,
        test_property: Property,
        draft_property: Property,
        test_agent: User
    ):
        repo = AgentRequestRepository(db_session)
        await repo.create({
            "property_id": test_property.id,
            "agent_id": test_agent.id,
            "initiated_by": RequestInitiator.AGENT,
            "status": RequestStatus.REJECTED,
            "requested_at": utcnow(),
        })
        await repo.create({
            "property_id": test_property.id,
            "agent_id": test_agent.id,
            "initiated_by": RequestInitiator.AGENT,
            "status": RequestStatus.PENDING,
            "requested_at": utcnow(),
        })

        latest = await repo.latest_status_by_property(test_agent.id, [test_property.id, draft_property.id])

        assert latest == {test_property.id: RequestStatus.PENDING}
        assert (await repo.get_pending_for_pair(test_property.id, test_agent.id)) is not None
        assert await repo.count_for_agent(test_agent.id) == 2

    async def test_latest_status_empty_ids(self, db_session, test_agent: User):
        assert await AgentRequestRepository(db_session).latest_status_by_property(test_agent.id, []) == {}


class TestWishlistRepositories:
    async def test_saved_entry_is_scoped_to_owner(
        self,
        db_session,
        test_property: Property,
        test_student: User,
        other_student: User
    ):
        repo = SavedPropertyRepository(db_session)
        entry = await repo.create({"user_id": test_student.id, "property_id": test_property.id})

        assert (await repo.get_entry(test_student.id, entry.id)).id == entry.id
        assert await repo.get_entry(other_student.id, entry.id) is None
        assert await repo.saved_property_ids(test_student.id) == {test_property.id}

    async def test_record_view_keeps_one_row(self, db_session, test_property: Property, test_student: User):
        repo = PropertyViewRepository(db_session)

        first = await repo.record_view(test_student.id, test_property.id)
        second = await repo.record_view(test_student.id, test_property.id)

        assert first.id == second.id
        assert await repo.count({"user_id": test_student.id}) == 1


class TestTransactionRepository:
    async def test_totals(
        self,
        db_session,
        booking_repository,
        assigned_property: Property,
        test_student: User,
        test_agent: User,
        test_landlord: User
    ):
        repo = TransactionRepository(db_session)
        booking = await BookingFactory.create_booking(
            booking_repository, assigned_property, test_student, duration_months=2, status=BookingStatus.APPROVED
        )
        await repo.create({
            "reference": "TXN-AAAAAAAAAA",
            "booking_id": booking.id,
            "property_id": assigned_property.id,
            "payer_id": test_student.id,
            "agent_id": test_agent.id,
            "amount": Decimal("1600.00"),
            "commission_amount": Decimal("80.00"),
            "payment_status": PaymentStatus.COMPLETED,
            "commission_status": CommissionStatus.PENDING,
        })
        await repo.create({
            "reference": "TXN-BBBBBBBBBB",
            "property_id": assigned_property.id,
            "payer_id": test_student.id,
            "agent_id": test_agent.id,
            "amount": Decimal("800.00"),
            "commission_amount": Decimal("40.00"),
            "payment_status": PaymentStatus.COMPLETED,
            "commission_status": CommissionStatus.PAID,
        })

        commission = await repo.commission_totals(test_agent.id)
        assert commission == {"paid": Decimal("40.00"), "pending": Decimal("80.00")}

        earnings = await repo.landlord_totals(test_landlord.id)
        assert earnings["gross"] == Decimal("2400.00")
        assert earnings["commission"] == Decimal("120.00")
        assert earnings["net"] == Decimal("2280.00")

        assert (await repo.get_for_booking(booking.id)).reference == "TXN-AAAAAAAAAA"
        assert len(await repo.list_for_landlord(test_landlord.id)) == 2

        platform = await repo.platform_totals()
        assert platform["pending_commission"] == Decimal("80.00")
