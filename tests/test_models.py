"""
Unit tests for database models.
Covers validation, lifecycle tables, visibility and serialization helpers.
"""

import pytest
import uuid
from decimal import Decimal

from estatehub.models.user import User, UserRole
from estatehub.models.property import Property, PropertyType, PropertyStatus, AgentStatus
from estatehub.models.booking import Booking, BookingStatus
from estatehub.models.showing import Showing, ShowingStatus
from estatehub.models.transaction import Transaction
from estatehub.models.agent_request import AgentRequest, RequestStatus, RequestInitiator
from estatehub.models.application import Application
from estatehub.models.inquiry import Inquiry
from estatehub.models.wishlist import SavedProperty, PropertyView
from estatehub.models.performance import AgentPerformance


def make_user(role: UserRole = UserRole.STUDENT) -> User:
    return User(
        id=uuid.uuid4(),
        email=f"{role.value}@example.com",
        full_name="Model User",
        role=role,
        is_active=True,
        hashed_password="x",
    )


def make_property(**overrides) -> Property:
    data = {
        "id": uuid.uuid4(),
        "title": "Model Property",
        "description": "",
        "property_type": PropertyType.APARTMENT,
        "price": Decimal("500.00"),
        "bedrooms": 2,
        "bathrooms": 1,
        "address": "1 Test Street",
        "city": "Lagos",
        "amenities": [],
        "total_units": 3,
        "available_units": 3,
        "status": PropertyStatus.ACTIVE,
        "agent_status": AgentStatus.UNASSIGNED,
        "allow_agents": True,
        "is_featured": False,
        "landlord_id": uuid.uuid4(),
    }
    data.update(overrides)
    return Property(**data)


class TestUserModel:
    """Test User model behavior."""

    def test_validate_email_format_normalizes(self):
        assert User.validate_email_format("Jane.Doe@Example.com") == "jane.doe@example.com"

    def test_validate_email_format_invalid(self):
        with pytest.raises(ValueError, match="Invalid email format"):
            User.validate_email_format("not-an-email")

    def test_hash_password_requires_minimum_length(self):
        with pytest.raises(ValueError, match="at least 8 characters"):
            User.hash_password("short")

    def test_password_round_trip(self):
        user = make_user()
        user.set_password("correct-horse")

        assert user.hashed_password != "correct-horse"
        assert user.verify_password("correct-horse")
        assert not user.verify_password("wrong-horse")

    def test_role_properties(self):
        assert make_user(UserRole.ADMIN).is_admin
        assert make_user(UserRole.AGENT).is_agent
        assert make_user(UserRole.LANDLORD).is_landlord
        assert make_user(UserRole.STUDENT).is_student
        assert not make_user(UserRole.STUDENT).is_landlord

    def test_can_manage_property(self):
        landlord = make_user(UserRole.LANDLORD)
        admin = make_user(UserRole.ADMIN)
        stranger = make_user(UserRole.LANDLORD)

        assert landlord.can_manage_property(landlord.id)
        assert admin.can_manage_property(landlord.id)
        assert not stranger.can_manage_property(landlord.id)

    def test_to_dict_excludes_password(self):
        data = make_user(UserRole.AGENT).to_dict()

        assert "hashed_password" not in data
        assert data["role"] == "agent"


class TestPropertyModel:
    """Test Property validation, lifecycle and visibility."""

    def test_validate_all_accepts_valid_property(self):
        make_property().validate_all()

    def test_validate_price_rejects_zero(self):
        with pytest.raises(ValueError, match="greater than 0"):
            make_property(price=Decimal("0")).validate_price()

    def test_validate_rooms_rejects_negative(self):
        with pytest.raises(ValueError, match="bedrooms cannot be negative"):
            make_property(bedrooms=-1).validate_rooms()

    def test_validate_units_rejects_more_available_than_total(self):
        with pytest.raises(ValueError, match="cannot exceed total units"):
            make_property(total_units=2, available_units=3).validate_units()

    def test_validate_units_requires_one_unit(self):
        with pytest.raises(ValueError, match="at least one unit"):
            make_property(total_units=0, available_units=0).validate_units()

    def test_validate_coordinates(self):
        with pytest.raises(ValueError, match="Latitude"):
            make_property(latitude=Decimal("91")).validate_coordinates()
        with pytest.raises(ValueError, match="Longitude"):
            make_property(longitude=Decimal("-181")).validate_coordinates()

    @pytest.mark.parametrize("current,target,allowed", [
        (PropertyStatus.DRAFT, PropertyStatus.ACTIVE, True),
        (PropertyStatus.ACTIVE, PropertyStatus.RENTED, True),
        (PropertyStatus.RENTED, PropertyStatus.ACTIVE, True),
        (PropertyStatus.INACTIVE, PropertyStatus.SOLD, False),
        (PropertyStatus.SOLD, PropertyStatus.ACTIVE, False),
        (PropertyStatus.DRAFT, PropertyStatus.SOLD, False),
    ])
    def test_can_transition_to(self, current, target, allowed):
        assert make_property(status=current).can_transition_to(target) is allowed

    def test_active_property_visible_to_anonymous(self):
        assert make_property().is_visible_to(None)

    def test_hidden_property_visibility(self):
        landlord = make_user(UserRole.LANDLORD)
        agent = make_user(UserRole.AGENT)
        property_obj = make_property(
            status=PropertyStatus.DRAFT, landlord_id=landlord.id, agent_id=agent.id
        )

        assert not property_obj.is_visible_to(None)
        assert not property_obj.is_visible_to(make_user(UserRole.STUDENT))
        assert property_obj.is_visible_to(landlord)
        assert property_obj.is_visible_to(agent)
        assert property_obj.is_visible_to(make_user(UserRole.ADMIN))

    def test_to_dict_without_images(self):
        property_obj = make_property(agent_status=AgentStatus.REQUESTED)
        data = property_obj.to_dict(include_images=False)

        assert data["status"] == "active"
        assert data["agent_status"] == "requested"
        assert data["agent_id"] is None
        assert "images" not in data


class TestWorkflowTables:
    """Transition tables of the engagement models."""

    @pytest.mark.parametrize("current,target,allowed", [
        (BookingStatus.PENDING, BookingStatus.APPROVED, True),
        (BookingStatus.PENDING, BookingStatus.CANCELLED, True),
        (BookingStatus.APPROVED, BookingStatus.COMPLETED, True),
        (BookingStatus.APPROVED, BookingStatus.CANCELLED, False),
        (BookingStatus.REJECTED, BookingStatus.APPROVED, False),
        (BookingStatus.COMPLETED, BookingStatus.PENDING, False),
    ])
    def test_booking_transitions(self, current, target, allowed):
        assert Booking(status=current).can_transition_to(target) is allowed

    @pytest.mark.parametrize("current,target,allowed", [
        (ShowingStatus.SCHEDULED, ShowingStatus.CONFIRMED, True),
        (ShowingStatus.SCHEDULED, ShowingStatus.COMPLETED, False),
        (ShowingStatus.CONFIRMED, ShowingStatus.COMPLETED, True),
        (ShowingStatus.CANCELLED, ShowingStatus.CONFIRMED, False),
    ])
    def test_showing_transitions(self, current, target, allowed):
        assert Showing(status=current).can_transition_to(target) is allowed


class TestLedgerModels:
    def test_landlord_net(self):
        transaction = Transaction(amount=Decimal("1500.00"), commission_amount=Decimal("75.00"))
        assert transaction.landlord_net == Decimal("1425.00")

    def test_acceptance_rate(self):
        assert AgentPerformance(requests_total=0, requests_accepted=0).acceptance_rate == 0.0
        assert AgentPerformance(requests_total=4, requests_accepted=1).acceptance_rate == 0.25


class TestListingRelationship:
    """Every model that points at a property exposes it as ``listing``."""

    @pytest.mark.parametrize("model", [
        AgentRequest, Application, Booking, Inquiry, Showing, Transaction, SavedProperty, PropertyView,
    ])
    def test_listing_relationship(self, model):
        relationship = model.__mapper__.relationships["listing"]
        assert relationship.mapper.class_ is Property
        assert "property" not in model.__mapper__.relationships

    def test_agent_request_helpers(self):
        request = AgentRequest(status=RequestStatus.PENDING, initiated_by=RequestInitiator.OWNER)

        assert request.is_pending is True
        assert request.is_invitation is True
        assert request.to_dict(include_property=False)["status"] == "pending"
