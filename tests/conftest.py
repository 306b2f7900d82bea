"""
Test configuration and fixtures for the EstateHub API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os

# Settings are read at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SEED_DEMO_USERS"] = "false"

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

import estatehub.models  # noqa: F401
from estatehub.main import app
from estatehub.database import Base, get_db
from estatehub.models.user import User, UserRole
from estatehub.models.property import Property, PropertyType, PropertyStatus, AgentStatus
from estatehub.models.booking import Booking, BookingStatus
from estatehub.repositories.user import UserRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.booking import BookingRepository
from estatehub.services.auth import AuthService
from estatehub.services.property import PropertyService
from estatehub.services.representation import RepresentationService
from estatehub.utils.auth import create_access_token


TEST_DATABASE_URL = "sqlite+aiosqlite://"
DEFAULT_PASSWORD = "testpassword123"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


@pytest.fixture
def booking_repository(db_session: AsyncSession) -> BookingRepository:
    return BookingRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession) -> PropertyService:
    return PropertyService(db_session)


@pytest.fixture
def representation_service(db_session: AsyncSession) -> RepresentationService:
    return RepresentationService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.STUDENT,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"user{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(
        user_repo: UserRepository,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        full_name: str = "Test User",
        role: UserRole = UserRole.STUDENT,
        is_active: bool = True
    ) -> User:
        """Create a test user in the database."""
        user_data = UserFactory.create_user_data(
            email=email,
            password=password,
            full_name=full_name,
            role=role,
            is_active=is_active
        )
        return await user_repo.create_user(user_data)


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        landlord_id: uuid.UUID,
        title: str = "Test Property",
        description: str = "Bright rooms close to campus",
        property_type: PropertyType = PropertyType.APARTMENT,
        price: Decimal = Decimal("500.00"),
        bedrooms: int = 2,
        bathrooms: int = 1,
        address: str = "12 Campus Road",
        city: str = "Lagos",
        amenities: Optional[List[str]] = None,
        total_units: int = 2,
        available_units: int = 2,
        status: PropertyStatus = PropertyStatus.ACTIVE,
        agent_status: AgentStatus = AgentStatus.UNASSIGNED,
        agent_id: uuid.UUID = None,
        allow_agents: bool = True,
        is_featured: bool = False
    ) -> dict:
        return {
            "title": title,
            "description": description,
            "property_type": property_type,
            "price": price,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "address": address,
            "city": city,
            "amenities": amenities or [],
            "total_units": total_units,
            "available_units": available_units,
            "status": status,
            "agent_status": agent_status,
            "agent_id": agent_id,
            "allow_agents": allow_agents,
            "is_featured": is_featured,
            "landlord_id": landlord_id,
        }

    @staticmethod
    async def create_property(
        property_repo: PropertyRepository,
        landlord_id: uuid.UUID,
        image_urls: Optional[List[str]] = None,
        **overrides
    ) -> Property:
        """Create a test property in the database."""
        property_data = PropertyFactory.create_property_data(landlord_id, **overrides)
        return await property_repo.create_property(property_data, image_urls)


class BookingFactory:
    """Factory for bookings inserted directly, bypassing the booking rules."""

    @staticmethod
    async def create_booking(
        booking_repo: BookingRepository,
        property_obj: Property,
        client: User,
        duration_months: int = 3,
        status: BookingStatus = BookingStatus.PENDING
    ) -> Booking:
        return await booking_repo.create({
            "property_id": property_obj.id,
            "client_id": client.id,
            "start_date": date.today() + timedelta(days=30),
            "duration_months": duration_months,
            "amount": (property_obj.price * duration_months).quantize(Decimal("0.01")),
            "status": status,
        })


def auth_headers(user: User) -> Dict[str, str]:
    """Bearer headers for a user, without going through the login endpoint."""
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


# Common test fixtures
@pytest.fixture
async def test_student(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="student@university.edu",
        full_name="Test Student",
        role=UserRole.STUDENT
    )


@pytest.fixture
async def other_student(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="classmate@university.edu",
        full_name="Other Student",
        role=UserRole.STUDENT
    )


@pytest.fixture
async def test_landlord(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="landlord@example.com",
        full_name="Test Landlord",
        role=UserRole.LANDLORD
    )


@pytest.fixture
async def other_landlord(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="otherlandlord@example.com",
        full_name="Other Landlord",
        role=UserRole.LANDLORD
    )


@pytest.fixture
async def test_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="agent@example.com",
        full_name="Test Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def second_agent(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="agent2@example.com",
        full_name="Second Agent",
        role=UserRole.AGENT
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@example.com",
        full_name="Test Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_inactive_user(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="inactive@example.com",
        full_name="Inactive User",
        is_active=False
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_landlord: User) -> Property:
    """Active, unassigned listing with two free units."""
    return await PropertyFactory.create_property(
        property_repository,
        landlord_id=test_landlord.id,
        title="Campus View Apartment",
        price=Decimal("500.00"),
        amenities=["wifi", "parking"],
        image_urls=["https://cdn.example.com/p/1.jpg", "https://cdn.example.com/p/2.jpg"]
    )


@pytest.fixture
async def draft_property(property_repository: PropertyRepository, test_landlord: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        landlord_id=test_landlord.id,
        title="Unpublished Studio",
        status=PropertyStatus.DRAFT
    )


@pytest.fixture
async def assigned_property(
    property_repository: PropertyRepository,
    test_landlord: User,
    test_agent: User
) -> Property:
    """Active listing already represented by test_agent."""
    return await PropertyFactory.create_property(
        property_repository,
        landlord_id=test_landlord.id,
        title="Agent Managed Flat",
        price=Decimal("800.00"),
        agent_id=test_agent.id,
        agent_status=AgentStatus.ASSIGNED
    )
