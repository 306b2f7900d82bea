"""
End-to-end API tests through the ASGI app.
Each request runs on its own session against the per-test database.
"""

import pytest
import uuid
from datetime import date, timedelta
from httpx import AsyncClient

from estatehub.config import settings
from estatehub.models.user import User, UserRole
from estatehub.models.property import Property
from estatehub.repositories.user import UserRepository
from tests.conftest import PropertyFactory, UserFactory, auth_headers

API = settings.api_v1_prefix


class TestAuthEndpoints:
    """Test signup, login and the current user endpoint."""

    async def test_signup_and_login(self, async_client: AsyncClient):
        signup = await async_client.post(f"{API}/auth/signup", json={
            "email": "New.Student@University.edu",
            "full_name": "New Student",
            "password": "securepass1",
            "confirm_password": "securepass1",
        })

        assert signup.status_code == 201
        assert signup.json()["user"]["email"] == "new.student@university.edu"
        assert signup.json()["user"]["role"] == "student"

        login = await async_client.post(f"{API}/auth/login", json={
            "email": "new.student@university.edu",
            "password": "securepass1",
        })

        assert login.status_code == 200
        data = login.json()
        assert data["token_type"] == "bearer"
        assert data["redirect_to"] == "/dashboard"
        assert data["access_token"]

    async def test_signup_password_mismatch(self, async_client: AsyncClient, user_repository: UserRepository):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "mismatch@university.edu",
            "full_name": "Mismatch",
            "password": "securepass1",
            "confirm_password": "securepass2",
        })

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Passwords do not match"
        assert error["details"][0]["field"] == "confirm_password"
        assert await user_repository.get_by_email("mismatch@university.edu") is None

    async def test_signup_short_password(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "short@university.edu",
            "full_name": "Short",
            "password": "short",
            "confirm_password": "short",
        })

        assert response.status_code == 422
        assert response.json()["error"]["message"] == "Request validation failed"

    async def test_signup_as_admin_forbidden(self, async_client: AsyncClient):
        response = await async_client.post(f"{API}/auth/signup", json={
            "email": "boss@example.com",
            "full_name": "Boss",
            "password": "securepass1",
            "confirm_password": "securepass1",
            "role": "admin",
        })

        assert response.status_code == 403

    async def test_login_invalid_credentials(self, async_client: AsyncClient, test_student: User):
        response = await async_client.post(f"{API}/auth/login", json={
            "email": test_student.email,
            "password": "wrong-password",
        })

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    async def test_demo_accounts(self, async_client: AsyncClient, auth_service):
        await auth_service.seed_demo_users()

        credentials = await async_client.get(f"{API}/auth/demo-credentials")
        assert credentials.status_code == 200
        accounts = credentials.json()["accounts"]
        assert {a["role"] for a in accounts} == {"admin", "landlord", "agent", "student"}

        landlord = next(a for a in accounts if a["role"] == "landlord")
        login = await async_client.post(f"{API}/auth/login", json={
            "email": landlord["email"],
            "password": landlord["password"],
        })
        assert login.status_code == 200
        assert login.json()["redirect_to"] == "/dashboard"

    async def test_me_requires_token(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_me(self, async_client: AsyncClient, test_agent: User):
        response = await async_client.get(f"{API}/auth/me", headers=auth_headers(test_agent))

        assert response.status_code == 200
        assert response.json()["email"] == test_agent.email


class TestPropertyEndpoints:
    """Test listing CRUD, search and visibility."""

    async def test_create_property(self, async_client: AsyncClient, test_landlord: User):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_landlord),
            json={
                "title": "Garden Flat",
                "property_type": "Apartment",
                "price": 720,
                "bedrooms": 1,
                "bathrooms": 1,
                "address": "9 Garden Lane",
                "city": "Lagos",
                "amenities": ["WiFi", " garden "],
                "image_urls": ["https://cdn.example.com/g.jpg"],
                "publish": True,
            }
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["agent_status"] == "unassigned"
        assert data["landlord_id"] == str(test_landlord.id)

    async def test_student_cannot_create_property(self, async_client: AsyncClient, test_student: User):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_student),
            json={"title": "Nope", "property_type": "House", "price": 1, "address": "Nowhere", "city": "Lagos"}
        )

        assert response.status_code == 403

    async def test_create_property_validation(self, async_client: AsyncClient, test_landlord: User):
        response = await async_client.post(
            f"{API}/properties",
            headers=auth_headers(test_landlord),
            json={"title": "Bad", "property_type": "Castle", "price": -5}
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["message"] == "Request validation failed"
        assert "price" in {detail["field"] for detail in error["details"]}

    async def test_missing_property(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/properties/{uuid.uuid4()}")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert "Property not found" in error["message"]

    async def test_draft_visibility(
        self,
        async_client: AsyncClient,
        draft_property: Property,
        test_landlord: User,
        test_student: User
    ):
        anonymous = await async_client.get(f"{API}/properties/{draft_property.id}")
        student = await async_client.get(f"{API}/properties/{draft_property.id}", headers=auth_headers(test_student))
        owner = await async_client.get(f"{API}/properties/{draft_property.id}", headers=auth_headers(test_landlord))

        assert anonymous.status_code == 404
        assert student.status_code == 404
        assert owner.status_code == 200
        assert owner.json()["status"] == "draft"

    async def test_search_only_returns_active(
        self,
        async_client: AsyncClient,
        test_property: Property,
        draft_property: Property
    ):
        response = await async_client.get(f"{API}/properties", params={"city": "lagos"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["properties"][0]["id"] == str(test_property.id)

    async def test_search_by_amenity(self, async_client: AsyncClient, test_property: Property):
        found = await async_client.get(f"{API}/properties", params={"amenities": ["wifi"]})
        missing = await async_client.get(f"{API}/properties", params={"amenities": ["pool"]})

        assert found.json()["total"] == 1
        assert missing.json()["total"] == 0

    async def test_invalid_status_transition(
        self,
        async_client: AsyncClient,
        draft_property: Property,
        test_landlord: User
    ):
        response = await async_client.patch(
            f"{API}/properties/{draft_property.id}/status",
            headers=auth_headers(test_landlord),
            json={"status": "sold"}
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

        owner_view = await async_client.get(f"{API}/properties/{draft_property.id}", headers=auth_headers(test_landlord))
        assert owner_view.json()["status"] == "draft"

    async def test_details_mark_saved_and_record_view(
        self,
        async_client: AsyncClient,
        test_property: Property,
        test_student: User
    ):
        headers = auth_headers(test_student)
        await async_client.post(f"{API}/wishlist", headers=headers, json={"property_id": str(test_property.id)})

        details = await async_client.get(f"{API}/properties/{test_property.id}", headers=headers)
        recent = await async_client.get(f"{API}/wishlist/recently-viewed", headers=headers)

        assert details.json()["is_saved"] is True
        assert [item["property_id"] for item in recent.json()["items"]] == [str(test_property.id)]

    async def test_delete_property(self, async_client: AsyncClient, test_property: Property, test_landlord: User):
        response = await async_client.delete(f"{API}/properties/{test_property.id}", headers=auth_headers(test_landlord))
        assert response.status_code == 204

        missing = await async_client.get(f"{API}/properties/{test_property.id}", headers=auth_headers(test_landlord))
        assert missing.status_code == 404


class TestRepresentationEndpoints:
    """Test the agent request workflow over HTTP."""

    async def test_request_and_accept(
        self,
        async_client: AsyncClient,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        created = await async_client.post(
            f"{API}/agent-requests",
            headers=auth_headers(test_agent),
            json={"property_id": str(test_property.id), "message": "I can fill this quickly"}
        )
        assert created.status_code == 201
        request_id = created.json()["id"]
        assert created.json()["status"] == "pending"
        assert created.json()["initiated_by"] == "agent"

        accepted = await async_client.post(
            f"{API}/agent-requests/{request_id}/accept",
            headers=auth_headers(test_landlord)
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert accepted.json()["property"]["agent_status"] == "assigned"
        assert accepted.json()["property"]["agent_id"] == str(test_agent.id)

        withdrawn = await async_client.post(
            f"{API}/agent-requests/{request_id}/withdraw",
            headers=auth_headers(test_agent)
        )
        assert withdrawn.status_code == 409
        error = withdrawn.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["message"].startswith("Cannot move agent request from 'accepted' to 'withdrawn'")

    async def test_students_cannot_request(
        self,
        async_client: AsyncClient,
        test_property: Property,
        test_student: User
    ):
        response = await async_client.post(
            f"{API}/agent-requests",
            headers=auth_headers(test_student),
            json={"property_id": str(test_property.id)}
        )

        assert response.status_code == 403

    async def test_agent_discovery(
        self,
        async_client: AsyncClient,
        test_property: Property,
        assigned_property: Property,
        second_agent: User
    ):
        response = await async_client.get(f"{API}/agents/discover", headers=auth_headers(second_agent))

        assert response.status_code == 200
        ids = [p["id"] for p in response.json()["properties"]]
        assert ids == [str(test_property.id)]
        assert response.json()["properties"][0]["request_status"] == "none"


class TestEngagementEndpoints:
    """Bookings, payments and the wishlist through the API."""

    async def test_booking_payment_flow(
        self,
        async_client: AsyncClient,
        assigned_property: Property,
        test_student: User,
        test_landlord: User,
        test_agent: User
    ):
        booking = await async_client.post(
            f"{API}/bookings",
            headers=auth_headers(test_student),
            json={
                "property_id": str(assigned_property.id),
                "start_date": (date.today() + timedelta(days=14)).isoformat(),
                "duration_months": 3,
            }
        )
        assert booking.status_code == 201
        booking_id = booking.json()["id"]
        assert booking.json()["amount"] == 2400.0

        early = await async_client.post(
            f"{API}/payments", headers=auth_headers(test_student), json={"booking_id": booking_id}
        )
        assert early.status_code == 400

        approved = await async_client.post(f"{API}/bookings/{booking_id}/approve", headers=auth_headers(test_landlord))
        assert approved.json()["status"] == "approved"

        paid = await async_client.post(
            f"{API}/payments", headers=auth_headers(test_student), json={"booking_id": booking_id}
        )
        assert paid.status_code == 201
        assert paid.json()["commission_amount"] == 120.0
        assert paid.json()["commission_status"] == "pending"
        assert paid.json()["agent_id"] == str(test_agent.id)

        again = await async_client.post(
            f"{API}/payments", headers=auth_headers(test_student), json={"booking_id": booking_id}
        )
        assert again.status_code == 409

    async def test_wishlist_entries_are_private(
        self,
        async_client: AsyncClient,
        test_property: Property,
        test_student: User,
        other_student: User
    ):
        owner = auth_headers(test_student)
        first = await async_client.post(f"{API}/wishlist", headers=owner, json={"property_id": str(test_property.id)})
        second = await async_client.post(f"{API}/wishlist", headers=owner, json={"property_id": str(test_property.id)})

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]

        saved_id = first.json()["id"]
        stolen = await async_client.delete(f"{API}/wishlist/{saved_id}", headers=auth_headers(other_student))
        assert stolen.status_code == 404

        listing = await async_client.get(f"{API}/wishlist", headers=owner)
        assert listing.json()["total"] == 1

        removed = await async_client.delete(f"{API}/wishlist/{saved_id}", headers=owner)
        assert removed.status_code == 204

    async def test_removing_saved_property_keeps_the_rest(
        self,
        async_client: AsyncClient,
        property_repository,
        test_property: Property,
        test_landlord: User,
        test_student: User
    ):
        second = await PropertyFactory.create_property(property_repository, test_landlord.id, title="Backup Choice")
        owner = auth_headers(test_student)
        first_saved = await async_client.post(
            f"{API}/wishlist", headers=owner, json={"property_id": str(test_property.id)}
        )
        await async_client.post(f"{API}/wishlist", headers=owner, json={"property_id": str(second.id)})

        removed = await async_client.delete(f"{API}/wishlist/{first_saved.json()['id']}", headers=owner)
        assert removed.status_code == 204

        wishlist = await async_client.get(f"{API}/wishlist", headers=owner)
        assert wishlist.json()["total"] == 1
        assert [item["property_id"] for item in wishlist.json()["items"]] == [str(second.id)]

    async def test_unsave_is_idempotent(self, async_client: AsyncClient, test_property: Property, test_student: User):
        response = await async_client.delete(
            f"{API}/wishlist/property/{test_property.id}", headers=auth_headers(test_student)
        )
        assert response.status_code == 204


class TestDashboardEndpoint:
    @pytest.mark.parametrize("role,expected", [
        (UserRole.STUDENT, "student"),
        (UserRole.LANDLORD, "landlord"),
        (UserRole.AGENT, "agent"),
        (UserRole.ADMIN, "admin"),
    ])
    async def test_dashboard_per_role(
        self,
        async_client: AsyncClient,
        user_repository: UserRepository,
        role: UserRole,
        expected: str
    ):
        user = await UserFactory.create_user(user_repository, role=role)

        response = await async_client.get(f"{API}/dashboard", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["dashboard"] == expected
        assert response.json()["user"]["id"] == str(user.id)

    async def test_dashboard_requires_login(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/dashboard")
        assert response.status_code == 401

    async def test_inactive_user_rejected(self, async_client: AsyncClient, test_inactive_user: User):
        response = await async_client.get(f"{API}/dashboard", headers=auth_headers(test_inactive_user))
        assert response.status_code == 403


class TestHealthEndpoints:
    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.json()["api_prefix"] == API

    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"

    async def test_database_health(self, async_client: AsyncClient):
        response = await async_client.get("/health/db")

        assert response.status_code == 200
        assert "database_version" in response.json()["database"]

    async def test_metrics(self, async_client: AsyncClient):
        await async_client.get("/health")

        response = await async_client.get("/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["requests"]["total_requests"] >= 1
        assert any(endpoint.startswith("GET /health") for endpoint in data["requests"]["endpoints"])
        assert "process" in data["resources"]

    async def test_request_id_header(self, async_client: AsyncClient):
        response = await async_client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert float(response.headers["X-Processing-Time"]) >= 0

    async def test_error_carries_request_id(self, async_client: AsyncClient):
        response = await async_client.get(f"{API}/properties/{uuid.uuid4()}", headers={"X-Request-ID": "trace-404"})

        assert response.json()["error"]["request_id"] == "trace-404"
