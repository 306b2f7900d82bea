"""
Tests for the support inbox.
"""

import pytest
from httpx import AsyncClient

from estatehub.config import settings
from estatehub.models.user import User
from estatehub.models.support import TicketStatus, TicketPriority
from estatehub.schemas.support import TicketCreate
from estatehub.services.support import SupportService
from estatehub.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
)
from tests.conftest import auth_headers

API = settings.api_v1_prefix


def ticket(subject: str = "Cannot upload photos", **overrides) -> TicketCreate:
    return TicketCreate(subject=subject, message="The upload button does nothing", **overrides)


class TestSupportService:
    async def test_admin_reply_starts_work(self, db_session, test_landlord: User, test_admin: User):
        service = SupportService(db_session)
        opened = await service.create_ticket(test_landlord, ticket())
        assert opened.status == TicketStatus.OPEN
        assert opened.priority == TicketPriority.MEDIUM

        await service.post_message(opened.id, test_landlord, "Any update?")
        assert (await service.get_ticket(opened.id, test_admin)).status == TicketStatus.OPEN

        await service.post_message(opened.id, test_admin, "Looking into it")
        thread = await service.get_ticket(opened.id, test_landlord)
        assert thread.status == TicketStatus.IN_PROGRESS
        assert [m.body for m in thread.messages] == ["Any update?", "Looking into it"]

    async def test_tickets_are_private(self, db_session, test_student: User, other_student: User):
        service = SupportService(db_session)
        opened = await service.create_ticket(test_student, ticket())

        with pytest.raises(ForbiddenError):
            await service.get_ticket(opened.id, other_student)
        with pytest.raises(ForbiddenError):
            await service.post_message(opened.id, other_student, "hello")

    async def test_closed_ticket_rejects_messages(self, db_session, test_student: User, test_admin: User):
        service = SupportService(db_session)
        opened = await service.create_ticket(test_student, ticket())

        closed = await service.close_ticket(opened.id, test_student)
        assert closed.status == TicketStatus.CLOSED

        with pytest.raises(ConflictError) as exc_info:
            await service.post_message(opened.id, test_admin, "Reopening?")
        assert exc_info.value.error_code == "TICKET_CLOSED"
        with pytest.raises(InvalidTransitionError):
            await service.close_ticket(opened.id, test_admin)
        with pytest.raises(ConflictError):
            await service.set_priority(opened.id, test_admin)

    async def test_escalate_is_admin_only(self, db_session, test_agent: User, test_admin: User):
        service = SupportService(db_session)
        opened = await service.create_ticket(test_agent, ticket(priority=TicketPriority.LOW))

        with pytest.raises(InsufficientPermissionsError):
            await service.set_priority(opened.id, test_agent)

        escalated = await service.set_priority(opened.id, test_admin)
        assert escalated.priority == TicketPriority.HIGH

    async def test_inbox_filters(
        self,
        db_session,
        test_student: User,
        test_landlord: User,
        test_admin: User
    ):
        service = SupportService(db_session)
        await service.create_ticket(test_student, ticket("Billing", priority=TicketPriority.HIGH))
        await service.create_ticket(test_landlord, ticket("Listing stuck"))
        done = await service.create_ticket(test_landlord, ticket("Old issue"))
        await service.close_ticket(done.id, test_admin)

        _, total = await service.list_inbox(test_admin)
        assert total == 3
        urgent, total = await service.list_inbox(test_admin, priority=TicketPriority.HIGH)
        assert total == 1 and urgent[0].subject == "Billing"
        _, total = await service.list_inbox(test_admin, status=TicketStatus.CLOSED)
        assert total == 1

        mine, total = await service.list_my_tickets(test_landlord, status=TicketStatus.OPEN)
        assert [t.subject for t in mine] == ["Listing stuck"]

        with pytest.raises(InsufficientPermissionsError):
            await service.list_inbox(test_landlord)


class TestSupportEndpoints:
    async def test_ticket_thread(self, async_client: AsyncClient, test_student: User, test_admin: User):
        created = await async_client.post(
            f"{API}/support/tickets",
            headers=auth_headers(test_student),
            json={"subject": "Refund", "message": "I was charged twice"}
        )
        assert created.status_code == 201
        ticket_id = created.json()["id"]

        inbox = await async_client.get(f"{API}/support/tickets", headers=auth_headers(test_student))
        assert inbox.status_code == 403

        reply = await async_client.post(
            f"{API}/support/tickets/{ticket_id}/messages",
            headers=auth_headers(test_admin),
            json={"body": "Refund issued"}
        )
        assert reply.status_code == 201

        escalated = await async_client.post(f"{API}/support/tickets/{ticket_id}/escalate", headers=auth_headers(test_admin))
        assert escalated.json()["priority"] == "high"

        thread = await async_client.get(f"{API}/support/tickets/{ticket_id}", headers=auth_headers(test_student))
        assert thread.json()["status"] == "in_progress"
        assert [m["body"] for m in thread.json()["messages"]] == ["Refund issued"]

        closed = await async_client.post(f"{API}/support/tickets/{ticket_id}/close", headers=auth_headers(test_student))
        assert closed.json()["status"] == "closed"

        late = await async_client.post(
            f"{API}/support/tickets/{ticket_id}/messages",
            headers=auth_headers(test_student),
            json={"body": "Thanks"}
        )
        assert late.status_code == 409

        mine = await async_client.get(f"{API}/support/tickets/mine", headers=auth_headers(test_student))
        assert mine.json()["total"] == 1
