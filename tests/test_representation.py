"""
Tests for the agent representation workflow.
Covers the request transition table, invitations, sibling closing and
agent status bookkeeping on the property.
"""

import logging
import pytest

from estatehub.models.user import User
from estatehub.models.property import Property, AgentStatus, PropertyStatus
from estatehub.models.agent_request import RequestStatus, RequestInitiator
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.performance import AgentPerformanceRepository
from estatehub.services.performance import PerformanceService
from estatehub.services.representation import (
    ActorSide,
    RepresentationService,
    RequestAction,
    apply_transition,
    DEFAULT_INVITE_MESSAGE,
)
from estatehub.utils.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    PropertyOwnershipError,
    PropertyStatusError,
    ValidationError,
)
from tests.conftest import PropertyFactory


class TestApplyTransition:
    """The request state table."""

    @pytest.mark.parametrize("action,side,expected", [
        (RequestAction.ACCEPT, ActorSide.COUNTERPARTY, RequestStatus.ACCEPTED),
        (RequestAction.REJECT, ActorSide.COUNTERPARTY, RequestStatus.REJECTED),
        (RequestAction.WITHDRAW, ActorSide.INITIATOR, RequestStatus.WITHDRAWN),
    ])
    def test_allowed_moves(self, action, side, expected):
        assert apply_transition(RequestStatus.PENDING, action, side) == expected

    @pytest.mark.parametrize("action,side", [
        (RequestAction.ACCEPT, ActorSide.INITIATOR),
        (RequestAction.REJECT, ActorSide.INITIATOR),
        (RequestAction.WITHDRAW, ActorSide.COUNTERPARTY),
    ])
    def test_wrong_side(self, action, side):
        with pytest.raises(InvalidTransitionError, match="only the"):
            apply_transition(RequestStatus.PENDING, action, side)

    @pytest.mark.parametrize("status", [
        RequestStatus.ACCEPTED,
        RequestStatus.REJECTED,
        RequestStatus.WITHDRAWN,
    ])
    def test_terminal_states(self, status):
        for action in RequestAction:
            with pytest.raises(InvalidTransitionError):
                apply_transition(status, action, ActorSide.COUNTERPARTY)

    def test_error_names_both_states(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_transition(RequestStatus.ACCEPTED, RequestAction.REJECT, ActorSide.COUNTERPARTY)

        assert "'accepted'" in exc_info.value.detail
        assert "'rejected'" in exc_info.value.detail


class TestAgentRequests:
    """Agent-initiated requests."""

    async def test_request_marks_property_requested(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id, "I know the area")

        assert request.status == RequestStatus.PENDING
        assert request.initiated_by == RequestInitiator.AGENT
        await db_session.refresh(test_property)
        assert test_property.agent_status == AgentStatus.REQUESTED

    async def test_only_agents_request(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_student: User
    ):
        with pytest.raises(InsufficientPermissionsError):
            await representation_service.request_to_represent(test_student, test_property.id)

    async def test_duplicate_pending_request(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        await representation_service.request_to_represent(test_agent, test_property.id)

        with pytest.raises(ConflictError) as exc_info:
            await representation_service.request_to_represent(test_agent, test_property.id)
        assert exc_info.value.error_code == "DUPLICATE_REQUEST"

    async def test_request_on_draft(
        self,
        representation_service: RepresentationService,
        draft_property: Property,
        test_agent: User
    ):
        with pytest.raises(PropertyStatusError):
            await representation_service.request_to_represent(test_agent, draft_property.id)

    async def test_request_when_agents_not_allowed(
        self,
        representation_service: RepresentationService,
        property_repository,
        test_landlord: User,
        test_agent: User
    ):
        closed = await PropertyFactory.create_property(property_repository, test_landlord.id, allow_agents=False)

        with pytest.raises(BusinessRuleViolationError):
            await representation_service.request_to_represent(test_agent, closed.id)

    async def test_request_on_assigned_property(
        self,
        representation_service: RepresentationService,
        assigned_property: Property,
        second_agent: User
    ):
        with pytest.raises(ConflictError):
            await representation_service.request_to_represent(second_agent, assigned_property.id)

    async def test_landlord_accepts(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        accepted = await representation_service.accept(request.id, test_landlord, "Welcome aboard")

        assert accepted.status == RequestStatus.ACCEPTED
        assert accepted.responded_by == test_landlord.id
        assert accepted.response_note == "Welcome aboard"
        await db_session.refresh(test_property)
        assert test_property.agent_id == test_agent.id
        assert test_property.agent_status == AgentStatus.ASSIGNED

    async def test_accept_refreshes_performance(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)
        await representation_service.accept(request.id, test_landlord)

        performance = await AgentPerformanceRepository(db_session).get_for_agent(test_agent.id)

        assert performance is not None
        assert performance.properties_assigned == 1
        assert performance.requests_accepted == 1

    async def test_failed_performance_refresh_keeps_acceptance(
        self,
        db_session,
        monkeypatch,
        caplog,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        async def broken_recompute(self, agent_id, commit=True):
            raise RuntimeError("aggregate table locked")

        monkeypatch.setattr(PerformanceService, "recompute", broken_recompute)
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        with caplog.at_level(logging.WARNING, logger="estatehub.services.performance"):
            accepted = await representation_service.accept(request.id, test_landlord)

        assert accepted.status == RequestStatus.ACCEPTED
        assert any("recompute failed" in record.getMessage() for record in caplog.records)
        await db_session.refresh(test_property)
        assert test_property.agent_id == test_agent.id
        assert test_property.agent_status == AgentStatus.ASSIGNED
        assert await AgentPerformanceRepository(db_session).get_for_agent(test_agent.id) is None

    async def test_pending_pair_backed_by_unique_index(
        self,
        db_session,
        monkeypatch,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        property_id = test_property.id
        agent_id = test_agent.id
        await representation_service.request_to_represent(test_agent, property_id)

        # A concurrent caller that missed the first request in its pre-check
        async def no_pending(self, property_id, agent_id):
            return None

        monkeypatch.setattr(AgentRequestRepository, "get_pending_for_pair", no_pending)

        with pytest.raises(ConflictError) as exc_info:
            await representation_service.request_to_represent(test_agent, property_id)

        assert exc_info.value.error_code == "DUPLICATE_REQUEST"
        monkeypatch.undo()
        pending = await AgentRequestRepository(db_session).count(
            {"property_id": property_id, "agent_id": agent_id, "status": RequestStatus.PENDING}
        )
        assert pending == 1

    async def test_agent_cannot_accept_own_request(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        with pytest.raises(InvalidTransitionError):
            await representation_service.accept(request.id, test_agent)

    async def test_outsider_cannot_act(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        other_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        with pytest.raises(ForbiddenError):
            await representation_service.reject(request.id, other_landlord)

    async def test_accept_closes_sibling_requests(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        second_agent: User,
        test_landlord: User
    ):
        first = await representation_service.request_to_represent(test_agent, test_property.id)
        second = await representation_service.request_to_represent(second_agent, test_property.id)

        await representation_service.accept(first.id, test_landlord)

        await db_session.refresh(second)
        assert second.status == RequestStatus.REJECTED
        assert second.responded_by == test_landlord.id

    async def test_accept_withdraws_other_invitations(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        second_agent: User,
        test_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)
        invitation = await representation_service.invite_agent(test_landlord, test_property.id, second_agent.id)

        await representation_service.accept(request.id, test_landlord)

        await db_session.refresh(invitation)
        assert invitation.status == RequestStatus.WITHDRAWN

    async def test_rejecting_last_request(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        rejected = await representation_service.reject(request.id, test_landlord)

        assert rejected.status == RequestStatus.REJECTED
        await db_session.refresh(test_property)
        assert test_property.agent_status == AgentStatus.REJECTED

    async def test_withdrawing_last_request(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)

        withdrawn = await representation_service.withdraw(request.id, test_agent)

        assert withdrawn.status == RequestStatus.WITHDRAWN
        await db_session.refresh(test_property)
        assert test_property.agent_status == AgentStatus.UNASSIGNED

    async def test_property_stays_requested_while_requests_open(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        second_agent: User
    ):
        first = await representation_service.request_to_represent(test_agent, test_property.id)
        await representation_service.request_to_represent(second_agent, test_property.id)

        await representation_service.withdraw(first.id, test_agent)

        await db_session.refresh(test_property)
        assert test_property.agent_status == AgentStatus.REQUESTED

    async def test_terminal_request_cannot_move(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        request = await representation_service.request_to_represent(test_agent, test_property.id)
        await representation_service.reject(request.id, test_landlord)

        with pytest.raises(InvalidTransitionError):
            await representation_service.accept(request.id, test_landlord)


class TestInvitations:
    """Owner-initiated invitations."""

    async def test_invite_and_agent_accepts(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        invitation = await representation_service.invite_agent(test_landlord, test_property.id, test_agent.id)

        assert invitation.initiated_by == RequestInitiator.OWNER
        assert invitation.message == DEFAULT_INVITE_MESSAGE

        # The landlord opened it, so only the agent may answer
        with pytest.raises(InvalidTransitionError):
            await representation_service.accept(invitation.id, test_landlord)

        accepted = await representation_service.accept(invitation.id, test_agent)

        assert accepted.status == RequestStatus.ACCEPTED
        await db_session.refresh(test_property)
        assert test_property.agent_id == test_agent.id

    async def test_landlord_withdraws_invitation(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        invitation = await representation_service.invite_agent(test_landlord, test_property.id, test_agent.id)

        withdrawn = await representation_service.withdraw(invitation.id, test_landlord)

        assert withdrawn.status == RequestStatus.WITHDRAWN

    async def test_invite_requires_ownership(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User,
        other_landlord: User
    ):
        with pytest.raises(PropertyOwnershipError):
            await representation_service.invite_agent(other_landlord, test_property.id, test_agent.id)

    async def test_invite_non_agent(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_student: User,
        test_landlord: User
    ):
        with pytest.raises(ValidationError):
            await representation_service.invite_agent(test_landlord, test_property.id, test_student.id)

    async def test_invitation_lists(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        draft_property: Property,
        test_agent: User,
        test_landlord: User
    ):
        await representation_service.invite_agent(test_landlord, draft_property.id, test_agent.id)
        await representation_service.request_to_represent(test_agent, test_property.id)

        invitations, invitation_total = await representation_service.list_invitations(test_agent)
        sent, sent_total = await representation_service.list_sent_requests(test_agent)
        incoming, incoming_total = await representation_service.list_incoming_requests(test_landlord)

        assert invitation_total == 1 and invitations[0].property_id == draft_property.id
        assert sent_total == 1 and sent[0].property_id == test_property.id
        assert incoming_total == 2


class TestAssignment:
    """Exclusive representation and release."""

    async def test_make_exclusive_and_release(
        self,
        representation_service: RepresentationService,
        assigned_property: Property,
        test_landlord: User
    ):
        exclusive = await representation_service.make_exclusive(assigned_property.id, test_landlord)
        assert exclusive.agent_status == AgentStatus.EXCLUSIVE

        released = await representation_service.release_agent(assigned_property.id, test_landlord)
        assert released.agent_status == AgentStatus.UNASSIGNED
        assert released.agent_id is None

    async def test_make_exclusive_without_agent(
        self,
        representation_service: RepresentationService,
        test_property: Property,
        test_landlord: User
    ):
        with pytest.raises(InvalidTransitionError):
            await representation_service.make_exclusive(test_property.id, test_landlord)

    async def test_release_requires_ownership(
        self,
        representation_service: RepresentationService,
        assigned_property: Property,
        other_landlord: User
    ):
        with pytest.raises(PropertyOwnershipError):
            await representation_service.release_agent(assigned_property.id, other_landlord)


class TestDiscovery:
    async def test_discover_reports_latest_request_status(
        self,
        db_session,
        representation_service: RepresentationService,
        property_repository,
        test_property: Property,
        assigned_property: Property,
        draft_property: Property,
        test_landlord: User,
        test_agent: User
    ):
        untouched = await PropertyFactory.create_property(property_repository, test_landlord.id, title="Fresh Listing")
        await PropertyFactory.create_property(
            property_repository, test_landlord.id, title="No Agents", allow_agents=False
        )
        await representation_service.request_to_represent(test_agent, test_property.id)

        rows, total = await representation_service.discover_properties(test_agent)

        statuses = {property_obj.id: status for property_obj, status in rows}
        assert total == 2
        assert statuses == {test_property.id: "pending", untouched.id: "none"}

    async def test_discover_requires_agent(self, representation_service: RepresentationService, test_student: User):
        with pytest.raises(InsufficientPermissionsError):
            await representation_service.discover_properties(test_student)

    async def test_request_rows_stay_after_property_status_change(
        self,
        db_session,
        representation_service: RepresentationService,
        test_property: Property,
        test_agent: User
    ):
        await representation_service.request_to_represent(test_agent, test_property.id)
        test_property.status = PropertyStatus.INACTIVE
        await db_session.commit()

        assert await AgentRequestRepository(db_session).count_for_agent(test_agent.id) == 1
        _, total = await representation_service.discover_properties(test_agent)
        assert total == 0
