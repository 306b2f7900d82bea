"""
Agent-property representation workflow.

Agents ask to represent a listing, owners invite agents, and the other party
accepts or rejects while the initiator may withdraw. Every state change of an
AgentRequest goes through `apply_transition` and is performed by
`RepresentationService.transition`.

    pending --accept (counterparty)--> accepted
    pending --reject (counterparty)--> rejected
    pending --withdraw (initiator)---> withdrawn

accepted, rejected and withdrawn are terminal.
"""

from typing import Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from decimal import Decimal
from estatehub.database import utcnow
from estatehub.models.agent_request import AgentRequest, RequestStatus, RequestInitiator
from estatehub.models.property import Property, PropertyStatus, PropertyType, AgentStatus
from estatehub.models.user import User, UserRole
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.property import PropertyRepository, PropertySearchFilters
from estatehub.repositories.user import UserRepository
from estatehub.services.performance import PerformanceService
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    BusinessRuleViolationError,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    PropertyStatusError,
    ValidationError,
)
import enum
import uuid
import logging

logger = logging.getLogger(__name__)

DEFAULT_INVITE_MESSAGE = "Property owner has invited you to represent this property."


class RequestAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    WITHDRAW = "withdraw"


class ActorSide(str, enum.Enum):
    """Role of the acting user relative to the request."""
    INITIATOR = "initiator"
    COUNTERPARTY = "counterparty"


# (current status, action) -> (side allowed to act, resulting status)
REQUEST_TRANSITIONS: Dict[Tuple[RequestStatus, RequestAction], Tuple[ActorSide, RequestStatus]] = {
    (RequestStatus.PENDING, RequestAction.ACCEPT): (ActorSide.COUNTERPARTY, RequestStatus.ACCEPTED),
    (RequestStatus.PENDING, RequestAction.REJECT): (ActorSide.COUNTERPARTY, RequestStatus.REJECTED),
    (RequestStatus.PENDING, RequestAction.WITHDRAW): (ActorSide.INITIATOR, RequestStatus.WITHDRAWN),
}

_ACTION_RESULTS = {action: result for (_, action), (_, result) in REQUEST_TRANSITIONS.items()}


def apply_transition(status: RequestStatus, action: RequestAction, actor_side: ActorSide) -> RequestStatus:
    """
    Resolve an agent-request state change.

    Args:
        status: Current request status
        action: Requested action
        actor_side: Whether the actor opened the request or is the other party

    Returns:
        The status the request moves to

    Raises:
        InvalidTransitionError: If the table has no entry for the move or the
            actor is on the wrong side
    """
    target = _ACTION_RESULTS[action].value
    rule = REQUEST_TRANSITIONS.get((status, action))
    if rule is None:
        raise InvalidTransitionError("agent request", status.value, target, "request is no longer pending")

    allowed_side, result = rule
    if actor_side != allowed_side:
        raise InvalidTransitionError(
            "agent request", status.value, target, f"only the {allowed_side.value} may {action.value}"
        )
    return result


class RepresentationService:
    """
    Business rules for agent requests, invitations and agent assignment.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.request_repo = AgentRequestRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.performance = PerformanceService(db_session)

    # Opening requests

    async def request_to_represent(
        self,
        agent: User,
        property_id: uuid.UUID,
        message: Optional[str] = None,
        commission_offer: Optional[Decimal] = None
    ) -> AgentRequest:
        """
        An agent asks to represent an active, unassigned listing.

        Raises:
            InsufficientPermissionsError: If the caller is not an agent
            PropertyStatusError: If the listing is not active
            BusinessRuleViolationError: If the owner does not accept agents
            ConflictError: If the listing has an agent or a request is already pending
        """
        if not agent.is_agent:
            raise InsufficientPermissionsError("request to represent properties")

        property_obj = await self._get_property(property_id)
        if property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyStatusError("Only active properties accept agent requests")
        if not property_obj.allow_agents:
            raise BusinessRuleViolationError("agents_not_allowed", "The owner does not accept agent requests")
        if property_obj.has_agent:
            raise ConflictError("Property already has an assigned agent")
        if await self.request_repo.get_pending_for_pair(property_obj.id, agent.id):
            raise ConflictError("You already have a pending request for this property", error_code="DUPLICATE_REQUEST")

        request = await self._open_request(
            property_obj, agent.id, RequestInitiator.AGENT, message, commission_offer
        )
        logger.info(f"Agent {agent.email} requested to represent property {property_obj.id}")
        return request

    async def invite_agent(
        self,
        owner: User,
        property_id: uuid.UUID,
        agent_id: uuid.UUID,
        message: Optional[str] = None,
        commission_offer: Optional[Decimal] = None
    ) -> AgentRequest:
        """
        A property owner invites an agent to represent their listing.

        Raises:
            PropertyOwnershipError: If the caller does not own the listing
            ValidationError: If the target is not an active agent
            ConflictError: If the listing has an agent or the agent already has a pending request
        """
        property_obj = await self._get_property(property_id)
        if not owner.can_manage_property(property_obj.landlord_id):
            raise PropertyOwnershipError()

        agent = await self.user_repo.get_by_id(agent_id)
        if not agent:
            raise NotFoundError("Agent", str(agent_id))
        if agent.role != UserRole.AGENT or not agent.is_active:
            raise ValidationError("Invitations can only be sent to active agents")
        if property_obj.has_agent:
            raise ConflictError("Property already has an assigned agent")
        if await self.request_repo.get_pending_for_pair(property_obj.id, agent.id):
            raise ConflictError("This agent already has a pending request for this property", error_code="DUPLICATE_REQUEST")

        request = await self._open_request(
            property_obj,
            agent.id,
            RequestInitiator.OWNER,
            message or DEFAULT_INVITE_MESSAGE,
            commission_offer
        )
        logger.info(f"Owner {owner.email} invited agent {agent.email} to property {property_obj.id}")
        return request

    async def _open_request(
        self,
        property_obj: Property,
        agent_id: uuid.UUID,
        initiated_by: RequestInitiator,
        message: Optional[str],
        commission_offer: Optional[Decimal]
    ) -> AgentRequest:
        try:
            request = AgentRequest(
                property_id=property_obj.id,
                agent_id=agent_id,
                initiated_by=initiated_by,
                status=RequestStatus.PENDING,
                message=message,
                commission_offer=commission_offer,
                requested_at=utcnow(),
            )
            request = await self.request_repo.save(request, commit=False)

            property_obj.agent_status = AgentStatus.REQUESTED
            await self.property_repo.save(property_obj, commit=False)

            await self.db.commit()
            await self.db.refresh(request)
            return request
        except APIException:
            await self.db.rollback()
            raise
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(
                "A pending request already exists for this agent and property", error_code="DUPLICATE_REQUEST"
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to open agent request on property {property_obj.id}: {e}")
            raise BadRequestError(f"Failed to create agent request: {str(e)}")

    # State changes

    async def accept(self, request_id: uuid.UUID, user: User, note: Optional[str] = None) -> AgentRequest:
        return await self.transition(request_id, RequestAction.ACCEPT, user, note)

    async def reject(self, request_id: uuid.UUID, user: User, note: Optional[str] = None) -> AgentRequest:
        return await self.transition(request_id, RequestAction.REJECT, user, note)

    async def withdraw(self, request_id: uuid.UUID, user: User, note: Optional[str] = None) -> AgentRequest:
        return await self.transition(request_id, RequestAction.WITHDRAW, user, note)

    async def transition(
        self,
        request_id: uuid.UUID,
        action: RequestAction,
        user: User,
        note: Optional[str] = None
    ) -> AgentRequest:
        """
        Apply an action to an agent request and keep the property in step.

        The request, the property and any sibling requests are written in one
        transaction. On acceptance the agent's performance aggregate is
        refreshed in a savepoint that cannot undo the acceptance.

        Args:
            request_id: Agent request to act on
            action: accept, reject or withdraw
            user: Acting user
            note: Optional response note

        Returns:
            The updated request

        Raises:
            NotFoundError: If the request doesn't exist
            ForbiddenError: If the user is on neither side of the request
            InvalidTransitionError: If the action is not allowed
        """
        request = await self.request_repo.get_by_id(request_id)
        if not request:
            raise NotFoundError("Agent request", str(request_id))

        property_obj = await self._get_property(request.property_id)
        side = self._actor_side(request, property_obj, user)
        new_status = apply_transition(request.status, action, side)

        if new_status == RequestStatus.ACCEPTED and property_obj.agent_id not in (None, request.agent_id):
            raise ConflictError("Property already has an assigned agent")

        try:
            self._record_response(request, new_status, user, note)
            await self.request_repo.save(request, commit=False)

            if new_status == RequestStatus.ACCEPTED:
                await self._assign_agent(property_obj, request, user)
            else:
                await self._settle_agent_status(property_obj, new_status)

            if new_status == RequestStatus.ACCEPTED:
                await self.performance.recompute_best_effort(request.agent_id)

            await self.db.commit()
            await self.db.refresh(request)
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action.value} agent request {request_id}: {e}")
            raise BadRequestError(f"Failed to {action.value} agent request: {str(e)}")

        logger.info(f"Agent request {request_id} {new_status.value} by {user.email}")
        return request

    def _actor_side(self, request: AgentRequest, property_obj: Property, user: User) -> ActorSide:
        """
        Work out whether the user opened the request or is the counterparty.

        The agent side is the request's agent; the owner side is the property's
        landlord, or an admin acting for them.
        """
        if user.id == request.agent_id:
            party = RequestInitiator.AGENT
        elif user.id == property_obj.landlord_id or user.is_admin:
            party = RequestInitiator.OWNER
        else:
            raise ForbiddenError("You are not a party to this agent request")

        return ActorSide.INITIATOR if party == request.initiated_by else ActorSide.COUNTERPARTY

    @staticmethod
    def _record_response(request: AgentRequest, status: RequestStatus, user: User, note: Optional[str]) -> None:
        request.status = status
        request.responded_by = user.id
        request.responded_at = utcnow()
        if note:
            request.response_note = note

    async def _assign_agent(self, property_obj: Property, accepted: AgentRequest, user: User) -> None:
        """Assign the agent and close every other open request on the listing."""
        property_obj.agent_id = accepted.agent_id
        property_obj.agent_status = AgentStatus.ASSIGNED
        await self.property_repo.save(property_obj, commit=False)

        siblings = await self.request_repo.get_pending_for_property(property_obj.id, exclude_id=accepted.id)
        for sibling in siblings:
            # The owner side closes the rest: rejecting agent requests, withdrawing its own invitations
            action = RequestAction.WITHDRAW if sibling.is_invitation else RequestAction.REJECT
            side = ActorSide.INITIATOR if sibling.is_invitation else ActorSide.COUNTERPARTY
            status = apply_transition(sibling.status, action, side)
            self._record_response(sibling, status, user, "Another agent was assigned to this property")
            await self.request_repo.save(sibling, commit=False)

        if siblings:
            logger.info(f"Closed {len(siblings)} open requests on property {property_obj.id}")

    async def _settle_agent_status(self, property_obj: Property, closed_as: RequestStatus) -> None:
        """Reset the listing's agent status once nothing is left open."""
        if property_obj.has_agent:
            return
        remaining = await self.request_repo.get_pending_for_property(property_obj.id)
        if remaining:
            return
        property_obj.agent_status = (
            AgentStatus.REJECTED if closed_as == RequestStatus.REJECTED else AgentStatus.UNASSIGNED
        )
        await self.property_repo.save(property_obj, commit=False)

    # Assignment management

    async def make_exclusive(self, property_id: uuid.UUID, owner: User) -> Property:
        """
        Promote an assigned agent to exclusive representation.

        Raises:
            InvalidTransitionError: If the listing has no assigned agent
        """
        property_obj = await self._get_owned_property(property_id, owner)
        if property_obj.agent_status != AgentStatus.ASSIGNED:
            raise InvalidTransitionError(
                "property agent status", property_obj.agent_status.value, AgentStatus.EXCLUSIVE.value
            )

        property_obj.agent_status = AgentStatus.EXCLUSIVE
        property_obj = await self.property_repo.save(property_obj)
        logger.info(f"Property {property_id} made exclusive to agent {property_obj.agent_id}")
        return property_obj

    async def release_agent(self, property_id: uuid.UUID, owner: User) -> Property:
        """
        End an agent's representation of a listing.

        Raises:
            InvalidTransitionError: If no agent is assigned
        """
        property_obj = await self._get_owned_property(property_id, owner)
        if property_obj.agent_status not in (AgentStatus.ASSIGNED, AgentStatus.EXCLUSIVE):
            raise InvalidTransitionError(
                "property agent status", property_obj.agent_status.value, AgentStatus.UNASSIGNED.value
            )

        released_agent_id = property_obj.agent_id
        try:
            property_obj.agent_id = None
            property_obj.agent_status = AgentStatus.UNASSIGNED
            await self.property_repo.save(property_obj, commit=False)
            if released_agent_id:
                await self.performance.recompute_best_effort(released_agent_id)
            await self.db.commit()
            await self.db.refresh(property_obj)
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to release agent from property {property_id}: {e}")
            raise BadRequestError(f"Failed to release agent: {str(e)}")

        logger.info(f"Agent {released_agent_id} released from property {property_id}")
        return property_obj

    # Listings

    async def get_request(self, request_id: uuid.UUID, user: User) -> AgentRequest:
        request = await self.request_repo.get_by_id(request_id)
        if not request:
            raise NotFoundError("Agent request", str(request_id))
        property_obj = await self._get_property(request.property_id)
        self._actor_side(request, property_obj, user)
        return request

    async def list_sent_requests(
        self,
        agent: User,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AgentRequest], int]:
        self._require_agent(agent)
        return await self.request_repo.list_for_agent(
            agent.id, initiated_by=RequestInitiator.AGENT, status=status, skip=skip, limit=limit
        )

    async def list_invitations(
        self,
        agent: User,
        status: Optional[RequestStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AgentRequest], int]:
        self._require_agent(agent)
        return await self.request_repo.list_for_agent(
            agent.id, initiated_by=RequestInitiator.OWNER, status=status, skip=skip, limit=limit
        )

    async def list_incoming_requests(
        self,
        owner: User,
        status: Optional[RequestStatus] = None,
        property_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[AgentRequest], int]:
        """Requests on every listing the landlord owns."""
        if not owner.is_landlord:
            raise InsufficientPermissionsError("view incoming agent requests")
        return await self.request_repo.list_for_landlord(
            owner.id, status=status, property_id=property_id, skip=skip, limit=limit
        )

    async def discover_properties(
        self,
        agent: User,
        property_type: Optional[PropertyType] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_bedrooms: Optional[int] = None,
        city: Optional[str] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Tuple[Property, str]], int]:
        """
        Listings open to representation, each paired with the agent's latest request status.

        Returns:
            Tuple of ([(property, request_status or "none")], total)
        """
        self._require_agent(agent)
        filters = PropertySearchFilters(
            city=city,
            property_type=property_type,
            min_price=min_price,
            max_price=max_price,
            min_bedrooms=min_bedrooms,
            status=PropertyStatus.ACTIVE,
            allow_agents=True,
            only_unassigned=True,
        )
        properties, total = await self.property_repo.search_properties(filters, skip=skip, limit=limit)
        latest = await self.request_repo.latest_status_by_property(agent.id, [p.id for p in properties])
        rows = [(p, latest[p.id].value if p.id in latest else "none") for p in properties]
        return rows, total

    # Helpers

    async def _get_property(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def _get_owned_property(self, property_id: uuid.UUID, owner: User) -> Property:
        property_obj = await self._get_property(property_id)
        if not owner.can_manage_property(property_obj.landlord_id):
            raise PropertyOwnershipError()
        return property_obj

    @staticmethod
    def _require_agent(user: User) -> None:
        if not user.is_agent:
            raise InsufficientPermissionsError("use agent representation features")
