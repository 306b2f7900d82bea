"""
Showing service for scheduling and hosting property viewings.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.database import as_utc, utcnow
from estatehub.models.property import PropertyStatus
from estatehub.models.showing import Showing, ShowingStatus
from estatehub.models.user import User
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.showing import ShowingRepository
from estatehub.schemas.engagement import ShowingCreate
from estatehub.utils.exceptions import (
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


class ShowingService:
    """Scheduling rules and host/requester permissions for showings."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.showing_repo = ShowingRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def schedule_showing(self, requester: User, showing_data: ShowingCreate) -> Showing:
        """
        Book a viewing of an active listing.

        The property's current agent, if any, is recorded as the host agent.

        Raises:
            PropertyNotFoundError: If the listing doesn't exist or is hidden
            PropertyStatusError: If the listing is not active
            ValidationError: If the time is not in the future
        """
        if not requester.is_student:
            raise InsufficientPermissionsError("schedule showings")

        property_obj = await self.property_repo.get_by_id(showing_data.property_id)
        if not property_obj or not property_obj.is_visible_to(requester):
            raise PropertyNotFoundError(str(showing_data.property_id))
        if property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyStatusError("Showings can only be scheduled for active properties")

        scheduled_at = as_utc(showing_data.scheduled_at)
        if scheduled_at <= utcnow():
            raise ValidationError(
                "Showing must be scheduled in the future",
                field_errors=[{"field": "scheduled_at", "message": "Must be a future date and time"}]
            )

        showing = await self.showing_repo.create({
            "property_id": property_obj.id,
            "requester_id": requester.id,
            "agent_id": property_obj.agent_id,
            "scheduled_at": scheduled_at,
            "notes": showing_data.notes,
            "status": ShowingStatus.SCHEDULED,
        })
        logger.info(f"Showing {showing.id} scheduled by {requester.email} for property {property_obj.id}")
        return showing

    async def get_showing(self, showing_id: uuid.UUID, user: User) -> Showing:
        showing = await self.showing_repo.get_by_id(showing_id)
        if not showing:
            raise NotFoundError("Showing", str(showing_id))
        if not (user.is_admin or user.id == showing.requester_id or self._is_host(showing, user)):
            raise ForbiddenError("You cannot view this showing")
        return showing

    async def update_status(self, showing_id: uuid.UUID, new_status: ShowingStatus, user: User) -> Showing:
        """
        Confirm, complete or cancel a showing.

        Requesters may only cancel; hosts (landlord or agent) and admins may
        make any move the showing table allows.

        Raises:
            ForbiddenError: If the user may not make this change
            InvalidTransitionError: If the move is not allowed from the current status
        """
        showing = await self.get_showing(showing_id, user)

        is_host = user.is_admin or self._is_host(showing, user)
        if not is_host and new_status != ShowingStatus.CANCELLED:
            raise ForbiddenError("Only the landlord or agent can confirm or complete a showing")

        if not showing.can_transition_to(new_status):
            raise InvalidTransitionError("showing", showing.status.value, new_status.value)

        showing.status = new_status
        showing = await self.showing_repo.save(showing)
        logger.info(f"Showing {showing_id} is now {new_status.value} ({user.email})")
        return showing

    async def list_my_showings(
        self,
        user: User,
        status: Optional[ShowingStatus] = None,
        upcoming_only: bool = False,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Showing], int]:
        return await self.showing_repo.list_showings(
            requester_id=user.id, status=status, upcoming_only=upcoming_only, skip=skip, limit=limit
        )

    async def list_hosted_showings(
        self,
        user: User,
        status: Optional[ShowingStatus] = None,
        upcoming_only: bool = False,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Showing], int]:
        """Showings on listings the user owns or represents."""
        if not (user.is_landlord or user.is_agent):
            raise InsufficientPermissionsError("view hosted showings")
        return await self.showing_repo.list_showings(
            host_id=user.id, status=status, upcoming_only=upcoming_only, skip=skip, limit=limit
        )

    @staticmethod
    def _is_host(showing: Showing, user: User) -> bool:
        property_obj = showing.listing
        hosts = {showing.agent_id}
        if property_obj is not None:
            hosts.update({property_obj.landlord_id, property_obj.agent_id})
        return user.id in hosts
