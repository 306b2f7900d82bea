"""
Support service: users raise tickets, admins triage and answer them.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.models.support import SupportTicket, SupportMessage, TicketStatus, TicketPriority
from estatehub.models.user import User
from estatehub.repositories.support import SupportTicketRepository
from estatehub.schemas.support import TicketCreate
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class SupportService:
    """Support inbox."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.ticket_repo = SupportTicketRepository(db_session)

    async def create_ticket(self, user: User, ticket_data: TicketCreate) -> SupportTicket:
        ticket = await self.ticket_repo.create({
            "user_id": user.id,
            "subject": ticket_data.subject,
            "message": ticket_data.message,
            "priority": ticket_data.priority,
            "status": TicketStatus.OPEN,
        })
        logger.info(f"Support ticket {ticket.id} opened by {user.email}")
        return ticket

    async def get_ticket(self, ticket_id: uuid.UUID, user: User) -> SupportTicket:
        ticket = await self.ticket_repo.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError("Support ticket", str(ticket_id))
        if not (user.is_admin or user.id == ticket.user_id):
            raise ForbiddenError("You cannot view this ticket")
        return ticket

    async def post_message(self, ticket_id: uuid.UUID, user: User, body: str) -> SupportMessage:
        """
        Reply on a ticket.

        The first admin reply on an open ticket moves it to in progress.

        Raises:
            ConflictError: If the ticket is closed
        """
        ticket = await self.get_ticket(ticket_id, user)
        if ticket.is_closed:
            raise ConflictError("This ticket is closed", error_code="TICKET_CLOSED")

        try:
            message = await self.ticket_repo.add_message(ticket, user.id, body, commit=False)
            if user.is_admin and ticket.status == TicketStatus.OPEN:
                ticket.status = TicketStatus.IN_PROGRESS
                await self.ticket_repo.save(ticket, commit=False)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to post message on ticket {ticket_id}: {e}")
            raise BadRequestError(f"Failed to post message: {str(e)}")

        logger.debug(f"Message {message.id} posted on ticket {ticket_id}")
        return message

    async def set_priority(
        self,
        ticket_id: uuid.UUID,
        admin: User,
        priority: TicketPriority = TicketPriority.HIGH
    ) -> SupportTicket:
        """Escalate (or de-escalate) an open ticket."""
        self._require_admin(admin, "escalate support tickets")
        ticket = await self.get_ticket(ticket_id, admin)
        if ticket.is_closed:
            raise ConflictError("This ticket is closed", error_code="TICKET_CLOSED")

        ticket.priority = priority
        ticket = await self.ticket_repo.save(ticket)
        logger.info(f"Ticket {ticket_id} set to {priority.value} priority by {admin.email}")
        return ticket

    async def close_ticket(self, ticket_id: uuid.UUID, user: User) -> SupportTicket:
        """
        Close a ticket; its owner or an admin may do this.

        Raises:
            InvalidTransitionError: If the ticket is already closed
        """
        ticket = await self.get_ticket(ticket_id, user)
        if not ticket.can_transition_to(TicketStatus.CLOSED):
            raise InvalidTransitionError("ticket", ticket.status.value, TicketStatus.CLOSED.value)

        ticket.status = TicketStatus.CLOSED
        ticket = await self.ticket_repo.save(ticket)
        logger.info(f"Ticket {ticket_id} closed by {user.email}")
        return ticket

    async def list_my_tickets(
        self,
        user: User,
        status: Optional[TicketStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[SupportTicket], int]:
        return await self.ticket_repo.list_tickets(user_id=user.id, status=status, skip=skip, limit=limit)

    async def list_inbox(
        self,
        admin: User,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[SupportTicket], int]:
        """Every ticket, most recently active first."""
        self._require_admin(admin, "view the support inbox")
        return await self.ticket_repo.list_tickets(status=status, priority=priority, skip=skip, limit=limit)

    @staticmethod
    def _require_admin(user: User, action: str) -> None:
        if not user.is_admin:
            raise InsufficientPermissionsError(action)
