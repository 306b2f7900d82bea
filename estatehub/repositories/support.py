"""
Support ticket repository covering tickets and their message threads.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from estatehub.database import utcnow
from estatehub.repositories.base import BaseRepository
from estatehub.models.support import SupportTicket, SupportMessage, TicketStatus, TicketPriority
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class SupportTicketRepository(BaseRepository[SupportTicket]):
    """Queries over support tickets."""

    def __init__(self, db: AsyncSession):
        super().__init__(SupportTicket, db)

    async def add_message(
        self,
        ticket: SupportTicket,
        sender_id: uuid.UUID,
        body: str,
        commit: bool = True
    ) -> SupportMessage:
        """Append a message to a ticket and bump its activity time."""
        try:
            message = SupportMessage(ticket_id=ticket.id, sender_id=sender_id, body=body)
            self.db.add(message)
            ticket.updated_at = utcnow()
            self.db.add(ticket)
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
            await self.db.refresh(message)
            await self.db.refresh(ticket)
            logger.debug(f"Added message {message.id} to ticket {ticket.id}")
            return message
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to add message to ticket {ticket.id}: {e}")
            raise

    async def list_tickets(
        self,
        user_id: Optional[uuid.UUID] = None,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[SupportTicket], int]:
        """
        List tickets, most recently active first.

        Args:
            user_id: Only tickets raised by this user
            status: Optional status filter
            priority: Optional priority filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (tickets, total count)
        """
        try:
            conditions = []
            if user_id is not None:
                conditions.append(SupportTicket.user_id == user_id)
            if status is not None:
                conditions.append(SupportTicket.status == status)
            if priority is not None:
                conditions.append(SupportTicket.priority == priority)

            query = select(SupportTicket)
            count_query = select(func.count(SupportTicket.id))
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(SupportTicket.updated_at)).offset(skip).limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to list support tickets: {e}")
            raise
