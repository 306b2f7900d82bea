"""
Inquiry repository covering inquiry threads and the agent lead board.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, delete
from estatehub.repositories.base import BaseRepository
from estatehub.models.inquiry import Inquiry, InquiryMessage, LeadStatus
from estatehub.models.property import Property
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class InquiryRepository(BaseRepository[Inquiry]):
    """Queries over property inquiries."""

    def __init__(self, db: AsyncSession):
        super().__init__(Inquiry, db)

    async def add_message(self, inquiry: Inquiry, sender_id: uuid.UUID, body: str, commit: bool = True) -> InquiryMessage:
        """Append a message to an inquiry thread."""
        try:
            message = InquiryMessage(inquiry_id=inquiry.id, sender_id=sender_id, body=body)
            self.db.add(message)
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
            await self.db.refresh(message)
            await self.db.refresh(inquiry)
            logger.debug(f"Added message {message.id} to inquiry {inquiry.id}")
            return message
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to add message to inquiry {inquiry.id}: {e}")
            raise

    def _recipient_condition(self, user_id: uuid.UUID):
        return or_(
            Property.landlord_id == user_id,
            Property.agent_id == user_id,
            Inquiry.agent_id == user_id
        )

    async def list_inquiries(
        self,
        sender_id: Optional[uuid.UUID] = None,
        recipient_id: Optional[uuid.UUID] = None,
        status: Optional[LeadStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Inquiry], int]:
        """
        List inquiries a user sent or received.

        Args:
            sender_id: Student who sent the inquiries
            recipient_id: Landlord or agent of the inquired properties
            status: Optional lead status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (inquiries, total count)
        """
        try:
            conditions = []
            if sender_id is not None:
                conditions.append(Inquiry.sender_id == sender_id)
            if recipient_id is not None:
                conditions.append(self._recipient_condition(recipient_id))
            if status is not None:
                conditions.append(Inquiry.status == status)

            query = select(Inquiry).join(Property, Inquiry.property_id == Property.id)
            count_query = select(func.count(Inquiry.id)).join(Property, Inquiry.property_id == Property.id)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(Inquiry.created_at)).offset(skip).limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to list inquiries: {e}")
            raise

    async def count_for_recipient(self, recipient_id: uuid.UUID, statuses: Optional[List[LeadStatus]] = None) -> int:
        try:
            query = (
                select(func.count(Inquiry.id))
                .join(Property, Inquiry.property_id == Property.id)
                .where(self._recipient_condition(recipient_id))
            )
            if statuses:
                query = query.where(Inquiry.status.in_(statuses))
            return (await self.db.execute(query)).scalar() or 0
        except Exception as e:
            logger.error(f"Failed to count inquiries for {recipient_id}: {e}")
            raise

    async def delete_for_property(self, property_id: uuid.UUID, commit: bool = True) -> int:
        """Delete every inquiry on a property together with its messages."""
        try:
            inquiry_ids = select(Inquiry.id).where(Inquiry.property_id == property_id)
            await self.db.execute(delete(InquiryMessage).where(InquiryMessage.inquiry_id.in_(inquiry_ids)))
            result = await self.db.execute(delete(Inquiry).where(Inquiry.property_id == property_id))
            if commit:
                await self.db.commit()
            return result.rowcount
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to delete inquiries for property {property_id}: {e}")
            raise
