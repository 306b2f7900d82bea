"""
Inquiry service: message threads between students and a listing's landlord
and agent, and the agent lead board built on top of them.
"""

from typing import Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.models.inquiry import Inquiry, InquiryMessage, LeadStatus
from estatehub.models.property import PropertyStatus
from estatehub.models.user import User
from estatehub.repositories.inquiry import InquiryRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.schemas.engagement import InquiryCreate
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    InsufficientPermissionsError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyStatusError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

OPEN_LEAD_STATUSES = [LeadStatus.NEW, LeadStatus.CONTACTED, LeadStatus.SHOWING]


class InquiryService:
    """Inquiry threads and lead pipeline."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.inquiry_repo = InquiryRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def create_inquiry(self, sender: User, inquiry_data: InquiryCreate) -> Inquiry:
        """
        Open an inquiry on an active listing.

        Raises:
            PropertyNotFoundError: If the listing doesn't exist or is hidden
            PropertyStatusError: If the listing is not active
        """
        if not sender.is_student:
            raise InsufficientPermissionsError("send inquiries")

        property_obj = await self.property_repo.get_by_id(inquiry_data.property_id)
        if not property_obj or not property_obj.is_visible_to(sender):
            raise PropertyNotFoundError(str(inquiry_data.property_id))
        if property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyStatusError("Inquiries can only be sent for active properties")

        inquiry = await self.inquiry_repo.create({
            "property_id": property_obj.id,
            "sender_id": sender.id,
            "agent_id": property_obj.agent_id,
            "subject": inquiry_data.subject,
            "message": inquiry_data.message,
            "status": LeadStatus.NEW,
        })
        logger.info(f"Inquiry {inquiry.id} sent by {sender.email} on property {property_obj.id}")
        return inquiry

    async def get_inquiry(self, inquiry_id: uuid.UUID, user: User) -> Inquiry:
        inquiry = await self.inquiry_repo.get_by_id(inquiry_id)
        if not inquiry:
            raise NotFoundError("Inquiry", str(inquiry_id))
        if not (user.is_admin or user.id in inquiry.participant_ids()):
            raise ForbiddenError("You are not a participant in this inquiry")
        return inquiry

    async def post_message(self, inquiry_id: uuid.UUID, user: User, body: str) -> InquiryMessage:
        """
        Reply on an inquiry thread.

        A first reply from the landlord or agent moves a new lead to contacted.
        """
        inquiry = await self.get_inquiry(inquiry_id, user)

        try:
            message = await self.inquiry_repo.add_message(inquiry, user.id, body, commit=False)
            if user.id != inquiry.sender_id and inquiry.status == LeadStatus.NEW:
                inquiry.status = LeadStatus.CONTACTED
                await self.inquiry_repo.save(inquiry, commit=False)
            await self.db.commit()
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to post message on inquiry {inquiry_id}: {e}")
            raise BadRequestError(f"Failed to post message: {str(e)}")

        logger.debug(f"Message {message.id} posted on inquiry {inquiry_id}")
        return message

    async def update_lead_status(self, inquiry_id: uuid.UUID, new_status: LeadStatus, user: User) -> Inquiry:
        """
        Move a lead to any pipeline column.

        Raises:
            ForbiddenError: If the user is not the listing's landlord or agent
        """
        inquiry = await self.get_inquiry(inquiry_id, user)
        if user.id == inquiry.sender_id and not user.is_admin:
            raise ForbiddenError("Only the landlord or agent can change the lead status")

        inquiry.status = new_status
        inquiry = await self.inquiry_repo.save(inquiry)
        logger.info(f"Inquiry {inquiry_id} moved to {new_status.value} by {user.email}")
        return inquiry

    async def list_sent(self, user: User, skip: int = 0, limit: int = 50) -> Tuple[List[Inquiry], int]:
        return await self.inquiry_repo.list_inquiries(sender_id=user.id, skip=skip, limit=limit)

    async def list_received(
        self,
        user: User,
        status: Optional[LeadStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Inquiry], int]:
        self._require_recipient(user)
        return await self.inquiry_repo.list_inquiries(recipient_id=user.id, status=status, skip=skip, limit=limit)

    async def lead_board(self, user: User, limit: int = 200) -> Dict[str, List[Inquiry]]:
        """Received inquiries grouped by lead status, one key per column."""
        self._require_recipient(user)
        inquiries, _ = await self.inquiry_repo.list_inquiries(recipient_id=user.id, limit=limit)
        board: Dict[str, List[Inquiry]] = {status.value: [] for status in LeadStatus}
        for inquiry in inquiries:
            board[inquiry.status.value].append(inquiry)
        return board

    @staticmethod
    def _require_recipient(user: User) -> None:
        if not (user.is_landlord or user.is_agent):
            raise InsufficientPermissionsError("view received inquiries")
