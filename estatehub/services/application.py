"""
Application service for tenancy applications.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from estatehub.models.application import Application, ApplicationStatus
from estatehub.models.property import PropertyStatus
from estatehub.models.user import User
from estatehub.repositories.application import ApplicationRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.schemas.engagement import ApplicationCreate
from estatehub.utils.exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyStatusError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ApplicationService:
    """Applicants apply and withdraw; landlords approve or reject."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.application_repo = ApplicationRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def submit_application(self, applicant: User, application_data: ApplicationCreate) -> Application:
        """
        Apply for an active listing.

        Raises:
            ConflictError: If the applicant already has a pending application for it
        """
        property_obj = await self.property_repo.get_by_id(application_data.property_id)
        if not property_obj or not property_obj.is_visible_to(applicant):
            raise PropertyNotFoundError(str(application_data.property_id))
        if property_obj.landlord_id == applicant.id:
            raise ForbiddenError("You cannot apply for your own property")
        if property_obj.status != PropertyStatus.ACTIVE:
            raise PropertyStatusError("Applications can only be submitted for active properties")
        if await self.application_repo.get_pending_for_pair(applicant.id, property_obj.id):
            raise ConflictError("You already have a pending application for this property", error_code="DUPLICATE_APPLICATION")

        try:
            application = await self.application_repo.create({
                "property_id": property_obj.id,
                "applicant_id": applicant.id,
                "message": application_data.message,
                "move_in_date": application_data.move_in_date,
                "status": ApplicationStatus.PENDING,
            })
        except IntegrityError:
            raise ConflictError("You already have a pending application for this property", error_code="DUPLICATE_APPLICATION")
        logger.info(f"Application {application.id} submitted by {applicant.email}")
        return application

    async def approve(self, application_id: uuid.UUID, landlord: User) -> Application:
        application = await self._get_for_landlord(application_id, landlord)
        return await self._decide(application, ApplicationStatus.APPROVED, landlord)

    async def reject(self, application_id: uuid.UUID, landlord: User) -> Application:
        application = await self._get_for_landlord(application_id, landlord)
        return await self._decide(application, ApplicationStatus.REJECTED, landlord)

    async def withdraw(self, application_id: uuid.UUID, applicant: User) -> Application:
        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise NotFoundError("Application", str(application_id))
        if application.applicant_id != applicant.id:
            raise ForbiddenError("Only the applicant can withdraw an application")
        return await self._decide(application, ApplicationStatus.WITHDRAWN, applicant)

    async def list_mine(
        self,
        applicant: User,
        status: Optional[ApplicationStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Application], int]:
        return await self.application_repo.list_applications(
            applicant_id=applicant.id, status=status, skip=skip, limit=limit
        )

    async def list_received(
        self,
        landlord: User,
        status: Optional[ApplicationStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Application], int]:
        if not landlord.is_landlord:
            raise InsufficientPermissionsError("view received applications")
        return await self.application_repo.list_applications(
            landlord_id=landlord.id, status=status, skip=skip, limit=limit
        )

    async def _get_for_landlord(self, application_id: uuid.UUID, landlord: User) -> Application:
        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise NotFoundError("Application", str(application_id))
        if not landlord.can_manage_property(application.listing.landlord_id):
            raise ForbiddenError("Only the property owner can decide on this application")
        return application

    async def _decide(self, application: Application, new_status: ApplicationStatus, user: User) -> Application:
        # Every decision is taken on a pending application
        if application.status != ApplicationStatus.PENDING:
            raise InvalidTransitionError("application", application.status.value, new_status.value)
        application.status = new_status
        application = await self.application_repo.save(application)
        logger.info(f"Application {application.id} {new_status.value} by {user.email}")
        return application
