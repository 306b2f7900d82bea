"""
Application repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from estatehub.repositories.base import BaseRepository
from estatehub.models.application import Application, ApplicationStatus
from estatehub.models.property import Property
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class ApplicationRepository(BaseRepository[Application]):
    """Queries over tenancy applications."""

    def __init__(self, db: AsyncSession):
        super().__init__(Application, db)

    async def get_pending_for_pair(self, applicant_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Application]:
        try:
            result = await self.db.execute(
                select(Application).where(
                    and_(
                        Application.applicant_id == applicant_id,
                        Application.property_id == property_id,
                        Application.status == ApplicationStatus.PENDING
                    )
                )
            )
            return result.scalars().first()
        except Exception as e:
            logger.error(f"Failed to get pending application for {applicant_id} on {property_id}: {e}")
            raise

    async def list_applications(
        self,
        applicant_id: Optional[uuid.UUID] = None,
        landlord_id: Optional[uuid.UUID] = None,
        status: Optional[ApplicationStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Application], int]:
        """
        List applications by applicant or across a landlord's properties.

        Returns:
            Tuple of (applications, total count)
        """
        try:
            conditions = []
            if applicant_id is not None:
                conditions.append(Application.applicant_id == applicant_id)
            if landlord_id is not None:
                conditions.append(Property.landlord_id == landlord_id)
            if status is not None:
                conditions.append(Application.status == status)

            query = select(Application).join(Property, Application.property_id == Property.id)
            count_query = select(func.count(Application.id)).join(Property, Application.property_id == Property.id)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(Application.created_at)).offset(skip).limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to list applications: {e}")
            raise
