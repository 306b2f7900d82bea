"""
Showing repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, asc
from estatehub.repositories.base import BaseRepository
from estatehub.models.showing import Showing, ShowingStatus
from estatehub.models.property import Property
from estatehub.database import utcnow
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

OPEN_SHOWING_STATUSES = (ShowingStatus.SCHEDULED, ShowingStatus.CONFIRMED)


class ShowingRepository(BaseRepository[Showing]):
    """Queries over scheduled viewings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Showing, db)

    async def list_showings(
        self,
        requester_id: Optional[uuid.UUID] = None,
        host_id: Optional[uuid.UUID] = None,
        status: Optional[ShowingStatus] = None,
        upcoming_only: bool = False,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Showing], int]:
        """
        List showings booked by a user or hosted on a user's properties.

        Args:
            requester_id: Student who booked the showings
            host_id: Landlord or assigned agent of the shown properties
            status: Optional status filter
            upcoming_only: Only open showings scheduled in the future
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (showings, total count)
        """
        try:
            conditions = []
            if requester_id is not None:
                conditions.append(Showing.requester_id == requester_id)
            if host_id is not None:
                conditions.append(
                    or_(
                        Property.landlord_id == host_id,
                        Property.agent_id == host_id,
                        Showing.agent_id == host_id
                    )
                )
            if status is not None:
                conditions.append(Showing.status == status)
            if upcoming_only:
                conditions.append(Showing.scheduled_at >= utcnow())
                conditions.append(Showing.status.in_(OPEN_SHOWING_STATUSES))

            query = select(Showing).join(Property, Showing.property_id == Property.id)
            count_query = select(func.count(Showing.id)).join(Property, Showing.property_id == Property.id)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(asc(Showing.scheduled_at)).offset(skip).limit(limit)
            )
            showings = list(result.scalars().all())
            logger.debug(f"Retrieved {len(showings)} showings")
            return showings, total
        except Exception as e:
            logger.error(f"Failed to list showings: {e}")
            raise
