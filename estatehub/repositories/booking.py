"""
Booking repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from estatehub.repositories.base import BaseRepository
from estatehub.models.booking import Booking, BookingStatus
from estatehub.models.property import Property
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Queries over rental bookings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Booking, db)

    async def list_bookings(
        self,
        client_id: Optional[uuid.UUID] = None,
        landlord_id: Optional[uuid.UUID] = None,
        property_id: Optional[uuid.UUID] = None,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Booking], int]:
        """
        List bookings for a client or across a landlord's properties.

        Returns:
            Tuple of (bookings, total count)
        """
        try:
            conditions = []
            if client_id is not None:
                conditions.append(Booking.client_id == client_id)
            if landlord_id is not None:
                conditions.append(Property.landlord_id == landlord_id)
            if property_id is not None:
                conditions.append(Booking.property_id == property_id)
            if status is not None:
                conditions.append(Booking.status == status)

            query = select(Booking).join(Property, Booking.property_id == Property.id)
            count_query = select(func.count(Booking.id)).join(Property, Booking.property_id == Property.id)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total = (await self.db.execute(count_query)).scalar() or 0
            result = await self.db.execute(
                query.order_by(desc(Booking.created_at)).offset(skip).limit(limit)
            )
            return list(result.scalars().all()), total
        except Exception as e:
            logger.error(f"Failed to list bookings: {e}")
            raise

    async def get_latest_for_client(self, client_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Booking]:
        """The client's most recent booking on a property."""
        bookings, _ = await self.list_bookings(client_id=client_id, property_id=property_id, limit=1)
        return bookings[0] if bookings else None

    async def count_by_status(
        self,
        client_id: Optional[uuid.UUID] = None,
        landlord_id: Optional[uuid.UUID] = None
    ) -> dict:
        """Booking counts keyed by status for a client or landlord."""
        try:
            query = (
                select(Booking.status, func.count(Booking.id))
                .join(Property, Booking.property_id == Property.id)
            )
            if client_id is not None:
                query = query.where(Booking.client_id == client_id)
            if landlord_id is not None:
                query = query.where(Property.landlord_id == landlord_id)
            result = await self.db.execute(query.group_by(Booking.status))
            counts = {row[0].value: row[1] for row in result.all()}
            return {s.value: counts.get(s.value, 0) for s in BookingStatus}
        except Exception as e:
            logger.error(f"Failed to count bookings by status: {e}")
            raise
