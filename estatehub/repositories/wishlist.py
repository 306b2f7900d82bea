"""
Repositories for saved properties and recently viewed listings.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc
from estatehub.repositories.base import BaseRepository
from estatehub.models.wishlist import SavedProperty, PropertyView
from estatehub.database import utcnow
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class SavedPropertyRepository(BaseRepository[SavedProperty]):
    """Wishlist entries, always scoped to their owner."""

    def __init__(self, db: AsyncSession):
        super().__init__(SavedProperty, db)

    async def get_for_user(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[SavedProperty]:
        try:
            result = await self.db.execute(
                select(SavedProperty).where(
                    and_(SavedProperty.user_id == user_id, SavedProperty.property_id == property_id)
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get saved property {property_id} for user {user_id}: {e}")
            raise

    async def get_entry(self, user_id: uuid.UUID, saved_id: uuid.UUID) -> Optional[SavedProperty]:
        """Get a wishlist entry by id, only if it belongs to the user."""
        try:
            result = await self.db.execute(
                select(SavedProperty).where(
                    and_(SavedProperty.id == saved_id, SavedProperty.user_id == user_id)
                )
            )
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get wishlist entry {saved_id} for user {user_id}: {e}")
            raise

    async def list_for_user(self, user_id: uuid.UUID, skip: int = 0, limit: int = 100) -> List[SavedProperty]:
        return await self.get_multi(skip=skip, limit=limit, filters={"user_id": user_id}, order_by="-created_at")

    async def saved_property_ids(self, user_id: uuid.UUID) -> set:
        try:
            result = await self.db.execute(
                select(SavedProperty.property_id).where(SavedProperty.user_id == user_id)
            )
            return set(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get saved property ids for user {user_id}: {e}")
            raise


class PropertyViewRepository(BaseRepository[PropertyView]):
    """Recently viewed listings, one row per (user, property)."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyView, db)

    async def record_view(self, user_id: uuid.UUID, property_id: uuid.UUID) -> PropertyView:
        """
        Insert or refresh the view row for a user and property.

        Returns:
            The stored view
        """
        try:
            result = await self.db.execute(
                select(PropertyView).where(
                    and_(PropertyView.user_id == user_id, PropertyView.property_id == property_id)
                )
            )
            view = result.scalar_one_or_none()
            if view is None:
                view = PropertyView(user_id=user_id, property_id=property_id, viewed_at=utcnow())
            else:
                view.viewed_at = utcnow()
            return await self.save(view)
        except Exception as e:
            logger.error(f"Failed to record view of {property_id} by {user_id}: {e}")
            raise

    async def recent_for_user(self, user_id: uuid.UUID, limit: int = 10) -> List[PropertyView]:
        try:
            result = await self.db.execute(
                select(PropertyView)
                .where(PropertyView.user_id == user_id)
                .order_by(desc(PropertyView.viewed_at))
                .limit(limit)
            )
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get recently viewed for user {user_id}: {e}")
            raise
