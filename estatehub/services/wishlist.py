"""
Wishlist service for saved properties and recently viewed listings.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from estatehub.config import settings
from estatehub.models.user import User
from estatehub.models.wishlist import SavedProperty, PropertyView
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.wishlist import SavedPropertyRepository, PropertyViewRepository
from estatehub.utils.exceptions import NotFoundError, PropertyNotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class WishlistService:
    """Saved properties are private to their owner."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.saved_repo = SavedPropertyRepository(db_session)
        self.view_repo = PropertyViewRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def save_property(self, user: User, property_id: uuid.UUID) -> Tuple[SavedProperty, bool]:
        """
        Add a property to the user's wishlist.

        Saving twice returns the existing entry.

        Returns:
            Tuple of (entry, created)
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not property_obj.is_visible_to(user):
            raise PropertyNotFoundError(str(property_id))

        existing = await self.saved_repo.get_for_user(user.id, property_id)
        if existing:
            return existing, False

        try:
            entry = await self.saved_repo.create({"user_id": user.id, "property_id": property_id})
        except IntegrityError:
            # Saved concurrently by another request
            existing = await self.saved_repo.get_for_user(user.id, property_id)
            if existing is None:
                raise
            return existing, False

        logger.info(f"User {user.email} saved property {property_id}")
        return entry, True

    async def unsave_property(self, user: User, property_id: uuid.UUID) -> bool:
        """Remove a property from the wishlist. Returns False if it wasn't saved."""
        entry = await self.saved_repo.get_for_user(user.id, property_id)
        if not entry:
            return False
        await self.saved_repo.delete(entry.id)
        logger.info(f"User {user.email} unsaved property {property_id}")
        return True

    async def toggle(self, user: User, property_id: uuid.UUID) -> Tuple[bool, Optional[SavedProperty]]:
        """
        Flip the saved state of a property.

        Returns:
            Tuple of (saved, entry); entry is None when the property was removed
        """
        if await self.unsave_property(user, property_id):
            return False, None
        entry, _ = await self.save_property(user, property_id)
        return True, entry

    async def list_saved(self, user: User, skip: int = 0, limit: int = 100) -> Tuple[List[SavedProperty], int]:
        items = await self.saved_repo.list_for_user(user.id, skip=skip, limit=limit)
        total = await self.saved_repo.count({"user_id": user.id})
        return items, total

    async def remove_entry(self, user: User, saved_id: uuid.UUID) -> None:
        """
        Delete a wishlist entry by its id.

        Entries that belong to other users are reported as missing.

        Raises:
            NotFoundError: If the user has no entry with this id
        """
        entry = await self.saved_repo.get_entry(user.id, saved_id)
        if not entry:
            raise NotFoundError("Saved property", str(saved_id))
        await self.saved_repo.delete(entry.id)
        logger.info(f"User {user.email} removed wishlist entry {saved_id}")

    async def recently_viewed(self, user: User, limit: Optional[int] = None) -> List[PropertyView]:
        limit = min(limit or settings.recently_viewed_limit, settings.recently_viewed_limit)
        views = await self.view_repo.recent_for_user(user.id, limit=limit)
        return [view for view in views if view.listing is not None and view.listing.is_visible_to(user)]
