"""
Property service for managing listings with business logic validation.
Handles CRUD, lifecycle transitions, visibility rules, search and statistics.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.config import settings
from estatehub.repositories.property import PropertyRepository, PropertySearchFilters
from estatehub.repositories.user import UserRepository
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.showing import ShowingRepository
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.inquiry import InquiryRepository
from estatehub.repositories.application import ApplicationRepository
from estatehub.repositories.wishlist import SavedPropertyRepository, PropertyViewRepository
from estatehub.repositories.transaction import TransactionRepository
from estatehub.repositories.unit import UnitRepository
from estatehub.models.property import Property, PropertyStatus, AgentStatus
from estatehub.models.user import User, UserRole
from estatehub.schemas.property import PropertyCreate, PropertyUpdate, PropertySearchParams
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    BusinessRuleViolationError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Columns checked by Property.validate_all
_VALIDATED_FIELDS = (
    "price", "bedrooms", "bathrooms", "area_sqft",
    "total_units", "available_units", "latitude", "longitude",
)


class PropertyService:
    """
    Property service for managing listings with comprehensive business logic.
    Handles CRUD operations, ownership validation, search functionality, and business rules.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.view_repo = PropertyViewRepository(db_session)
        self.saved_repo = SavedPropertyRepository(db_session)

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new listing owned by the caller, or by a named landlord for admins.

        Args:
            property_data: Property creation data
            current_user: User creating the property

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If the caller is not a landlord or admin
            ValidationError: If property data is invalid
        """
        if current_user.role not in (UserRole.LANDLORD, UserRole.ADMIN):
            raise InsufficientPermissionsError("create properties")

        try:
            landlord_id = current_user.id
            if current_user.is_admin and property_data.landlord_id:
                landlord = await self.user_repo.get_by_id(property_data.landlord_id)
                if not landlord or not landlord.is_landlord:
                    raise ValidationError("landlord_id must reference a landlord account")
                landlord_id = landlord.id

            create_data = property_data.model_dump(exclude={"image_urls", "publish", "landlord_id"})
            if create_data.get("available_units") is None:
                create_data["available_units"] = create_data["total_units"]
            create_data.update({
                "landlord_id": landlord_id,
                "status": PropertyStatus.ACTIVE if property_data.publish else PropertyStatus.DRAFT,
                "agent_status": AgentStatus.UNASSIGNED,
                "is_featured": False,
            })

            property_obj = await self.property_repo.create_property(create_data, property_data.image_urls)
            logger.info(f"Property created by {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
            return property_obj
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

    async def get_visible_property(self, property_id: uuid.UUID, viewer: Optional[User] = None) -> Property:
        """
        Fetch a listing the viewer is allowed to see.

        Hidden listings are reported exactly like missing ones.

        Raises:
            PropertyNotFoundError: If the property doesn't exist or is hidden from the viewer
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj or not property_obj.is_visible_to(viewer):
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def get_property_details(
        self,
        property_id: uuid.UUID,
        viewer: Optional[User] = None
    ) -> Tuple[Property, bool]:
        """
        Get a listing for its details page and record the view.

        Args:
            property_id: UUID of the property
            viewer: Authenticated caller, or None for anonymous visitors

        Returns:
            Tuple of (property, whether the viewer has saved it)
        """
        property_obj = await self.get_visible_property(property_id, viewer)

        is_saved = False
        if viewer is not None:
            await self.view_repo.record_view(viewer.id, property_obj.id)
            is_saved = await self.saved_repo.get_for_user(viewer.id, property_obj.id) is not None

        logger.debug(f"Retrieved property details: {property_id}")
        return property_obj, is_saved

    async def get_managed_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        """
        Fetch a listing the caller owns (admins may manage any).

        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If the caller is not the owner
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        if not current_user.can_manage_property(property_obj.landlord_id):
            raise PropertyOwnershipError()
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Partially update a listing; null and blank values are ignored.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            PropertyOwnershipError: If the caller doesn't own the property
            ValidationError: If the merged values are invalid
        """
        property_obj = await self.get_managed_property(property_id, current_user)

        raw = property_data.model_dump(exclude_unset=True, exclude={"image_urls"})
        update_data = {
            k: (v.strip() if isinstance(v, str) else v)
            for k, v in raw.items()
            if v is not None and not (isinstance(v, str) and not v.strip())
        }
        image_urls = property_data.image_urls

        if not update_data and image_urls is None:
            raise ValidationError("No valid fields provided for update")
        if {"total_units", "available_units"} & update_data.keys() and await UnitRepository(self.db).count(
            {"property_id": property_id}
        ):
            raise BusinessRuleViolationError(
                "units_managed_by_unit_rows",
                "Unit counts follow the listing's units; add or remove units instead"
            )

        # Validate the merged result before touching the tracked instance
        merged = {field: getattr(property_obj, field) for field in _VALIDATED_FIELDS}
        merged.update({k: v for k, v in update_data.items() if k in _VALIDATED_FIELDS})
        try:
            Property(**merged).validate_all()
        except ValueError as e:
            raise ValidationError(str(e))

        try:
            for field, value in update_data.items():
                setattr(property_obj, field, value)

            if image_urls is not None:
                property_obj = await self.property_repo.replace_images(property_obj, image_urls)
            else:
                property_obj = await self.property_repo.save(property_obj)

            logger.info(f"Property updated by {current_user.email}: {property_id}")
            return property_obj
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

    async def change_status(
        self,
        property_id: uuid.UUID,
        new_status: PropertyStatus,
        current_user: User
    ) -> Property:
        """
        Move a listing through its lifecycle.

        Raises:
            InvalidTransitionError: If the lifecycle table forbids the move
        """
        property_obj = await self.get_managed_property(property_id, current_user)

        if not property_obj.can_transition_to(new_status):
            raise InvalidTransitionError("property", property_obj.status.value, new_status.value)

        previous = property_obj.status
        property_obj.status = new_status
        property_obj = await self.property_repo.save(property_obj)
        logger.info(f"Property {property_id} moved from {previous.value} to {new_status.value} by {current_user.email}")
        return property_obj

    async def set_featured(self, property_id: uuid.UUID, is_featured: bool, current_user: User) -> Property:
        if not current_user.is_admin:
            raise InsufficientPermissionsError("feature properties")
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        property_obj.is_featured = is_featured
        return await self.property_repo.save(property_obj)

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> bool:
        """
        Delete a listing and everything hanging off it.

        Listings with recorded payments are kept for the ledger.

        Raises:
            BusinessRuleViolationError: If payments reference the property
        """
        property_obj = await self.get_managed_property(property_id, current_user)

        if await TransactionRepository(self.db).count({"property_id": property_id}):
            raise BusinessRuleViolationError(
                "property_has_payments",
                "Properties with payments cannot be deleted; deactivate the listing instead"
            )

        try:
            for repo in (
                AgentRequestRepository(self.db),
                ShowingRepository(self.db),
                BookingRepository(self.db),
                UnitRepository(self.db),
                ApplicationRepository(self.db),
                self.saved_repo,
                self.view_repo,
            ):
                await repo.delete_where(commit=False, property_id=property_id)
            await InquiryRepository(self.db).delete_for_property(property_id, commit=False)

            await self.db.delete(property_obj)
            await self.db.commit()
            logger.info(f"Property deleted by {current_user.email}: {property_id}")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

    async def search_properties(self, params: PropertySearchParams) -> Tuple[List[Property], int]:
        """
        Public search over active listings.

        Returns:
            Tuple of (properties for the requested page, total matches)
        """
        page_size = min(params.page_size, settings.max_page_size)
        filters = PropertySearchFilters(
            search_text=params.q,
            city=params.city,
            property_type=params.property_type,
            min_price=params.min_price,
            max_price=params.max_price,
            min_bedrooms=params.min_bedrooms,
            min_bathrooms=params.min_bathrooms,
            amenities=params.amenities,
            status=PropertyStatus.ACTIVE,
        )
        return await self.property_repo.search_properties(
            filters,
            skip=(params.page - 1) * page_size,
            limit=page_size,
            order_by=params.sort_by,
            order_direction=params.sort_order,
        )

    async def list_my_properties(
        self,
        current_user: User,
        status: Optional[PropertyStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Landlords see what they own, agents what they represent, admins everything.
        """
        if current_user.is_landlord:
            return await self.property_repo.get_properties_for_user(
                landlord_id=current_user.id, status=status, skip=skip, limit=limit
            )
        if current_user.is_agent:
            return await self.property_repo.get_properties_for_user(
                agent_id=current_user.id, status=status, skip=skip, limit=limit
            )
        if current_user.is_admin:
            return await self.property_repo.get_properties_for_user(status=status, skip=skip, limit=limit)
        raise InsufficientPermissionsError("list managed properties")

    async def get_featured(self, limit: Optional[int] = None) -> List[Property]:
        return await self.property_repo.get_featured_properties(limit or settings.featured_limit)

    async def get_similar(self, property_id: uuid.UUID, viewer: Optional[User] = None, limit: int = 4) -> List[Property]:
        property_obj = await self.get_visible_property(property_id, viewer)
        return await self.property_repo.get_similar_properties(property_obj, limit=limit)

    async def get_statistics(self, current_user: User, landlord_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Listing statistics: landlords get their own, admins any landlord's or the global view.
        """
        if current_user.is_landlord:
            if landlord_id and landlord_id != current_user.id:
                raise ForbiddenError("Landlords can only view their own statistics")
            return await self.property_repo.get_property_statistics(current_user.id)
        if current_user.is_admin:
            return await self.property_repo.get_property_statistics(landlord_id)
        raise InsufficientPermissionsError("view property statistics")
