"""
Property repository for managing listings with search, discovery and statistics.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc, asc, cast, String
from estatehub.repositories.base import BaseRepository, LIKE_ESCAPE, escape_like
from estatehub.models.property import Property, PropertyType, PropertyStatus, AgentStatus
from estatehub.models.image import PropertyImage
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("price", "created_at", "bedrooms", "area_sqft", "updated_at")


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        search_text: Optional[str] = None,
        city: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_bedrooms: Optional[int] = None,
        min_bathrooms: Optional[int] = None,
        amenities: Optional[List[str]] = None,
        status: Optional[PropertyStatus] = PropertyStatus.ACTIVE,
        landlord_id: Optional[uuid.UUID] = None,
        agent_id: Optional[uuid.UUID] = None,
        only_unassigned: bool = False,
        allow_agents: Optional[bool] = None,
        is_featured: Optional[bool] = None
    ):
        self.search_text = search_text
        self.city = city
        self.property_type = property_type
        self.min_price = min_price
        self.max_price = max_price
        self.min_bedrooms = min_bedrooms
        self.min_bathrooms = min_bathrooms
        self.amenities = amenities or []
        self.status = status
        self.landlord_id = landlord_id
        self.agent_id = agent_id
        self.only_unassigned = only_unassigned
        self.allow_agents = allow_agents
        self.is_featured = is_featured


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management with search and filtering capabilities.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(
        self,
        property_data: Dict[str, Any],
        image_urls: Optional[List[str]] = None
    ) -> Property:
        """
        Create a new property with validation.

        Args:
            property_data: Dictionary containing property information
            image_urls: Optional image URLs; the first becomes the primary image

        Returns:
            Created property instance

        Raises:
            ValueError: If validation fails
        """
        try:
            property_obj = Property(**property_data)
            property_obj.validate_all()

            for index, url in enumerate(image_urls or []):
                property_obj.images.append(
                    PropertyImage(image_url=url, is_primary=index == 0, display_order=index)
                )

            created_property = await self.save(property_obj)
            logger.info(f"Created property: {created_property.title} (ID: {created_property.id})")
            return created_property
        except ValueError as e:
            logger.error(f"Property validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create property: {e}")
            raise

    async def replace_images(self, property_obj: Property, image_urls: List[str]) -> Property:
        """Replace a property's image set, keeping the first URL as primary."""
        property_obj.images.clear()
        for index, url in enumerate(image_urls):
            property_obj.images.append(
                PropertyImage(image_url=url, is_primary=index == 0, display_order=index)
            )
        return await self.save(property_obj)

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            order_by: Field to order by
            order_direction: 'asc' or 'desc'

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            query = select(Property)
            count_query = select(func.count(Property.id))

            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            total_count = (await self.db.execute(count_query)).scalar() or 0

            if order_by in SORTABLE_FIELDS:
                order_field = getattr(Property, order_by)
                if order_direction.lower() == "desc":
                    query = query.order_by(desc(order_field), desc(Property.created_at))
                else:
                    query = query.order_by(asc(order_field), desc(Property.created_at))
            else:
                query = query.order_by(desc(Property.created_at))

            query = query.offset(skip).limit(limit)

            result = await self.db.execute(query)
            properties = result.scalars().all()

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Args:
            filters: PropertySearchFilters instance

        Returns:
            List of SQLAlchemy conditions
        """
        conditions = []

        if filters.status is not None:
            conditions.append(Property.status == filters.status)

        if filters.city:
            conditions.append(Property.city.ilike(f"%{escape_like(filters.city.strip())}%", escape=LIKE_ESCAPE))

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.min_bedrooms)
        if filters.min_bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.min_bathrooms)

        # JSON arrays serialize as ["a", "b"] on both PostgreSQL and SQLite
        for amenity in filters.amenities:
            conditions.append(cast(Property.amenities, String).ilike(f'%"{escape_like(amenity)}"%', escape=LIKE_ESCAPE))

        if filters.landlord_id:
            conditions.append(Property.landlord_id == filters.landlord_id)
        if filters.agent_id:
            conditions.append(Property.agent_id == filters.agent_id)

        if filters.only_unassigned:
            conditions.append(Property.agent_id.is_(None))
        if filters.allow_agents is not None:
            conditions.append(Property.allow_agents.is_(filters.allow_agents))
        if filters.is_featured is not None:
            conditions.append(Property.is_featured.is_(filters.is_featured))

        if filters.search_text:
            search_term = f"%{escape_like(filters.search_text.strip())}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term, escape=LIKE_ESCAPE),
                    Property.description.ilike(search_term, escape=LIKE_ESCAPE),
                    Property.address.ilike(search_term, escape=LIKE_ESCAPE)
                )
            )

        return conditions

    async def get_properties_for_user(
        self,
        landlord_id: Optional[uuid.UUID] = None,
        agent_id: Optional[uuid.UUID] = None,
        status: Optional[PropertyStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Get properties owned by a landlord or represented by an agent.

        Args:
            landlord_id: Owning landlord to filter by
            agent_id: Assigned agent to filter by
            status: Optional lifecycle status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (properties list, total count)
        """
        filters = PropertySearchFilters(status=status, landlord_id=landlord_id, agent_id=agent_id)
        return await self.search_properties(filters, skip=skip, limit=limit, order_by="updated_at")

    async def get_featured_properties(self, limit: int = 6) -> List[Property]:
        """Active, featured listings, newest first."""
        properties, _ = await self.search_properties(
            PropertySearchFilters(status=PropertyStatus.ACTIVE, is_featured=True), skip=0, limit=limit
        )
        return properties

    async def get_similar_properties(self, property_obj: Property, limit: int = 4) -> List[Property]:
        """
        Get active listings in the same city or of the same type.

        Args:
            property_obj: Reference property
            limit: Maximum number of properties to return

        Returns:
            List of similar properties, excluding the reference itself
        """
        try:
            query = (
                select(Property)
                .where(
                    and_(
                        Property.status == PropertyStatus.ACTIVE,
                        Property.id != property_obj.id,
                        or_(
                            Property.city.ilike(escape_like(property_obj.city), escape=LIKE_ESCAPE),
                            Property.property_type == property_obj.property_type
                        )
                    )
                )
                .order_by(desc(Property.created_at))
                .limit(limit)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get similar properties for {property_obj.id}: {e}")
            raise

    async def get_property_statistics(self, landlord_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
        """
        Get property statistics for dashboards.

        Args:
            landlord_id: Optional landlord ID to scope statistics

        Returns:
            Dictionary with status breakdowns and price statistics
        """
        try:
            scope = {"landlord_id": landlord_id}
            total_properties = await self.count(scope)
            by_status = await self.count_by("status", scope)
            by_agent_status = await self.count_by("agent_status", scope)

            avg_query = select(func.avg(Property.price)).where(Property.status == PropertyStatus.ACTIVE)
            if landlord_id:
                avg_query = avg_query.where(Property.landlord_id == landlord_id)
            avg_price = (await self.db.execute(avg_query)).scalar()

            statistics = {
                "total_properties": total_properties,
                "properties_by_status": {s.value: by_status.get(s.value, 0) for s in PropertyStatus},
                "properties_by_agent_status": {s.value: by_agent_status.get(s.value, 0) for s in AgentStatus},
                "average_active_price": float(avg_price) if avg_price is not None else 0.0,
            }

            logger.debug(f"Generated property statistics for landlord {landlord_id}")
            return statistics
        except Exception as e:
            logger.error(f"Failed to get property statistics: {e}")
            raise

    async def count_assigned_to_agent(self, agent_id: uuid.UUID) -> int:
        return await self.count({"agent_id": agent_id})
