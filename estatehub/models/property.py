"""
Property model for marketplace listings.
Tracks the listing lifecycle and, independently, the agent-assignment state.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, JSON, Enum as SQLEnum, Index, ForeignKey, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Dict, FrozenSet, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kinds of listing a landlord can publish."""
    HOUSE = "House"
    APARTMENT = "Apartment"
    LAND = "Land"
    SHOP = "Shop"
    CONDO = "Condo"


class PropertyStatus(str, enum.Enum):
    """Listing lifecycle, owned by the landlord."""
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    RENTED = "rented"
    SOLD = "sold"


class AgentStatus(str, enum.Enum):
    """Agent-assignment state, owned by the representation workflow."""
    UNASSIGNED = "unassigned"
    REQUESTED = "requested"
    ASSIGNED = "assigned"
    REJECTED = "rejected"
    EXCLUSIVE = "exclusive"


PROPERTY_STATUS_TRANSITIONS: Dict[PropertyStatus, FrozenSet[PropertyStatus]] = {
    PropertyStatus.DRAFT: frozenset({PropertyStatus.ACTIVE, PropertyStatus.INACTIVE}),
    PropertyStatus.ACTIVE: frozenset({PropertyStatus.INACTIVE, PropertyStatus.RENTED, PropertyStatus.SOLD}),
    PropertyStatus.INACTIVE: frozenset({PropertyStatus.ACTIVE}),
    PropertyStatus.RENTED: frozenset({PropertyStatus.ACTIVE, PropertyStatus.INACTIVE}),
    PropertyStatus.SOLD: frozenset(),
}


class Property(Base):
    """
    Property listing owned by a landlord and optionally represented by an agent.

    `status` and `agent_status` are deliberately unrelated columns: a listing
    can be sold while an agent request is still outstanding.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType),
        nullable=False,
        default=PropertyType.HOUSE,
        index=True,
        comment="Kind of property"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Asking price or monthly rent"
    )

    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    area_sqft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Location information
    address: Mapped[str] = mapped_column(String(255), nullable=False, comment="Street address")
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=10, scale=8), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=11, scale=8), nullable=True)

    amenities: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Free-form amenity labels"
    )

    # Units for multi-tenant buildings
    total_units: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_units: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Lifecycle and agent representation
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.DRAFT,
        index=True,
        comment="Listing lifecycle status"
    )

    agent_status: Mapped[AgentStatus] = mapped_column(
        SQLEnum(AgentStatus),
        nullable=False,
        default=AgentStatus.UNASSIGNED,
        index=True,
        comment="Agent assignment status"
    )

    allow_agents: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether agents may request to represent this property"
    )

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    landlord_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the landlord who owns this property"
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="ID of the agent representing this property"
    )

    # Relationships
    landlord: Mapped["User"] = relationship("User", foreign_keys=[landlord_id], lazy="selectin")
    agent: Mapped[Optional["User"]] = relationship("User", foreign_keys=[agent_id], lazy="selectin")

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PropertyImage.is_primary.desc(), PropertyImage.display_order.asc()"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}, status={self.status})>"

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """Get the primary image for this property."""
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def is_public(self) -> bool:
        """Only active listings are visible to the general public."""
        return self.status == PropertyStatus.ACTIVE

    @property
    def has_agent(self) -> bool:
        return self.agent_id is not None

    def can_transition_to(self, new_status: PropertyStatus) -> bool:
        """Check the lifecycle table for a move from the current status."""
        return new_status in PROPERTY_STATUS_TRANSITIONS[self.status]

    def is_visible_to(self, user: Optional["User"]) -> bool:
        """
        Decide whether a user may see this listing.

        Args:
            user: Viewer, or None for anonymous visitors

        Returns:
            True when the listing is public or the viewer is its owner,
            its agent or an admin
        """
        if self.is_public:
            return True
        if user is None:
            return False
        return user.is_admin or user.id in (self.landlord_id, self.agent_id)

    def validate_price(self) -> None:
        """
        Validate property price.

        Raises:
            ValueError: If price is invalid
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Property price must be greater than 0")

        if self.price > Decimal('999999999.99'):
            raise ValueError("Property price exceeds maximum allowed value")

    def validate_rooms(self) -> None:
        """
        Validate bedroom and bathroom counts.

        Raises:
            ValueError: If a room count is invalid
        """
        for label, value in (("bedrooms", self.bedrooms), ("bathrooms", self.bathrooms)):
            if value is None or value < 0:
                raise ValueError(f"Number of {label} cannot be negative")
            if value > 50:
                raise ValueError(f"Number of {label} exceeds reasonable limit")

    def validate_units(self) -> None:
        """
        Validate unit counts.

        Raises:
            ValueError: If unit counts are inconsistent
        """
        if self.total_units is None or self.total_units < 1:
            raise ValueError("A property must have at least one unit")
        if self.available_units is None or self.available_units < 0:
            raise ValueError("Available units cannot be negative")
        if self.available_units > self.total_units:
            raise ValueError("Available units cannot exceed total units")

    def validate_coordinates(self) -> None:
        """
        Validate latitude and longitude coordinates.

        Raises:
            ValueError: If coordinates are invalid
        """
        if self.latitude is not None and not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90 degrees")

        if self.longitude is not None and not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180 degrees")

    def validate_all(self) -> None:
        """
        Run all validation checks on the property.

        Raises:
            ValueError: If any validation fails
        """
        self.validate_price()
        self.validate_rooms()
        self.validate_units()
        self.validate_coordinates()
        if self.area_sqft is not None and self.area_sqft <= 0:
            raise ValueError("Property area must be greater than 0")

    def to_dict(self, include_people: bool = False, include_images: bool = True) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_people: Whether to include landlord and agent summaries
            include_images: Whether to include image information

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type.value,
            "price": self.price,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area_sqft": self.area_sqft,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "latitude": float(self.latitude) if self.latitude is not None else None,
            "longitude": float(self.longitude) if self.longitude is not None else None,
            "amenities": list(self.amenities or []),
            "total_units": self.total_units,
            "available_units": self.available_units,
            "status": self.status.value,
            "agent_status": self.agent_status.value,
            "allow_agents": self.allow_agents,
            "is_featured": self.is_featured,
            "landlord_id": str(self.landlord_id),
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

        if include_people:
            result["landlord"] = self.landlord.to_dict() if self.landlord else None
            result["agent"] = self.agent.to_dict() if self.agent else None

        if include_images:
            result["images"] = [image.to_dict() for image in self.images]
            primary = self.primary_image
            result["primary_image_url"] = primary.image_url if primary else None

        return result


# Composite indexes for the common search patterns
status_city_price_index = Index(
    'idx_properties_status_city_price',
    Property.status,
    Property.city,
    Property.price
)

discovery_index = Index(
    'idx_properties_discovery',
    Property.status,
    Property.allow_agents,
    Property.agent_id
)

landlord_status_index = Index(
    'idx_properties_landlord_status',
    Property.landlord_id,
    Property.status
)
