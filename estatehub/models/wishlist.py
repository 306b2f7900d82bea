"""
Saved-property (wishlist) and recently-viewed models.
"""

from sqlalchemy import ForeignKey, DateTime, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base, utcnow
from datetime import datetime
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.property import Property


class SavedProperty(Base):
    """A property a user has added to their wishlist."""

    __tablename__ = "saved_properties"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_saved_properties_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "saved_at": self.created_at,
            "property": self.listing.to_dict() if self.listing else None,
        }


class PropertyView(Base):
    """Latest time a user opened a property's details."""

    __tablename__ = "property_views"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_property_views_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False
    )

    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "property_id": str(self.property_id),
            "viewed_at": self.viewed_at,
            "property": self.listing.to_dict() if self.listing else None,
        }
