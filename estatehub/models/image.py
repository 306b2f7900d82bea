"""
PropertyImage model for listing photos.
Images are referenced by URL; storage is handled outside this service.
"""

from sqlalchemy import String, Integer, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.property import Property


class PropertyImage(Base):
    """Photo attached to a property listing."""

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Public URL of the image"
    )

    is_primary: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether this is the cover image for the property"
    )

    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    property_rel: Mapped["Property"] = relationship("Property", back_populates="images")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "image_url": self.image_url,
            "is_primary": self.is_primary,
            "display_order": self.display_order,
        }
