"""
Unit model for rentable rooms or flats inside a listing.
A listing with unit rows takes its unit counts from them.
"""

from sqlalchemy import String, Numeric, JSON, ForeignKey, Uuid, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.property import Property


class UnitStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    OCCUPIED = "occupied"


class Unit(Base):
    """A single bookable unit with its own monthly price."""

    __tablename__ = "units"
    __table_args__ = (
        UniqueConstraint("property_id", "unit_name", name="uq_units_property_name"),
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    unit_name: Mapped[str] = mapped_column(String(100), nullable=False)

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Monthly rent for this unit"
    )

    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[UnitStatus] = mapped_column(
        SQLEnum(UnitStatus),
        nullable=False,
        default=UnitStatus.AVAILABLE,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")

    @property
    def is_available(self) -> bool:
        return self.status == UnitStatus.AVAILABLE

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "unit_name": self.unit_name,
            "price": self.price,
            "amenities": list(self.amenities or []),
            "status": self.status.value,
            "created_at": self.created_at,
        }
