"""
Transaction model for simulated payments and agent commission.
"""

from sqlalchemy import String, Numeric, ForeignKey, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from datetime import datetime
from decimal import Decimal
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.property import Property


class PaymentStatus(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class CommissionStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    NOT_APPLICABLE = "not_applicable"


class Transaction(Base):
    """A payment against a booking and the commission owed to the property's agent."""

    __tablename__ = "transactions"

    reference: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        unique=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    payer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00")
    )

    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus),
        nullable=False,
        default=PaymentStatus.COMPLETED,
        index=True
    )

    commission_status: Mapped[CommissionStatus] = mapped_column(
        SQLEnum(CommissionStatus),
        nullable=False,
        default=CommissionStatus.PENDING,
        index=True
    )

    commission_paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")

    @property
    def landlord_net(self) -> Decimal:
        """Amount left to the landlord after the agent's commission."""
        return self.amount - self.commission_amount

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "reference": self.reference,
            "booking_id": str(self.booking_id) if self.booking_id else None,
            "property_id": str(self.property_id),
            "payer_id": str(self.payer_id),
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "amount": self.amount,
            "commission_amount": self.commission_amount,
            "payment_status": self.payment_status.value,
            "commission_status": self.commission_status.value,
            "commission_paid_at": self.commission_paid_at,
            "property_title": self.listing.title if self.listing else None,
            "created_at": self.created_at,
        }
