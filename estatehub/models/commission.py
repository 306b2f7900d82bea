"""
Commission rate model. Admins keep a history of rates per role; the active
agent rate prices commission on new payments.
"""

from sqlalchemy import String, Numeric, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from estatehub.database import Base
from estatehub.models.user import UserRole
from decimal import Decimal
from typing import Optional


class CommissionRate(Base):
    """Percentage of a payment owed to the role it applies to."""

    __tablename__ = "commission_rates"

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.AGENT,
        index=True
    )

    rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=False,
        comment="Percentage, e.g. 5.00 for five percent"
    )

    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    @property
    def fraction(self) -> Decimal:
        """The rate as a multiplier."""
        return Decimal(self.rate) / Decimal(100)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "role": self.role.value,
            "rate": self.rate,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
