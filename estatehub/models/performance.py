"""
AgentPerformance model holding derived per-agent aggregates.
"""

from sqlalchemy import Integer, Numeric, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from datetime import datetime
from decimal import Decimal
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User


class AgentPerformance(Base):
    """Cached aggregates for an agent; recomputed from source tables."""

    __tablename__ = "agent_performance"

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    properties_assigned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    requests_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    requests_accepted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    total_commission: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), nullable=False, default=Decimal("0.00")
    )
    pending_commission: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2), nullable=False, default=Decimal("0.00")
    )

    last_calculated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    agent: Mapped["User"] = relationship("User", lazy="selectin")

    @property
    def acceptance_rate(self) -> float:
        if not self.requests_total:
            return 0.0
        return round(self.requests_accepted / self.requests_total, 4)

    def to_dict(self) -> dict:
        return {
            "agent_id": str(self.agent_id),
            "agent_name": self.agent.full_name if self.agent else None,
            "properties_assigned": self.properties_assigned,
            "requests_total": self.requests_total,
            "requests_accepted": self.requests_accepted,
            "acceptance_rate": self.acceptance_rate,
            "total_commission": self.total_commission,
            "pending_commission": self.pending_commission,
            "last_calculated_at": self.last_calculated_at,
        }
