"""
Application model for tenancy applications.
"""

from sqlalchemy import Text, Date, ForeignKey, Uuid, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from datetime import date
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.property import Property


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Application(Base):
    """A student's application to rent a property."""

    __tablename__ = "property_applications"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    applicant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus),
        nullable=False,
        default=ApplicationStatus.PENDING,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")
    applicant: Mapped["User"] = relationship("User", lazy="selectin")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "applicant_id": str(self.applicant_id),
            "message": self.message,
            "move_in_date": self.move_in_date,
            "status": self.status.value,
            "property_title": self.listing.title if self.listing else None,
            "applicant_name": self.applicant.full_name if self.applicant else None,
            "created_at": self.created_at,
        }


pending_application_index = Index(
    'uq_applications_pending_pair',
    Application.applicant_id,
    Application.property_id,
    unique=True,
    postgresql_where=Application.status == ApplicationStatus.PENDING,
    sqlite_where=Application.status == ApplicationStatus.PENDING
)
