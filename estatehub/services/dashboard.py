"""
Dashboard service.
Resolves which dashboard a role lands on and builds its summary tiles.
"""

from typing import Any, Dict
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.models.agent_request import RequestInitiator, RequestStatus
from estatehub.models.application import ApplicationStatus
from estatehub.models.inquiry import LeadStatus
from estatehub.models.support import TicketStatus
from estatehub.models.user import User, UserRole
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.application import ApplicationRepository
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.inquiry import InquiryRepository
from estatehub.repositories.property import PropertyRepository
from estatehub.repositories.showing import ShowingRepository
from estatehub.repositories.support import SupportTicketRepository
from estatehub.repositories.transaction import TransactionRepository
from estatehub.repositories.user import UserRepository
from estatehub.repositories.wishlist import SavedPropertyRepository, PropertyViewRepository
from estatehub.services.inquiry import OPEN_LEAD_STATUSES
from estatehub.utils.exceptions import ForbiddenError
import logging

logger = logging.getLogger(__name__)

RECENTLY_VIEWED_TILE = 5

DASHBOARDS = {
    UserRole.STUDENT: "student",
    UserRole.LANDLORD: "landlord",
    UserRole.AGENT: "agent",
    UserRole.ADMIN: "admin",
}


def resolve_dashboard(role) -> str:
    """
    Map a role to its dashboard.

    Raises:
        ForbiddenError: If the role has no dashboard
    """
    try:
        return DASHBOARDS[UserRole(role)]
    except (KeyError, ValueError):
        raise ForbiddenError("Unauthorized") from None


def _money(totals: Dict[str, Decimal]) -> Dict[str, float]:
    return {key: float(value) for key, value in totals.items()}


class DashboardService:
    """Per-role summary tiles."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.request_repo = AgentRequestRepository(db_session)
        self.showing_repo = ShowingRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.inquiry_repo = InquiryRepository(db_session)
        self.application_repo = ApplicationRepository(db_session)
        self.saved_repo = SavedPropertyRepository(db_session)
        self.view_repo = PropertyViewRepository(db_session)
        self.transaction_repo = TransactionRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.ticket_repo = SupportTicketRepository(db_session)

    async def get_dashboard(self, user: User) -> Dict[str, Any]:
        dashboard = resolve_dashboard(user.role)
        builders = {
            "student": self._student_summary,
            "landlord": self._landlord_summary,
            "agent": self._agent_summary,
            "admin": self._admin_summary,
        }
        summary = await builders[dashboard](user)
        logger.debug(f"Built {dashboard} dashboard for {user.email}")
        return {"dashboard": dashboard, "user": user, "summary": summary}

    async def _student_summary(self, user: User) -> Dict[str, Any]:
        _, upcoming_showings = await self.showing_repo.list_showings(requester_id=user.id, upcoming_only=True, limit=1)
        _, pending_applications = await self.application_repo.list_applications(
            applicant_id=user.id, status=ApplicationStatus.PENDING, limit=1
        )
        _, inquiries_sent = await self.inquiry_repo.list_inquiries(sender_id=user.id, limit=1)
        views = await self.view_repo.recent_for_user(user.id, limit=RECENTLY_VIEWED_TILE)
        return {
            "saved_properties": await self.saved_repo.count({"user_id": user.id}),
            "upcoming_showings": upcoming_showings,
            "bookings_by_status": await self.booking_repo.count_by_status(client_id=user.id),
            "pending_applications": pending_applications,
            "inquiries_sent": inquiries_sent,
            "recently_viewed": [
                {"property_id": str(v.property_id), "title": v.listing.title, "viewed_at": v.viewed_at.isoformat()}
                for v in views if v.listing is not None and v.listing.is_visible_to(user)
            ],
        }

    async def _landlord_summary(self, user: User) -> Dict[str, Any]:
        stats = await self.property_repo.get_property_statistics(landlord_id=user.id)
        _, pending_applications = await self.application_repo.list_applications(
            landlord_id=user.id, status=ApplicationStatus.PENDING, limit=1
        )
        return {
            "total_properties": stats["total_properties"],
            "properties_by_status": stats["properties_by_status"],
            "properties_by_agent_status": stats["properties_by_agent_status"],
            "pending_agent_requests": await self.request_repo.count_pending_for_landlord(user.id),
            "bookings_by_status": await self.booking_repo.count_by_status(landlord_id=user.id),
            "pending_applications": pending_applications,
            "new_leads": await self.inquiry_repo.count_for_recipient(user.id, [LeadStatus.NEW]),
            "earnings": _money(await self.transaction_repo.landlord_totals(user.id)),
        }

    async def _agent_summary(self, user: User) -> Dict[str, Any]:
        _, upcoming_showings = await self.showing_repo.list_showings(host_id=user.id, upcoming_only=True, limit=1)
        pending_invitations = await self.request_repo.count({
            "agent_id": user.id,
            "initiated_by": RequestInitiator.OWNER,
            "status": RequestStatus.PENDING,
        })
        pending_requests = await self.request_repo.count({
            "agent_id": user.id,
            "initiated_by": RequestInitiator.AGENT,
            "status": RequestStatus.PENDING,
        })
        return {
            "assigned_properties": await self.property_repo.count_assigned_to_agent(user.id),
            "pending_invitations": pending_invitations,
            "pending_requests": pending_requests,
            "upcoming_showings": upcoming_showings,
            "open_leads": await self.inquiry_repo.count_for_recipient(user.id, OPEN_LEAD_STATUSES),
            "commission": _money(await self.transaction_repo.commission_totals(user.id)),
        }

    async def _admin_summary(self, user: User) -> Dict[str, Any]:
        stats = await self.property_repo.get_property_statistics()
        return {
            "users": await self.user_repo.get_user_statistics(),
            "total_properties": stats["total_properties"],
            "properties_by_status": stats["properties_by_status"],
            "transactions": _money(await self.transaction_repo.platform_totals()),
            "open_support_tickets": await self.ticket_repo.count(
                {"status": [TicketStatus.OPEN, TicketStatus.IN_PROGRESS]}
            ),
        }
