"""
API route handlers for the EstateHub API.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .agent_requests import router as agent_requests_router
from .agents import router as agents_router
from .showings import router as showings_router
from .bookings import router as bookings_router
from .units import router as units_router
from .inquiries import router as inquiries_router
from .applications import router as applications_router
from .wishlist import router as wishlist_router
from .payments import router as payments_router
from .dashboard import router as dashboard_router
from .admin import router as admin_router
from .support import router as support_router
from .health import router as health_router

# Versioned routers, mounted under settings.api_v1_prefix
api_routers = [
    auth_router,
    properties_router,
    agent_requests_router,
    agents_router,
    showings_router,
    bookings_router,
    units_router,
    inquiries_router,
    applications_router,
    wishlist_router,
    payments_router,
    dashboard_router,
    admin_router,
    support_router,
]

__all__ = ["api_routers", "health_router"]
