"""
Service layer for business logic implementation.
Services own transactions: each public operation commits once.
"""

from .auth import AuthService
from .property import PropertyService
from .representation import RepresentationService
from .performance import PerformanceService
from .showing import ShowingService
from .booking import BookingService
from .inquiry import InquiryService
from .application import ApplicationService
from .wishlist import WishlistService
from .payment import PaymentService
from .dashboard import DashboardService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "RepresentationService",
    "PerformanceService",
    "ShowingService",
    "BookingService",
    "InquiryService",
    "ApplicationService",
    "WishlistService",
    "PaymentService",
    "DashboardService",
    "ErrorHandlerService"
]
