"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.database import get_db
from estatehub.models.user import User, UserRole
from estatehub.services.auth import AuthService
from estatehub.services.property import PropertyService
from estatehub.services.representation import RepresentationService
from estatehub.services.performance import PerformanceService
from estatehub.services.showing import ShowingService
from estatehub.services.booking import BookingService
from estatehub.services.inquiry import InquiryService
from estatehub.services.application import ApplicationService
from estatehub.services.wishlist import WishlistService
from estatehub.services.payment import PaymentService
from estatehub.services.dashboard import DashboardService
from estatehub.services.unit import UnitService
from estatehub.services.commission import CommissionRateService
from estatehub.services.support import SupportService
from estatehub.utils.exceptions import (
    UnauthorizedError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    InsufficientPermissionsError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    return PropertyService(db)


async def get_representation_service(db: AsyncSession = Depends(get_db)) -> RepresentationService:
    return RepresentationService(db)


async def get_performance_service(db: AsyncSession = Depends(get_db)) -> PerformanceService:
    return PerformanceService(db)


async def get_showing_service(db: AsyncSession = Depends(get_db)) -> ShowingService:
    return ShowingService(db)


async def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db)


async def get_inquiry_service(db: AsyncSession = Depends(get_db)) -> InquiryService:
    return InquiryService(db)


async def get_application_service(db: AsyncSession = Depends(get_db)) -> ApplicationService:
    return ApplicationService(db)


async def get_wishlist_service(db: AsyncSession = Depends(get_db)) -> WishlistService:
    return WishlistService(db)


async def get_payment_service(db: AsyncSession = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


async def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


async def get_unit_service(db: AsyncSession = Depends(get_db)) -> UnitService:
    return UnitService(db)


async def get_commission_rate_service(db: AsyncSession = Depends(get_db)) -> CommissionRateService:
    return CommissionRateService(db)


async def get_support_service(db: AsyncSession = Depends(get_db)) -> SupportService:
    return SupportService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get current active user (additional check for user status).

    Raises:
        InactiveUserError: If user account is inactive
    """
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")

    return current_user


def require_roles(*roles: UserRole):
    """
    Create a dependency that requires one of the given roles.

    Admins pass every role check.

    Args:
        roles: Accepted user roles

    Returns:
        Dependency function
    """
    allowed = set(roles) | {UserRole.ADMIN}
    label = " or ".join(role.value for role in roles)

    async def role_dependency(
        current_user: User = Depends(get_current_active_user)
    ) -> User:
        if current_user.role not in allowed:
            raise InsufficientPermissionsError(f"access {label} resources")
        return current_user

    return role_dependency


# Optional authentication dependency (for public endpoints that can benefit from user context)
async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if token is provided and valid, otherwise return None.

    Args:
        credentials: HTTP Bearer credentials (optional)
        auth_service: Authentication service

    Returns:
        User object if authenticated, None otherwise
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError, InactiveUserError):
        return None
