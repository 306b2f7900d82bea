"""
Authentication service for signup, login and user management.
Provides JWT-based authentication with role-based access control.
"""

from typing import Optional, Tuple, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError
from estatehub.repositories.user import UserRepository
from estatehub.models.user import User, UserRole, SELF_SIGNUP_ROLES
from estatehub.schemas.auth import SignupRequest
from estatehub.utils.auth import create_access_token, create_refresh_token, verify_token
from estatehub.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InactiveUserError,
    TokenExpiredError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
    InsufficientPermissionsError,
    DuplicateResourceError,
    BadRequestError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

# Client route every role lands on after login; the dashboard picks the view
LOGIN_REDIRECT = "/dashboard"

DEMO_ACCOUNTS: List[Dict[str, Any]] = [
    {"role": UserRole.ADMIN, "email": "admin@estatehub.com", "password": "EstateHub2024!", "full_name": "Demo Admin"},
    {"role": UserRole.LANDLORD, "email": "landlord@estatehub.com", "password": "Landlord2024!", "full_name": "Demo Landlord"},
    {"role": UserRole.AGENT, "email": "agent@estatehub.com", "password": "Agent2024!", "full_name": "Demo Agent"},
    {"role": UserRole.STUDENT, "email": "student@university.edu", "password": "Student2024!", "full_name": "Demo Student"},
]


class AuthService:
    """
    Authentication service handling signup, login, tokens and account administration.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def signup(self, signup_data: SignupRequest) -> User:
        """
        Register a new account.

        Args:
            signup_data: Signup form data

        Returns:
            Created user

        Raises:
            ValidationError: If the password confirmation does not match
            InsufficientPermissionsError: If an admin role is requested
            DuplicateResourceError: If the email is already registered
        """
        if signup_data.password != signup_data.confirm_password:
            raise ValidationError(
                "Passwords do not match",
                field_errors=[{"field": "confirm_password", "message": "Passwords do not match"}]
            )

        if signup_data.role not in SELF_SIGNUP_ROLES:
            raise InsufficientPermissionsError(f"sign up as {signup_data.role.value}")

        try:
            if await self.user_repo.get_by_email(signup_data.email):
                raise DuplicateResourceError("User", signup_data.email)

            user = await self.user_repo.create_user(
                signup_data.model_dump(exclude={"confirm_password"})
            )
            logger.info(f"New {user.role.value} signed up: {user.email}")
            return user
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to sign up {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to create account: {str(e)}")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            Authenticated user instance

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Authentication failed for email: {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Login attempt for inactive user: {email}")
            raise InactiveUserError()

        logger.info(f"User authenticated successfully: {email}")
        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        logger.debug(f"Created tokens for user: {user.email}")
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Complete login process with authentication and token generation.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        logger.info(f"User logged in successfully: {email}")
        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Generate new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If the account was deactivated
        """
        try:
            token_payload = verify_token(refresh_token, token_type="refresh")
        except JWTError as e:
            logger.warning(f"Refresh token verification failed: {e}")
            if "expired" in str(e).lower():
                raise TokenExpiredError("Refresh token has expired")
            raise InvalidTokenError("Invalid refresh token")

        user = await self.user_repo.get_by_id(uuid.UUID(token_payload.user_id))
        if not user:
            raise InvalidTokenError("User not found")
        if not user.is_active:
            raise InactiveUserError()

        logger.info(f"Access token refreshed for user: {user.email}")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            InvalidTokenError: If token is invalid
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(token, token_type="access")
        except JWTError as e:
            logger.debug(f"Access token verification failed: {e}")
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError()

        try:
            user_id = uuid.UUID(token_payload.user_id)
        except ValueError:
            raise InvalidTokenError("Invalid user ID in token")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("User not found")
        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def update_profile(self, user: User, updates: Dict[str, Any]) -> User:
        """Apply a user's own profile changes."""
        try:
            updated = await self.user_repo.update(user.id, updates)
            logger.info(f"User {user.email} updated their profile")
            return updated
        except Exception as e:
            logger.error(f"Failed to update profile for {user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """
        Change a user's password after re-checking the current one.

        Raises:
            InvalidCredentialsError: If current password is wrong
            ValidationError: If the new password is reused or too short
        """
        if not user.verify_password(current_password):
            raise InvalidCredentialsError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError("New password must be different from current password")

        try:
            await self.user_repo.update_password(user.id, new_password)
        except ValueError as e:
            raise ValidationError(str(e))
        logger.info(f"Password changed for user: {user.email}")

    # Admin user management

    async def list_users(
        self,
        current_user: User,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[User], int]:
        self._require_admin(current_user, "list users")
        return await self.user_repo.search_users(
            search_term=search, role=role, is_active=is_active, skip=skip, limit=limit
        )

    async def update_user_role(self, current_user: User, user_id: uuid.UUID, new_role: UserRole) -> User:
        """
        Change another user's role.

        Raises:
            InsufficientPermissionsError: If the caller is not an admin
            ForbiddenError: If an admin targets their own account
            NotFoundError: If user doesn't exist
        """
        self._require_admin(current_user, "change user roles")
        if current_user.id == user_id:
            raise InsufficientPermissionsError("change your own role")

        await self.get_user_by_id(user_id)
        updated_user = await self.user_repo.update_user_role(user_id, new_role)
        logger.info(f"User {user_id} role changed to {new_role.value} by {current_user.email}")
        return updated_user

    async def update_user_status(self, current_user: User, user_id: uuid.UUID, is_active: bool) -> User:
        """Activate or deactivate another user."""
        self._require_admin(current_user, "change user status")
        if current_user.id == user_id:
            raise InsufficientPermissionsError("change your own account status")

        await self.get_user_by_id(user_id)
        updated_user = await self.user_repo.update_user_status(user_id, is_active)
        action = "activated" if is_active else "deactivated"
        logger.info(f"User {user_id} {action} by {current_user.email}")
        return updated_user

    async def get_user_statistics(self, current_user: User) -> Dict[str, Any]:
        self._require_admin(current_user, "view user statistics")
        return await self.user_repo.get_user_statistics()

    # Demo accounts

    @staticmethod
    def demo_credentials() -> List[Dict[str, Any]]:
        """The demo accounts shown on the login screen."""
        return [dict(account) for account in DEMO_ACCOUNTS]

    async def seed_demo_users(self) -> List[User]:
        """
        Create any demo accounts that do not exist yet.

        Returns:
            Users created by this call
        """
        created = []
        for account in DEMO_ACCOUNTS:
            if await self.user_repo.get_by_email(account["email"]):
                continue
            user = await self.user_repo.create_user(dict(account))
            created.append(user)
        if created:
            logger.info(f"Seeded {len(created)} demo accounts")
        return created

    def _require_admin(self, user: User, action: str) -> None:
        if not user.is_admin:
            raise InsufficientPermissionsError(action)
