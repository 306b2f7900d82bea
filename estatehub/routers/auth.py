"""
Authentication API endpoints for signup, login, token management and the
caller's own account.
"""

from fastapi import APIRouter, Depends, status
from estatehub.config import settings
from estatehub.models.user import User
from estatehub.services.auth import AuthService, LOGIN_REDIRECT
from estatehub.schemas.auth import (
    SignupRequest,
    SignupResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    TokenValidationResponse,
    PasswordChangeRequest,
    DemoCredentialsResponse,
)
from estatehub.schemas.common import MessageResponse
from estatehub.schemas.user import UserResponse, UserProfileUpdate
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_auth_service, get_current_active_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Self-service signup for students, landlords and agents",
    responses={k: ERROR_RESPONSES[k] for k in (403, 409, 422)}
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SignupResponse:
    """
    Register a new account.

    Raises:
        ValidationError: If the passwords do not match
        DuplicateResourceError: If the email is already registered
    """
    user = await auth_service.signup(signup_data)
    return SignupResponse(user=UserResponse.model_validate(user.to_dict()))


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 422)}
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Every role is sent to the same dashboard route after login.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    return LoginResponse(
        user=UserResponse.model_validate(user.to_dict()),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        redirect_to=LOGIN_REDIRECT
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_token=refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get current authenticated user information",
    responses={401: ERROR_RESPONSES[401]}
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update profile",
    description="Update the caller's name or phone number",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 422)}
)
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_profile(current_user, profile_data.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user.to_dict())


@router.get(
    "/validate",
    response_model=TokenValidationResponse,
    summary="Validate token",
    description="Check that the bearer token is valid and return its user",
    responses={401: ERROR_RESPONSES[401]}
)
async def validate_token(
    current_user: User = Depends(get_current_active_user)
) -> TokenValidationResponse:
    return TokenValidationResponse(
        valid=True,
        user_id=str(current_user.id),
        email=current_user.email,
        role=current_user.role
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Tokens are stateless; clients discard them on logout"
)
async def logout(
    current_user: User = Depends(get_current_active_user)
) -> MessageResponse:
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
    responses={k: ERROR_RESPONSES[k] for k in (401, 422)}
)
async def change_password(
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.change_password(current_user, password_data.current_password, password_data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/demo-credentials",
    response_model=DemoCredentialsResponse,
    summary="Demo accounts",
    description="Credentials of the demo accounts offered on the login screen"
)
async def demo_credentials() -> DemoCredentialsResponse:
    return DemoCredentialsResponse(accounts=AuthService.demo_credentials())
