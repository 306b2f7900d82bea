"""
Pydantic schemas for authentication requests and responses.
Handles signup, login, token refresh, and user authentication data validation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from estatehub.models.user import UserRole
from estatehub.schemas.user import UserResponse


class SignupRequest(BaseModel):
    """
    Self-service signup.

    The password confirmation is compared by the auth service so that a
    mismatch is reported with its own message.
    """

    email: EmailStr = Field(..., description="User's email address", examples=["jane@university.edu"])
    full_name: str = Field(..., min_length=1, max_length=255, description="User's full name", examples=["Jane Student"])
    password: str = Field(..., min_length=8, max_length=128, description="Password (minimum 8 characters)")
    confirm_password: str = Field(..., max_length=128, description="Must repeat the password")
    role: UserRole = Field(UserRole.STUDENT, description="Requested role (student, landlord or agent)")
    phone: Optional[str] = Field(None, max_length=32, description="Contact phone number")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Full name is required")
        return v.strip()


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address", examples=["landlord@estatehub.com"])
    password: str = Field(..., min_length=1, max_length=128, description="User's password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds", examples=[1800])


class LoginResponse(TokenResponse):
    """Successful login: tokens, the user, and where the client should go next."""

    user: UserResponse
    redirect_to: str = Field("/dashboard", description="Client route to open after login")


class SignupResponse(BaseModel):
    user: UserResponse
    message: str = "Account created successfully"


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")


class TokenValidationResponse(BaseModel):
    valid: bool
    user_id: str
    email: str
    role: UserRole


class PasswordChangeRequest(BaseModel):
    """Password change request schema."""

    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=128, description="New password (minimum 8 characters)")


class DemoCredential(BaseModel):
    """A seeded demo account."""

    role: UserRole
    email: str
    password: str
    full_name: str


class DemoCredentialsResponse(BaseModel):
    accounts: List[DemoCredential]
