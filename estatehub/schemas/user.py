"""
Pydantic schemas for user profiles and admin user management.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from estatehub.models.user import UserRole
from estatehub.schemas.common import PageMeta


class UserResponse(BaseModel):
    """Public view of a user account."""

    id: str = Field(..., description="User unique identifier")
    email: str = Field(..., description="User's email address", examples=["student@university.edu"])
    full_name: str = Field(..., description="User's full name", examples=["Jane Student"])
    phone: Optional[str] = Field(None, description="Contact phone number")
    role: UserRole = Field(..., description="Marketplace role", examples=["student"])
    is_active: bool = Field(..., description="Whether the account is active")
    created_at: Optional[datetime] = Field(None, description="Account creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class UserProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    full_name: Optional[str] = Field(None, min_length=2, max_length=255, description="User's full name")
    phone: Optional[str] = Field(None, max_length=32, description="Contact phone number")

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        """Strip the name and reject blanks."""
        if v is not None:
            if not v.strip():
                raise ValueError("Full name cannot be empty")
            return v.strip()
        return v


class UserRoleUpdate(BaseModel):
    """Admin request to change a user's role."""

    role: UserRole = Field(..., description="New role", examples=["landlord"])


class UserStatusUpdate(BaseModel):
    """Admin request to activate or deactivate a user."""

    is_active: bool = Field(..., description="Whether the account should be active")


class UserListResponse(PageMeta):
    """Paginated list of users."""

    users: List[UserResponse]


class UserStatistics(BaseModel):
    total_users: int
    active_users: int
    inactive_users: int
    users_by_role: dict
