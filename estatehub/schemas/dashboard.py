"""
Schema for the role-routed dashboard.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict
from estatehub.schemas.user import UserResponse


class DashboardResponse(BaseModel):
    dashboard: str = Field(..., description="Dashboard resolved from the user's role", examples=["landlord"])
    user: UserResponse
    summary: Dict[str, Any] = Field(..., description="Summary tiles for the dashboard")
