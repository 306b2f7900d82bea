"""
Pydantic schemas for request/response validation.
"""

# Shared
from .common import PageMeta, MessageResponse, page_meta, page_offset
from .error import ErrorDetail, ErrorResponse, APIErrorResponse

# Authentication and users
from .auth import (
    SignupRequest,
    SignupResponse,
    LoginRequest,
    LoginResponse,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    TokenValidationResponse,
    PasswordChangeRequest,
    DemoCredential,
    DemoCredentialsResponse
)
from .user import (
    UserResponse,
    UserProfileUpdate,
    UserRoleUpdate,
    UserStatusUpdate,
    UserListResponse,
    UserStatistics
)

# Listings and representation
from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyStatusUpdate,
    PropertyFeatureUpdate,
    PropertyImageResponse,
    PropertyResponse,
    PropertyDetailResponse,
    PropertyListResponse,
    PropertySearchParams,
    PropertyStatistics
)
from .agent_request import (
    AgentRequestCreate,
    AgentInviteCreate,
    AgentRequestResponseNote,
    AgentRequestResponse,
    AgentRequestListResponse,
    DiscoveredProperty,
    DiscoveryResponse,
    AgentPerformanceResponse
)

# Engagement
from .engagement import (
    ShowingCreate,
    ShowingStatusUpdate,
    ShowingResponse,
    ShowingListResponse,
    BookingCreate,
    BookingResponse,
    BookingListResponse,
    InquiryCreate,
    InquiryMessageCreate,
    InquiryStatusUpdate,
    InquiryMessageResponse,
    InquiryResponse,
    InquiryListResponse,
    LeadBoardResponse,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationListResponse
)
from .wishlist import (
    SavePropertyRequest,
    SavedPropertyResponse,
    WishlistResponse,
    WishlistToggleResponse,
    RecentlyViewedItem,
    RecentlyViewedResponse
)
from .payment import (
    PaymentCreate,
    TransactionResponse,
    TransactionListResponse,
    CommissionTotals,
    CommissionLedgerResponse,
    EarningsTotals,
    EarningsResponse
)
from .dashboard import DashboardResponse
