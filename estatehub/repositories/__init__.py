"""
Repository layer for data access operations.
"""

from estatehub.repositories.base import BaseRepository
from estatehub.repositories.user import UserRepository
from estatehub.repositories.property import PropertyRepository, PropertySearchFilters
from estatehub.repositories.agent_request import AgentRequestRepository
from estatehub.repositories.showing import ShowingRepository
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.inquiry import InquiryRepository
from estatehub.repositories.application import ApplicationRepository
from estatehub.repositories.wishlist import SavedPropertyRepository, PropertyViewRepository
from estatehub.repositories.transaction import TransactionRepository
from estatehub.repositories.performance import AgentPerformanceRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "AgentRequestRepository",
    "ShowingRepository",
    "BookingRepository",
    "InquiryRepository",
    "ApplicationRepository",
    "SavedPropertyRepository",
    "PropertyViewRepository",
    "TransactionRepository",
    "AgentPerformanceRepository",
]
