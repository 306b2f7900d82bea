"""
Database models for the EstateHub marketplace.
Importing this package registers every table on the shared metadata.
"""

from estatehub.models.user import User, UserRole
from estatehub.models.property import Property, PropertyType, PropertyStatus, AgentStatus
from estatehub.models.image import PropertyImage
from estatehub.models.unit import Unit, UnitStatus
from estatehub.models.agent_request import AgentRequest, RequestStatus, RequestInitiator
from estatehub.models.showing import Showing, ShowingStatus
from estatehub.models.booking import Booking, BookingStatus
from estatehub.models.inquiry import Inquiry, InquiryMessage, LeadStatus
from estatehub.models.application import Application, ApplicationStatus
from estatehub.models.wishlist import SavedProperty, PropertyView
from estatehub.models.transaction import Transaction, PaymentStatus, CommissionStatus
from estatehub.models.performance import AgentPerformance
from estatehub.models.commission import CommissionRate
from estatehub.models.support import SupportTicket, SupportMessage, TicketStatus, TicketPriority

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "AgentStatus",
    "PropertyImage",
    "Unit",
    "UnitStatus",
    "AgentRequest",
    "RequestStatus",
    "RequestInitiator",
    "Showing",
    "ShowingStatus",
    "Booking",
    "BookingStatus",
    "Inquiry",
    "InquiryMessage",
    "LeadStatus",
    "Application",
    "ApplicationStatus",
    "SavedProperty",
    "PropertyView",
    "Transaction",
    "PaymentStatus",
    "CommissionStatus",
    "AgentPerformance",
    "CommissionRate",
    "SupportTicket",
    "SupportMessage",
    "TicketStatus",
    "TicketPriority",
]
