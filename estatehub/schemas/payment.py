"""
Schemas for simulated payments, the agent commission ledger, landlord earnings
and admin-managed commission rates.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from estatehub.models.transaction import PaymentStatus, CommissionStatus
from estatehub.models.user import UserRole
from estatehub.schemas.common import PageMeta
import uuid


class PaymentCreate(BaseModel):
    booking_id: uuid.UUID


class TransactionResponse(BaseModel):
    id: str
    reference: str
    booking_id: Optional[str] = None
    property_id: str
    payer_id: str
    agent_id: Optional[str] = None
    amount: float
    commission_amount: float
    payment_status: PaymentStatus
    commission_status: CommissionStatus
    commission_paid_at: Optional[datetime] = None
    property_title: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionListResponse(PageMeta):
    transactions: List[TransactionResponse]


class CommissionTotals(BaseModel):
    paid: float
    pending: float


class CommissionLedgerResponse(PageMeta):
    transactions: List[TransactionResponse]
    totals: CommissionTotals


class EarningsTotals(BaseModel):
    gross: float
    commission: float
    net: float


class EarningsResponse(BaseModel):
    totals: EarningsTotals
    transactions: List[TransactionResponse]


class CommissionRateCreate(BaseModel):
    role: UserRole = UserRole.AGENT
    rate: Decimal = Field(..., ge=0, le=100, max_digits=5, decimal_places=2, description="Percentage", examples=[5])
    description: Optional[str] = Field(None, max_length=255)
    is_active: bool = True


class CommissionRateUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    rate: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)
    is_active: Optional[bool] = None


class CommissionRateResponse(BaseModel):
    id: str
    role: UserRole
    rate: float
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommissionRateListResponse(BaseModel):
    rates: List[CommissionRateResponse]
