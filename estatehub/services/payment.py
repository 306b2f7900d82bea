"""
Payment service for simulated booking payments and agent commission.

Payments are recorded as completed immediately; no payment provider is
involved. When the paid property has an agent, a commission on the amount is
owed to that agent until an admin marks it paid. The rate is the active agent
entry in the admin-managed rate table, or ``settings.commission_rate`` when
none is active.
"""

from typing import Any, Dict, List, Tuple
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.ext.asyncio import AsyncSession
from estatehub.config import settings
from estatehub.database import utcnow
from estatehub.models.booking import BookingStatus
from estatehub.models.transaction import Transaction, PaymentStatus, CommissionStatus
from estatehub.models.user import User, UserRole
from estatehub.repositories.booking import BookingRepository
from estatehub.repositories.transaction import TransactionRepository
from estatehub.services.commission import CommissionRateService
from estatehub.services.performance import PerformanceService
from estatehub.utils.exceptions import (
    APIException,
    BadRequestError,
    BusinessRuleViolationError,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
)
import secrets
import string
import uuid
import logging

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
REFERENCE_PREFIX = "TXN-"
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def calculate_commission(amount: Decimal, rate: Decimal = None) -> Decimal:
    """Commission on an amount, rounded half-up to cents."""
    rate = settings.commission_rate if rate is None else rate
    return (Decimal(amount) * Decimal(rate)).quantize(CENTS, rounding=ROUND_HALF_UP)


def generate_reference() -> str:
    return REFERENCE_PREFIX + "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(10))


class PaymentService:
    """Payments, the agent commission ledger and landlord earnings."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.transaction_repo = TransactionRepository(db_session)
        self.booking_repo = BookingRepository(db_session)
        self.performance = PerformanceService(db_session)
        self.rates = CommissionRateService(db_session)

    async def pay_booking(self, payer: User, booking_id: uuid.UUID) -> Transaction:
        """
        Pay for an approved booking.

        Args:
            payer: Client who made the booking
            booking_id: Booking to pay

        Returns:
            The completed transaction

        Raises:
            NotFoundError: If the booking doesn't exist
            ForbiddenError: If the booking belongs to someone else
            BusinessRuleViolationError: If the booking is not approved
            ConflictError: If the booking has already been paid
        """
        booking = await self.booking_repo.get_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if booking.client_id != payer.id:
            raise ForbiddenError("You can only pay for your own bookings")
        if booking.status != BookingStatus.APPROVED:
            raise BusinessRuleViolationError("booking_not_approved", "Only approved bookings can be paid")
        if await self.transaction_repo.get_for_booking(booking.id):
            raise ConflictError("This booking has already been paid", error_code="ALREADY_PAID")

        agent_id = booking.listing.agent_id
        commission = Decimal("0.00")
        if agent_id:
            commission = calculate_commission(booking.amount, await self.rates.rate_for(UserRole.AGENT))

        try:
            transaction = await self.transaction_repo.create({
                "reference": generate_reference(),
                "booking_id": booking.id,
                "property_id": booking.property_id,
                "payer_id": payer.id,
                "agent_id": agent_id,
                "amount": booking.amount,
                "commission_amount": commission,
                "payment_status": PaymentStatus.COMPLETED,
                "commission_status": CommissionStatus.PENDING if agent_id else CommissionStatus.NOT_APPLICABLE,
            }, commit=False)
            if agent_id:
                await self.performance.recompute_best_effort(agent_id)
            await self.db.commit()
            await self.db.refresh(transaction)
        except APIException:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to record payment for booking {booking_id}: {e}")
            raise BadRequestError(f"Failed to record payment: {str(e)}")

        logger.info(
            f"Payment {transaction.reference} of {transaction.amount} recorded for booking {booking_id} "
            f"(commission {commission})"
        )
        return transaction

    async def list_my_payments(self, payer: User, skip: int = 0, limit: int = 50) -> Tuple[List[Transaction], int]:
        filters = {"payer_id": payer.id}
        transactions = await self.transaction_repo.get_multi(
            skip=skip, limit=limit, filters=filters, order_by="-created_at"
        )
        return transactions, await self.transaction_repo.count(filters)

    async def commission_ledger(
        self,
        agent: User,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Transaction], int, Dict[str, Decimal]]:
        """
        Transactions that carry commission for an agent, with paid and pending totals.
        """
        if not agent.is_agent:
            raise InsufficientPermissionsError("view a commission ledger")
        filters = {"agent_id": agent.id}
        transactions = await self.transaction_repo.get_multi(
            skip=skip, limit=limit, filters=filters, order_by="-created_at"
        )
        total = await self.transaction_repo.count(filters)
        totals = await self.transaction_repo.commission_totals(agent.id)
        return transactions, total, totals

    async def landlord_earnings(self, landlord: User, skip: int = 0, limit: int = 50) -> Dict[str, Any]:
        if not landlord.is_landlord:
            raise InsufficientPermissionsError("view earnings")
        return {
            "totals": await self.transaction_repo.landlord_totals(landlord.id),
            "transactions": await self.transaction_repo.list_for_landlord(landlord.id, skip=skip, limit=limit),
        }

    async def mark_commission_paid(self, admin: User, transaction_id: uuid.UUID) -> Transaction:
        """
        Record that an agent's commission has been paid out.

        Raises:
            InvalidTransitionError: If the commission is not pending
        """
        if not admin.is_admin:
            raise InsufficientPermissionsError("mark commission as paid")

        transaction = await self.transaction_repo.get_by_id(transaction_id)
        if not transaction:
            raise NotFoundError("Transaction", str(transaction_id))
        if transaction.commission_status != CommissionStatus.PENDING:
            raise InvalidTransitionError(
                "commission", transaction.commission_status.value, CommissionStatus.PAID.value
            )

        transaction.commission_status = CommissionStatus.PAID
        transaction.commission_paid_at = utcnow()
        await self.transaction_repo.save(transaction, commit=False)
        if transaction.agent_id:
            await self.performance.recompute_best_effort(transaction.agent_id)
        await self.db.commit()
        await self.db.refresh(transaction)

        logger.info(f"Commission on {transaction.reference} marked paid by {admin.email}")
        return transaction
