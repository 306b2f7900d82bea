"""
Transaction repository for payments, commission ledger and earnings.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func
from estatehub.repositories.base import BaseRepository
from estatehub.models.transaction import Transaction, PaymentStatus, CommissionStatus
from estatehub.models.property import Property
from decimal import Decimal
from typing import Dict, List, Optional
import uuid
import logging

logger = logging.getLogger(__name__)


class TransactionRepository(BaseRepository[Transaction]):
    """Queries over simulated payments."""

    def __init__(self, db: AsyncSession):
        super().__init__(Transaction, db)

    async def get_for_booking(self, booking_id: uuid.UUID) -> Optional[Transaction]:
        return await self.get_by_field("booking_id", booking_id)

    async def list_for_landlord(self, landlord_id: uuid.UUID, skip: int = 0, limit: int = 100) -> List[Transaction]:
        try:
            query = (
                select(Transaction)
                .join(Property, Transaction.property_id == Property.id)
                .where(Property.landlord_id == landlord_id)
                .order_by(Transaction.created_at.desc())
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list transactions for landlord {landlord_id}: {e}")
            raise

    async def commission_totals(self, agent_id: uuid.UUID) -> Dict[str, Decimal]:
        """
        Sum completed commission for an agent, split by payout state.

        Returns:
            Dictionary with 'paid' and 'pending' totals
        """
        try:
            query = (
                select(Transaction.commission_status, func.coalesce(func.sum(Transaction.commission_amount), 0))
                .where(
                    and_(
                        Transaction.agent_id == agent_id,
                        Transaction.payment_status == PaymentStatus.COMPLETED
                    )
                )
                .group_by(Transaction.commission_status)
            )
            result = await self.db.execute(query)
            sums = {row[0]: Decimal(str(row[1])) for row in result.all()}
            return {
                "paid": sums.get(CommissionStatus.PAID, Decimal("0.00")),
                "pending": sums.get(CommissionStatus.PENDING, Decimal("0.00")),
            }
        except Exception as e:
            logger.error(f"Failed to total commission for agent {agent_id}: {e}")
            raise

    async def landlord_totals(self, landlord_id: uuid.UUID) -> Dict[str, Decimal]:
        """Gross, commission and net amounts of completed payments on a landlord's properties."""
        try:
            query = (
                select(
                    func.coalesce(func.sum(Transaction.amount), 0),
                    func.coalesce(func.sum(Transaction.commission_amount), 0)
                )
                .join(Property, Transaction.property_id == Property.id)
                .where(
                    and_(
                        Property.landlord_id == landlord_id,
                        Transaction.payment_status == PaymentStatus.COMPLETED
                    )
                )
            )
            gross, commission = (await self.db.execute(query)).one()
            gross = Decimal(str(gross))
            commission = Decimal(str(commission))
            return {"gross": gross, "commission": commission, "net": gross - commission}
        except Exception as e:
            logger.error(f"Failed to total earnings for landlord {landlord_id}: {e}")
            raise

    async def platform_totals(self) -> Dict[str, Decimal]:
        """Transaction volume and outstanding commission across the platform."""
        try:
            volume = (await self.db.execute(
                select(func.coalesce(func.sum(Transaction.amount), 0))
                .where(Transaction.payment_status == PaymentStatus.COMPLETED)
            )).scalar()
            pending = (await self.db.execute(
                select(func.coalesce(func.sum(Transaction.commission_amount), 0))
                .where(Transaction.commission_status == CommissionStatus.PENDING)
            )).scalar()
            return {"volume": Decimal(str(volume)), "pending_commission": Decimal(str(pending))}
        except Exception as e:
            logger.error(f"Failed to total platform transactions: {e}")
            raise
