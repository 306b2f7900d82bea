"""
Payment endpoints: paying bookings, the agent commission ledger, landlord
earnings and commission payout.
"""

from fastapi import APIRouter, Depends, status, Query
from uuid import UUID

from estatehub.config import settings
from estatehub.models.user import User, UserRole
from estatehub.services.payment import PaymentService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.payment import (
    PaymentCreate,
    TransactionResponse,
    TransactionListResponse,
    CommissionLedgerResponse,
    CommissionTotals,
    EarningsResponse,
    EarningsTotals,
)
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_payment_service,
    require_roles,
)


router = APIRouter(prefix="/payments", tags=["Payments"])


def _to_response(transaction) -> TransactionResponse:
    return TransactionResponse.model_validate(transaction.to_dict())


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Pay for a booking",
    description="Simulated payment of an approved booking; records the agent's commission",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 409, 422)}
)
async def pay_booking(
    payment_data: PaymentCreate,
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> TransactionResponse:
    return _to_response(await payment_service.pay_booking(current_user, payment_data.booking_id))


@router.get("/mine", response_model=TransactionListResponse, summary="My payments", responses={401: ERROR_RESPONSES[401]})
async def my_payments(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> TransactionListResponse:
    transactions, total = await payment_service.list_my_payments(
        current_user, skip=page_offset(page, page_size), limit=page_size
    )
    return TransactionListResponse(
        transactions=[_to_response(t) for t in transactions],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/commissions",
    response_model=CommissionLedgerResponse,
    summary="Commission ledger",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def commission_ledger(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    payment_service: PaymentService = Depends(get_payment_service)
) -> CommissionLedgerResponse:
    transactions, total, totals = await payment_service.commission_ledger(
        current_user, skip=page_offset(page, page_size), limit=page_size
    )
    return CommissionLedgerResponse(
        transactions=[_to_response(t) for t in transactions],
        totals=CommissionTotals(**{k: float(v) for k, v in totals.items()}),
        **page_meta(total, page, page_size)
    )


@router.get(
    "/earnings",
    response_model=EarningsResponse,
    summary="Landlord earnings",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def landlord_earnings(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    payment_service: PaymentService = Depends(get_payment_service)
) -> EarningsResponse:
    earnings = await payment_service.landlord_earnings(current_user, skip=skip, limit=limit)
    return EarningsResponse(
        totals=EarningsTotals(**{k: float(v) for k, v in earnings["totals"].items()}),
        transactions=[_to_response(t) for t in earnings["transactions"]]
    )


@router.post(
    "/{transaction_id}/commission-paid",
    response_model=TransactionResponse,
    summary="Mark commission paid",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409)}
)
async def mark_commission_paid(
    transaction_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> TransactionResponse:
    return _to_response(await payment_service.mark_commission_paid(current_user, transaction_id))
