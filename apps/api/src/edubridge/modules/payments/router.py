"""
Payments Router

Endpoints:
- POST /checkout-sessions - Open a checkout for a pending selection
- PATCH /payment-callback - Settle a paid checkout session
- GET /payments - Payment ledger scoped to the caller's role

The checkout and callback endpoints are unauthenticated: the callback is
reached through the provider's redirect, and every value it acts on is
fetched from the provider or the database.
"""

import logging

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, internal_error, to_http_exception
from edubridge.core.payments import PaymentGateway, get_payment_gateway
from edubridge.core.redis import get_redis
from edubridge.modules.payments import service
from edubridge.modules.payments.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentResponse,
    SettlementResponse,
)
from edubridge.modules.tuitions.models import PaymentStatus

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.post(
    "/checkout-sessions",
    response_model=CheckoutResponse,
    summary="Create Checkout Session",
    responses={
        409: {"description": "Application is not awaiting payment"},
        502: {"description": "Payment provider failure"},
    },
)
async def create_checkout_session(
    data: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> CheckoutResponse:
    """
    Create a checkout session for the selected application.

    Amounts are derived from the tuition's agreed salary and the platform fee.
    """
    try:
        session = await service.create_checkout(db, gateway, data.application_id)
        return CheckoutResponse(url=session.url, session_id=session.session_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error creating checkout for {data.application_id}: {e}")
        raise internal_error() from e


@router.patch(
    "/payment-callback",
    response_model=SettlementResponse,
    summary="Settle Payment",
    responses={
        400: {"description": "Session metadata missing"},
        402: {
            "description": "Session not paid",
            "content": {
                "application/json": {
                    "example": {
                        "error": "PAYMENT_NOT_COMPLETED",
                        "message": "Payment not completed (status: unpaid)",
                    }
                }
            },
        },
        409: {
            "description": "Settlement already in progress, or the selection was "
            "withdrawn and the payment was kept for refund"
        },
        502: {"description": "Payment provider failure"},
    },
)
async def payment_callback(
    session_id: str | None = Query(None, description="Checkout session id"),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> SettlementResponse:
    """
    Finalize a paid checkout. Repeated calls for the same session return the
    same final state without recording a second payment.
    """
    try:
        result = await service.finalize_payment(db, redis, gateway, session_id or "")
        return SettlementResponse(
            session_id=result.session_id,
            tuition_id=result.tuition_id,
            application_id=result.application_id,
            payment_status=PaymentStatus.PAID,
            newly_recorded=result.newly_recorded,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error settling session {session_id}: {e}")
        raise internal_error() from e


@router.get("/payments", response_model=list[PaymentResponse], summary="List Payments")
async def list_payments(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[PaymentResponse]:
    try:
        payments = await service.list_payments(db, current_user)
        return [PaymentResponse.model_validate(p) for p in payments]
    except Exception as e:
        logger.exception(f"Unexpected error listing payments: {e}")
        raise internal_error() from e
