"""
Payment Schemas

Pydantic schemas for checkout, settlement and the payment ledger.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from edubridge.modules.tuitions.models import PaymentStatus


class CheckoutRequest(BaseModel):
    """Request body for POST /checkout-sessions."""

    application_id: UUID


class CheckoutResponse(BaseModel):
    """Checkout session to redirect the student to."""

    url: str
    session_id: str


class SettlementResponse(BaseModel):
    """Outcome of PATCH /payment-callback."""

    session_id: str
    tuition_id: UUID
    application_id: UUID
    payment_status: PaymentStatus
    newly_recorded: bool


class PaymentResponse(BaseModel):
    """Payment ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tuition_id: UUID
    application_id: UUID
    tutor_id: UUID
    student_id: UUID
    amount: Decimal
    tutor_amount: Decimal
    admin_fee: Decimal
    currency: str
    status: PaymentStatus
    stripe_session_id: str
    paid_at: datetime
