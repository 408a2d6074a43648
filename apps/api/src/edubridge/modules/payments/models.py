"""
Payment Models

Ledger of settled checkout sessions. Rows are written once by the
settlement engine and never updated. There are no foreign keys so the
ledger survives account and listing deletion.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, Index, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from edubridge.modules.shared import BaseModel
from edubridge.modules.tuitions.models import PaymentStatus


class PaymentRecord(BaseModel):
    """One settled checkout session."""

    __tablename__ = "payments"

    tuition_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    application_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    tutor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    # Amounts in major currency units
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tutor_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    admin_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.PAID,
    )
    stripe_session_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_payments_student_id", "student_id"),
        Index("ix_payments_tutor_id", "tutor_id"),
    )

    def __repr__(self) -> str:
        return f"<PaymentRecord(id={self.id}, session={self.stripe_session_id})>"
