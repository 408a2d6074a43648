"""
Tuition Models

Database model for tuition posts (listings). A listing has two independent
state axes: its market status and its moderation status.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from edubridge.modules.shared import BaseModel


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ListingStatus(str, enum.Enum):
    """Market state of a listing."""

    OPEN = "open"
    SELECTED_PENDING_PAYMENT = "selected_pending_payment"
    SELECTED = "selected"
    CLOSED = "closed"


class ModerationStatus(str, enum.Enum):
    """Admin moderation state of a listing."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, enum.Enum):
    """Settlement state recorded on listings, applications and the payment ledger."""

    PAID = "paid"
    # Ledger only: paid after the selection was withdrawn
    REFUND_REQUIRED = "refund_required"


class TuitionPost(BaseModel):
    """
    A tutoring request posted by a student.

    ``selected_application_id`` is only set while ``status`` is
    SELECTED_PENDING_PAYMENT or SELECTED.
    """

    __tablename__ = "tuitions"

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Descriptive fields (editable by the owner while open)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    class_level: Mapped[str] = mapped_column(String(100), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[ListingStatus] = mapped_column(
        Enum(ListingStatus, name="listing_status", values_callable=_enum_values),
        nullable=False,
        default=ListingStatus.OPEN,
    )
    post_status: Mapped[ModerationStatus] = mapped_column(
        Enum(ModerationStatus, name="moderation_status", values_callable=_enum_values),
        nullable=False,
        default=ModerationStatus.PENDING,
    )

    # Selection, set by the application lifecycle
    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    selected_application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    selected_tutor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    selected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Settlement, set by the settlement engine
    payment_status: Mapped[PaymentStatus | None] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        nullable=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_tuitions_student_id", "student_id"),
        Index("ix_tuitions_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<TuitionPost(id={self.id}, status={self.status.value})>"
