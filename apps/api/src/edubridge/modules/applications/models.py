"""
Application Models

A teacher's offer to tutor a listing.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from edubridge.modules.shared import BaseModel
from edubridge.modules.tuitions.models import PaymentStatus


class ApplicationStatus(str, enum.Enum):
    """Application workflow status."""

    PENDING = "pending"
    SELECTED_PENDING_PAYMENT = "selected_pending_payment"
    SELECTED = "selected"
    REJECTED = "rejected"


# Statuses that hold a listing's single selection slot
ACTIVE_SELECTION_STATUSES = (
    ApplicationStatus.SELECTED_PENDING_PAYMENT,
    ApplicationStatus.SELECTED,
)


class Application(BaseModel):
    """
    Teacher application to a tuition post.

    ``student_id`` is copied from the listing at apply time so ownership
    checks do not need to join back to the listing.
    """

    __tablename__ = "applications"

    tuition_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tuitions.id", ondelete="CASCADE"),
        nullable=False,
    )
    tutor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    apply_status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="application_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )

    # Offer details (editable by the tutor while pending)
    qualification: Mapped[str | None] = mapped_column(Text, nullable=True)
    experience: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Copied from the listing at settlement
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    class_level: Mapped[str | None] = mapped_column(String(100), nullable=True)

    payment_status: Mapped[PaymentStatus | None] = mapped_column(
        Enum(
            PaymentStatus,
            name="payment_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=True,
    )
    selected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tuition_id", "tutor_id", name="uq_applications_tuition_tutor"),
        Index("ix_applications_tutor_id", "tutor_id"),
        Index("ix_applications_student_id", "student_id"),
        Index("ix_applications_tuition_status", "tuition_id", "apply_status"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.apply_status.value})>"
