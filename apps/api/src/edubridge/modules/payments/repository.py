"""
Payment Repository

Insert-only access to the payment ledger. The insert is idempotent on
``stripe_session_id``, so a re-delivered callback never creates a second
record.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.modules.payments.models import PaymentRecord
from edubridge.modules.tuitions.models import PaymentStatus


async def insert_if_absent(
    db: AsyncSession,
    *,
    stripe_session_id: str,
    tuition_id: UUID,
    application_id: UUID,
    tutor_id: UUID,
    student_id: UUID,
    amount: Decimal,
    tutor_amount: Decimal,
    admin_fee: Decimal,
    currency: str,
    paid_at: datetime,
    status: PaymentStatus = PaymentStatus.PAID,
) -> bool:
    """
    Record a settled session unless it is already recorded.

    A session paid after its selection was withdrawn is still recorded,
    with status REFUND_REQUIRED.

    Returns:
        True if this call inserted the record, False if it already existed
    """
    stmt = (
        insert(PaymentRecord)
        .values(
            stripe_session_id=stripe_session_id,
            tuition_id=tuition_id,
            application_id=application_id,
            tutor_id=tutor_id,
            student_id=student_id,
            amount=amount,
            tutor_amount=tutor_amount,
            admin_fee=admin_fee,
            currency=currency,
            status=status,
            paid_at=paid_at,
        )
        .on_conflict_do_nothing(index_elements=["stripe_session_id"])
        .returning(PaymentRecord.id)
    )
    result = await db.execute(stmt)
    return result.first() is not None


async def get_by_session_id(db: AsyncSession, stripe_session_id: str) -> PaymentRecord | None:
    """Get the record for a checkout session."""
    result = await db.execute(
        select(PaymentRecord).where(PaymentRecord.stripe_session_id == stripe_session_id)
    )
    return result.scalar_one_or_none()


async def list_by_student(db: AsyncSession, student_id: UUID) -> list[PaymentRecord]:
    """Payments made by a student, newest first."""
    result = await db.execute(
        select(PaymentRecord)
        .where(PaymentRecord.student_id == student_id)
        .order_by(PaymentRecord.paid_at.desc())
    )
    return list(result.scalars().all())


async def list_by_tutor(db: AsyncSession, tutor_id: UUID) -> list[PaymentRecord]:
    """Payments for a tutor's tuitions, newest first."""
    result = await db.execute(
        select(PaymentRecord)
        .where(PaymentRecord.tutor_id == tutor_id)
        .order_by(PaymentRecord.paid_at.desc())
    )
    return list(result.scalars().all())


async def list_all(db: AsyncSession) -> list[PaymentRecord]:
    """All payments, newest first."""
    result = await db.execute(select(PaymentRecord).order_by(PaymentRecord.paid_at.desc()))
    return list(result.scalars().all())
