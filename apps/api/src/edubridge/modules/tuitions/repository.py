"""
Tuition Repository

Database operations for tuition posts. Functions flush but never commit;
the calling service owns the transaction.

Guarded writes (select, settle) are conditional UPDATEs so concurrent
requests cannot both succeed against the same listing.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import InvalidStatusTransitionError
from edubridge.modules.tuitions.models import (
    ListingStatus,
    ModerationStatus,
    PaymentStatus,
    TuitionPost,
)

# Valid listing status transitions
VALID_LISTING_TRANSITIONS: dict[ListingStatus, set[ListingStatus]] = {
    ListingStatus.OPEN: {
        ListingStatus.SELECTED_PENDING_PAYMENT,  # Student selected an applicant
        ListingStatus.CLOSED,  # Student withdrew the listing
    },
    ListingStatus.SELECTED_PENDING_PAYMENT: {
        ListingStatus.SELECTED,  # Payment settled
        ListingStatus.OPEN,  # Selected applicant rejected before payment
    },
    ListingStatus.SELECTED: {
        ListingStatus.CLOSED,  # Tuition finished
    },
    # Terminal
    ListingStatus.CLOSED: set(),
}

# Fields the owner may edit while the listing is open
EDITABLE_FIELDS = frozenset({"title", "class_level", "subject", "location", "budget"})


def validate_listing_transition(current: ListingStatus, new: ListingStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If ``current -> new`` is not allowed
    """
    if new not in VALID_LISTING_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransitionError("tuition", current.value, new.value)


async def create(
    db: AsyncSession,
    student_id: UUID,
    *,
    title: str,
    class_level: str,
    subject: str,
    location: str,
    budget: Decimal,
) -> TuitionPost:
    """Create a new open listing awaiting moderation."""
    tuition = TuitionPost(
        student_id=student_id,
        title=title,
        class_level=class_level,
        subject=subject,
        location=location,
        budget=budget,
        status=ListingStatus.OPEN,
        post_status=ModerationStatus.PENDING,
    )

    db.add(tuition)
    await db.flush()
    await db.refresh(tuition)
    return tuition


async def get_by_id(db: AsyncSession, id: UUID) -> TuitionPost | None:
    """Get listing by ID."""
    return await db.get(TuitionPost, id)


async def get_for_update(db: AsyncSession, id: UUID) -> TuitionPost | None:
    """
    Get listing by ID, locking the row until the transaction ends.

    Lock order across services: listing first, then its applications.
    """
    result = await db.execute(
        select(TuitionPost)
        .where(TuitionPost.id == id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_by_student(db: AsyncSession, student_id: UUID) -> list[TuitionPost]:
    """Listings owned by a student, newest first."""
    result = await db.execute(
        select(TuitionPost)
        .where(TuitionPost.student_id == student_id)
        .order_by(TuitionPost.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all(db: AsyncSession) -> list[TuitionPost]:
    """All listings, newest first."""
    result = await db.execute(select(TuitionPost).order_by(TuitionPost.created_at.desc()))
    return list(result.scalars().all())


async def list_open(db: AsyncSession) -> list[TuitionPost]:
    """Listings accepting applications, newest first."""
    result = await db.execute(
        select(TuitionPost)
        .where(TuitionPost.status == ListingStatus.OPEN)
        .order_by(TuitionPost.created_at.desc())
    )
    return list(result.scalars().all())


async def update_fields(db: AsyncSession, tuition: TuitionPost, **fields: Any) -> TuitionPost:
    """Apply changes to a loaded listing's descriptive fields."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")

    for key, value in fields.items():
        setattr(tuition, key, value)

    await db.flush()
    await db.refresh(tuition)
    return tuition


async def set_moderation(
    db: AsyncSession, tuition: TuitionPost, post_status: ModerationStatus
) -> TuitionPost:
    """Set the moderation status of a loaded listing."""
    tuition.post_status = post_status
    await db.flush()
    await db.refresh(tuition)
    return tuition


async def set_status(db: AsyncSession, tuition: TuitionPost, status: ListingStatus) -> TuitionPost:
    """
    Move a loaded listing to ``status``.

    Leaving the selection states clears the selection fields so that a
    selected application id is only ever set on a selected listing.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    validate_listing_transition(tuition.status, status)

    tuition.status = status
    if status == ListingStatus.OPEN:
        tuition.selected_application_id = None
        tuition.selected_tutor_id = None
        tuition.selected_at = None
        tuition.salary = None

    await db.flush()
    await db.refresh(tuition)
    return tuition


async def claim_selection(
    db: AsyncSession,
    *,
    tuition_id: UUID,
    student_id: UUID,
    application_id: UUID,
    tutor_id: UUID,
    salary: Decimal | None,
    selected_at: datetime,
) -> bool:
    """
    Atomically move an open listing owned by ``student_id`` into
    SELECTED_PENDING_PAYMENT.

    Returns:
        False if no row matched (listing missing, not owned, or no longer open)
    """
    result = await db.execute(
        update(TuitionPost)
        .where(
            TuitionPost.id == tuition_id,
            TuitionPost.student_id == student_id,
            TuitionPost.status == ListingStatus.OPEN,
        )
        .values(
            status=ListingStatus.SELECTED_PENDING_PAYMENT,
            selected_application_id=application_id,
            selected_tutor_id=tutor_id,
            selected_at=selected_at,
            # Fall back to the listing budget when the applicant named no salary
            salary=salary if salary is not None else TuitionPost.budget,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def mark_paid(db: AsyncSession, tuition: TuitionPost, paid_at: datetime) -> TuitionPost:
    """
    Record settlement on a loaded listing.

    Re-applying to an already settled listing changes nothing, even after
    the listing was closed.

    Raises:
        InvalidStatusTransitionError: If the listing is neither awaiting
            payment nor already selected
    """
    if tuition.payment_status == PaymentStatus.PAID:
        return tuition
    if tuition.status not in (ListingStatus.SELECTED_PENDING_PAYMENT, ListingStatus.SELECTED):
        raise InvalidStatusTransitionError(
            "tuition", tuition.status.value, ListingStatus.SELECTED.value
        )

    tuition.status = ListingStatus.SELECTED
    tuition.payment_status = PaymentStatus.PAID
    if tuition.paid_at is None:
        tuition.paid_at = paid_at

    await db.flush()
    await db.refresh(tuition)
    return tuition


async def delete_by_id(db: AsyncSession, id: UUID) -> bool:
    """
    Delete a listing. Its applications are removed by the foreign-key cascade.

    Returns:
        True if a row was deleted
    """
    result = await db.execute(delete(TuitionPost).where(TuitionPost.id == id))
    return result.rowcount > 0
