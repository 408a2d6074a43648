"""
Application Repository

Database operations for tutor applications. Functions flush but never
commit; the calling service owns the transaction.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import InvalidStatusTransitionError
from edubridge.modules.applications.models import (
    ACTIVE_SELECTION_STATUSES,
    Application,
    ApplicationStatus,
)
from edubridge.modules.tuitions.models import PaymentStatus, TuitionPost

# Valid status transitions
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.SELECTED_PENDING_PAYMENT,  # Student selected this applicant
        ApplicationStatus.REJECTED,  # Student chose someone else or declined
    },
    ApplicationStatus.SELECTED_PENDING_PAYMENT: {
        ApplicationStatus.SELECTED,  # Payment settled
        ApplicationStatus.REJECTED,  # Student withdrew before paying
    },
    # Terminal states
    ApplicationStatus.SELECTED: set(),
    ApplicationStatus.REJECTED: set(),
}

# Fields the tutor may edit while the application is pending
EDITABLE_FIELDS = frozenset({"qualification", "experience", "expected_salary"})


def validate_transition(current: ApplicationStatus, new: ApplicationStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If ``current -> new`` is not allowed
    """
    if new not in VALID_STATUS_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransitionError("application", current.value, new.value)


async def create(
    db: AsyncSession,
    *,
    tuition_id: UUID,
    tutor_id: UUID,
    student_id: UUID,
    qualification: str | None = None,
    experience: str | None = None,
    expected_salary: Decimal | None = None,
) -> Application:
    """Create a pending application."""
    application = Application(
        tuition_id=tuition_id,
        tutor_id=tutor_id,
        student_id=student_id,
        qualification=qualification,
        experience=experience,
        expected_salary=expected_salary,
        apply_status=ApplicationStatus.PENDING,
    )

    db.add(application)
    await db.flush()
    await db.refresh(application)
    return application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_for_update(db: AsyncSession, id: UUID) -> Application | None:
    """
    Get application by ID, locking the row until the transaction ends.

    Callers that also lock the listing must lock it first.
    """
    result = await db.execute(
        select(Application)
        .where(Application.id == id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_by_tuition_and_tutor(
    db: AsyncSession, tuition_id: UUID, tutor_id: UUID
) -> Application | None:
    """Get a tutor's application to a listing, if any."""
    result = await db.execute(
        select(Application).where(
            Application.tuition_id == tuition_id,
            Application.tutor_id == tutor_id,
        )
    )
    return result.scalar_one_or_none()


async def list_by_tutor(db: AsyncSession, tutor_id: UUID) -> list[Application]:
    """Applications submitted by a tutor, newest first."""
    result = await db.execute(
        select(Application)
        .where(Application.tutor_id == tutor_id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def list_by_student(db: AsyncSession, student_id: UUID) -> list[Application]:
    """Applications received on a student's listings, newest first."""
    result = await db.execute(
        select(Application)
        .where(Application.student_id == student_id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def update_content(db: AsyncSession, application: Application, **fields) -> Application:
    """Apply changes to a loaded application's offer details."""
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not editable: {sorted(unknown)}")

    for key, value in fields.items():
        setattr(application, key, value)

    await db.flush()
    await db.refresh(application)
    return application


async def set_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    **kwargs,
) -> Application:
    """
    Move a loaded application to ``status``.

    Args:
        db: Database session
        application: Application loaded in this transaction
        status: New status
        **kwargs: Additional fields to update (e.g., selected_at)

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    validate_transition(application.apply_status, status)

    application.apply_status = status
    for key, value in kwargs.items():
        setattr(application, key, value)

    await db.flush()
    await db.refresh(application)
    return application


async def reject_other_pending(db: AsyncSession, tuition_id: UUID, exclude_id: UUID) -> int:
    """
    Reject every pending application on a listing except ``exclude_id``.

    Applications that already left ``pending`` are not touched.

    Returns:
        Number of applications rejected
    """
    result = await db.execute(
        update(Application)
        .where(
            Application.tuition_id == tuition_id,
            Application.apply_status == ApplicationStatus.PENDING,
            Application.id != exclude_id,
        )
        .values(apply_status=ApplicationStatus.REJECTED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def reject_all_pending(db: AsyncSession, tuition_id: UUID) -> int:
    """
    Reject every pending application on a listing.

    Returns:
        Number of applications rejected
    """
    result = await db.execute(
        update(Application)
        .where(
            Application.tuition_id == tuition_id,
            Application.apply_status == ApplicationStatus.PENDING,
        )
        .values(apply_status=ApplicationStatus.REJECTED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def mark_paid(
    db: AsyncSession,
    application: Application,
    tuition: TuitionPost,
    paid_at: datetime,
) -> Application:
    """
    Record settlement on a loaded application.

    Copies the listing's subject, location and class level onto the
    application. Re-applying keeps the original ``paid_at``.

    Raises:
        InvalidStatusTransitionError: If the application is neither awaiting
            payment nor already selected
    """
    if application.apply_status not in ACTIVE_SELECTION_STATUSES:
        raise InvalidStatusTransitionError(
            "application", application.apply_status.value, ApplicationStatus.SELECTED.value
        )

    application.apply_status = ApplicationStatus.SELECTED
    application.payment_status = PaymentStatus.PAID
    if application.paid_at is None:
        application.paid_at = paid_at
    application.subject = tuition.subject
    application.location = tuition.location
    application.class_level = tuition.class_level

    await db.flush()
    await db.refresh(application)
    return application


async def delete_by_id(db: AsyncSession, id: UUID) -> bool:
    """
    Delete an application.

    Returns:
        True if a row was deleted
    """
    result = await db.execute(delete(Application).where(Application.id == id))
    return result.rowcount > 0


async def tutor_has_active_selection(db: AsyncSession, tutor_id: UUID) -> bool:
    """
    Check whether a tutor holds a selection pending payment or paid.

    Every application of the tutor is locked until the transaction ends, so
    a selection cannot land between this check and deleting the account.
    Statuses are checked on the locked rows, not in the WHERE clause, so a
    pending application selected while we waited is still seen.
    """
    result = await db.execute(
        select(Application.apply_status)
        .where(Application.tutor_id == tutor_id)
        .with_for_update()
    )
    return any(status in ACTIVE_SELECTION_STATUSES for status in result.scalars())
