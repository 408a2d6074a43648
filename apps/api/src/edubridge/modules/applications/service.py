"""
Application Service Layer

Business logic for tutor applications and the selection workflow.

Selection State Machine:
    PENDING → SELECTED_PENDING_PAYMENT → SELECTED (after settlement)
        ↓               ↓
    REJECTED        REJECTED

Selecting an applicant is one transaction: the chosen application, the
listing and every competing pending application change together or not
at all.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, assert_owner
from edubridge.core.email import send_tutor_selected
from edubridge.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from edubridge.modules.applications import repository
from edubridge.modules.applications.models import Application, ApplicationStatus
from edubridge.modules.applications.schemas import ApplicationCreate, ApplicationUpdate
from edubridge.modules.shared import utcnow
from edubridge.modules.tuitions import repository as tuition_repository
from edubridge.modules.tuitions.models import ListingStatus, TuitionPost
from edubridge.modules.users.models import UserRole
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# Targets a student may set directly through PATCH /applications/{id}
STUDENT_SETTABLE_STATUSES = frozenset({ApplicationStatus.REJECTED})


class AlreadyAppliedError(ConflictError):
    """Raised when a tutor applies twice to the same listing."""

    def __init__(self):
        super().__init__("You have already applied to this tuition.", error_code="ALREADY_APPLIED")


async def _load_for_tutor(db: AsyncSession, tutor_id: UUID, application_id: UUID) -> Application:
    application = await repository.get_for_update(db, application_id)
    if not application:
        raise NotFoundError("Application", application_id)
    assert_owner(application.tutor_id, tutor_id, "Application", application_id)
    return application


async def _lock_for_student(
    db: AsyncSession, student_id: UUID, application_id: UUID
) -> tuple[Application, TuitionPost]:
    """
    Lock the application's listing, then the application itself.

    The unlocked read only finds the listing id; state is checked on the
    rows as re-read under the locks.
    """
    application = await repository.get_by_id(db, application_id)
    if not application:
        raise NotFoundError("Application", application_id)
    assert_owner(application.student_id, student_id, "Application", application_id)

    tuition = await tuition_repository.get_for_update(db, application.tuition_id)
    application = await repository.get_for_update(db, application_id)
    if not application or not tuition:
        raise NotFoundError("Application", application_id)
    return application, tuition


async def apply(db: AsyncSession, tutor_id: UUID, data: ApplicationCreate) -> Application:
    """
    Submit a tutor's application to a listing.

    Raises:
        NotFoundError: If the listing does not exist
        AlreadyAppliedError: If the tutor already applied to this listing
    """
    tuition = await tuition_repository.get_by_id(db, data.tuition_id)
    if not tuition:
        raise NotFoundError("Tuition", data.tuition_id)

    if await repository.get_by_tuition_and_tutor(db, data.tuition_id, tutor_id):
        logger.info(f"Duplicate application rejected: tutor {tutor_id}, tuition {data.tuition_id}")
        raise AlreadyAppliedError()

    try:
        application = await repository.create(
            db,
            tuition_id=tuition.id,
            tutor_id=tutor_id,
            student_id=tuition.student_id,
            qualification=data.qualification,
            experience=data.experience,
            expected_salary=data.expected_salary,
        )
        await db.commit()
    except IntegrityError as e:
        # Concurrent duplicate caught by the unique constraint
        await db.rollback()
        raise AlreadyAppliedError() from e

    logger.info(f"Application {application.id} submitted by tutor {tutor_id}")
    return application


async def list_applications(db: AsyncSession, caller: CurrentUser) -> list[Application]:
    """Teachers see applications they sent; students see applications they received."""
    if caller.role == UserRole.TEACHER:
        return await repository.list_by_tutor(db, caller.id)
    return await repository.list_by_student(db, caller.id)


async def update_application(
    db: AsyncSession,
    tutor_id: UUID,
    application_id: UUID,
    data: ApplicationUpdate,
) -> Application:
    """
    Edit a pending application's offer.

    Raises:
        ForbiddenError: If the tutor tries to set ``apply_status``
        NotFoundError: If the application is missing or not the tutor's
        ConflictError: If the application is no longer pending
    """
    if data.apply_status is not None:
        raise ForbiddenError("Only the tuition owner can change the application status.")

    application = await _load_for_tutor(db, tutor_id, application_id)
    if application.apply_status != ApplicationStatus.PENDING:
        raise ConflictError(
            f"Application cannot be edited while {application.apply_status.value}.",
            error_code="APPLICATION_NOT_EDITABLE",
        )

    changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"apply_status"})
    if changes:
        application = await repository.update_content(db, application, **changes)
    await db.commit()

    logger.info(f"Application {application_id} updated: {sorted(changes)}")
    return application


async def delete_application(db: AsyncSession, tutor_id: UUID, application_id: UUID) -> None:
    """
    Withdraw a pending application.

    Raises:
        NotFoundError: If the application is missing or not the tutor's
        ConflictError: If the application is no longer pending
    """
    application = await _load_for_tutor(db, tutor_id, application_id)
    if application.apply_status != ApplicationStatus.PENDING:
        raise ConflictError(
            f"Application cannot be withdrawn while {application.apply_status.value}.",
            error_code="APPLICATION_NOT_EDITABLE",
        )

    await repository.delete_by_id(db, application_id)
    await db.commit()

    logger.info(f"Application {application_id} withdrawn by tutor {tutor_id}")


async def select_application(
    db: AsyncSession,
    student_id: UUID,
    application_id: UUID,
) -> tuple[Application, int]:
    """
    Select an applicant for the student's listing.

    Steps (one transaction):
    1. Lock the listing, then the application, and check the caller owns it
    2. Validate PENDING -> SELECTED_PENDING_PAYMENT
    3. Claim the listing with a conditional update that only matches an
       open listing owned by the caller
    4. Mark the application SELECTED_PENDING_PAYMENT
    5. Reject every other pending application on the listing

    The selected tutor is emailed after commit.

    Returns:
        The selected application and the number of competitors rejected

    Raises:
        NotFoundError: If the application is missing or not on the caller's listing
        InvalidStatusTransitionError: If the application is not pending
        ConflictError: If the listing already has a selection or is closed
    """
    try:
        application, _ = await _lock_for_student(db, student_id, application_id)
        repository.validate_transition(
            application.apply_status, ApplicationStatus.SELECTED_PENDING_PAYMENT
        )

        selected_at = utcnow()
        claimed = await tuition_repository.claim_selection(
            db,
            tuition_id=application.tuition_id,
            student_id=student_id,
            application_id=application.id,
            tutor_id=application.tutor_id,
            salary=application.expected_salary,
            selected_at=selected_at,
        )
        if not claimed:
            raise ConflictError(
                "This tuition already has a selected tutor or is no longer open.",
                error_code="TUITION_NOT_OPEN",
            )

        application = await repository.set_status(
            db,
            application,
            ApplicationStatus.SELECTED_PENDING_PAYMENT,
            selected_at=selected_at,
        )
        rejected_count = await repository.reject_other_pending(
            db, application.tuition_id, application.id
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"Application {application_id} selected for tuition {application.tuition_id}, "
        f"{rejected_count} competing applications rejected"
    )

    await _notify_tutor_selected(db, application)
    return application, rejected_count


async def _notify_tutor_selected(db: AsyncSession, application: Application) -> None:
    try:
        tutor = await UserRepository.get_by_id(db, application.tutor_id)
        tuition = await tuition_repository.get_by_id(db, application.tuition_id)
        if tutor and tuition:
            await send_tutor_selected(
                to_email=tutor.email,
                tutor_name=tutor.name,
                tuition_title=tuition.title,
            )
    except Exception as e:
        logger.error(
            f"Failed to send selection email for application {application.id}: {e}",
            exc_info=True,
        )


async def set_status_by_student(
    db: AsyncSession,
    student_id: UUID,
    application_id: UUID,
    apply_status: str | None,
) -> Application:
    """
    Set an application's status as the listing owner.

    Only rejection is allowed here, and only along the transition table.
    Rejecting the applicant whose selection awaits payment reopens the
    listing in the same transaction.

    Raises:
        BadRequestError: If ``apply_status`` is missing
        InvalidStatusError: If ``apply_status`` is not a known status
        NotFoundError: If the application is missing or not on the caller's listing
        InvalidStatusTransitionError: If the change is not allowed
    """
    if not apply_status:
        raise BadRequestError("apply_status is required")

    try:
        new_status = ApplicationStatus(apply_status)
    except ValueError as e:
        raise InvalidStatusError(apply_status, [s.value for s in ApplicationStatus]) from e

    try:
        application, tuition = await _lock_for_student(db, student_id, application_id)
        if new_status not in STUDENT_SETTABLE_STATUSES:
            raise InvalidStatusTransitionError(
                "application", application.apply_status.value, new_status.value
            )

        was_awaiting_payment = (
            application.apply_status == ApplicationStatus.SELECTED_PENDING_PAYMENT
        )
        application = await repository.set_status(db, application, new_status)

        if was_awaiting_payment and tuition.selected_application_id == application.id:
            await tuition_repository.set_status(db, tuition, ListingStatus.OPEN)
            logger.info(f"Tuition {tuition.id} reopened after rejecting its selection")

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Application {application_id} set to {new_status.value} by student {student_id}")
    return application
