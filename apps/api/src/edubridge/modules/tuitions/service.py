"""
Tuition Service Layer

Listing lifecycle: create, browse, edit, moderate, close and delete
tuition posts.

Mutations load the listing FOR UPDATE and check ownership on the locked
row, so a missing listing and someone else's listing produce the same
NotFoundError.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, assert_owner
from edubridge.core.errors import ConflictError, InvalidStatusError, NotFoundError
from edubridge.modules.applications import repository as application_repository
from edubridge.modules.tuitions import repository
from edubridge.modules.tuitions.models import ListingStatus, ModerationStatus, TuitionPost
from edubridge.modules.tuitions.schemas import TuitionCreate, TuitionUpdate
from edubridge.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# Moderation outcomes an admin may set
MODERATION_DECISIONS = (ModerationStatus.APPROVED, ModerationStatus.REJECTED)


async def _load_owned(db: AsyncSession, student_id: UUID, tuition_id: UUID) -> TuitionPost:
    tuition = await repository.get_for_update(db, tuition_id)
    if not tuition:
        raise NotFoundError("Tuition", tuition_id)
    assert_owner(tuition.student_id, student_id, "Tuition", tuition_id)
    return tuition


async def create_tuition(db: AsyncSession, student_id: UUID, data: TuitionCreate) -> TuitionPost:
    """Post a new listing. It starts open and awaiting moderation."""
    tuition = await repository.create(db, student_id, **data.model_dump())
    await db.commit()

    logger.info(f"Tuition {tuition.id} created by student {student_id}")
    return tuition


async def list_tuitions(db: AsyncSession, caller: CurrentUser) -> list[TuitionPost]:
    """Admins see every listing; students see their own."""
    if caller.role == UserRole.ADMIN:
        return await repository.list_all(db)
    return await repository.list_by_student(db, caller.id)


async def list_public(db: AsyncSession) -> list[TuitionPost]:
    """Open listings for anonymous browsing."""
    return await repository.list_open(db)


async def get_details(db: AsyncSession, tuition_id: UUID) -> TuitionPost:
    """
    Raises:
        NotFoundError: If the listing does not exist
    """
    tuition = await repository.get_by_id(db, tuition_id)
    if not tuition:
        raise NotFoundError("Tuition", tuition_id)
    return tuition


async def update_tuition(
    db: AsyncSession,
    student_id: UUID,
    tuition_id: UUID,
    data: TuitionUpdate,
) -> TuitionPost:
    """
    Edit a listing's descriptive fields.

    Raises:
        NotFoundError: If the listing is missing or not owned by the caller
        ConflictError: If the listing is no longer open
    """
    tuition = await _load_owned(db, student_id, tuition_id)

    if tuition.status != ListingStatus.OPEN:
        raise ConflictError(
            f"Tuition cannot be edited while {tuition.status.value}.",
            error_code="TUITION_NOT_EDITABLE",
        )

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        tuition = await repository.update_fields(db, tuition, **changes)
    await db.commit()

    logger.info(f"Tuition {tuition_id} updated: {sorted(changes)}")
    return tuition


async def moderate_tuition(
    db: AsyncSession,
    admin_id: UUID,
    tuition_id: UUID,
    post_status: str | None,
) -> TuitionPost:
    """
    Approve or reject a listing. Moderation is independent of market status
    and may be changed again later.

    Raises:
        InvalidStatusError: If ``post_status`` is not approved or rejected
        NotFoundError: If the listing does not exist
    """
    allowed = [s.value for s in MODERATION_DECISIONS]
    if post_status not in allowed:
        raise InvalidStatusError(str(post_status), allowed)

    tuition = await repository.get_for_update(db, tuition_id)
    if not tuition:
        raise NotFoundError("Tuition", tuition_id)

    tuition = await repository.set_moderation(db, tuition, ModerationStatus(post_status))
    await db.commit()

    logger.info(f"Admin {admin_id} moderated tuition {tuition_id}: {post_status}")
    return tuition


async def close_tuition(db: AsyncSession, student_id: UUID, tuition_id: UUID) -> TuitionPost:
    """
    Close a listing. Closing an open listing rejects its pending applications.

    Raises:
        NotFoundError: If the listing is missing or not owned by the caller
        InvalidStatusTransitionError: If the listing is awaiting payment or already closed
    """
    tuition = await _load_owned(db, student_id, tuition_id)
    was_open = tuition.status == ListingStatus.OPEN

    tuition = await repository.set_status(db, tuition, ListingStatus.CLOSED)
    rejected = 0
    if was_open:
        rejected = await application_repository.reject_all_pending(db, tuition_id)
    await db.commit()

    logger.info(f"Tuition {tuition_id} closed, {rejected} pending applications rejected")
    return tuition


async def delete_tuition(db: AsyncSession, student_id: UUID, tuition_id: UUID) -> None:
    """
    Delete a listing together with its applications.

    Raises:
        NotFoundError: If the listing is missing or not owned by the caller
        ConflictError: If a selection is pending payment or paid
    """
    tuition = await _load_owned(db, student_id, tuition_id)

    if tuition.status in (ListingStatus.SELECTED_PENDING_PAYMENT, ListingStatus.SELECTED):
        raise ConflictError(
            "A tuition with a selected tutor cannot be deleted.",
            error_code="TUITION_HAS_SELECTION",
        )

    await repository.delete_by_id(db, tuition_id)
    await db.commit()

    logger.info(f"Tuition {tuition_id} deleted by student {student_id}")
