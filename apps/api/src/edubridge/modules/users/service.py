"""
User Service Layer

Business logic for account signup, self-service profile management and
admin account management.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import BadRequestError, ConflictError, NotFoundError
from edubridge.core.identity import IdentityVerifier
from edubridge.modules.applications import repository as application_repository
from edubridge.modules.users.models import SELF_ASSIGNABLE_ROLES, User, UserRole
from edubridge.modules.users.repository import UserRepository
from edubridge.modules.users.schemas import (
    AdminUserUpdate,
    ProfileFields,
    ProfileUpdate,
    SignupRequest,
)

logger = logging.getLogger(__name__)


async def signup(db: AsyncSession, verifier: IdentityVerifier, data: SignupRequest) -> User:
    """
    Register a profile for a verified identity.

    The identity credential is verified first so a profile can only be
    created for the provider account that owns it.

    Raises:
        AuthenticationFailedError: If the credential is rejected
        BadRequestError: If no email is available or the role is not self-assignable
        ConflictError: If the email or identity is already registered
    """
    if data.role not in SELF_ASSIGNABLE_ROLES:
        raise BadRequestError(f"Role '{data.role.value}' cannot be chosen at signup.")

    identity = await verifier.verify(data.token)
    email = identity.email or data.email
    if not email:
        raise BadRequestError("email is required")

    if await UserRepository.exists_by_email_or_uid(db, email, identity.uid):
        logger.info(f"Signup rejected, account already exists for uid {identity.uid}")
        raise ConflictError("Email already exists", error_code="DUPLICATE_ACCOUNT")

    profile = data.model_dump(include=set(ProfileFields.model_fields), exclude_none=True)

    try:
        user = await UserRepository.create(
            db,
            firebase_uid=identity.uid,
            email=email,
            name=data.name,
            role=data.role,
            **profile,
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email already exists", error_code="DUPLICATE_ACCOUNT") from e

    logger.info(f"User signed up: {user.id} ({user.role.value})")
    return user


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    """
    Raises:
        NotFoundError: If the user does not exist
    """
    user = await UserRepository.get_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def update_me(db: AsyncSession, user_id: UUID, data: ProfileUpdate) -> User:
    """
    Update the caller's own profile fields. Optional fields are cleared by
    sending null; the name cannot be.

    Raises:
        NotFoundError: If the user does not exist
        BadRequestError: If name is sent as null
    """
    user = await get_user(db, user_id)

    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is None:
        raise BadRequestError("name cannot be null")
    if not changes:
        return user

    user = await UserRepository.update(db, user, **changes)
    await db.commit()
    logger.info(f"User {user_id} updated profile fields {sorted(changes)}")
    return user


async def _delete_user(db: AsyncSession, user_id: UUID) -> None:
    try:
        # A tutor holding a selection cannot be removed; the check locks their applications
        if await application_repository.tutor_has_active_selection(db, user_id):
            raise ConflictError(
                "This account has a selected tuition and cannot be deleted.",
                error_code="ACTIVE_SELECTION",
            )

        if not await UserRepository.delete(db, user_id):
            raise NotFoundError("User", user_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def delete_me(db: AsyncSession, user_id: UUID) -> None:
    """Delete the caller's own account together with their listings and applications."""
    await _delete_user(db, user_id)
    logger.info(f"User {user_id} deleted their account")


async def list_users(db: AsyncSession) -> list[User]:
    """All users, newest first (admin view)."""
    return await UserRepository.list_all(db)


async def list_public_tutors(db: AsyncSession) -> list[User]:
    """All teachers, newest first."""
    return await UserRepository.list_by_role(db, UserRole.TEACHER)


async def admin_update_user(
    db: AsyncSession,
    admin_id: UUID,
    user_id: UUID,
    data: AdminUserUpdate,
) -> User:
    """
    Update profile fields or the role of any user.

    A role change takes effect at the user's next token issuance.
    """
    user = await get_user(db, user_id)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return user

    user = await UserRepository.update(db, user, **changes)
    await db.commit()
    logger.info(f"Admin {admin_id} updated user {user_id}: {sorted(changes)}")
    return user


async def admin_delete_user(db: AsyncSession, admin_id: UUID, user_id: UUID) -> None:
    """Delete any user account."""
    await _delete_user(db, user_id)
    logger.info(f"Admin {admin_id} deleted user {user_id}")
