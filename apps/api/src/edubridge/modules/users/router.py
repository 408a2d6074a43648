"""
Users Router

Endpoints:
- POST /signup - Register a profile for a verified identity
- GET /users/me - Current user's profile
- PATCH /users/me - Update own profile
- DELETE /users/me - Delete own account
- GET /users - List all users (admin)
- GET /tutors/public - Public tutor directory
- PATCH /admin/users/{id} - Update any user (admin)
- DELETE /admin/users/{id} - Delete any user (admin)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, get_current_user, require_admin
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, internal_error, to_http_exception
from edubridge.core.identity import IdentityVerifier, get_identity_verifier
from edubridge.modules.shared.schemas import DeletedResponse
from edubridge.modules.users import service
from edubridge.modules.users.schemas import (
    AdminUserUpdate,
    ProfileUpdate,
    PublicTutorResponse,
    SignupRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    responses={
        401: {"description": "Identity credential rejected"},
        409: {
            "description": "Account already exists",
            "content": {
                "application/json": {
                    "example": {
                        "error": "DUPLICATE_ACCOUNT",
                        "message": "Email already exists",
                    }
                }
            },
        },
    },
)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> UserResponse:
    """
    Create a local profile for an identity-provider account.

    The role may be student or teacher; admins are provisioned out of band.
    """
    try:
        user = await service.signup(db, verifier, data)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error during signup: {e}")
        raise internal_error() from e


@router.get("/users/me", response_model=UserResponse, summary="Get My Profile")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        user = await service.get_user(db, current_user.id)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error loading profile {current_user.id}: {e}")
        raise internal_error() from e


@router.patch("/users/me", response_model=UserResponse, summary="Update My Profile")
async def update_me(
    data: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Update the caller's profile. Role, email and identity uid cannot be changed here."""
    try:
        user = await service.update_me(db, current_user.id, data)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error updating profile {current_user.id}: {e}")
        raise internal_error() from e


@router.delete("/users/me", response_model=DeletedResponse, summary="Delete My Account")
async def delete_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeletedResponse:
    """Delete the caller's account. Owned listings and applications go with it."""
    try:
        await service.delete_me(db, current_user.id)
        return DeletedResponse(id=current_user.id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error deleting account {current_user.id}: {e}")
        raise internal_error() from e


@router.get("/users", response_model=list[UserResponse], summary="List Users (Admin)")
async def list_users(
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    try:
        users = await service.list_users(db)
        return [UserResponse.model_validate(u) for u in users]
    except Exception as e:
        logger.exception(f"Unexpected error listing users: {e}")
        raise internal_error() from e


@router.get(
    "/tutors/public",
    response_model=list[PublicTutorResponse],
    summary="Public Tutor Directory",
)
async def list_public_tutors(
    db: AsyncSession = Depends(get_db),
) -> list[PublicTutorResponse]:
    """Teacher profiles with contact details removed. No authentication required."""
    try:
        tutors = await service.list_public_tutors(db)
        return [PublicTutorResponse.model_validate(t) for t in tutors]
    except Exception as e:
        logger.exception(f"Unexpected error listing tutors: {e}")
        raise internal_error() from e


@router.patch(
    "/admin/users/{user_id}",
    response_model=UserResponse,
    summary="Update User (Admin)",
)
async def admin_update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    try:
        user = await service.admin_update_user(db, current_user.id, user_id, data)
        return UserResponse.model_validate(user)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error updating user {user_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/admin/users/{user_id}",
    response_model=DeletedResponse,
    summary="Delete User (Admin)",
)
async def admin_delete_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> DeletedResponse:
    try:
        await service.admin_delete_user(db, current_user.id, user_id)
        return DeletedResponse(id=user_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error deleting user {user_id}: {e}")
        raise internal_error() from e
