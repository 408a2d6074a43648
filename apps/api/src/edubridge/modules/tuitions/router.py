"""
Tuitions Router

Endpoints:
- POST /tuitions - Post a listing (student)
- GET /tuitions - Own listings (student) or all listings (admin)
- GET /tuitions/public - Open listings (no authentication)
- GET /tuitions/{id}/details - Listing detail (teacher)
- PATCH /tuitions/{id} - Edit an open listing (student owner)
- PATCH /tuitions/{id}/moderate - Approve or reject (admin)
- PATCH /tuitions/{id}/close - Close a listing (student owner)
- DELETE /tuitions/{id} - Delete a listing (student owner)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import (
    CurrentUser,
    require_admin,
    require_roles,
    require_student,
    require_teacher,
)
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, internal_error, to_http_exception
from edubridge.modules.shared.schemas import DeletedResponse
from edubridge.modules.tuitions import service
from edubridge.modules.tuitions.schemas import (
    ModerateRequest,
    PublicTuitionResponse,
    TuitionCreate,
    TuitionResponse,
    TuitionUpdate,
)
from edubridge.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=TuitionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post Tuition",
)
async def create_tuition(
    data: TuitionCreate,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> TuitionResponse:
    """New listings start open and pending moderation."""
    try:
        tuition = await service.create_tuition(db, current_user.id, data)
        return TuitionResponse.model_validate(tuition)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error creating tuition: {e}")
        raise internal_error() from e


@router.get("", response_model=list[TuitionResponse], summary="List My Tuitions")
async def list_tuitions(
    current_user: CurrentUser = Depends(require_roles(UserRole.STUDENT, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
) -> list[TuitionResponse]:
    try:
        tuitions = await service.list_tuitions(db, current_user)
        return [TuitionResponse.model_validate(t) for t in tuitions]
    except Exception as e:
        logger.exception(f"Unexpected error listing tuitions: {e}")
        raise internal_error() from e


@router.get("/public", response_model=list[PublicTuitionResponse], summary="Browse Tuitions")
async def list_public_tuitions(
    db: AsyncSession = Depends(get_db),
) -> list[PublicTuitionResponse]:
    """Open listings, newest first. The owning student is not disclosed."""
    try:
        tuitions = await service.list_public(db)
        return [PublicTuitionResponse.model_validate(t) for t in tuitions]
    except Exception as e:
        logger.exception(f"Unexpected error listing public tuitions: {e}")
        raise internal_error() from e


@router.get("/{tuition_id}/details", response_model=TuitionResponse, summary="Tuition Details")
async def get_tuition_details(
    tuition_id: UUID,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> TuitionResponse:
    try:
        tuition = await service.get_details(db, tuition_id)
        return TuitionResponse.model_validate(tuition)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error loading tuition {tuition_id}: {e}")
        raise internal_error() from e


@router.patch("/{tuition_id}", response_model=TuitionResponse, summary="Edit Tuition")
async def update_tuition(
    tuition_id: UUID,
    data: TuitionUpdate,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> TuitionResponse:
    """Only open listings can be edited."""
    try:
        tuition = await service.update_tuition(db, current_user.id, tuition_id, data)
        return TuitionResponse.model_validate(tuition)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error updating tuition {tuition_id}: {e}")
        raise internal_error() from e


@router.patch(
    "/{tuition_id}/moderate",
    response_model=TuitionResponse,
    summary="Moderate Tuition (Admin)",
    responses={
        400: {
            "description": "Unsupported moderation status",
            "content": {
                "application/json": {
                    "example": {
                        "error": "INVALID_STATUS",
                        "message": "Invalid status 'pending'. Allowed values: ['approved', 'rejected']",
                    }
                }
            },
        },
    },
)
async def moderate_tuition(
    tuition_id: UUID,
    data: ModerateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TuitionResponse:
    try:
        tuition = await service.moderate_tuition(db, current_user.id, tuition_id, data.post_status)
        return TuitionResponse.model_validate(tuition)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error moderating tuition {tuition_id}: {e}")
        raise internal_error() from e


@router.patch("/{tuition_id}/close", response_model=TuitionResponse, summary="Close Tuition")
async def close_tuition(
    tuition_id: UUID,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> TuitionResponse:
    try:
        tuition = await service.close_tuition(db, current_user.id, tuition_id)
        return TuitionResponse.model_validate(tuition)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error closing tuition {tuition_id}: {e}")
        raise internal_error() from e


@router.delete("/{tuition_id}", response_model=DeletedResponse, summary="Delete Tuition")
async def delete_tuition(
    tuition_id: UUID,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> DeletedResponse:
    try:
        await service.delete_tuition(db, current_user.id, tuition_id)
        return DeletedResponse(id=tuition_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error deleting tuition {tuition_id}: {e}")
        raise internal_error() from e
