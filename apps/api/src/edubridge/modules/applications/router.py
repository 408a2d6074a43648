"""
Applications Router

Endpoints:
- POST /applications - Apply to a listing (teacher)
- GET /applications - Sent (teacher) or received (student) applications
- PATCH /applications/{id} - Edit offer (teacher) or reject (student owner)
- DELETE /applications/{id} - Withdraw a pending application (teacher)
- PATCH /applications/{id}/select - Select an applicant (student owner)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.auth import CurrentUser, require_roles, require_student, require_teacher
from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, internal_error, to_http_exception
from edubridge.modules.applications import service
from edubridge.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    SelectResponse,
)
from edubridge.modules.shared.schemas import DeletedResponse
from edubridge.modules.users.models import UserRole

logger = logging.getLogger(__name__)

router = APIRouter()

require_participant = require_roles(UserRole.STUDENT, UserRole.TEACHER)


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to Tuition",
    responses={
        404: {"description": "Tuition not found"},
        409: {
            "description": "Already applied",
            "content": {
                "application/json": {
                    "example": {
                        "error": "ALREADY_APPLIED",
                        "message": "You have already applied to this tuition.",
                    }
                }
            },
        },
    },
)
async def apply(
    data: ApplicationCreate,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    try:
        application = await service.apply(db, current_user.id, data)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting application: {e}")
        raise internal_error() from e


@router.get("", response_model=list[ApplicationResponse], summary="List My Applications")
async def list_applications(
    current_user: CurrentUser = Depends(require_participant),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationResponse]:
    try:
        applications = await service.list_applications(db, current_user)
        return [ApplicationResponse.model_validate(a) for a in applications]
    except Exception as e:
        logger.exception(f"Unexpected error listing applications: {e}")
        raise internal_error() from e


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Update Application",
)
async def update_application(
    application_id: UUID,
    data: ApplicationUpdate,
    current_user: CurrentUser = Depends(require_participant),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Teachers edit the offer of a pending application. Students owning the
    listing may reject an application by sending ``apply_status``.
    """
    try:
        if current_user.role == UserRole.TEACHER:
            application = await service.update_application(
                db, current_user.id, application_id, data
            )
        else:
            application = await service.set_status_by_student(
                db, current_user.id, application_id, data.apply_status
            )
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error updating application {application_id}: {e}")
        raise internal_error() from e


@router.delete(
    "/{application_id}",
    response_model=DeletedResponse,
    summary="Withdraw Application",
)
async def delete_application(
    application_id: UUID,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncSession = Depends(get_db),
) -> DeletedResponse:
    try:
        await service.delete_application(db, current_user.id, application_id)
        return DeletedResponse(id=application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error deleting application {application_id}: {e}")
        raise internal_error() from e


@router.patch(
    "/{application_id}/select",
    response_model=SelectResponse,
    summary="Select Applicant",
    responses={
        404: {"description": "Application not found"},
        409: {
            "description": "Tuition already has a selection or application not pending",
            "content": {
                "application/json": {
                    "example": {
                        "error": "TUITION_NOT_OPEN",
                        "message": "This tuition already has a selected tutor or is no longer open.",
                    }
                }
            },
        },
    },
)
async def select_application(
    application_id: UUID,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db),
) -> SelectResponse:
    """
    Choose one applicant. The listing moves to pending payment and all other
    pending applications are rejected.
    """
    try:
        application, rejected_count = await service.select_application(
            db, current_user.id, application_id
        )
        return SelectResponse(
            application=ApplicationResponse.model_validate(application),
            tuition_id=application.tuition_id,
            rejected_count=rejected_count,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error selecting application {application_id}: {e}")
        raise internal_error() from e
