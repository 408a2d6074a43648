"""
Application Schemas

Pydantic schemas for tutor applications.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edubridge.modules.applications.models import ApplicationStatus
from edubridge.modules.tuitions.models import PaymentStatus


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    tuition_id: UUID
    qualification: str | None = Field(None, max_length=2000)
    experience: str | None = Field(None, max_length=2000)
    expected_salary: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


class ApplicationUpdate(BaseModel):
    """
    Request body for PATCH /applications/{id}.

    Tutors edit the offer fields; students send ``apply_status`` only.
    """

    qualification: str | None = Field(None, max_length=2000)
    experience: str | None = Field(None, max_length=2000)
    expected_salary: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    apply_status: str | None = None


class ApplicationResponse(BaseModel):
    """Application as seen by its tutor, the listing owner or an admin."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tuition_id: UUID
    tutor_id: UUID
    student_id: UUID
    apply_status: ApplicationStatus
    qualification: str | None = None
    experience: str | None = None
    expected_salary: Decimal | None = None
    subject: str | None = None
    location: str | None = None
    class_level: str | None = None
    payment_status: PaymentStatus | None = None
    created_at: datetime
    selected_at: datetime | None = None
    paid_at: datetime | None = None


class SelectResponse(BaseModel):
    """Result of selecting an applicant."""

    application: ApplicationResponse
    tuition_id: UUID
    rejected_count: int = Field(..., description="Competing pending applications rejected")
