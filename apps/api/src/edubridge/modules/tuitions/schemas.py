"""
Tuition Schemas

Pydantic schemas for listing requests and responses.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from edubridge.modules.tuitions.models import ListingStatus, ModerationStatus, PaymentStatus


class TuitionCreate(BaseModel):
    """Request body for POST /tuitions."""

    title: str = Field(..., min_length=1, max_length=200)
    class_level: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class TuitionUpdate(BaseModel):
    """Request body for PATCH /tuitions/{id}. Only descriptive fields are editable."""

    title: str | None = Field(None, min_length=1, max_length=200)
    class_level: str | None = Field(None, min_length=1, max_length=100)
    subject: str | None = Field(None, min_length=1, max_length=200)
    location: str | None = Field(None, min_length=1, max_length=200)
    budget: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)


class ModerateRequest(BaseModel):
    """
    Request body for PATCH /tuitions/{id}/moderate.

    Accepted as a plain string so unsupported values produce an
    INVALID_STATUS error rather than a schema error.
    """

    post_status: str | None = None


class PublicTuitionResponse(BaseModel):
    """Listing as shown to anonymous visitors. The owner is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    class_level: str
    subject: str
    location: str
    budget: Decimal
    status: ListingStatus
    created_at: datetime


class TuitionResponse(PublicTuitionResponse):
    """Full listing (owner, teacher and admin views)."""

    student_id: UUID
    post_status: ModerationStatus
    salary: Decimal | None = None
    selected_application_id: UUID | None = None
    selected_tutor_id: UUID | None = None
    payment_status: PaymentStatus | None = None
    selected_at: datetime | None = None
    paid_at: datetime | None = None
