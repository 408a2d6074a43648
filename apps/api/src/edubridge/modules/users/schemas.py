"""
User Schemas

Pydantic schemas for signup, profile management and public tutor listings.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from edubridge.modules.users.models import UserRole


class ProfileFields(BaseModel):
    """Optional profile fields shared by signup and profile updates."""

    phone: str | None = Field(None, max_length=30)
    photo_url: str | None = Field(None, max_length=500)
    class_level: str | None = Field(None, max_length=100)
    teaching_class: str | None = Field(None, max_length=100)
    subject: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=200)


class SignupRequest(ProfileFields):
    """Request body for POST /signup."""

    token: str = Field(..., min_length=1, description="Identity provider ID token")
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.STUDENT
    # Used only when the identity token carries no email claim
    email: EmailStr | None = None


class ProfileUpdate(ProfileFields):
    """Request body for PATCH /users/me. Role, email and uid are not editable."""

    name: str | None = Field(None, min_length=1, max_length=200)


class AdminUserUpdate(BaseModel):
    """Request body for PATCH /admin/users/{id}."""

    name: str | None = Field(None, min_length=1, max_length=200)
    class_level: str | None = Field(None, max_length=100)
    teaching_class: str | None = Field(None, max_length=100)
    subject: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=30)
    role: UserRole | None = None


class UserResponse(BaseModel):
    """Full user profile (self and admin views)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole
    phone: str | None = None
    photo_url: str | None = None
    class_level: str | None = None
    teaching_class: str | None = None
    subject: str | None = None
    location: str | None = None
    created_at: datetime


class PublicTutorResponse(BaseModel):
    """Tutor profile safe for anonymous visitors."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    photo_url: str | None = None
    teaching_class: str | None = None
    subject: str | None = None
    location: str | None = None
    created_at: datetime
