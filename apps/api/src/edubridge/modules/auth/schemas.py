"""Authentication schemas."""

from pydantic import BaseModel, Field

from edubridge.modules.users.models import UserRole


class TokenRequest(BaseModel):
    """Token exchange request schema."""

    token: str | None = Field(None, description="Identity provider ID token")


class TokenResponse(BaseModel):
    """Session token response schema."""

    token: str
    token_type: str = "bearer"
    role: UserRole
    expires_in: int = Field(..., description="Token lifetime in seconds")
