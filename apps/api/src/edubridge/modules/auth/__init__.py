"""Authentication module."""

from edubridge.modules.auth.router import router
from edubridge.modules.auth.schemas import TokenRequest, TokenResponse

__all__ = ["router", "TokenRequest", "TokenResponse"]
