"""
Authorization Guard

FastAPI dependencies that validate the session token on protected endpoints
and expose the caller's identity and role to handlers.

Rules:
- No bearer credential -> 401 Unauthorized
- Malformed, expired or badly signed token -> 403 Forbidden
- Valid token -> CurrentUser(id, role)

The guard is a pure function of the token and the signing secret; it never
touches the database.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edubridge.core.errors import (
    ForbiddenError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    to_http_exception,
)
from edubridge.core.security import ACCESS_TOKEN_TYPE, decode_token
from edubridge.modules.users.models import UserRole

logger = logging.getLogger(__name__)

# auto_error is disabled so a missing header yields our own 401 response
security = HTTPBearer(
    auto_error=False,
    description="Session token issued by POST /auth/token",
)


@dataclass(frozen=True)
class CurrentUser:
    """
    The authenticated caller, populated from session token claims.

    Attributes:
        id: Local user id
        role: Role embedded in the token at issuance
    """

    id: UUID
    role: UserRole

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role.value})"


def authenticate_token(token: str | None) -> CurrentUser:
    """
    Validate a raw session token and extract the caller.

    Raises:
        UnauthorizedError: If no token was supplied
        ForbiddenError: If the token is invalid, expired or has bad claims
        ConfigurationError: If the signing secret is not configured
    """
    if not token:
        raise UnauthorizedError()

    payload = decode_token(token)
    if payload is None:
        logger.warning("Invalid or expired session token")
        raise ForbiddenError()

    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise ForbiddenError()

    try:
        return CurrentUser(id=UUID(payload["sub"]), role=UserRole(payload.get("role")))
    except (KeyError, ValueError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise ForbiddenError() from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the session token.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    try:
        return authenticate_token(credentials.credentials if credentials else None)
    except ServiceError as e:
        raise to_http_exception(e) from e


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Build a dependency that only admits callers holding one of ``roles``.

    Usage:
        @router.post("/tuitions")
        async def create(user: CurrentUser = Depends(require_roles(UserRole.STUDENT))):
            ...
    """
    allowed = frozenset(roles)

    async def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            logger.warning(
                f"Access denied: user {user.id} has role '{user.role.value}', "
                f"requires one of {sorted(r.value for r in allowed)}"
            )
            raise to_http_exception(
                ForbiddenError(
                    f"Only {' or '.join(sorted(r.value for r in allowed))} users can perform this action."
                )
            )
        return user

    return _dependency


require_student = require_roles(UserRole.STUDENT)
require_teacher = require_roles(UserRole.TEACHER)
require_admin = require_roles(UserRole.ADMIN)


def assert_owner(owner_id: UUID | None, caller_id: UUID, resource: str, resource_id: UUID) -> None:
    """
    Ensure the caller owns a resource.

    Raises the same NotFoundError as a missing resource so ownership of
    other users' records is never revealed.
    """
    if owner_id != caller_id:
        logger.warning(f"Ownership check failed: {resource} {resource_id} for user {caller_id}")
        raise NotFoundError(resource, resource_id)


__all__ = [
    "CurrentUser",
    "assert_owner",
    "authenticate_token",
    "get_current_user",
    "require_admin",
    "require_roles",
    "require_student",
    "require_teacher",
]
