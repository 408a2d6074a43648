"""
Unit tests for the authorization guard.
"""

from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import SecretStr

from edubridge.core.auth import (
    CurrentUser,
    assert_owner,
    authenticate_token,
    get_current_user,
    require_roles,
)
from edubridge.core.config import settings
from edubridge.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from edubridge.core.security import create_access_token
from edubridge.modules.users.models import UserRole


class TestAuthenticateToken:
    """Tests for authenticate_token."""

    def test_missing_token_is_unauthorized(self, signing_secret):
        with pytest.raises(UnauthorizedError):
            authenticate_token(None)

    def test_garbage_token_is_forbidden(self, signing_secret):
        with pytest.raises(ForbiddenError):
            authenticate_token("garbage")

    def test_valid_token_yields_current_user(self, signing_secret):
        user_id = uuid4()
        token = create_access_token(subject=str(user_id), role="teacher")

        user = authenticate_token(token)
        assert user == CurrentUser(id=user_id, role=UserRole.TEACHER)

    def test_unknown_role_is_forbidden(self, signing_secret):
        token = jwt.encode(
            {"sub": str(uuid4()), "role": "superuser", "type": "access", "exp": 9999999999},
            signing_secret,
            algorithm="HS256",
        )
        with pytest.raises(ForbiddenError):
            authenticate_token(token)

    def test_non_uuid_subject_is_forbidden(self, signing_secret):
        token = jwt.encode(
            {"sub": "firebase-uid", "role": "student", "type": "access", "exp": 9999999999},
            signing_secret,
            algorithm="HS256",
        )
        with pytest.raises(ForbiddenError):
            authenticate_token(token)

    def test_wrong_token_type_is_forbidden(self, signing_secret):
        token = jwt.encode(
            {"sub": str(uuid4()), "role": "student", "type": "refresh", "exp": 9999999999},
            signing_secret,
            algorithm="HS256",
        )
        with pytest.raises(ForbiddenError):
            authenticate_token(token)


class TestGetCurrentUser:
    """Tests for the get_current_user dependency."""

    @pytest.mark.asyncio
    async def test_no_credentials_returns_401(self, signing_secret):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["error"] == "UNAUTHORIZED"
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    @pytest.mark.asyncio
    async def test_invalid_credentials_return_403(self, signing_secret):
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="bad")

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=credentials)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_secret_returns_500(self, monkeypatch):
        monkeypatch.setattr(settings, "access_token_secret", SecretStr(""))
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="any")

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials=credentials)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail["error"] == "CONFIGURATION_ERROR"


class TestRequireRoles:
    """Tests for role-restricted dependencies."""

    @pytest.mark.asyncio
    async def test_allowed_role_passes(self):
        dependency = require_roles(UserRole.STUDENT, UserRole.ADMIN)
        user = CurrentUser(id=uuid4(), role=UserRole.ADMIN)

        assert await dependency(user=user) is user

    @pytest.mark.asyncio
    async def test_other_role_is_forbidden(self):
        dependency = require_roles(UserRole.STUDENT)
        user = CurrentUser(id=uuid4(), role=UserRole.TEACHER)

        with pytest.raises(HTTPException) as exc_info:
            await dependency(user=user)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "FORBIDDEN"


class TestAssertOwner:
    """Tests for assert_owner."""

    def test_owner_passes(self):
        owner = uuid4()
        assert_owner(owner, owner, "Tuition", uuid4())

    def test_non_owner_gets_not_found(self):
        resource_id = uuid4()

        with pytest.raises(NotFoundError) as exc_info:
            assert_owner(uuid4(), uuid4(), "Tuition", resource_id)

        assert exc_info.value.status_code == 404
        assert str(resource_id) in exc_info.value.message
