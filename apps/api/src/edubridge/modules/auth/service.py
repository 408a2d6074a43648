"""
Authentication Service

Exchanges a verified identity-provider credential for a platform session
token carrying the local user id and role.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.config import settings
from edubridge.core.errors import BadRequestError, ProfileNotFoundError
from edubridge.core.identity import IdentityVerifier
from edubridge.core.security import create_access_token
from edubridge.modules.auth.schemas import TokenResponse
from edubridge.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


async def issue_session_token(
    db: AsyncSession,
    verifier: IdentityVerifier,
    credential: str | None,
) -> TokenResponse:
    """
    Verify an identity credential and mint a session token.

    The role is read from the database at issuance, so role changes made by
    an admin apply from the next exchange onwards.

    Raises:
        BadRequestError: If no credential was supplied
        AuthenticationFailedError: If the identity provider rejects it
        ProfileNotFoundError: If the identity has not signed up yet
        ConfigurationError: If the signing secret is not configured
    """
    if not credential:
        raise BadRequestError("token is required")

    identity = await verifier.verify(credential)

    user = await UserRepository.get_by_firebase_uid(db, identity.uid)
    if not user:
        logger.info(f"Token exchange for unregistered identity {identity.uid}")
        raise ProfileNotFoundError()

    token = create_access_token(subject=str(user.id), role=user.role.value)

    logger.info(f"Session token issued for user {user.id} (role: {user.role.value})")
    return TokenResponse(
        token=token,
        role=user.role,
        expires_in=settings.access_token_expire_minutes * 60,
    )
