"""
Session Token Utilities

Signing and verification of the short-lived session tokens minted after an
identity provider credential has been verified. Tokens are HS256 JWTs that
carry the local user id (``sub``) and the user's role.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from edubridge.core.config import settings
from edubridge.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


def _get_signing_secret() -> str:
    """
    Return the configured signing secret.

    Raises:
        ConfigurationError: If no secret is configured. Both issuance and
            verification fail closed until the secret is set.
    """
    secret = settings.access_token_secret.get_secret_value()
    if not secret:
        logger.error("FATAL: ACCESS_TOKEN_SECRET is not configured")
        raise ConfigurationError()
    return secret


def create_access_token(
    subject: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token.

    Args:
        subject: Local user id
        role: User role embedded for the authorization guard
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT string
    """
    secret = _get_signing_secret()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload = {
        "sub": subject,
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a session token.

    Returns:
        The token payload, or None if the token is malformed, expired or
        carries an invalid signature.

    Raises:
        ConfigurationError: If no signing secret is configured.
    """
    secret = _get_signing_secret()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug(f"Session token rejected: {e}")
        return None
