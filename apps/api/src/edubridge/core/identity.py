"""
Identity Verifier

Verifies identity-provider credentials (Firebase ID tokens) and returns the
provider's stable user id. The Firebase Admin SDK is synchronous, so calls
run in a worker thread to keep the event loop free.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import firebase_admin
from fastapi import FastAPI, Request
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from edubridge.core.config import settings
from edubridge.core.errors import AuthenticationFailedError, ConfigurationError

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "edubridge"


@dataclass(frozen=True)
class VerifiedIdentity:
    """Claims extracted from a verified identity credential."""

    uid: str
    email: str | None = None


class IdentityVerifier(Protocol):
    """Capability contract for identity-provider verification."""

    async def verify(self, credential: str) -> VerifiedIdentity: ...


class FirebaseIdentityVerifier:
    """Identity verifier backed by Firebase Authentication."""

    def __init__(self, app: firebase_admin.App):
        self._app = app

    async def verify(self, credential: str) -> VerifiedIdentity:
        """
        Verify a Firebase ID token.

        Raises:
            AuthenticationFailedError: If Firebase rejects the token
        """
        try:
            decoded = await asyncio.to_thread(auth.verify_id_token, credential, app=self._app)
        except (ValueError, FirebaseError) as e:
            logger.warning(f"Identity credential rejected: {type(e).__name__}")
            raise AuthenticationFailedError() from e

        return VerifiedIdentity(uid=decoded["uid"], email=decoded.get("email"))


class UnconfiguredIdentityVerifier:
    """Placeholder used when Firebase credentials are missing. Always fails closed."""

    async def verify(self, credential: str) -> VerifiedIdentity:
        raise ConfigurationError("Identity provider is not configured.")


def init_identity_verifier(app: FastAPI) -> IdentityVerifier:
    """
    Initialize the Firebase Admin app and attach a verifier to ``app.state``.

    Call this on application startup.
    """
    if not settings.firebase_credentials_path:
        logger.warning("FIREBASE_CREDENTIALS_PATH not set - identity verification disabled")
        verifier: IdentityVerifier = UnconfiguredIdentityVerifier()
    else:
        try:
            firebase_app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
            firebase_app = firebase_admin.initialize_app(
                credentials.Certificate(settings.firebase_credentials_path),
                options=options,
                name=FIREBASE_APP_NAME,
            )
        verifier = FirebaseIdentityVerifier(firebase_app)

    app.state.identity_verifier = verifier
    return verifier


async def get_identity_verifier(request: Request) -> IdentityVerifier:
    """FastAPI dependency returning the process-wide identity verifier."""
    return request.app.state.identity_verifier
