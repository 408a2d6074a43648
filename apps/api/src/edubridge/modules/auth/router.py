"""Authentication router."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.database import get_db
from edubridge.core.errors import ServiceError, internal_error, to_http_exception
from edubridge.core.identity import IdentityVerifier, get_identity_verifier
from edubridge.modules.auth import service
from edubridge.modules.auth.schemas import TokenRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/token", response_model=TokenResponse)
async def exchange_token(
    data: TokenRequest,
    db: AsyncSession = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> TokenResponse:
    """
    Exchange an identity provider ID token for a session token.

    Args:
        data: Identity provider credential
        db: Database session
        verifier: Identity verifier

    Returns:
        Session token, its lifetime and the caller's role

    Raises:
        HTTPException 400: No token supplied
        HTTPException 401: Identity credential rejected
        HTTPException 404: No profile for this identity
    """
    try:
        return await service.issue_session_token(db, verifier, data.token)
    except ServiceError as e:
        raise to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error issuing session token: {e}")
        raise internal_error() from e
