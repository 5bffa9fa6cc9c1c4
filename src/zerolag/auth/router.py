"""Authentication router: /api/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from zerolag.auth.jwt import create_access_token
from zerolag.auth.schemas import (
    AuthenticatedUser,
    NonceRequest,
    NonceResponse,
    VerifyRequest,
    VerifyResponse,
)
from zerolag.auth.service import Authenticator
from zerolag.config import get_settings
from zerolag.dependencies import get_authenticator

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/nonce", response_model=NonceResponse)
async def nonce(
    body: NonceRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> NonceResponse:
    """Issue a signing challenge for a wallet address."""
    message = await authenticator.issue_challenge(body.address)
    return NonceResponse(nonce=message)


@router.post("/verify", response_model=VerifyResponse)
async def verify(
    body: VerifyRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> VerifyResponse:
    """Verify the signed challenge and issue an access token."""
    result = await authenticator.verify(body.address, body.signature)
    settings = get_settings()
    return VerifyResponse(
        user=AuthenticatedUser(address=result.identity),
        access_token=create_access_token(result.identity),
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )
