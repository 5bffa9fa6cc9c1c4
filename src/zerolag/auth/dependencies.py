"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from zerolag.auth.jwt import verify_token
from zerolag.config import get_settings

_bearer = HTTPBearer()


async def get_current_address(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
) -> str:
    """
    Extract and verify the bearer JWT, return the lowercased wallet address.

    Raises 401 on failure.
    """
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return str(payload["sub"])


def is_admin(address: str) -> bool:
    admins = {a.lower() for a in get_settings().admin_addresses}
    return address.lower() in admins


async def require_admin(address: str = Depends(get_current_address)) -> str:
    """Same as get_current_address but additionally requires an admin wallet."""
    if not is_admin(address):
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return address
