"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NonceRequest(BaseModel):
    """Request a signing challenge. A missing address answers 400, not 422."""

    address: str | None = None


class NonceResponse(BaseModel):
    nonce: str


class VerifyRequest(BaseModel):
    address: str | None = None
    signature: str | None = None


class AuthenticatedUser(BaseModel):
    address: str
    authenticated: bool = True


class VerifyResponse(BaseModel):
    """Successful verification plus a session token for the ledger endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    user: AuthenticatedUser
    access_token: str
    token_type: str = "bearer"
    expires_in: int
