"""
Wallet challenge/response authentication.

Per identity the protocol is a two-step state machine:
NoChallenge -> Issued -> Verified (challenge consumed). A failed verification
leaves the challenge in place unless invalidate_on_failure is set, so the
wallet can retry signing the same message.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from zerolag.auth.challenge_store import ChallengeStore, canonical_identity
from zerolag.auth.signing import recover_signer
from zerolag.errors import (
    ChallengeExpired,
    ChallengeNotFound,
    InvalidInput,
    SignatureMismatch,
    VerificationFailed,
)
from zerolag.locks import KeyedLock

logger = structlog.get_logger()

CHALLENGE_PREFIX = "Sign this message: "
CHALLENGE_TOKEN_BYTES = 32


def build_challenge_message() -> str:
    """Fixed template plus a fresh lowercase hex token."""
    return CHALLENGE_PREFIX + secrets.token_hex(CHALLENGE_TOKEN_BYTES)


@dataclass(frozen=True)
class VerifiedIdentity:
    identity: str
    verified: bool = True


class Authenticator:
    """Issues challenges and verifies signed responses."""

    def __init__(
        self,
        challenges: ChallengeStore,
        *,
        ttl_seconds: int = 0,
        invalidate_on_failure: bool = False,
    ) -> None:
        self._challenges = challenges
        self._ttl_seconds = ttl_seconds
        self._invalidate_on_failure = invalidate_on_failure
        self._locks = KeyedLock()

    async def issue_challenge(self, identity: str | None, now: datetime | None = None) -> str:
        """
        Create (or replace) the challenge for ``identity`` and return its message.

        The caller must sign exactly this string.

        Raises:
            InvalidInput: If identity is missing.
        """
        if not identity or not identity.strip():
            msg = "Address missing"
            raise InvalidInput(msg)

        message = build_challenge_message()
        async with self._locks.hold(canonical_identity(identity)):
            await self._challenges.put(identity, message, ttl_seconds=self._ttl_seconds, now=now)
        logger.info("challenge_issued", address=canonical_identity(identity))
        return message

    async def verify(
        self,
        identity: str | None,
        signature: str | None,
        now: datetime | None = None,
    ) -> VerifiedIdentity:
        """
        Check that ``signature`` signs the outstanding challenge for ``identity``.

        Returns:
            VerifiedIdentity carrying the identity as supplied by the caller.

        Raises:
            InvalidInput: If identity or signature is missing.
            ChallengeNotFound: If no challenge is on record.
            ChallengeExpired: If the challenge outlived its TTL.
            VerificationFailed: If the signature cannot be decoded.
            SignatureMismatch: If the signature recovers to another address.
        """
        if not identity or not identity.strip() or not signature:
            msg = "Missing data"
            raise InvalidInput(msg)
        if now is None:
            now = datetime.now(timezone.utc)

        address = canonical_identity(identity)
        async with self._locks.hold(address):
            challenge = await self._challenges.get(identity)
            if challenge is None:
                msg = "No nonce found"
                raise ChallengeNotFound(msg)

            if challenge.is_expired(now):
                await self._challenges.clear(identity)
                logger.info("challenge_expired", address=address)
                msg = "Nonce expired"
                raise ChallengeExpired(msg)

            try:
                recovered = recover_signer(challenge.message, signature)
            except ValueError as e:
                await self._on_failure(identity)
                logger.warning("signature_recovery_failed", address=address, error=str(e))
                msg = "Verification failed"
                raise VerificationFailed(msg) from e

            if recovered.lower() != address:
                await self._on_failure(identity)
                logger.warning("signature_mismatch", address=address, recovered=recovered.lower())
                msg = "Signature verification failed"
                raise SignatureMismatch(msg)

            await self._challenges.clear(identity)

        logger.info("challenge_verified", address=address)
        return VerifiedIdentity(identity=identity)

    async def has_challenge(self, identity: str) -> bool:
        return await self._challenges.get(identity) is not None

    async def _on_failure(self, identity: str) -> None:
        if self._invalidate_on_failure:
            await self._challenges.clear(identity)
