"""Outstanding sign-in challenges, at most one per identity."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from zerolag.store.base import RecordStore

# Expired challenges stay readable this long so verify can report them as expired.
EXPIRED_RETENTION_SECONDS = 3600


def canonical_identity(identity: str) -> str:
    """Addresses compare case-insensitively; lowercase is the stored form."""
    return identity.strip().lower()


@dataclass
class Challenge:
    identity: str
    message: str
    issued_at: datetime
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def to_record(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "message": self.message,
            "issuedAt": self.issued_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Challenge:
        expires_at = record.get("expiresAt")
        return cls(
            identity=record["identity"],
            message=record["message"],
            issued_at=datetime.fromisoformat(record["issuedAt"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )


class ChallengeStore:
    """Keyed by lowercased identity under auth:nonce:<identity>."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @staticmethod
    def _key(identity: str) -> str:
        return f"auth:nonce:{canonical_identity(identity)}"

    async def put(
        self,
        identity: str,
        message: str,
        ttl_seconds: int = 0,
        now: datetime | None = None,
    ) -> Challenge:
        """Store a challenge, replacing any previous one for the identity."""
        if now is None:
            now = datetime.now(timezone.utc)
        challenge = Challenge(
            identity=canonical_identity(identity),
            message=message,
            issued_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds) if ttl_seconds > 0 else None,
        )
        store_ttl = ttl_seconds + EXPIRED_RETENTION_SECONDS if ttl_seconds > 0 else None
        await self._store.set(self._key(identity), challenge.to_record(), ttl_seconds=store_ttl)
        return challenge

    async def get(self, identity: str) -> Challenge | None:
        record = await self._store.get(self._key(identity))
        if record is None:
            return None
        return Challenge.from_record(record)

    async def clear(self, identity: str) -> None:
        await self._store.delete(self._key(identity))
