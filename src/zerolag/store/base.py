"""The narrow storage interface shared by the Challenge Store and the Ledger."""

from __future__ import annotations

from typing import Any, Protocol


class RecordStore(Protocol):
    """Opaque key/value store over JSON-compatible dict records."""

    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the record stored under key, or None if absent or expired."""
        ...

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        """Overwrite the record under key. A positive ttl_seconds makes it expire."""
        ...

    async def set_many(self, records: dict[str, dict[str, Any]]) -> None:
        """Write several records atomically: either all of them land or none do."""
        ...

    async def delete(self, key: str) -> None:
        """Remove the record. Deleting a missing key is not an error."""
        ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...
