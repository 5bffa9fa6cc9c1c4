"""Process-local record store for tests and single-process demos."""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from typing import Any


class MemoryRecordStore:
    """Dict-backed store with lazy TTL eviction on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[dict[str, Any], float | None]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if deadline is not None and self._clock() >= deadline:
            del self._data[key]
            return None
        # Callers mutate what they read; hand out copies.
        return copy.deepcopy(value)

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        deadline = self._clock() + ttl_seconds if ttl_seconds and ttl_seconds > 0 else None
        self._data[key] = (copy.deepcopy(value), deadline)

    async def set_many(self, records: dict[str, dict[str, Any]]) -> None:
        staged = {key: (copy.deepcopy(value), None) for key, value in records.items()}
        self._data.update(staged)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
