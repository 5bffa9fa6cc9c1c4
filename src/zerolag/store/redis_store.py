"""Redis-backed record store."""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from zerolag.errors import StorageError

logger = structlog.get_logger()


class RedisRecordStore:
    """Stores each record as a JSON string; TTLs map onto Redis EX."""

    def __init__(self, client: redis.Redis, prefix: str = "zl:") -> None:
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as e:
            logger.error("store_read_failed", backend="redis", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        try:
            await self._client.set(
                self._key(key),
                json.dumps(value),
                ex=ttl_seconds if ttl_seconds and ttl_seconds > 0 else None,
            )
        except RedisError as e:
            logger.error("store_write_failed", backend="redis", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def set_many(self, records: dict[str, dict[str, Any]]) -> None:
        """MULTI/EXEC so a batch is applied whole."""
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                for key, value in records.items():
                    pipe.set(self._key(key), json.dumps(value))
                await pipe.execute()
        except RedisError as e:
            logger.error("store_write_failed", backend="redis", keys=sorted(records), error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as e:
            logger.error("store_write_failed", backend="redis", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        # The client is shared with the rate limiter and closed by close_redis().
        return None
