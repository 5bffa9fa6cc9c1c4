"""Redis record store over a stand-in client."""

from __future__ import annotations

from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from zerolag.errors import StorageError
from zerolag.store import RedisRecordStore


class FakeRedis:
    def __init__(self, down: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int | None] = {}
        self.down = down

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("connection refused")

    async def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> Any:
        self._check()
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, key: str) -> int:
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        self._check()
        return True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)


class FakePipeline:
    """Queues SETs and applies them only on execute()."""

    def __init__(self, client: FakeRedis) -> None:
        self.client = client
        self.queued: list[tuple[str, str]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.queued.clear()

    def set(self, key: str, value: str) -> FakePipeline:
        self.queued.append((key, value))
        return self

    async def execute(self) -> list[bool]:
        self.client._check()
        for key, value in self.queued:
            self.client.data[key] = value
            self.client.expiry[key] = None
        return [True] * len(self.queued)


class TestRedisRecordStore:
    async def test_roundtrip_with_prefix(self):
        client = FakeRedis()
        store = RedisRecordStore(client)  # type: ignore[arg-type]
        await store.set("task:1", {"title": "Run"})
        assert "zl:task:1" in client.data
        assert await store.get("task:1") == {"title": "Run"}

    async def test_ttl_maps_to_ex(self):
        client = FakeRedis()
        store = RedisRecordStore(client)  # type: ignore[arg-type]
        await store.set("auth:nonce:0xabc", {"message": "m"}, ttl_seconds=300)
        await store.set("task:1", {"title": "Run"}, ttl_seconds=0)
        assert client.expiry == {"zl:auth:nonce:0xabc": 300, "zl:task:1": None}

    async def test_delete(self):
        store = RedisRecordStore(FakeRedis())  # type: ignore[arg-type]
        await store.set("k", {"v": 1})
        await store.delete("k")
        await store.delete("k")
        assert await store.get("k") is None

    async def test_outage_raises_storage_error(self):
        store = RedisRecordStore(FakeRedis(down=True))  # type: ignore[arg-type]
        with pytest.raises(StorageError):
            await store.get("k")
        with pytest.raises(StorageError):
            await store.set("k", {"v": 1})
        assert await store.ping() is False

    async def test_set_many_applies_batch(self):
        client = FakeRedis()
        store = RedisRecordStore(client)  # type: ignore[arg-type]
        await store.set_many({"task:1": {"title": "Run"}, "index:tasks": {"ids": ["1"]}})
        assert await store.get("task:1") == {"title": "Run"}
        assert await store.get("index:tasks") == {"ids": ["1"]}

    async def test_set_many_outage_writes_nothing(self):
        client = FakeRedis(down=True)
        store = RedisRecordStore(client)  # type: ignore[arg-type]
        with pytest.raises(StorageError):
            await store.set_many({"task:1": {"title": "Run"}, "index:tasks": {"ids": ["1"]}})
        assert client.data == {}
