"""Backend selection at startup."""

import pytest

from zerolag.config import Settings
from zerolag.store import MemoryRecordStore, close_store, get_store, init_store


class TestInitStore:
    async def test_memory_backend(self):
        store = await init_store(Settings(store_backend="memory", redis_url=""))
        try:
            assert isinstance(store, MemoryRecordStore)
            assert get_store() is store
        finally:
            await close_store()
        with pytest.raises(RuntimeError):
            get_store()

    async def test_redis_backend_requires_url(self):
        with pytest.raises(RuntimeError, match="ZL_REDIS_URL"):
            await init_store(Settings(store_backend="redis", redis_url=""))

    async def test_unknown_backend(self):
        with pytest.raises(RuntimeError, match="Unknown store backend"):
            await init_store(Settings(store_backend="etcd", redis_url=""))
