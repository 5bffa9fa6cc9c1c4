"""Record store selection and lifecycle.

The active store is a module-level singleton, initialized once at startup the
same way the database engine and the Redis client are.
"""

from __future__ import annotations

import structlog

from zerolag.config import Settings
from zerolag.database import close_db, get_session_factory, init_db
from zerolag.redis_client import close_redis, get_redis, init_redis
from zerolag.store.base import RecordStore
from zerolag.store.memory import MemoryRecordStore
from zerolag.store.redis_store import RedisRecordStore
from zerolag.store.sql_store import SqlRecordStore

logger = structlog.get_logger()

_store: RecordStore | None = None

__all__ = [
    "MemoryRecordStore",
    "RecordStore",
    "RedisRecordStore",
    "SqlRecordStore",
    "close_store",
    "get_store",
    "init_store",
    "set_store",
]


async def init_store(settings: Settings) -> RecordStore:
    """Build the backend named by settings.store_backend."""
    backend = settings.store_backend.lower()
    if settings.redis_url:
        # Rate limiting uses Redis whenever a URL is configured.
        await init_redis(settings.redis_url)

    store: RecordStore
    if backend == "memory":
        store = MemoryRecordStore()
    elif backend == "redis":
        if not settings.redis_url:
            msg = "ZL_REDIS_URL is required for the redis store backend"
            raise RuntimeError(msg)
        store = RedisRecordStore(get_redis())
    elif backend == "sql":
        await init_db(settings.database_url)
        store = SqlRecordStore(get_session_factory())
    else:
        msg = f"Unknown store backend: {settings.store_backend}"
        raise RuntimeError(msg)

    set_store(store)
    logger.info("store_initialized", backend=backend)
    return store


def set_store(store: RecordStore | None) -> None:
    """Install a store directly (tests inject MemoryRecordStore this way)."""
    global _store  # noqa: PLW0603
    _store = store


def get_store() -> RecordStore:
    """Get the active record store (FastAPI dependency)."""
    if _store is None:
        msg = "Record store not initialized. Call init_store() first."
        raise RuntimeError(msg)
    return _store


async def close_store() -> None:
    global _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
        _store = None
    await close_db()
    await close_redis()
