"""SQL-backed record store: one row per key in the 'records' table."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from zerolag.db.models import Record
from zerolag.errors import StorageError

logger = structlog.get_logger()


class SqlRecordStore:
    """Each call runs in its own short transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> dict[str, Any] | None:
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Record).where(Record.key == key))
                row = result.scalar_one_or_none()
                if row is None:
                    return None
                if row.expires_at is not None and _as_utc(row.expires_at) <= now:
                    await session.execute(delete(Record).where(Record.key == key))
                    await session.commit()
                    return None
                return dict(row.value)
        except SQLAlchemyError as e:
            logger.error("store_read_failed", backend="sql", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=ttl_seconds) if ttl_seconds and ttl_seconds > 0 else None
        try:
            async with self._session_factory() as session:
                await session.merge(Record(key=key, value=value, expires_at=expires_at, updated_at=now))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("store_write_failed", backend="sql", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def set_many(self, records: dict[str, dict[str, Any]]) -> None:
        """All rows are merged in one transaction."""
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                for key, value in records.items():
                    await session.merge(Record(key=key, value=value, expires_at=None, updated_at=now))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("store_write_failed", backend="sql", keys=sorted(records), error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def delete(self, key: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(Record).where(Record.key == key))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("store_write_failed", backend="sql", key=key, error=str(e))
            msg = "Storage unavailable"
            raise StorageError(msg) from e

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
        except SQLAlchemyError:
            return False
        return True

    async def close(self) -> None:
        # Engine lifetime belongs to zerolag.database.
        return None


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
