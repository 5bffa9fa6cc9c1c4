"""ORM models.

The SQL backend keeps every ledger and challenge record in one key/value table;
the record shapes live in the pydantic models, not in the schema.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from zerolag.db.base import Base


class Record(Base):
    """Maps to the 'records' table (see alembic revision 001)."""

    __tablename__ = "records"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
