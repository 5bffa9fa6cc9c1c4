"""Records table for the SQL record store.

Holds challenges, tasks, proofs, stats, indexes and attachments as JSON rows
keyed by record key.

Revision ID: 001_records
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_records"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS records (
            key VARCHAR(255) PRIMARY KEY,
            value JSON NOT NULL,
            expires_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_records_expires_at
        ON records(expires_at)
        WHERE expires_at IS NOT NULL
    """)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_records_expires_at")
    op.execute("DROP TABLE IF EXISTS records")
