"""Ledger records: tasks, proofs, attachments and per-identity stats."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer, SerializationInfo
from pydantic.alias_generators import to_camel


def _coerce_amount(value: Any) -> Any:
    # Go through str so 0.1 stays Decimal("0.1") when a client sends a float.
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _serialize_amount(value: Decimal, info: SerializationInfo) -> float | str:
    """Exact decimal string in stored records, a JSON number in API responses."""
    if info.context and info.context.get("storage"):
        return str(value)
    return float(value)


Amount = Annotated[
    Decimal,
    BeforeValidator(_coerce_amount),
    PlainSerializer(_serialize_amount, when_used="json"),
]


class TaskStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class ProofStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class LedgerModel(BaseModel):
    """camelCase on the wire and in storage, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, context={"storage": True})


class AttachedFile(LedgerModel):
    file_id: str
    file_name: str
    file_type: str = "application/octet-stream"
    file_size: int = Field(0, ge=0)


class Task(LedgerModel):
    id: str
    owner_identity: str
    title: str
    description: str = ""
    staked_amount: Amount
    deadline: datetime
    status: TaskStatus = TaskStatus.ACTIVE
    proof_submitted: bool = False
    created_at: datetime
    updated_at: datetime
    attached_file: AttachedFile | None = None
    stake_tx_hash: str | None = None
    claim_tx_hash: str | None = None


class Proof(LedgerModel):
    id: str
    task_id: str
    proof_text: str | None = None
    attached_file: AttachedFile | None = None
    status: ProofStatus = ProofStatus.PENDING
    review_notes: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None


class Stats(LedgerModel):
    total_tasks: int = 0
    completed_tasks: int = 0
    failed_tasks: int = 0
    total_staked: Amount = Decimal(0)
    total_returned: Amount = Decimal(0)
    total_burned: Amount = Decimal(0)
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_at: datetime | None = None
