"""Request/response schemas for ledger endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from zerolag.ledger.models import Amount, AttachedFile, Stats


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateTaskRequest(_CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    staked_amount: Amount
    deadline: datetime
    attached_file: AttachedFile | None = None


class SubmitProofRequest(_CamelModel):
    proof_text: str | None = Field(None, max_length=5000)
    attached_file: AttachedFile | None = None


class ReviewProofRequest(_CamelModel):
    approve: bool
    notes: str | None = Field(None, max_length=2000)


class AllStatsResponse(_CamelModel):
    stats: dict[str, Stats]


class TxHashRequest(_CamelModel):
    tx_hash: str = Field(..., pattern=r"^0x[0-9a-fA-F]{64}$")
