"""Request/response schemas for attachment endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StoredFile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    type: str
    size: int
    owner: str | None = None
    uploaded_at: datetime
    data: str


class FileUploadRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field("application/octet-stream", max_length=128)
    data: str = Field(..., min_length=1)
