"""Small-file attachment store.

Files are kept whole in the record store as base64, so the size cap is low.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from datetime import datetime, timezone

import structlog

from zerolag.errors import InvalidInput, NotFound, ValidationError
from zerolag.files.schemas import StoredFile
from zerolag.ledger.models import AttachedFile
from zerolag.store.base import RecordStore

logger = structlog.get_logger()


def _strip_data_url(data: str) -> str:
    """Accept both bare base64 and ``data:<type>;base64,<payload>`` strings."""
    if data.startswith("data:") and "," in data:
        return data.split(",", 1)[1]
    return data


class FileService:
    def __init__(self, store: RecordStore, max_bytes: int = 1_000_000) -> None:
        self._store = store
        self._max_bytes = max_bytes

    async def store_file(
        self,
        name: str,
        content_type: str,
        data: str,
        owner: str | None = None,
        now: datetime | None = None,
    ) -> AttachedFile:
        """
        Decode and persist an upload.

        Raises:
            InvalidInput: If the name or payload is empty.
            ValidationError: If the payload is not base64 or exceeds the size cap.
        """
        if not name or not data:
            msg = "File name and data are required"
            raise InvalidInput(msg)
        payload = _strip_data_url(data)
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            msg = "File data is not valid base64"
            raise ValidationError(msg) from e
        if len(raw) > self._max_bytes:
            msg = f"File exceeds the {self._max_bytes} byte limit"
            raise ValidationError(msg)

        stored = StoredFile(
            id=str(uuid.uuid4()),
            name=name,
            type=content_type or "application/octet-stream",
            size=len(raw),
            owner=owner.lower() if owner else None,
            uploaded_at=now or datetime.now(timezone.utc),
            data=payload,
        )
        await self._store.set(f"file:{stored.id}", stored.model_dump(mode="json", by_alias=True))
        logger.info("file_stored", file_id=stored.id, size=stored.size)
        return AttachedFile(
            file_id=stored.id,
            file_name=stored.name,
            file_type=stored.type,
            file_size=stored.size,
        )

    async def get_file(self, file_id: str) -> StoredFile:
        record = await self._store.get(f"file:{file_id}")
        if record is None:
            msg = "File not found"
            raise NotFound(msg)
        return StoredFile.model_validate(record)
