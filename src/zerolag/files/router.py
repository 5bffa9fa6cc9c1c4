"""Attachment endpoints under /api/files."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from zerolag.auth.dependencies import get_current_address
from zerolag.dependencies import get_file_service
from zerolag.files.schemas import FileUploadRequest, StoredFile
from zerolag.files.service import FileService
from zerolag.ledger.models import AttachedFile

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.post("", response_model=AttachedFile, status_code=201)
async def upload_file(
    body: FileUploadRequest,
    address: str = Depends(get_current_address),
    files: FileService = Depends(get_file_service),
) -> AttachedFile:
    """Store a base64 upload and return the metadata to attach to a task or proof."""
    return await files.store_file(body.name, body.type, body.data, owner=address)


@router.get("/{file_id}", response_model=StoredFile)
async def download_file(
    file_id: str,
    _address: str = Depends(get_current_address),
    files: FileService = Depends(get_file_service),
) -> StoredFile:
    return await files.get_file(file_id)
