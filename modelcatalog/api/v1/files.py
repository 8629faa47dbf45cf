"""
File endpoints.
Uploads put assets into the object store so records can reference their keys.
"""

import re
from pathlib import PurePosixPath
from uuid import uuid4

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import StreamingResponse

from modelcatalog.auth.dependencies import RequireWrite
from modelcatalog.core.exceptions import (
    CatalogAPIException,
    PayloadTooLargeException,
    StorageException,
    ValidationException,
)
from modelcatalog.dependencies import AppSettings, Storage
from modelcatalog.schemas.model_record import FileUploadResponse
from modelcatalog.storage.base import get_mime_type

router = APIRouter()


def _normalize_filename(original_name: str) -> str:
    """Keep the extension, drop directories and anything outside [A-Za-z0-9._-]."""
    name = PurePosixPath(original_name.replace("\\", "/")).name.strip()
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name)
    return name.lstrip(".") or "file"


@router.post("", status_code=201, response_model=FileUploadResponse)
async def upload_file(
    storage: Storage,
    settings: AppSettings,
    user: RequireWrite,
    file: UploadFile = File(..., description="Preview image, video or model file"),
):
    """
    Upload an asset and get back its storage key.
    Requires models:write scope.
    """
    content = await file.read()
    size = len(content)

    if size == 0:
        raise ValidationException("Uploaded file is empty")
    if size > settings.MAX_UPLOAD_SIZE:
        raise PayloadTooLargeException(settings.MAX_UPLOAD_SIZE)

    filename = _normalize_filename(file.filename or "file")
    key = f"uploads/{user['user_id']}/{uuid4()}-{filename}"
    content_type = file.content_type or get_mime_type(filename)

    await storage.upload_bytes(content, key, content_type)

    return {
        "key": key,
        "url": storage.get_url(key),
        "size": size,
        "contentType": content_type,
    }


@router.get("/{key:path}")
async def download_file(key: str, storage: Storage):
    """Stream a stored asset."""
    try:
        found = await storage.exists(key)
    except StorageException:
        # Keys the backend refuses to resolve cannot name a stored asset
        found = False

    if not found:
        raise CatalogAPIException(
            error="not_found",
            message=f"File '{key}' not found",
            status_code=404,
        )

    filename = PurePosixPath(key).name

    return StreamingResponse(
        storage.download(key),
        media_type=get_mime_type(filename),
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )
