# app/api/deps.py
"""
Shared FastAPI dependencies and helpers for the HTTP surface.
"""
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import Header, Request, UploadFile

from app.config import settings
from app.file_access.base import UploadedFile
from app.file_access.registry import ProviderRegistry

UPLOAD_CHUNK_SIZE = 1024 * 1024


def get_registry(request: Request) -> ProviderRegistry:
    """The provider registry built at startup."""
    return request.app.state.registry


def provider_credentials(
    x_provider_credentials: Optional[str] = Header(None, alias="X-Provider-Credentials"),
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Credential forwarded verbatim to the upstream provider."""
    return x_provider_credentials or authorization


async def stage_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Copy a multipart upload to the scratch directory."""
    if upload is None:
        return None
    staging_dir = Path(settings.CACHE_DIR) / "_uploads"
    await aiofiles.os.makedirs(staging_dir, exist_ok=True)
    path = staging_dir / uuid.uuid4().hex
    size = 0
    async with aiofiles.open(path, "wb") as out:
        while True:
            chunk = await upload.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            await out.write(chunk)
    mime_type = upload.content_type
    if not mime_type or mime_type == "application/octet-stream":
        mime_type = mimetypes.guess_type(upload.filename or "")[0] or "application/octet-stream"
    return UploadedFile(path=path, mime_type=mime_type, size=size, filename=upload.filename)


async def discard_upload(upload: Optional[UploadedFile]) -> None:
    """Remove a staged upload if it is still there (providers may have moved it)."""
    if upload is not None and await aiofiles.os.path.exists(upload.path):
        await aiofiles.os.remove(upload.path)
