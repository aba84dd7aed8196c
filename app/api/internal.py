# app/api/internal.py
"""
Internal cache endpoint serving generated artifacts (zipped mail threads).

Each client only ever sees its own cache directory.
"""
from pathlib import Path

import aiofiles.os
from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from app.auth import authenticate_client
from app.config import settings
from app.core.errors import BadRequest, NotFound
from app.core.guards import check_relative_path

router = APIRouter(prefix="/files-api/v3/internal", tags=["internal"])


@router.get("/cache/{file_path:path}")
async def get_cached_file(file_path: str, client_id: str = Depends(authenticate_client)):
    check_relative_path(file_path)
    base = (Path(settings.CACHE_DIR) / "_cache" / client_id).resolve()
    target = (base / file_path.lstrip("/")).resolve()
    try:
        target.relative_to(base)
    except ValueError:
        raise BadRequest("Relative paths are not allowed")
    if not file_path or not await aiofiles.os.path.isfile(target):
        raise NotFound(f"File {file_path} does not exist")
    return FileResponse(target, filename=target.name)
