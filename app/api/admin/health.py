"""
Health endpoints for shallow and deep readiness checks.
"""
from fastapi import APIRouter, Depends, HTTPException
from starlette.status import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE

import aiofiles.os

from app import __version__
from app.api.deps import get_registry
from app.db.session import check_db_ready
from app.file_access.base import ProviderId
from app.file_access.registry import ProviderRegistry

router = APIRouter(prefix="/files-api/v3", tags=["health"])


@router.get("/health", status_code=HTTP_200_OK)
async def health() -> dict:
    """Shallow health endpoint."""
    return {"status": "ok", "version": __version__}


@router.get("/health/deep", status_code=HTTP_200_OK)
async def health_deep(registry: ProviderRegistry = Depends(get_registry)) -> dict:
    """
    Deep health endpoint.

    Checks:
    - Database connectivity
    - The local provider's base path, when that provider is enabled
    """
    db_ready = await check_db_ready()
    if not db_ready:
        raise HTTPException(status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Database not ready")

    result = {
        "status": "ready",
        "database": {"healthy": True, "message": "Database ready"},
        "providers": registry.enabled(),
    }
    local = registry.providers.get(ProviderId.LOCAL)
    if local is not None:
        healthy = await aiofiles.os.path.isdir(local.base_path)
        result["local_storage"] = {"healthy": healthy, "base_path": str(local.base_path)}
        if not healthy:
            result["status"] = "degraded"
            result["warnings"] = [f"Local base path {local.base_path} is not a directory"]
    return result
