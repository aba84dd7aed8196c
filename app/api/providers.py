# app/api/providers.py
from fastapi import APIRouter, Depends

from app.api.deps import get_registry
from app.file_access.registry import ProviderRegistry

router = APIRouter(prefix="/files-api/v3/providers", tags=["providers"])


@router.get("")
async def list_providers(registry: ProviderRegistry = Depends(get_registry)) -> dict:
    """Ids of the enabled providers."""
    return {"code": 200, "content": registry.enabled()}
