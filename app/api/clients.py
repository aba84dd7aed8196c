# app/api/clients.py
"""
Gateway client lifecycle: issue, rotate and revoke API keys.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import authenticate_client, generate_api_key, generate_client_id, hash_api_key
from app.core.errors import InvalidCredentials
from app.db.repositories.client_repository import ClientRepository
from app.db.session import get_async_session
from app.monitoring.audit import audit_event
from app.monitoring.logger import log

router = APIRouter(prefix="/files-api/v3/clients", tags=["clients"])


def _check_same_client(client_id: str, authenticated_id: str) -> None:
    if client_id != authenticated_id:
        raise InvalidCredentials("Clients can only manage their own API key")


@router.post("")
async def create_client(db: AsyncSession = Depends(get_async_session)) -> dict:
    """Issue a new client id and API key. The key is returned only here."""
    client_id, api_key = generate_client_id(), generate_api_key()
    await ClientRepository(db).create(client_id, hash_api_key(api_key))
    log("INFO", f"Created client {client_id}", module="clients_api", client_id=client_id)
    await audit_event("client_created", {"client_id": client_id}, actor=client_id)
    return {"code": 200, "content": {"id": client_id, "apiKey": api_key}}


@router.post("/{client_id}")
async def rotate_key(
    client_id: str,
    authenticated_id: str = Depends(authenticate_client),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    """Replace the API key of the authenticated client."""
    _check_same_client(client_id, authenticated_id)
    api_key = generate_api_key()
    await ClientRepository(db).update_key(client_id, hash_api_key(api_key))
    await audit_event("client_key_rotated", {"client_id": client_id}, actor=client_id)
    return {"code": 200, "content": {"id": client_id, "apiKey": api_key}}


@router.delete("/{client_id}")
async def revoke_client(
    client_id: str,
    authenticated_id: str = Depends(authenticate_client),
    db: AsyncSession = Depends(get_async_session),
):
    _check_same_client(client_id, authenticated_id)
    await ClientRepository(db).delete(client_id)
    await audit_event("client_revoked", {"client_id": client_id}, actor=client_id)
    return Response(status_code=204)
