# app/auth.py
"""
Gateway client authentication.

Every client presents ``X-Credentials: base64(clientId:apiKey)``. Only a
sha256 of each API key is stored; keys are compared in constant time.
"""
import hashlib
import secrets
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidCredentials
from app.core.guards import parse_client_credentials
from app.db.repositories.client_repository import ClientRepository
from app.db.session import get_async_session
from app.monitoring.context import set_request_context
from app.monitoring.logger import log


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def generate_client_id() -> str:
    return secrets.token_urlsafe(12)


def generate_api_key() -> str:
    return secrets.token_urlsafe(32)


async def authenticate_client(
    request: Request,
    x_credentials: Optional[str] = Header(None, alias="X-Credentials"),
    db: AsyncSession = Depends(get_async_session),
) -> str:
    """
    FastAPI dependency returning the authenticated client id.

    Raises:
        MissingCredentials: if the header is absent
        InvalidCredentials: if it cannot be decoded or does not match a client
    """
    client_id, api_key = parse_client_credentials(x_credentials)
    client = await ClientRepository(db).get(client_id)
    if client is None or not secrets.compare_digest(client.api_key_hash, hash_api_key(api_key)):
        log("WARNING", "Rejected client credentials", component="auth", client_id=client_id)
        raise InvalidCredentials("Invalid client ID - API key pair")
    set_request_context(client_id=client_id)
    request.state.client_id = client_id
    return client_id
