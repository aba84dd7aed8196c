# app/core/guards.py
"""
Local preconditions checked before any network or disk I/O.
"""
import base64
import binascii
from typing import Optional, Tuple

from app.core.errors import (
    BadRequest,
    InvalidCredentials,
    InvalidProviderId,
    MissingCredentials,
    MissingProviderCredentials,
)


def check_relative_path(*paths: Optional[str]) -> None:
    """Reject any path with a ``.`` or ``..`` component.

    Raises:
        BadRequest: if any given path is relative
    """
    for path in paths:
        if not path:
            continue
        if any(segment in (".", "..") for segment in path.replace("\\", "/").split("/")):
            raise BadRequest("Relative paths are not allowed")


def check_file_name(file_name: Optional[str]) -> None:
    """A file name is a single path component."""
    if file_name is None:
        return
    check_relative_path(file_name)
    if "/" in file_name:
        raise BadRequest(f"Invalid file name {file_name!r}")


def check_provider_id(provider_id: Optional[str], valid: Tuple[str, ...]) -> str:
    if not provider_id or provider_id not in valid:
        raise InvalidProviderId(f"Invalid provider ID - {provider_id}")
    return provider_id


def require_provider_credentials(credentials: Optional[str]) -> str:
    if not credentials or not credentials.strip():
        raise MissingProviderCredentials(
            "Missing access token in `X-Provider-Credentials` header"
        )
    return credentials


def parse_client_credentials(header_value: Optional[str]) -> Tuple[str, str]:
    """Decode an ``X-Credentials`` header: base64 of ``clientId:apiKey``."""
    if not header_value:
        raise MissingCredentials("Missing client ID - API key pair in `X-Credentials` header")
    try:
        decoded = base64.b64decode(header_value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise InvalidCredentials("Error while parsing the client ID - API key pair")
    client_id, sep, api_key = decoded.partition(":")
    if not sep or not client_id or not api_key.strip():
        raise InvalidCredentials("Error while parsing the client ID - API key pair")
    return client_id, api_key.strip()
