"""app/integrations/http_client.py
Shared aiohttp JSON client for upstream provider APIs.

Responsibilities:
- Forward the caller's provider credential verbatim as the `Authorization` header
- Translate upstream failures into gateway errors:
  401 -> InvalidProviderCredentials, 404 -> NotFound,
  anything else -> ProviderInteractionError carrying the upstream message

Notes:
- A session can be injected (one shared `aiohttp.ClientSession` per app, or a
  fake in tests). Without one, a session is opened and closed per request.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import aiohttp

from app.core.errors import (
    GatewayError,
    InvalidProviderCredentials,
    NotFound,
    ProviderInteractionError,
)
from app.monitoring.logger import log

Params = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]


def _clean_params(params: Params) -> Optional[List[Tuple[str, str]]]:
    """Drop None values and stringify the rest (aiohttp rejects bools and None)."""
    if params is None:
        return None
    items = params.items() if isinstance(params, Mapping) else params
    cleaned = []
    for key, value in items:
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned.append((key, str(value)))
    return cleaned


def upstream_message(text: str) -> str:
    """Pull `error.message` out of a Google/Graph error body."""
    try:
        body = json.loads(text) if text else {}
    except ValueError:
        return text.strip() or "Unknown error"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return body.get("error_description") or error
    return "Unknown error"


class ProviderApiClient:
    """Thin JSON client bound to one upstream base URL and one credential."""

    component = "provider_api"

    def __init__(self, credentials: str, base_url: str, session: aiohttp.ClientSession | None = None):
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._external_session = session

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._external_session is not None:
            return self._external_session
        return aiohttp.ClientSession(headers={"Accept": "application/json"})

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _translate(
        self,
        status: int,
        text: str,
        context: str,
        not_found: Optional[str],
        status_errors: Optional[Dict[int, GatewayError]],
    ) -> GatewayError:
        if status == 401:
            return InvalidProviderCredentials("Invalid access token")
        if status_errors and status in status_errors:
            return status_errors[status]
        message = upstream_message(text)
        if status == 404:
            return NotFound(not_found or f"{context}: {message}")
        return ProviderInteractionError(f"{context}: {message}")

    async def request(
        self,
        method: str,
        path: str,
        *,
        context: str,
        params: Params = None,
        json_body: Any = None,
        data: Optional[bytes] = None,
        content_type: Optional[str] = None,
        not_found: Optional[str] = None,
        status_errors: Optional[Dict[int, GatewayError]] = None,
    ) -> Dict[str, Any]:
        """Perform one request and return the decoded JSON body ({} when empty).

        Args:
            context: Human-readable description used in error messages and logs
            not_found: Message for the NotFound raised on a 404
            status_errors: Extra status -> error mappings (checked after 401)
        """
        url = self.url_for(path)
        headers = {"Authorization": self.credentials}
        if content_type:
            headers["Content-Type"] = content_type
        session = await self._get_session()
        try:
            async with session.request(
                method,
                url,
                params=_clean_params(params),
                json=json_body,
                data=data,
                headers=headers,
            ) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    log(
                        "WARNING" if resp.status < 500 else "ERROR",
                        f"{context} failed: {resp.status}",
                        component=self.component,
                        status=resp.status,
                        method=method,
                        url=url,
                    )
                    raise self._translate(resp.status, text, context, not_found, status_errors)
                if not text:
                    return {}
                try:
                    return json.loads(text)
                except ValueError:
                    return {}
        except aiohttp.ClientError as exc:
            log("ERROR", f"{context} failed: {exc}", component=self.component, method=method, url=url)
            raise ProviderInteractionError(f"{context}: {exc}") from exc
        finally:
            if self._external_session is None:
                await session.close()
