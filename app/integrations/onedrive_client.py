"""app/integrations/onedrive_client.py
OneDrive client wrapper for Microsoft Graph operations.

Responsibilities:
- Address drive items by path (`/me/drive/root:/Docs/a.txt`) or under a
  shared item's own drive (`/drives/{driveId}/items/{itemId}:/rest`)
- Expose the handful of Graph calls the OneDrive provider needs:
  shared_with_me, get_item, list_children, upload_content, patch_item,
  create_folder, delete_item

Notes:
- The caller's provider credential is forwarded as-is; no OAuth flow is
  performed by the gateway.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from app.config import settings
from app.core.paths import split_segments
from app.integrations.http_client import ProviderApiClient

ROOT_BASE = "/me/drive/root"


@dataclass(frozen=True)
class GraphItemAddress:
    """A drive item: a base item plus an optional path below it."""

    base: str = ROOT_BASE
    rest: str = ""

    @property
    def quoted_rest(self) -> str:
        return "/".join(quote(segment, safe="") for segment in split_segments(self.rest))

    @property
    def item(self) -> str:
        if not self.quoted_rest:
            return self.base
        return f"{self.base}:/{self.quoted_rest}"

    def action(self, name: str) -> str:
        """Address of a sub-resource (``children``, ``content``) of the item."""
        if not self.quoted_rest:
            return f"{self.base}/{name}"
        return f"{self.base}:/{self.quoted_rest}:/{name}"

    def child(self, name: str) -> "GraphItemAddress":
        return GraphItemAddress(self.base, f"{self.rest.rstrip('/')}/{name}")


class OneDriveClient(ProviderApiClient):
    component = "onedrive_client"

    def __init__(self, credentials: str, session: aiohttp.ClientSession | None = None, base_url: Optional[str] = None):
        super().__init__(credentials, base_url or settings.MS_GRAPH_BASE_URL, session=session)

    def content_url(self, address: GraphItemAddress) -> str:
        return self.url_for(address.action("content"))

    async def shared_with_me(self) -> List[Dict[str, Any]]:
        result = await self.request(
            "GET",
            "/me/drive/sharedWithMe",
            context="Error retrieving items shared with me",
        )
        return result.get("value") or []

    async def get_item(self, address: GraphItemAddress, context: str, not_found: Optional[str] = None) -> Dict[str, Any]:
        return await self.request("GET", address.item, context=context, not_found=not_found)

    async def list_children(
        self,
        address: GraphItemAddress,
        next_link: Optional[str] = None,
        top: int = 25,
        not_found: Optional[str] = None,
    ) -> Dict[str, Any]:
        """One page of children; ``next_link`` (an ``@odata.nextLink``) replaces the address."""
        if next_link:
            return await self.request("GET", next_link, context="Error listing folder", not_found=not_found)
        return await self.request(
            "GET",
            address.action("children"),
            params={"top": top},
            context="Error listing folder",
            not_found=not_found,
        )

    async def upload_content(self, address: GraphItemAddress, data: bytes, mime_type: Optional[str] = None) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            address.action("content"),
            data=data,
            content_type=mime_type or "application/octet-stream",
            context="Error while uploading file content to OneDrive",
        )

    async def patch_item(self, address: GraphItemAddress, body: Dict[str, Any], context: str) -> Dict[str, Any]:
        return await self.request("PATCH", address.item, json_body=body, context=context)

    async def create_folder(self, parent: GraphItemAddress, name: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            parent.action("children"),
            json_body={"name": name, "folder": {}, "@microsoft.graph.conflictBehavior": "fail"},
            context=f"Error creating folder {name}",
        )

    async def delete_item(self, address: GraphItemAddress, context: str) -> None:
        await self.request("DELETE", address.item, context=context)
