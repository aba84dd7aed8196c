"""app/integrations/gmail_api.py
Gmail API (v1) endpoint wrappers.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from app.config import settings
from app.core.errors import NotFound
from app.integrations.http_client import ProviderApiClient

GMAIL_PREFIX = "/gmail/v1/users/me"


class GmailClient(ProviderApiClient):
    component = "gmail_api"

    def __init__(self, credentials: str, session: aiohttp.ClientSession | None = None, base_url: Optional[str] = None):
        super().__init__(credentials, base_url or settings.GOOGLE_API_BASE_URL, session=session)

    async def list_labels(self) -> List[Dict[str, Any]]:
        result = await self.request("GET", f"{GMAIL_PREFIX}/labels", context="Error fetching labels")
        return result.get("labels") or []

    async def list_threads(
        self,
        label_ids: Sequence[str],
        page_token: Optional[str] = None,
        max_results: int = 50,
        invalid_labels: str = "Invalid labels",
    ) -> Dict[str, Any]:
        """One page of thread stubs (``{"threads": [{"id": ...}], "nextPageToken": ...}``)."""
        params = [("labelIds", label_id) for label_id in label_ids]
        params += [("maxResults", max_results), ("pageToken", page_token)]
        return await self.request(
            "GET",
            f"{GMAIL_PREFIX}/threads",
            params=params,
            context="Error fetching threads",
            status_errors={400: NotFound(invalid_labels)},
        )

    async def get_thread(self, thread_id: str, format: str = "METADATA", not_found_on_400: bool = False) -> Dict[str, Any]:
        message = f"Thread {thread_id} does not exist"
        return await self.request(
            "GET",
            f"{GMAIL_PREFIX}/threads/{thread_id}",
            params={"format": format},
            context=f"Error fetching messages for thread {thread_id}",
            not_found=message,
            status_errors={400: NotFound(message)} if not_found_on_400 else None,
        )

    async def get_attachment(self, message_id: str, attachment_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET",
            f"{GMAIL_PREFIX}/messages/{message_id}/attachments/{attachment_id}",
            context="Error fetching attachment",
        )

    async def trash_thread(self, thread_id: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"{GMAIL_PREFIX}/threads/{thread_id}/trash",
            context=f"Error deleting thread {thread_id}",
            not_found=f"Thread {thread_id} does not exist",
        )
