# app/file_access/gmail_provider.py
"""
Gmail provider: labels are folders, threads are files.

The root lists every label plus a synthetic ``ALL_MAIL`` folder. A folder
path of several segments is an AND of labels. Each thread is presented as
``YYYYMMDD - {threadId} - {subject}.zip``; its content is a zip archive
synthesized on demand (see ``mail_archive``).
"""
import math
from typing import Any, Dict, List, Optional

import aiohttp

from app.config import settings
from app.core.errors import MissingParameter, NotFound
from app.core.paths import disk_path, split_segments
from app.core.timestamps import to_iso
from app.file_access.base import (
    CallerContext,
    DataProvider,
    ListRequestOptions,
    ListResult,
    ProviderId,
    Resource,
    ResourceKind,
)
from app.file_access.content_uri import GMAIL_ALL_MAIL_URI, gmail_label_uri, gmail_thread_view_uri
from app.file_access.mail_archive import build_thread_archive, index_headers, thread_file_name
from app.file_access.pagination import drain_pages
from app.integrations.gmail_api import GmailClient

ALL_MAIL = "ALL_MAIL"
LABEL_MIME_TYPE = "mail/label"
THREAD_MIME_TYPE = "mail/thread"
THREADS_PAGE_SIZE = 50


def thread_id_from_name(file_name: str) -> str:
    """``20210403 - 17a9c0b2 - Hello.zip`` -> ``17a9c0b2``."""
    parts = file_name.split("-")
    if len(parts) < 2:
        return file_name.strip()
    return parts[1].strip()


def _label_resource(name: str, content_uri: str) -> Resource:
    return Resource(
        name=name,
        path=disk_path(name),
        kind=ResourceKind.FOLDER,
        provider=ProviderId.GMAIL,
        mime_type=LABEL_MIME_TYPE,
        size=math.nan,
        content_uri=content_uri,
    )


class GmailProvider(DataProvider):
    """Read-only (plus trash) view of a mailbox."""

    provider_id = ProviderId.GMAIL
    supports_writes = False

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: aiohttp.ClientSession | None = None):
        super().__init__(config)
        self.session = session
        self.api_base_url = self.config.get("api_base_url") or settings.GOOGLE_API_BASE_URL
        self.default_limit = int(self.config.get("default_limit") or settings.GMAIL_DEFAULT_LIMIT)

    def _client(self, caller: CallerContext) -> GmailClient:
        return GmailClient(caller.provider_credentials, session=self.session, base_url=self.api_base_url)

    async def _to_resource(
        self,
        client: GmailClient,
        caller: CallerContext,
        thread: Dict[str, Any],
        folder_path: str,
        export_type: Optional[str],
        archive: bool,
    ) -> Resource:
        thread_id = thread.get("id", "")
        messages = thread.get("messages") or []
        if not messages:
            name = f"{thread_file_name(None, thread_id, None)}.zip"
            return Resource(
                name=name,
                path=disk_path(folder_path, name),
                kind=ResourceKind.FILE,
                provider=self.provider_id,
                mime_type=THREAD_MIME_TYPE,
                content_uri=gmail_thread_view_uri(thread_id),
            )

        first = index_headers((messages[0].get("payload") or {}).get("headers"))
        last = index_headers((messages[-1].get("payload") or {}).get("headers"))
        # The subject shown in the inbox is the last message's
        name = f"{thread_file_name(last.get('date'), thread_id, last.get('subject'))}.zip"

        if export_type != "view" and archive:
            content_uri = await build_thread_archive(client, caller.client_id, thread)
        else:
            content_uri = gmail_thread_view_uri(thread_id)

        return Resource(
            name=name,
            path=disk_path(folder_path, name),
            kind=ResourceKind.FILE,
            provider=self.provider_id,
            mime_type=THREAD_MIME_TYPE,
            size=math.nan,
            created_at_time=to_iso(first.get("date")),
            last_modified_time=to_iso(last.get("date")),
            content_uri=content_uri,
        )

    async def _label_ids(self, client: GmailClient, folder_path: str) -> List[str]:
        segments = split_segments(folder_path)
        if ALL_MAIL in segments:
            return []
        by_name = {label.get("name"): label.get("id") for label in await client.list_labels()}
        missing = [segment for segment in segments if segment not in by_name]
        if missing:
            raise NotFound(f"Invalid label(s): {', '.join(missing)}")
        return [by_name[segment] for segment in segments]

    async def _list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        client = self._client(caller)
        if folder_path == "/":
            resources = [
                _label_resource(label.get("name") or "", gmail_label_uri(label.get("name") or ""))
                for label in await client.list_labels()
            ]
            resources.append(_label_resource(ALL_MAIL, GMAIL_ALL_MAIL_URI))
            return ListResult(resources=resources)

        label_ids = await self._label_ids(client, folder_path)
        limit = options.limit or self.default_limit
        invalid = f"Invalid labels {','.join(split_segments(folder_path))}"

        async def fetch_page(token: Optional[str]):
            page = await client.list_threads(label_ids, token, THREADS_PAGE_SIZE, invalid_labels=invalid)
            return page.get("threads") or [], page.get("nextPageToken")

        # Keep paging while fewer than `limit` threads were collected
        stubs, next_token = await drain_pages(
            fetch_page, options.next_set_token, max(limit - 1, 0), component="gmail_provider"
        )

        media = options.export_type == "media"
        resources = []
        for stub in stubs:
            thread = await client.get_thread(stub["id"], format="FULL" if media else "METADATA")
            if thread.get("messages"):
                resources.append(
                    await self._to_resource(client, caller, thread, folder_path, options.export_type, archive=media)
                )
        return ListResult(resources=resources, next_set_token=next_token)

    async def _read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        client = self._client(caller)
        thread_id = thread_id_from_name(file_name)
        view = options.export_type == "view"
        thread = await client.get_thread(thread_id, format="METADATA" if view else "FULL", not_found_on_400=True)
        if not thread.get("messages"):
            raise NotFound(f"Thread {thread_id} does not exist")
        return await self._to_resource(client, caller, thread, folder_path, options.export_type, archive=not view)

    async def _delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        if not file_name:
            raise MissingParameter("Missing thread ID")
        await self._client(caller).trash_thread(thread_id_from_name(file_name))
