"""app/integrations/google_drive_client.py
Google Drive (v2 API) endpoint wrappers.

Every method maps to exactly one Drive API call; path resolution and
resource conversion live in `app.file_access`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import aiohttp

from app.config import settings
from app.integrations.http_client import ProviderApiClient

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FILE_FIELDS = "id, title, mimeType, fileSize, createdDate, modifiedDate, webContentLink, exportLinks"
LIST_FIELDS = f"nextPageToken, items({FILE_FIELDS})"


def escape_query_value(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient(ProviderApiClient):
    component = "google_drive_client"

    def __init__(self, credentials: str, session: aiohttp.ClientSession | None = None, base_url: Optional[str] = None):
        super().__init__(credentials, base_url or settings.GOOGLE_API_BASE_URL, session=session)

    async def list_files(
        self,
        q: str,
        fields: str = LIST_FIELDS,
        page_token: Optional[str] = None,
        page_size: Optional[int] = None,
        context: str = "Error listing files",
        not_found: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request(
            "GET",
            "/drive/v2/files",
            params={"q": q, "fields": fields, "maxResults": page_size, "pageToken": page_token},
            context=context,
            not_found=not_found,
        )

    async def get_file(self, file_id: str) -> Dict[str, Any]:
        return await self.request(
            "GET",
            f"/drive/v2/files/{file_id}",
            params={"fields": FILE_FIELDS},
            context=f"Error fetching file {file_id}",
        )

    async def find(self, q: str, context: str) -> List[Dict[str, Any]]:
        """Items matching a query (first page only; used for single-name lookups)."""
        result = await self.list_files(q, fields="items(id, title)", context=context)
        return result.get("items") or []

    async def create_folder(self, name: str, parent_id: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/drive/v2/files",
            json_body={"title": name, "parents": [{"id": parent_id}], "mimeType": FOLDER_MIME_TYPE},
            context=f"Error creating folder {name}",
        )

    async def insert_metadata(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/drive/v2/files",
            params={"modifiedDateBehavior": "fromBody"},
            json_body=metadata,
            context="Error while sending file metadata to Google Drive",
        )

    async def upload_content(self, file_id: str, data: bytes, mime_type: Optional[str] = None) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"/upload/drive/v2/files/{file_id}",
            params={"uploadType": "media"},
            data=data,
            content_type=mime_type or "application/octet-stream",
            context="Error while uploading file content to Google Drive",
        )

    async def copy_converted(self, file_id: str, title: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"/drive/v2/files/{file_id}/copy",
            params={"convert": "true"},
            json_body={"title": title},
            context="Error while converting file to Google Workspace (Docs/Sheets/Slides) format",
        )

    async def patch_file(self, file_id: str, body: Dict[str, Any], context: str) -> Dict[str, Any]:
        return await self.request(
            "PATCH",
            f"/drive/v2/files/{file_id}",
            params={"modifiedDateBehavior": "fromBody"} if "modifiedDate" in body else None,
            json_body=body,
            context=context,
        )

    async def delete_file(self, file_id: str, context: str = "Error deleting file") -> None:
        await self.request("DELETE", f"/drive/v2/files/{file_id}", context=context)
