# app/file_access/googledrive_provider.py
"""
Google Drive provider.

Logical paths are resolved to Drive IDs by :class:`DriveResolver`; the
top-level ``/Shared`` folder maps to the "shared with me" scope.
"""
import math
from typing import Any, Dict, Optional

import aiohttp

from app.config import settings
from app.core.errors import BadRequest, NotFound
from app.core.paths import disk_path, split_parent, split_shared_scope
from app.core.timestamps import require_iso, to_iso
from app.file_access.base import (
    CallerContext,
    DataProvider,
    ListRequestOptions,
    ListResult,
    ProviderId,
    Resource,
    ResourceFields,
    ResourceKind,
    UploadedFile,
    read_upload,
)
from app.file_access.content_uri import drive_content_uri, drive_import_type
from app.file_access.pagination import drain_pages
from app.file_access.resolver import DriveResolver, file_query
from app.integrations.google_drive_client import FILE_FIELDS, FOLDER_MIME_TYPE, GoogleDriveClient
from app.monitoring.logger import log

SHARED_WITH_ME_QUERY = "trashed = false and sharedWithMe = true"


class GoogleDriveProvider(DataProvider):
    """
    Google Drive (v2 API) provider.

    Config schema:
    {
        "api_base_url": "https://www.googleapis.com",  # optional
        "page_size": 50,                               # optional
        "soft_cap": 50                                 # optional
    }
    """

    provider_id = ProviderId.GOOGLE_DRIVE

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: aiohttp.ClientSession | None = None):
        super().__init__(config)
        self.session = session
        self.api_base_url = self.config.get("api_base_url") or settings.GOOGLE_API_BASE_URL
        self.page_size = int(self.config.get("page_size") or settings.DRIVE_PAGE_SIZE)
        self.soft_cap = int(self.config.get("soft_cap") or settings.LIST_SOFT_CAP)

    def _client(self, caller: CallerContext) -> GoogleDriveClient:
        return GoogleDriveClient(caller.provider_credentials, session=self.session, base_url=self.api_base_url)

    def _to_resource(self, item: Dict[str, Any], folder_path: str, export_type: Optional[str]) -> Resource:
        shared, inner = split_shared_scope(folder_path)
        name = item.get("title") or ""
        mime_type = item.get("mimeType") or ""
        try:
            size = float(item["fileSize"])
        except (KeyError, TypeError, ValueError):
            size = math.nan
        return Resource(
            name=name,
            path=disk_path("/Shared" if shared else "", inner, name),
            kind=ResourceKind.FOLDER if mime_type == FOLDER_MIME_TYPE else ResourceKind.FILE,
            provider=self.provider_id,
            mime_type=mime_type,
            size=size,
            created_at_time=to_iso(item.get("createdDate")),
            last_modified_time=to_iso(item.get("modifiedDate")),
            content_uri=drive_content_uri(item, export_type, self.api_base_url),
        )

    async def _list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        client = self._client(caller)
        shared, inner = split_shared_scope(folder_path)
        if shared and inner == "/":
            query = SHARED_WITH_ME_QUERY
        else:
            folder_id = await DriveResolver(client).resolve_folder(inner, shared=shared)
            query = f"'{folder_id}' in parents and trashed = false"

        async def fetch_page(token: Optional[str]):
            page = await client.list_files(
                query,
                page_token=token,
                page_size=self.page_size,
                context=f"Error listing folder {folder_path}",
                not_found=f"The folder {folder_path} does not exist",
            )
            return page.get("items") or [], page.get("nextPageToken")

        items, next_token = await drain_pages(
            fetch_page, options.next_set_token, self.soft_cap, component="googledrive_provider"
        )
        resources = [self._to_resource(item, folder_path, options.export_type) for item in items]
        return ListResult(resources=resources, next_set_token=next_token)

    async def _read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        client = self._client(caller)
        shared, inner = split_shared_scope(folder_path)
        folder_id = await DriveResolver(client).resolve_folder(inner, shared=shared)
        result = await client.list_files(
            file_query(file_name, folder_id, shared=shared and inner == "/"),
            fields=f"items({FILE_FIELDS})",
            context=f"Error reading file {file_name}",
        )
        items = result.get("items") or []
        if not items:
            raise NotFound(f"File {disk_path(folder_path, file_name)} does not exist")
        return self._to_resource(items[0], folder_path, options.export_type)

    async def _convert_if_office(self, client: GoogleDriveClient, item: Dict[str, Any], mime_type: str) -> Dict[str, Any]:
        """Office uploads are converted to their Google Workspace equivalent; the original is removed."""
        if not drive_import_type(mime_type):
            return item
        converted = await client.copy_converted(item["id"], item.get("title") or "")
        await client.delete_file(item["id"], context="Error removing the unconverted upload")
        log("INFO", f"Converted {item.get('title')} to {converted.get('mimeType')}", module="googledrive_provider")
        return converted

    async def _create(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: UploadedFile, caller: CallerContext
    ) -> Resource:
        shared, inner = split_shared_scope(folder_path)
        if shared and inner == "/":
            raise BadRequest("Files cannot be created directly under /Shared")
        modified = require_iso(fields.last_modified_time, "lastModifiedTime") if fields.last_modified_time else None

        client = self._client(caller)
        resolver = DriveResolver(client)
        parent_id = await resolver.resolve_folder(inner, shared=shared, create_missing=True)
        await resolver.file_id(file_name, parent_id, error_if_exists=True)

        metadata: Dict[str, Any] = {
            "title": file_name,
            "parents": [{"id": parent_id}],
            "mimeType": upload.mime_type,
        }
        if modified:
            metadata["modifiedDate"] = modified
        item = await client.insert_metadata(metadata)
        item = await client.upload_content(item["id"], await read_upload(upload), upload.mime_type) or item
        item = await self._convert_if_office(client, item, upload.mime_type)
        if modified:
            item = await client.patch_file(
                item["id"], {"modifiedDate": modified}, context="Error while setting the modification date"
            )
        return self._to_resource(item, folder_path, fields.export_type)

    async def _update(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: Optional[UploadedFile], caller: CallerContext
    ) -> Resource:
        # createdAtTime is not writable on Drive and is ignored
        modified = require_iso(fields.last_modified_time, "lastModifiedTime") if fields.last_modified_time else None
        client = self._client(caller)
        resolver = DriveResolver(client)
        shared, inner = split_shared_scope(folder_path)
        file_id = await resolver.resolve_file(disk_path(inner, file_name), shared=shared)
        item: Optional[Dict[str, Any]] = None
        result_folder = folder_path

        if upload is not None:
            item = await client.upload_content(file_id, await read_upload(upload), upload.mime_type)
            if drive_import_type(upload.mime_type):
                item = item or await client.get_file(file_id)
                item = await self._convert_if_office(client, item, upload.mime_type)
                file_id = item["id"]
        if fields.name:
            item = await client.patch_file(file_id, {"title": fields.name}, context="Error while renaming file")
        if fields.path:
            target = disk_path(fields.path)
            target_shared, target_inner = split_shared_scope(target)
            parent_id = await resolver.resolve_folder(target_inner, shared=target_shared, create_missing=True)
            item = await client.patch_file(
                file_id, {"parents": [{"id": parent_id}]}, context="Error while moving file"
            )
            result_folder = target
        if modified:
            item = await client.patch_file(
                file_id, {"modifiedDate": modified}, context="Error while setting the modification date"
            )
        if not item or "title" not in item:
            item = await client.get_file(file_id)
        return self._to_resource(item, result_folder, fields.export_type)

    async def _delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        self._reject_root_delete(folder_path, file_name)
        client = self._client(caller)
        resolver = DriveResolver(client)
        shared, inner = split_shared_scope(folder_path)
        if file_name:
            target_id = await resolver.resolve_file(disk_path(inner, file_name), shared=shared)
        else:
            if shared and inner == "/":
                raise BadRequest("The /Shared folder cannot be deleted")
            parent, name = split_parent(inner)
            parent_id = await resolver.resolve_folder(parent, shared=shared)
            target_id = await resolver.folder_id(name, parent_id, shared=shared and parent == "/")
        await client.delete_file(target_id, context=f"Error deleting {disk_path(folder_path, file_name or '')}")
