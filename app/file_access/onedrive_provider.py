# app/file_access/onedrive_provider.py
"""
OneDrive provider.

Graph addresses items by path, so no ID chase is needed for owned files.
Paths under ``/Shared`` start from an item in the user's "shared with me"
list and continue below it on the sharer's drive.
"""
import math
from typing import Any, Dict, Optional

import aiohttp

from app.config import settings
from app.core.errors import BadRequest, FileExists, NotFound
from app.core.paths import disk_path, split_segments, split_shared_scope
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
from app.file_access.content_uri import onedrive_content_uri
from app.file_access.pagination import drain_pages
from app.integrations.onedrive_client import ROOT_BASE, GraphItemAddress, OneDriveClient
from app.monitoring.logger import log

ONEDRIVE_FOLDER_MIME_TYPE = "application/vnd.onedrive.folder"


def _file_system_info(fields: ResourceFields) -> Dict[str, str]:
    info = {}
    created = require_iso(fields.created_at_time, "createdAtTime")
    modified = require_iso(fields.last_modified_time, "lastModifiedTime")
    if created:
        info["createdDateTime"] = created
    if modified:
        info["lastModifiedDateTime"] = modified
    return info


class OneDriveProvider(DataProvider):
    """
    OneDrive provider over Microsoft Graph.

    Config schema:
    {
        "api_base_url": "https://graph.microsoft.com/v1.0",  # optional
        "page_size": 25,                                     # optional
        "soft_cap": 50                                       # optional
    }
    """

    provider_id = ProviderId.ONEDRIVE

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: aiohttp.ClientSession | None = None):
        super().__init__(config)
        self.session = session
        self.api_base_url = self.config.get("api_base_url") or settings.MS_GRAPH_BASE_URL
        self.page_size = int(self.config.get("page_size") or settings.ONEDRIVE_PAGE_SIZE)
        self.soft_cap = int(self.config.get("soft_cap") or settings.LIST_SOFT_CAP)

    def _client(self, caller: CallerContext) -> OneDriveClient:
        return OneDriveClient(caller.provider_credentials, session=self.session, base_url=self.api_base_url)

    async def _address(self, client: OneDriveClient, folder_path: str) -> Optional[GraphItemAddress]:
        """Graph address of a logical folder; None for the ``/Shared`` root itself."""
        shared, inner = split_shared_scope(folder_path)
        if not shared:
            return GraphItemAddress(ROOT_BASE, inner)
        segments = split_segments(inner)
        if not segments:
            return None
        first, rest = segments[0], segments[1:]
        for item in await client.shared_with_me():
            if item.get("name") != first:
                continue
            remote = item.get("remoteItem") or item
            drive_id = (remote.get("parentReference") or {}).get("driveId")
            if not drive_id:
                break
            return GraphItemAddress(f"/drives/{drive_id}/items/{remote['id']}", "/".join(rest))
        raise NotFound(f"Shared item {first} does not exist")

    def _to_resource(
        self,
        item: Dict[str, Any],
        folder_path: str,
        content_url: str,
        export_type: Optional[str],
    ) -> Resource:
        remote = item.get("remoteItem") or {}
        is_folder = "folder" in item or "folder" in remote
        if is_folder:
            mime_type = ONEDRIVE_FOLDER_MIME_TYPE
        else:
            file_facet = item.get("file") or remote.get("file") or {}
            package = item.get("package") or remote.get("package") or {}
            mime_type = file_facet.get("mimeType") or package.get("type") or "unknown"
        info = item.get("fileSystemInfo") or remote.get("fileSystemInfo") or {}
        try:
            size = float(item["size"])
        except (KeyError, TypeError, ValueError):
            size = math.nan
        name = item.get("name") or ""
        return Resource(
            name=name,
            path=disk_path(folder_path, name),
            kind=ResourceKind.FOLDER if is_folder else ResourceKind.FILE,
            provider=self.provider_id,
            mime_type=mime_type,
            size=size,
            created_at_time=to_iso(info.get("createdDateTime") or item.get("createdDateTime")),
            last_modified_time=to_iso(info.get("lastModifiedDateTime") or item.get("lastModifiedDateTime")),
            content_uri=onedrive_content_uri(item, content_url, export_type),
        )

    async def _list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        client = self._client(caller)
        if options.next_set_token and not options.next_set_token.startswith(client.base_url):
            raise BadRequest("Invalid nextSetToken")

        address = await self._address(client, folder_path)
        if address is None:
            items = await client.shared_with_me()
            resources = [
                self._to_resource(item, folder_path, item.get("webUrl") or "", options.export_type)
                for item in items
            ]
            return ListResult(resources=resources)

        async def fetch_page(token: Optional[str]):
            page = await client.list_children(
                address,
                next_link=token,
                top=self.page_size,
                not_found=f"The folder {folder_path} does not exist",
            )
            return page.get("value") or [], page.get("@odata.nextLink")

        items, next_token = await drain_pages(
            fetch_page, options.next_set_token, self.soft_cap, component="onedrive_provider"
        )
        resources = [
            self._to_resource(
                item,
                folder_path,
                client.content_url(address.child(item.get("name") or "")),
                options.export_type,
            )
            for item in items
        ]
        return ListResult(resources=resources, next_set_token=next_token)

    async def _file_address(self, client: OneDriveClient, folder_path: str, file_name: str) -> GraphItemAddress:
        address = await self._address(client, folder_path)
        if address is None:
            # A file shared on its own is its own base item
            return await self._address(client, disk_path(folder_path, file_name))
        return address.child(file_name)

    async def _read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        client = self._client(caller)
        address = await self._file_address(client, folder_path, file_name)
        item = await client.get_item(
            address,
            context=f"Error reading file {file_name}",
            not_found=f"File {disk_path(folder_path, file_name)} does not exist",
        )
        return self._to_resource(item, folder_path, client.content_url(address), options.export_type)

    async def _create(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: UploadedFile, caller: CallerContext
    ) -> Resource:
        shared, inner = split_shared_scope(folder_path)
        if shared and inner == "/":
            raise BadRequest("Files cannot be created directly under /Shared")
        info = _file_system_info(fields)

        client = self._client(caller)
        address = await self._file_address(client, folder_path, file_name)
        try:
            await client.get_item(address, context=f"Error checking file {file_name}")
        except NotFound:
            pass
        else:
            raise FileExists(f"File {disk_path(folder_path, file_name)} already exists")

        item = await client.upload_content(address, await read_upload(upload), upload.mime_type)
        if info:
            item = await client.patch_item(
                address, {"fileSystemInfo": info}, context="Error while setting file timestamps"
            )
        return self._to_resource(item, folder_path, client.content_url(address), fields.export_type)

    async def _ensure_folder(self, client: OneDriveClient, address: GraphItemAddress) -> Dict[str, Any]:
        """Return the folder item at ``address``, creating missing segments one by one."""
        current = GraphItemAddress(address.base, "")
        folder = await client.get_item(current, context="Error retrieving destination folder")
        for segment in split_segments(address.rest):
            target = current.child(segment)
            try:
                folder = await client.get_item(target, context=f"Error retrieving folder {segment}")
            except NotFound:
                folder = await client.create_folder(current, segment)
                log("INFO", f"Created missing folder {segment}", module="onedrive_provider")
            current = target
        return folder

    async def _update(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: Optional[UploadedFile], caller: CallerContext
    ) -> Resource:
        info = _file_system_info(fields)
        client = self._client(caller)
        address = await self._file_address(client, folder_path, file_name)
        name = file_name
        result_folder = folder_path
        item: Optional[Dict[str, Any]] = None

        if upload is not None:
            item = await client.upload_content(address, await read_upload(upload), upload.mime_type)
        if fields.name:
            item = await client.patch_item(address, {"name": fields.name}, context="Error while renaming file")
            name = fields.name
            address = await self._file_address(client, folder_path, name)
        if fields.path:
            target_folder = disk_path(fields.path)
            folder_address = await self._address(client, target_folder)
            if folder_address is None:
                raise BadRequest("Files cannot be moved directly under /Shared")
            folder = await self._ensure_folder(client, folder_address)
            item = await client.patch_item(
                address, {"parentReference": {"id": folder["id"]}}, context="Error while moving file"
            )
            address = folder_address.child(name)
            result_folder = target_folder
        if info:
            item = await client.patch_item(address, {"fileSystemInfo": info}, context="Error while setting file timestamps")
        if not item:
            item = await client.get_item(address, context=f"Error reading file {name}")
        return self._to_resource(item, result_folder, client.content_url(address), fields.export_type)

    async def _delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        self._reject_root_delete(folder_path, file_name)
        client = self._client(caller)
        if file_name:
            address = await self._file_address(client, folder_path, file_name)
        else:
            address = await self._address(client, folder_path)
            if address is None:
                raise BadRequest("The /Shared folder cannot be deleted")
        await client.delete_item(
            address,
            context=f"Error deleting {disk_path(folder_path, file_name or '')}",
        )
