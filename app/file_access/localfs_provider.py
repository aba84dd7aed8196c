# app/file_access/localfs_provider.py
"""
Local filesystem provider.

Serves a directory tree rooted at ``base_path``: a local disk, or any NAS
mounted at a local path. Logical paths are resolved under the base path and
can never leave it.
"""
import asyncio
import math
import mimetypes
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles.os

from app.config import settings
from app.core.errors import BadRequest, FileExists, NotFound
from app.core.paths import disk_path
from app.core.timestamps import from_epoch, parse_timestamp, require_iso
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
)
from app.file_access.content_uri import local_content_uri
from app.monitoring.logger import log

DIRECTORY_MIME_TYPE = "inode/directory"


class LocalFSProvider(DataProvider):
    """
    Local filesystem provider.

    Config schema:
    {
        "base_path": "/path/to/storage"  # Optional, default: LOCAL_BASE_PATH
    }
    """

    provider_id = ProviderId.LOCAL
    requires_credentials = False

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Any = None):
        super().__init__(config)
        self.base_path = Path(self.config.get("base_path") or settings.LOCAL_BASE_PATH).resolve()
        log("INFO", f"LocalFSProvider initialized with base_path={self.base_path}", module="localfs_provider")

    def _resolve_path(self, *parts: str) -> Path:
        """Resolve a logical path to an absolute path within base_path."""
        resolved = (self.base_path / disk_path(*parts).lstrip("/")).resolve()
        try:
            resolved.relative_to(self.base_path)
        except ValueError:
            raise BadRequest(f"Path {disk_path(*parts)} is outside the storage root")
        return resolved

    async def _to_resource(self, absolute: Path, folder_path: str) -> Resource:
        stat = await aiofiles.os.stat(absolute)
        is_folder = absolute.is_dir()
        if is_folder:
            mime_type = DIRECTORY_MIME_TYPE
        else:
            mime_type = mimetypes.guess_type(absolute.name)[0] or "application/octet-stream"
        return Resource(
            name=absolute.name,
            path=disk_path(folder_path, absolute.name),
            kind=ResourceKind.FOLDER if is_folder else ResourceKind.FILE,
            provider=self.provider_id,
            mime_type=mime_type,
            size=math.nan if is_folder else float(stat.st_size),
            created_at_time=from_epoch(getattr(stat, "st_birthtime", stat.st_ctime)),
            last_modified_time=from_epoch(stat.st_mtime),
            content_uri=local_content_uri(absolute),
        )

    async def _existing(self, *parts: str) -> Path:
        absolute = self._resolve_path(*parts)
        if not await aiofiles.os.path.exists(absolute):
            raise NotFound(f"{disk_path(*parts)} does not exist")
        return absolute

    async def _list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        folder = self._resolve_path(folder_path)
        if not await aiofiles.os.path.isdir(folder):
            raise NotFound(f"The folder {folder_path} does not exist")
        resources = []
        for name in await aiofiles.os.listdir(folder):
            try:
                resources.append(await self._to_resource(folder / name, folder_path))
            except FileNotFoundError:
                # Dangling symlink, or removed since listdir
                log("WARNING", f"Skipping unreadable entry {name}", module="localfs_provider", folder=folder_path)
        return ListResult(resources=resources)

    async def _read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        return await self._to_resource(await self._existing(folder_path, file_name), folder_path)

    @staticmethod
    def _set_mtime(path: Path, value: Optional[str]) -> None:
        # Only the modification time can be set; creation time is left as is
        parsed = parse_timestamp(value)
        if parsed is not None:
            os.utime(path, (parsed.timestamp(), parsed.timestamp()))

    @staticmethod
    async def _make_folders(folder: Path, logical_path: str) -> None:
        try:
            await aiofiles.os.makedirs(folder, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            raise FileExists(f"A file already occupies part of the folder path {logical_path}")

    async def _create(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: UploadedFile, caller: CallerContext
    ) -> Resource:
        modified = require_iso(fields.last_modified_time, "lastModifiedTime")
        target = self._resolve_path(folder_path, file_name)
        if await aiofiles.os.path.exists(target):
            raise FileExists(f"File {disk_path(folder_path, file_name)} already exists")
        await self._make_folders(target.parent, disk_path(folder_path))
        await asyncio.to_thread(shutil.move, str(upload.path), str(target))
        self._set_mtime(target, modified)
        return await self._to_resource(target, folder_path)

    async def _update(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: Optional[UploadedFile], caller: CallerContext
    ) -> Resource:
        modified = require_iso(fields.last_modified_time, "lastModifiedTime")
        target = await self._existing(folder_path, file_name)
        result_folder = folder_path

        if upload is not None:
            await asyncio.to_thread(shutil.copyfile, str(upload.path), str(target))
        if fields.name and fields.name != target.name:
            renamed = self._resolve_path(folder_path, fields.name)
            if await aiofiles.os.path.exists(renamed):
                raise FileExists(f"File {disk_path(folder_path, fields.name)} already exists")
            await aiofiles.os.rename(target, renamed)
            target = renamed
        if fields.path:
            destination = self._resolve_path(fields.path, target.name)
            if destination != target:
                if await aiofiles.os.path.exists(destination):
                    raise FileExists(f"File {disk_path(fields.path, target.name)} already exists")
                await self._make_folders(destination.parent, disk_path(fields.path))
                await asyncio.to_thread(shutil.move, str(target), str(destination))
                target = destination
            result_folder = disk_path(fields.path)
        self._set_mtime(target, modified)
        return await self._to_resource(target, result_folder)

    async def _delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        self._reject_root_delete(folder_path, file_name)
        target = await self._existing(folder_path, file_name or "")
        if target == self.base_path:
            raise BadRequest("The root folder cannot be deleted")
        if target.is_dir():
            await asyncio.to_thread(shutil.rmtree, target)
        else:
            await aiofiles.os.remove(target)
