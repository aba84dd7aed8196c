# app/file_access/resolver.py
"""
Path to identifier resolver for Google Drive.

Drive addresses folders by opaque IDs, not names, so every logical path is
translated into a chain of name lookups, one folder at a time, starting at
the well-known ``root`` ID. Paths under ``/Shared`` start their walk in the
"shared with me" scope: only the first segment is looked up there, deeper
segments are ordinary children.

Concurrent resolutions are independent; two requests creating the same
missing folder may both create it.
"""
from typing import Optional

from app.core.errors import FileExists, NotFound
from app.core.paths import split_segments
from app.integrations.google_drive_client import FOLDER_MIME_TYPE, GoogleDriveClient, escape_query_value
from app.monitoring.logger import log

ROOT_ID = "root"


def folder_query(name: str, parent_id: str, shared: bool = False) -> str:
    title = escape_query_value(name)
    if shared:
        return f"title = '{title}' and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false and sharedWithMe = true"
    return f"'{parent_id}' in parents and title = '{title}' and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"


def file_query(name: str, parent_id: str, shared: bool = False) -> str:
    title = escape_query_value(name)
    if shared:
        return f"title = '{title}' and sharedWithMe = true and trashed = false"
    return f"'{parent_id}' in parents and title = '{title}' and trashed = false"


class DriveResolver:
    """Resolves logical paths to Drive IDs for one request's client."""

    def __init__(self, client: GoogleDriveClient):
        self.client = client

    async def folder_id(
        self,
        name: str,
        parent_id: str = ROOT_ID,
        shared: bool = False,
        create_missing: bool = False,
    ) -> str:
        """ID of the folder ``name`` under ``parent_id`` (or in the shared scope)."""
        items = await self.client.find(
            folder_query(name, parent_id, shared),
            context=f"Error retrieving folder ID for folder {name}",
        )
        if items:
            return items[0]["id"]
        if not create_missing:
            raise NotFound(f"Folder {name} does not exist")
        created = await self.client.create_folder(name, parent_id)
        log("INFO", f"Created missing folder {name} under {parent_id}", module="drive_resolver")
        return created["id"]

    async def resolve_folder(self, path: str, shared: bool = False, create_missing: bool = False) -> str:
        """
        Walk ``path`` segment by segment and return the last folder's ID.

        ``/`` resolves to the root ID without any remote call. A missing
        first segment in the shared scope is never created, since a new
        folder would land in the caller's own root.

        Raises:
            NotFound: if a segment is missing and cannot be created
        """
        parent_id = ROOT_ID
        for index, segment in enumerate(split_segments(path)):
            in_shared_scope = shared and index == 0
            parent_id = await self.folder_id(
                segment,
                parent_id,
                shared=in_shared_scope,
                create_missing=create_missing and not in_shared_scope,
            )
        return parent_id

    async def resolve_file(
        self,
        path: str,
        shared: bool = False,
        error_if_exists: bool = False,
    ) -> Optional[str]:
        """
        ID of the file at ``path``.

        With ``error_if_exists`` (used by create) an existing file raises
        FileExists and a missing one returns None; otherwise a missing file
        raises NotFound.
        """
        segments = split_segments(path)
        if not segments:
            raise NotFound("No file name given")
        *folders, name = segments
        parent_id = await self.resolve_folder("/".join(folders), shared=shared)
        # A file directly under /Shared was itself shared; deeper ones are plain children
        return await self.file_id(name, parent_id, shared=shared and not folders, error_if_exists=error_if_exists)

    async def file_id(
        self,
        name: str,
        parent_id: str = ROOT_ID,
        shared: bool = False,
        error_if_exists: bool = False,
    ) -> Optional[str]:
        items = await self.client.find(
            file_query(name, parent_id, shared=shared),
            context=f"Error retrieving file ID for file {name}",
        )
        if items:
            if error_if_exists:
                raise FileExists(f"File {name} already exists")
            return items[0]["id"]
        if error_if_exists:
            return None
        raise NotFound(f"File {name} does not exist")
