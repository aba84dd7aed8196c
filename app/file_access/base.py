# app/file_access/base.py
"""
Base interface for data providers.

All data providers (local filesystem, Google Drive, OneDrive, Gmail) implement
the five operations of :class:`DataProvider` and return canonical
:class:`Resource` snapshots.
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

from app.core.errors import BadRequest, MissingParameter, NotImplementedByProvider
from app.core.guards import check_file_name, check_relative_path, require_provider_credentials
from app.core.paths import disk_path
from app.monitoring.logger import log


class ProviderId(str, Enum):
    LOCAL = "local"
    GOOGLE_DRIVE = "googledrive"
    ONEDRIVE = "onedrive"
    GMAIL = "gmail"


class ResourceKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


# Wire (camelCase) name -> Resource attribute
RESOURCE_FIELDS: Dict[str, str] = {
    "name": "name",
    "path": "path",
    "kind": "kind",
    "provider": "provider",
    "mimeType": "mime_type",
    "size": "size",
    "createdAtTime": "created_at_time",
    "lastModifiedTime": "last_modified_time",
    "contentUri": "content_uri",
}


@dataclass(frozen=True)
class Resource:
    """Canonical snapshot of one file or folder at response time.

    Unknown values are normalized, never omitted: empty string for text and
    timestamps, NaN for ``size``.
    """
    name: str
    path: str
    kind: ResourceKind
    provider: ProviderId
    mime_type: str = ""
    size: float = math.nan
    created_at_time: str = ""
    last_modified_time: str = ""
    content_uri: str = ""

    @property
    def is_folder(self) -> bool:
        return self.kind == ResourceKind.FOLDER

    def get(self, wire_name: str) -> Any:
        """Value of a field addressed by its wire name (``mimeType``, ``size``...)."""
        value = getattr(self, RESOURCE_FIELDS[wire_name])
        return value.value if isinstance(value, Enum) else value

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation. JSON has no NaN, so an unknown size is ``None``."""
        data = {wire: self.get(wire) for wire in RESOURCE_FIELDS}
        if isinstance(data["size"], float) and math.isnan(data["size"]):
            data["size"] = None
        return data


@dataclass
class ListRequestOptions:
    """Filter, sort, export and paging options of a list request."""
    compare_with: Optional[str] = None
    operator: Optional[str] = None
    value: Optional[str] = None
    order_by: Optional[str] = None
    direction: Optional[str] = None
    export_type: Optional[str] = None
    next_set_token: Optional[str] = None
    limit: Optional[int] = None


@dataclass
class ListResult:
    resources: List[Resource] = field(default_factory=list)
    next_set_token: Optional[str] = None


@dataclass
class ResourceFields:
    """Body fields of create/update requests."""
    name: Optional[str] = None
    path: Optional[str] = None
    last_modified_time: Optional[str] = None
    created_at_time: Optional[str] = None
    export_type: Optional[str] = None


@dataclass
class UploadedFile:
    """An upload staged on local disk by the HTTP layer."""
    path: Path
    mime_type: str = "application/octet-stream"
    size: int = 0
    filename: Optional[str] = None


@dataclass
class CallerContext:
    """Who is calling: the gateway client and the provider credential to forward."""
    client_id: str
    provider_credentials: Optional[str] = None


async def read_upload(upload: UploadedFile) -> bytes:
    """Bytes of a staged upload."""
    async with aiofiles.open(upload.path, "rb") as f:
        return await f.read()


class DataProvider(ABC):
    """
    Abstract base class for data providers.

    The public operations run the shared local preconditions (provider
    credentials, relative path rejection, required parameters) before calling
    the provider-specific ``_list``/``_read``/``_create``/``_update``/``_delete``
    hooks, so no I/O happens for a request that fails them. ``list`` passes
    its result through the filter/sort engine before returning.
    """

    provider_id: ProviderId
    requires_credentials: bool = True
    supports_writes: bool = True

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize provider with configuration.

        Args:
            config: Provider-specific configuration (base paths, API URLs, page bounds)
        """
        self.config = config or {}
        self.provider_name = self.__class__.__name__

    def _preflight(self, caller: CallerContext, folder_path: str, file_name: Optional[str] = None) -> str:
        if self.requires_credentials:
            require_provider_credentials(caller.provider_credentials)
        check_relative_path(folder_path)
        check_file_name(file_name)
        return disk_path(folder_path)

    def _check_writable(self, caller: CallerContext) -> None:
        if self.requires_credentials:
            require_provider_credentials(caller.provider_credentials)
        if not self.supports_writes:
            raise NotImplementedByProvider(
                f"The {self.provider_id.value} provider does not support this operation"
            )

    async def list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        """
        List the resources in a folder.

        Args:
            folder_path: Logical folder path; ``/`` is the provider's root
            options: Filter/sort/export/paging options
            caller: Calling client and provider credentials

        Returns:
            ListResult with the filtered, ordered resources and an optional
            continuation token. An empty folder yields an empty list.
        """
        # Import lazily to avoid import cycles
        from app.file_access.sorting import apply_list_options

        folder_path = self._preflight(caller, folder_path)
        log("INFO", f"Listing {folder_path}", module=self.provider_id.value)
        result = await self._list(folder_path, options, caller)
        resources = apply_list_options(result.resources, options)
        return ListResult(resources=resources, next_set_token=result.next_set_token or None)

    async def read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        """
        Read one resource.

        Raises:
            NotFound: if nothing resolves at folder_path/file_name
        """
        if not file_name:
            raise BadRequest("Missing file name")
        folder_path = self._preflight(caller, folder_path, file_name)
        log("INFO", f"Reading {disk_path(folder_path, file_name)}", module=self.provider_id.value)
        return await self._read(folder_path, file_name, options, caller)

    async def create(
        self,
        folder_path: str,
        file_name: str,
        fields: ResourceFields,
        upload: Optional[UploadedFile],
        caller: CallerContext,
    ) -> Resource:
        """
        Create a file from an uploaded payload.

        Raises:
            MissingParameter: if no file payload was supplied
            FileExists: if a resource already exists at that exact path
        """
        self._check_writable(caller)
        if not file_name:
            raise BadRequest("Missing file name")
        folder_path = self._preflight(caller, folder_path, file_name)
        if upload is None:
            raise MissingParameter("Missing file data under content param in request body")
        log("INFO", f"Creating {disk_path(folder_path, file_name)}", module=self.provider_id.value)
        return await self._create(folder_path, file_name, fields, upload, caller)

    async def update(
        self,
        folder_path: str,
        file_name: str,
        fields: ResourceFields,
        upload: Optional[UploadedFile],
        caller: CallerContext,
    ) -> Resource:
        """
        Partially update a file. Present fields are applied in the order
        content, name, path (move), timestamps.

        Raises:
            MissingParameter: if none of the updatable fields are present
        """
        self._check_writable(caller)
        if not file_name:
            raise BadRequest("Missing file name")
        folder_path = self._preflight(caller, folder_path, file_name)
        if fields.name is not None:
            check_file_name(fields.name)
        if fields.path is not None:
            check_relative_path(fields.path)
        if upload is None and not any(
            (fields.name, fields.path, fields.last_modified_time, fields.created_at_time)
        ):
            raise MissingParameter(
                "Must provide either file content or name, path, lastModifiedTime or createdAtTime to update"
            )
        log("INFO", f"Updating {disk_path(folder_path, file_name)}", module=self.provider_id.value)
        return await self._update(folder_path, file_name, fields, upload, caller)

    async def delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        """
        Delete a file, or the folder itself (recursively) when file_name is absent.

        Raises:
            BadRequest: if neither a folder nor a file is resolvable from the path
        """
        folder_path = self._preflight(caller, folder_path, file_name)
        log("INFO", f"Deleting {disk_path(folder_path, file_name or '')}", module=self.provider_id.value)
        await self._delete(folder_path, file_name or None, caller)

    @abstractmethod
    async def _list(self, folder_path: str, options: ListRequestOptions, caller: CallerContext) -> ListResult:
        pass

    @abstractmethod
    async def _read(self, folder_path: str, file_name: str, options: ListRequestOptions, caller: CallerContext) -> Resource:
        pass

    async def _create(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: UploadedFile, caller: CallerContext
    ) -> Resource:
        raise NotImplementedByProvider(f"The {self.provider_id.value} provider does not support create")

    async def _update(
        self, folder_path: str, file_name: str, fields: ResourceFields, upload: Optional[UploadedFile], caller: CallerContext
    ) -> Resource:
        raise NotImplementedByProvider(f"The {self.provider_id.value} provider does not support update")

    @abstractmethod
    async def _delete(self, folder_path: str, file_name: Optional[str], caller: CallerContext) -> None:
        pass

    @staticmethod
    def _reject_root_delete(folder_path: str, file_name: Optional[str]) -> None:
        if not file_name and folder_path == "/":
            raise BadRequest("Must provide a folder or file to delete; the root folder cannot be deleted")

    def __repr__(self) -> str:
        return f"<{self.provider_name} provider={self.provider_id.value}>"
