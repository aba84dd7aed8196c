# app/api/data.py
"""
File REST endpoints: list, read, create, update and delete over any provider.

``/data/{folderPath}[/{fileName}]``: both parts are single URL segments, so a
nested folder path travels percent-encoded (``%2FDocuments%2FReports``). They
are decoded from the raw request path because routing has already turned
``%2F`` into ``/``.
"""
from typing import Any, Dict, Optional, Tuple
from urllib.parse import unquote

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from app.auth import authenticate_client
from app.api.deps import discard_upload, get_registry, provider_credentials, stage_upload
from app.core.errors import BadRequest
from app.core.guards import check_file_name, check_relative_path
from app.core.paths import disk_path
from app.file_access.base import CallerContext, ListRequestOptions, ResourceFields
from app.file_access.registry import ProviderRegistry
from app.monitoring.audit import audit_event
from app.monitoring.context import set_request_context
from app.monitoring.logger import log

DATA_PREFIX = "/files-api/v3/data"

router = APIRouter(prefix=DATA_PREFIX, tags=["data"])


def split_data_path(request: Request) -> Tuple[str, Optional[str]]:
    """``(folderPath, fileName)`` decoded segment by segment from the raw path."""
    raw = request.scope.get("raw_path")
    raw_path = raw.decode("latin-1") if raw else request.url.path
    raw_path = raw_path.split("?", 1)[0]
    index = raw_path.find(DATA_PREFIX)
    rest = raw_path[index + len(DATA_PREFIX):] if index >= 0 else ""
    segments = [unquote(segment) for segment in rest.split("/") if segment]
    if not segments:
        raise BadRequest("Missing folder path")
    if len(segments) > 2:
        raise BadRequest("Folder paths must be URL-encoded as a single segment (use %2F for /)")
    folder_path = segments[0]
    file_name = segments[1] if len(segments) == 2 else None
    # Checked here as well so a traversal never gets its upload staged
    check_relative_path(folder_path)
    check_file_name(file_name)
    return folder_path, file_name


def list_options(
    compare_with: Optional[str] = Query(None, alias="compareWith"),
    operator: Optional[str] = Query(None),
    value: Optional[str] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    direction: Optional[str] = Query(None),
    export_type: Optional[str] = Query(None, alias="exportType"),
    next_set_token: Optional[str] = Query(None, alias="nextSetToken"),
    limit: Optional[int] = Query(None, ge=1),
) -> ListRequestOptions:
    return ListRequestOptions(
        compare_with=compare_with,
        operator=operator,
        value=value,
        order_by=order_by,
        direction=direction,
        export_type=export_type,
        next_set_token=next_set_token,
        limit=limit,
    )


def _caller(client_id: str, credentials: Optional[str]) -> CallerContext:
    return CallerContext(client_id=client_id, provider_credentials=credentials)


def _ok(code: int, content: Any, next_set_token: Optional[str] = None) -> JSONResponse:
    body: Dict[str, Any] = {"code": code, "content": content}
    if next_set_token:
        body["nextSetToken"] = next_set_token
    return JSONResponse(status_code=code, content=body)


@router.get("/{rest:path}")
async def list_or_read(
    request: Request,
    provider_id: Optional[str] = Query(None, alias="providerId"),
    options: ListRequestOptions = Depends(list_options),
    client_id: str = Depends(authenticate_client),
    credentials: Optional[str] = Depends(provider_credentials),
    registry: ProviderRegistry = Depends(get_registry),
):
    """List a folder, or read one file when a file name segment is present."""
    provider = registry.get(provider_id)
    set_request_context(provider_id=provider.provider_id.value)
    folder_path, file_name = split_data_path(request)
    caller = _caller(client_id, credentials)
    if file_name is None:
        result = await provider.list(folder_path, options, caller)
        return _ok(200, [resource.to_dict() for resource in result.resources], result.next_set_token)
    resource = await provider.read(folder_path, file_name, options, caller)
    return _ok(200, resource.to_dict())


@router.post("/{rest:path}")
async def create(
    request: Request,
    provider_id: Optional[str] = Query(None, alias="providerId"),
    content: Optional[UploadFile] = File(None),
    last_modified_time: Optional[str] = Form(None, alias="lastModifiedTime"),
    created_at_time: Optional[str] = Form(None, alias="createdAtTime"),
    export_type: Optional[str] = Form(None, alias="exportType"),
    client_id: str = Depends(authenticate_client),
    credentials: Optional[str] = Depends(provider_credentials),
    registry: ProviderRegistry = Depends(get_registry),
):
    provider = registry.get(provider_id)
    set_request_context(provider_id=provider.provider_id.value)
    folder_path, file_name = split_data_path(request)
    fields = ResourceFields(
        last_modified_time=last_modified_time,
        created_at_time=created_at_time,
        export_type=export_type or request.query_params.get("exportType"),
    )
    upload = await stage_upload(content)
    try:
        resource = await provider.create(folder_path, file_name, fields, upload, _caller(client_id, credentials))
    finally:
        await discard_upload(upload)
    await audit_event("file_created", {"provider": provider.provider_id.value, "path": resource.path}, actor=client_id)
    return _ok(201, resource.to_dict())


@router.patch("/{rest:path}")
async def update(
    request: Request,
    provider_id: Optional[str] = Query(None, alias="providerId"),
    content: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    path: Optional[str] = Form(None),
    last_modified_time: Optional[str] = Form(None, alias="lastModifiedTime"),
    created_at_time: Optional[str] = Form(None, alias="createdAtTime"),
    export_type: Optional[str] = Form(None, alias="exportType"),
    client_id: str = Depends(authenticate_client),
    credentials: Optional[str] = Depends(provider_credentials),
    registry: ProviderRegistry = Depends(get_registry),
):
    provider = registry.get(provider_id)
    set_request_context(provider_id=provider.provider_id.value)
    folder_path, file_name = split_data_path(request)
    fields = ResourceFields(
        name=name,
        path=path,
        last_modified_time=last_modified_time,
        created_at_time=created_at_time,
        export_type=export_type or request.query_params.get("exportType"),
    )
    check_relative_path(path)
    check_file_name(name)
    upload = await stage_upload(content)
    try:
        resource = await provider.update(folder_path, file_name, fields, upload, _caller(client_id, credentials))
    finally:
        await discard_upload(upload)
    await audit_event(
        "file_updated",
        {
            "provider": provider.provider_id.value,
            "from": disk_path(folder_path, file_name or ""),
            "path": resource.path,
            "content": upload is not None,
        },
        actor=client_id,
    )
    return _ok(200, resource.to_dict())


@router.delete("/{rest:path}")
async def delete(
    request: Request,
    provider_id: Optional[str] = Query(None, alias="providerId"),
    client_id: str = Depends(authenticate_client),
    credentials: Optional[str] = Depends(provider_credentials),
    registry: ProviderRegistry = Depends(get_registry),
):
    provider = registry.get(provider_id)
    set_request_context(provider_id=provider.provider_id.value)
    folder_path, file_name = split_data_path(request)
    await provider.delete(folder_path, file_name, _caller(client_id, credentials))
    deleted = disk_path(folder_path, file_name or "")
    log("INFO", f"Deleted {deleted}", module="data_api")
    await audit_event("file_deleted", {"provider": provider.provider_id.value, "path": deleted}, actor=client_id)
    return Response(status_code=204)
