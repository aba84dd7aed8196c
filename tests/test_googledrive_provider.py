# tests/test_googledrive_provider.py
"""
Tests for GoogleDriveProvider against a fake Drive API.
"""
import math

import pytest

from app.core.errors import (
    BadRequest,
    FileExists,
    InvalidProviderCredentials,
    MissingProviderCredentials,
    NotFound,
    ProviderInteractionError,
)
from app.file_access.base import CallerContext, ListRequestOptions, ResourceFields, UploadedFile
from app.file_access.googledrive_provider import GoogleDriveProvider

FOLDER = "application/vnd.google-apps.folder"


@pytest.fixture
def provider(fake_session):
    return GoogleDriveProvider({"page_size": 2, "soft_cap": 3}, session=fake_session)


def drive_item(item_id, title, mime="text/plain", size=None, modified="2021-03-03T08:30:00.000Z"):
    item = {
        "id": item_id,
        "title": title,
        "mimeType": mime,
        "createdDate": "2021-01-01T00:00:00.000Z",
        "modifiedDate": modified,
    }
    if size is not None:
        item["fileSize"] = str(size)
    return item


@pytest.mark.asyncio
async def test_list_root_maps_items(provider, fake_session, caller):
    fake_session.add(
        "GET",
        "'root' in parents and trashed = false",
        (200, {"items": [drive_item("f1", "notes.txt", size=12), drive_item("d1", "Docs", mime=FOLDER)]}),
    )

    result = await provider.list("/", ListRequestOptions(), caller)

    notes, docs = result.resources
    assert notes.name == "notes.txt"
    assert notes.path == "/notes.txt"
    assert notes.size == 12
    assert notes.kind.value == "file"
    assert notes.content_uri == "https://www.googleapis.com/drive/v3/files/f1?alt=media"
    assert docs.kind.value == "folder"
    assert math.isnan(docs.size)
    assert result.next_set_token is None


@pytest.mark.asyncio
async def test_list_paginates_until_soft_cap(provider, fake_session, caller):
    fake_session.add(
        "GET",
        "'root' in parents and trashed = false",
        (200, {"items": [drive_item("1", "a"), drive_item("2", "b")], "nextPageToken": "p2"}),
        (200, {"items": [drive_item("3", "c"), drive_item("4", "d")], "nextPageToken": "p3"}),
    )

    result = await provider.list("/", ListRequestOptions(), caller)

    assert [r.name for r in result.resources] == ["a", "b", "c", "d"]
    assert result.next_set_token == "p3"
    assert fake_session.calls[1].param("pageToken") == "p2"
    assert fake_session.calls[0].param("maxResults") == "2"


@pytest.mark.asyncio
async def test_list_shared_root_uses_shared_query(provider, fake_session, caller):
    fake_session.add("GET", "q=trashed = false and sharedWithMe = true", (200, {"items": [drive_item("s1", "Team", FOLDER)]}))

    result = await provider.list("/Shared", ListRequestOptions(), caller)

    assert [r.path for r in result.resources] == ["/Shared/Team"]


@pytest.mark.asyncio
async def test_list_empty_folder_is_empty(provider, fake_session, caller):
    fake_session.add("GET", "title = 'Empty'", (200, {"items": [{"id": "empty-id"}]}))
    fake_session.add("GET", "'empty-id' in parents and trashed = false", (200, {"items": []}))

    result = await provider.list("/Empty", ListRequestOptions(), caller)

    assert result.resources == []


@pytest.mark.asyncio
async def test_upstream_errors_are_translated(provider, fake_session, caller):
    fake_session.add("GET", "/drive/v2/files", (401, {"error": {"message": "Invalid Credentials"}}))
    with pytest.raises(InvalidProviderCredentials) as excinfo:
        await provider.list("/", ListRequestOptions(), caller)
    assert excinfo.value.code == 401
    assert excinfo.value.reason == "invalidProviderCredentials"


@pytest.mark.asyncio
async def test_other_failures_carry_upstream_message(fake_session, caller):
    fake_session.add("GET", "/drive/v2/files", (403, {"error": {"message": "Rate Limit Exceeded"}}))
    provider = GoogleDriveProvider(session=fake_session)
    with pytest.raises(ProviderInteractionError) as excinfo:
        await provider.list("/", ListRequestOptions(), caller)
    assert "Rate Limit Exceeded" in excinfo.value.message


@pytest.mark.asyncio
async def test_missing_credentials_and_traversal_make_no_calls(provider, fake_session, caller):
    with pytest.raises(MissingProviderCredentials):
        await provider.list("/", ListRequestOptions(), CallerContext(client_id="client-1"))
    with pytest.raises(BadRequest):
        await provider.read("/Docs/../..", "a.txt", ListRequestOptions(), caller)
    assert fake_session.calls == []


@pytest.mark.asyncio
async def test_read_file_with_export_link(provider, fake_session, caller):
    doc = drive_item("doc1", "Plan", mime="application/vnd.google-apps.document")
    doc["exportLinks"] = {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "https://export/docx",
    }
    fake_session.add("GET", "title = 'Plan'", (200, {"items": [doc]}))

    resource = await provider.read("/", "Plan", ListRequestOptions(), caller)
    assert resource.content_uri == "https://export/docx"

    viewed = await provider.read("/", "Plan", ListRequestOptions(export_type="view"), caller)
    assert viewed.content_uri == "https://drive.google.com/open?id=doc1"


@pytest.mark.asyncio
async def test_read_missing_file(provider, fake_session, caller):
    fake_session.add("GET", "title = 'ghost.txt'", (200, {"items": []}))
    with pytest.raises(NotFound):
        await provider.read("/", "ghost.txt", ListRequestOptions(), caller)


@pytest.mark.asyncio
async def test_create_uploads_and_sets_modified_date(provider, fake_session, caller, tmp_path):
    payload = tmp_path / "upload"
    payload.write_bytes(b"hello")
    upload = UploadedFile(path=payload, mime_type="text/plain", size=5, filename="a.txt")
    fake_session.add("GET", "title = 'Docs'", (200, {"items": [{"id": "docs-id"}]}))
    fake_session.add("GET", "title = 'a.txt'", (200, {"items": []}))
    fake_session.add("POST", "/drive/v2/files", (200, {"id": "new-id", "title": "a.txt"}))
    fake_session.add("PUT", "/upload/drive/v2/files/new-id", (200, drive_item("new-id", "a.txt", size=5)))
    fake_session.add("PATCH", "/drive/v2/files/new-id", (200, drive_item("new-id", "a.txt", size=5, modified="2021-02-27T00:00:00.000Z")))

    resource = await provider.create(
        "/Docs", "a.txt", ResourceFields(last_modified_time="2021-02-27"), upload, caller
    )

    assert (resource.name, resource.size, resource.path) == ("a.txt", 5, "/Docs/a.txt")
    assert resource.last_modified_time == "2021-02-27T00:00:00.000Z"
    metadata = fake_session.calls_to("POST")[0]
    assert metadata.json["parents"] == [{"id": "docs-id"}]
    assert metadata.param("modifiedDateBehavior") == "fromBody"
    assert fake_session.calls_to("PUT")[0].data == b"hello"
    assert fake_session.calls_to("PUT")[0].headers["Content-Type"] == "text/plain"


@pytest.mark.asyncio
async def test_create_existing_file_conflicts(provider, fake_session, caller, tmp_path):
    payload = tmp_path / "upload"
    payload.write_bytes(b"hello")
    fake_session.add("GET", "title = 'a.txt'", (200, {"items": [{"id": "existing"}]}))

    with pytest.raises(FileExists):
        await provider.create("/", "a.txt", ResourceFields(), UploadedFile(path=payload), caller)
    assert fake_session.calls_to("POST") == []


@pytest.mark.asyncio
async def test_create_converts_office_uploads(provider, fake_session, caller, tmp_path):
    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    payload = tmp_path / "upload"
    payload.write_bytes(b"PK")
    fake_session.add("GET", "title = 'plan.docx'", (200, {"items": []}))
    fake_session.add("POST", "/drive/v2/files", (200, {"id": "raw-id", "title": "plan.docx"}))
    fake_session.add("PUT", "/upload/drive/v2/files/raw-id", (200, drive_item("raw-id", "plan.docx", mime=docx)))
    fake_session.add(
        "POST", "/drive/v2/files/raw-id/copy", (200, drive_item("doc-id", "plan.docx", mime="application/vnd.google-apps.document"))
    )
    fake_session.add("DELETE", "/drive/v2/files/raw-id", (204, None))

    resource = await provider.create("/", "plan.docx", ResourceFields(), UploadedFile(path=payload, mime_type=docx), caller)

    assert resource.mime_type == "application/vnd.google-apps.document"
    assert fake_session.calls_to("POST", "/copy")[0].param("convert") == "true"
    assert len(fake_session.calls_to("DELETE", "raw-id")) == 1


@pytest.mark.asyncio
async def test_update_converts_office_uploads(provider, fake_session, caller, tmp_path):
    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    payload = tmp_path / "upload"
    payload.write_bytes(b"PK")
    fake_session.add("GET", "title = 'r.docx'", (200, {"items": [{"id": "raw-id"}]}))
    fake_session.add("PUT", "/upload/drive/v2/files/raw-id", (200, drive_item("raw-id", "r.docx", mime=docx)))
    fake_session.add(
        "POST", "/drive/v2/files/raw-id/copy", (200, drive_item("doc-id", "r.docx", mime="application/vnd.google-apps.document"))
    )
    fake_session.add("DELETE", "/drive/v2/files/raw-id", (204, None))
    fake_session.add(
        "PATCH", "/drive/v2/files/doc-id", (200, drive_item("doc-id", "report", mime="application/vnd.google-apps.document"))
    )

    resource = await provider.update(
        "/", "r.docx", ResourceFields(name="report"), UploadedFile(path=payload, mime_type=docx), caller
    )

    assert fake_session.calls_to("POST", "/copy")[0].param("convert") == "true"
    assert len(fake_session.calls_to("DELETE", "raw-id")) == 1
    [rename] = fake_session.calls_to("PATCH")
    assert rename.url.endswith("/drive/v2/files/doc-id")
    assert rename.json == {"title": "report"}
    assert resource.mime_type == "application/vnd.google-apps.document"
    assert resource.name == "report"


@pytest.mark.asyncio
async def test_create_in_missing_shared_folder_rejected(provider, fake_session, caller, tmp_path):
    payload = tmp_path / "upload"
    payload.write_bytes(b"x")
    fake_session.add("GET", "title = 'NewFolder'", (200, {"items": []}))

    with pytest.raises(NotFound):
        await provider.create("/Shared/NewFolder", "x.txt", ResourceFields(), UploadedFile(path=payload), caller)
    assert fake_session.calls_to("POST") == []


@pytest.mark.asyncio
async def test_create_directly_under_shared_rejected(provider, fake_session, caller, tmp_path):
    payload = tmp_path / "upload"
    payload.write_bytes(b"x")
    with pytest.raises(BadRequest):
        await provider.create("/Shared", "a.txt", ResourceFields(), UploadedFile(path=payload), caller)
    assert fake_session.calls == []


@pytest.mark.asyncio
async def test_update_renames_then_moves(provider, fake_session, caller):
    fake_session.add("GET", "title = 'a.txt'", (200, {"items": [{"id": "file-a"}]}))
    fake_session.add("GET", "title = 'Archive'", (200, {"items": [{"id": "archive-id"}]}))
    fake_session.add(
        "PATCH",
        "/drive/v2/files/file-a",
        (200, drive_item("file-a", "b.txt")),
        (200, drive_item("file-a", "b.txt")),
    )

    resource = await provider.update("/", "a.txt", ResourceFields(name="b.txt", path="/Archive"), None, caller)

    rename, move = fake_session.calls_to("PATCH")
    assert rename.json == {"title": "b.txt"}
    assert move.json == {"parents": [{"id": "archive-id"}]}
    assert resource.path == "/Archive/b.txt"


@pytest.mark.asyncio
async def test_delete_folder(provider, fake_session, caller):
    fake_session.add("GET", "title = 'Old'", (200, {"items": [{"id": "old-id"}]}))
    fake_session.add("DELETE", "/drive/v2/files/old-id", (204, None))

    await provider.delete("/Old", None, caller)

    assert len(fake_session.calls_to("DELETE")) == 1


@pytest.mark.asyncio
async def test_delete_root_rejected(provider, fake_session, caller):
    with pytest.raises(BadRequest):
        await provider.delete("/", None, caller)
    assert fake_session.calls == []
