# tests/test_localfs_provider.py
"""
Tests for LocalFSProvider.
"""
import math
import os

import pytest

from app.core.errors import BadRequest, FileExists, MissingParameter, NotFound
from app.file_access.base import CallerContext, ListRequestOptions, ResourceFields, UploadedFile
from app.file_access.localfs_provider import LocalFSProvider


@pytest.fixture
def provider(local_root):
    return LocalFSProvider({"base_path": str(local_root)})


@pytest.fixture
def anonymous():
    # The local provider needs no provider credentials
    return CallerContext(client_id="client-1")


def staged(tmp_path, name, data):
    path = tmp_path / f"upload-{name}"
    path.write_bytes(data)
    return UploadedFile(path=path, mime_type="text/plain", size=len(data), filename=name)


@pytest.mark.asyncio
async def test_list_single_file(provider, local_root, anonymous):
    (local_root / "a.txt").write_bytes(b"x" * 23)

    result = await provider.list("/", ListRequestOptions(), anonymous)

    assert len(result.resources) == 1
    resource = result.resources[0]
    assert resource.name == "a.txt"
    assert resource.kind.value == "file"
    assert resource.size == 23
    assert resource.path == "/a.txt"
    assert resource.mime_type == "text/plain"
    assert resource.content_uri == "file://" + str(local_root / "a.txt")
    assert resource.last_modified_time.endswith("Z")
    assert result.next_set_token is None


@pytest.mark.asyncio
async def test_list_empty_and_missing_folders(provider, local_root, anonymous):
    (local_root / "Empty").mkdir()
    assert (await provider.list("/Empty", ListRequestOptions(), anonymous)).resources == []
    with pytest.raises(NotFound):
        await provider.list("/Missing", ListRequestOptions(), anonymous)


@pytest.mark.asyncio
async def test_list_skips_dangling_symlinks(provider, local_root, anonymous):
    (local_root / "ok.txt").write_bytes(b"ok")
    os.symlink(local_root / "nowhere", local_root / "broken")

    result = await provider.list("/", ListRequestOptions(), anonymous)

    assert [r.name for r in result.resources] == ["ok.txt"]


@pytest.mark.asyncio
async def test_list_applies_filter_and_sort(provider, local_root, anonymous):
    (local_root / "Docs").mkdir()
    (local_root / "big.bin").write_bytes(b"0" * 100)
    (local_root / "small.bin").write_bytes(b"0" * 10)

    folders_first = await provider.list("/", ListRequestOptions(order_by="kind", direction="desc"), anonymous)
    assert folders_first.resources[0].name == "Docs"
    assert math.isnan(folders_first.resources[0].size)
    assert folders_first.resources[0].mime_type == "inode/directory"

    large = await provider.list(
        "/", ListRequestOptions(compare_with="size", operator=">", value="50"), anonymous
    )
    assert [r.name for r in large.resources] == ["big.bin"]


@pytest.mark.asyncio
async def test_traversal_rejected_before_disk_access(provider, anonymous, monkeypatch):
    def forbidden(*args, **kwargs):
        raise AssertionError("filesystem touched")

    monkeypatch.setattr(provider, "_resolve_path", forbidden)
    with pytest.raises(BadRequest):
        await provider.list("/Docs/../..", ListRequestOptions(), anonymous)
    with pytest.raises(BadRequest):
        await provider.read("/", "..", ListRequestOptions(), anonymous)


@pytest.mark.asyncio
async def test_create_then_read(provider, local_root, tmp_path, anonymous):
    upload = staged(tmp_path, "hello.txt", b"hello world")

    created = await provider.create(
        "/Notes/2021", "hello.txt", ResourceFields(last_modified_time="2021-03-03T08:30:00Z"), upload, anonymous
    )

    assert created.name == "hello.txt"
    assert created.size == 11
    assert created.path == "/Notes/2021/hello.txt"
    assert created.last_modified_time == "2021-03-03T08:30:00.000Z"
    assert (local_root / "Notes" / "2021" / "hello.txt").read_bytes() == b"hello world"

    read = await provider.read("/Notes/2021", "hello.txt", ListRequestOptions(), anonymous)
    assert (read.name, read.size) == ("hello.txt", 11)


@pytest.mark.asyncio
async def test_create_on_existing_path_conflicts(provider, local_root, tmp_path, anonymous):
    (local_root / "a.txt").write_bytes(b"original")

    with pytest.raises(FileExists):
        await provider.create("/", "a.txt", ResourceFields(), staged(tmp_path, "a.txt", b"new"), anonymous)
    assert (local_root / "a.txt").read_bytes() == b"original"


@pytest.mark.asyncio
async def test_create_under_a_file_conflicts(provider, local_root, tmp_path, anonymous):
    (local_root / "a.txt").write_bytes(b"original")

    with pytest.raises(FileExists):
        await provider.create("/a.txt", "b.txt", ResourceFields(), staged(tmp_path, "b.txt", b"new"), anonymous)
    with pytest.raises(FileExists):
        await provider.create("/a.txt/deeper", "b.txt", ResourceFields(), staged(tmp_path, "b.txt", b"new"), anonymous)
    assert (local_root / "a.txt").read_bytes() == b"original"


@pytest.mark.asyncio
async def test_move_under_a_file_conflicts(provider, local_root, anonymous):
    (local_root / "a.txt").write_bytes(b"a")
    (local_root / "b.txt").write_bytes(b"b")

    with pytest.raises(FileExists):
        await provider.update("/", "b.txt", ResourceFields(path="/a.txt"), None, anonymous)
    assert (local_root / "b.txt").read_bytes() == b"b"
    assert (local_root / "a.txt").read_bytes() == b"a"


@pytest.mark.asyncio
async def test_create_requires_payload(provider, anonymous):
    with pytest.raises(MissingParameter):
        await provider.create("/", "a.txt", ResourceFields(), None, anonymous)


@pytest.mark.asyncio
async def test_update_content_name_path_and_time(provider, local_root, tmp_path, anonymous):
    (local_root / "a.txt").write_bytes(b"old")

    updated = await provider.update(
        "/",
        "a.txt",
        ResourceFields(name="b.txt", path="/Archive", last_modified_time="2020-01-01T00:00:00Z"),
        staged(tmp_path, "a.txt", b"new content"),
        anonymous,
    )

    moved = local_root / "Archive" / "b.txt"
    assert moved.read_bytes() == b"new content"
    assert not (local_root / "a.txt").exists()
    assert updated.path == "/Archive/b.txt"
    assert updated.last_modified_time == "2020-01-01T00:00:00.000Z"
    assert int(os.stat(moved).st_mtime) == 1577836800


@pytest.mark.asyncio
async def test_update_requires_a_field(provider, local_root, anonymous):
    (local_root / "a.txt").write_bytes(b"old")
    with pytest.raises(MissingParameter):
        await provider.update("/", "a.txt", ResourceFields(), None, anonymous)


@pytest.mark.asyncio
async def test_update_missing_file(provider, anonymous):
    with pytest.raises(NotFound):
        await provider.update("/", "ghost.txt", ResourceFields(name="b.txt"), None, anonymous)


@pytest.mark.asyncio
async def test_delete_file_and_folder(provider, local_root, anonymous):
    (local_root / "Docs" / "Deep").mkdir(parents=True)
    (local_root / "Docs" / "Deep" / "x.txt").write_bytes(b"x")
    (local_root / "a.txt").write_bytes(b"a")

    await provider.delete("/", "a.txt", anonymous)
    assert not (local_root / "a.txt").exists()

    await provider.delete("/Docs", None, anonymous)
    assert not (local_root / "Docs").exists()


@pytest.mark.asyncio
async def test_delete_root_rejected(provider, local_root, anonymous):
    with pytest.raises(BadRequest):
        await provider.delete("/", None, anonymous)
    assert local_root.exists()
