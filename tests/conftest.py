# tests/conftest.py
import base64
import os
import tempfile
from pathlib import Path

# Settings are read at import time; point everything at a scratch directory first
_scratch = Path(tempfile.mkdtemp(prefix="files-gateway-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_scratch / 'test.db'}")
os.environ.setdefault("CACHE_DIR", str(_scratch / "cache"))
os.environ.setdefault("LOCAL_BASE_PATH", str(_scratch / "data"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

import httpx
import pytest
import pytest_asyncio

from app.api.deps import get_registry
from app.db.session import engine, init_models
from app.file_access.base import CallerContext, ProviderId
from app.file_access.gmail_provider import GmailProvider
from app.file_access.googledrive_provider import GoogleDriveProvider
from app.file_access.localfs_provider import LocalFSProvider
from app.file_access.onedrive_provider import OneDriveProvider
from app.file_access.registry import ProviderRegistry
from app.main import app
from tests.fakes import FakeSession


@pytest_asyncio.fixture(autouse=True)
async def _dispose_engine():
    yield
    # Pooled connections belong to this test's event loop
    await engine.dispose()


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def caller():
    return CallerContext(client_id="client-1", provider_credentials="Bearer token-123")


@pytest.fixture
def local_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def registry(local_root, fake_session):
    return ProviderRegistry(
        {
            ProviderId.LOCAL: LocalFSProvider({"base_path": str(local_root)}),
            ProviderId.GOOGLE_DRIVE: GoogleDriveProvider(session=fake_session),
            ProviderId.ONEDRIVE: OneDriveProvider(session=fake_session),
            ProviderId.GMAIL: GmailProvider(session=fake_session),
        }
    )


@pytest_asyncio.fixture
async def client(registry):
    await init_models()
    app.dependency_overrides[get_registry] = lambda: registry
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def credentials(client):
    """Issue a gateway client and return (client_id, api_key, headers)."""
    resp = await client.post("/files-api/v3/clients")
    content = resp.json()["content"]
    token = base64.b64encode(f"{content['id']}:{content['apiKey']}".encode()).decode()
    return content["id"], content["apiKey"], {"X-Credentials": token}
