# tests/test_registry.py
import pytest

from app.config import Settings
from app.core.errors import InvalidProviderId
from app.file_access.base import ProviderId
from app.file_access.gmail_provider import GmailProvider
from app.file_access.localfs_provider import LocalFSProvider
from app.file_access.registry import build_registry


def test_builds_enabled_providers_only(tmp_path, fake_session):
    settings = Settings(ENABLED_PROVIDERS=["local", "Gmail", "dropbox"])

    registry = build_registry(settings, session=fake_session, config={"local": {"base_path": str(tmp_path)}})

    assert registry.enabled() == ["local", "gmail"]
    local = registry.get("local")
    assert isinstance(local, LocalFSProvider)
    assert local.base_path == tmp_path.resolve()
    gmail = registry.get("gmail")
    assert isinstance(gmail, GmailProvider)
    assert gmail.session is fake_session


def test_instances_are_shared(fake_session):
    registry = build_registry(Settings(ENABLED_PROVIDERS=["onedrive"]), session=fake_session)
    assert registry.get("onedrive") is registry.get("onedrive")
    assert registry.get("onedrive").provider_id == ProviderId.ONEDRIVE


@pytest.mark.parametrize("provider_id", [None, "", "dropbox", "googledrive"])
def test_disabled_or_unknown_ids_rejected(provider_id):
    registry = build_registry(Settings(ENABLED_PROVIDERS=["local"]))
    with pytest.raises(InvalidProviderId):
        registry.get(provider_id)
