# app/file_access/registry.py
"""
Provider registry.

The set of providers is closed: one adapter class per ``ProviderId``. The
registry instantiates each enabled provider once at startup and hands out
the shared instance per request.
"""
from typing import Any, Dict, List, Optional, Type

from app.config import Settings
from app.core.guards import check_provider_id
from app.file_access.base import DataProvider, ProviderId
from app.file_access.gmail_provider import GmailProvider
from app.file_access.googledrive_provider import GoogleDriveProvider
from app.file_access.localfs_provider import LocalFSProvider
from app.file_access.onedrive_provider import OneDriveProvider
from app.monitoring.logger import log


PROVIDER_REGISTRY: Dict[ProviderId, Type[DataProvider]] = {
    ProviderId.LOCAL: LocalFSProvider,
    ProviderId.GOOGLE_DRIVE: GoogleDriveProvider,
    ProviderId.ONEDRIVE: OneDriveProvider,
    ProviderId.GMAIL: GmailProvider,
}


class ProviderRegistry:
    """Enabled provider instances keyed by id."""

    def __init__(self, providers: Dict[ProviderId, DataProvider]):
        self.providers = providers

    def get(self, provider_id: Optional[str]) -> DataProvider:
        """
        Provider for a request's ``providerId``.

        Raises:
            InvalidProviderId: if the id is missing, unknown or not enabled
        """
        valid = tuple(provider.value for provider in self.providers)
        check_provider_id(provider_id, valid)
        return self.providers[ProviderId(provider_id)]

    def enabled(self) -> List[str]:
        return [provider.value for provider in self.providers]


def build_registry(settings: Settings, session: Any = None, config: Optional[Dict[str, Dict[str, Any]]] = None) -> ProviderRegistry:
    """
    Instantiate every enabled provider.

    Args:
        settings: Application settings (ENABLED_PROVIDERS)
        session: Shared aiohttp session for the remote providers
        config: Optional per-provider config, keyed by provider id
    """
    config = config or {}
    providers: Dict[ProviderId, DataProvider] = {}
    for name in settings.ENABLED_PROVIDERS:
        name = name.lower().strip()
        try:
            provider_id = ProviderId(name)
        except ValueError:
            log("WARNING", f"Ignoring unknown provider in ENABLED_PROVIDERS: {name}", module="registry")
            continue
        providers[provider_id] = PROVIDER_REGISTRY[provider_id](config.get(name), session=session)
        log("INFO", f"Enabled provider {name}", module="registry")
    return ProviderRegistry(providers)
