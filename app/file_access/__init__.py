"""
Data provider layer.

One REST surface over several storage backends:
- Local filesystem / NAS
- Google Drive
- OneDrive
- Gmail (labels as folders, threads as files)
"""

from app.file_access.base import DataProvider, ProviderId, Resource
from app.file_access.registry import ProviderRegistry, build_registry

__all__ = [
    "DataProvider",
    "ProviderId",
    "ProviderRegistry",
    "Resource",
    "build_registry",
]
