# app/__init__.py

"""
Files Gateway: one file REST API over local storage, Google Drive, OneDrive
and Gmail.

The version is read from the top-level `VERSION` file when it is present
(source checkouts); installed copies fall back to the package metadata.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

_version_file = Path(__file__).resolve().parents[1] / "VERSION"
if _version_file.exists():
	__version__ = _version_file.read_text(encoding="utf-8").strip()
else:
	try:
		__version__ = version("files-gateway")
	except PackageNotFoundError:
		__version__ = "0.0.0"
