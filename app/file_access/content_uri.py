# app/file_access/content_uri.py
"""
Content URI derivation.

Rules, per export type hint:

- ``view``: a link into the provider's own web UI
- ``media`` or no hint on a plain file: a direct download URL
- native documents without raw bytes (Google Docs/Sheets/Slides...) get an
  export link chosen through ``DRIVE_EXPORT_TYPES``; Gmail threads get a
  synthesized archive (see ``mail_archive``)
- fallback: the provider's default web content link, then the API media
  link, then an empty string. Deriving a URI never raises.
"""
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

GOOGLE_DOCS = "application/vnd.google-apps.document"
GOOGLE_SHEETS = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"
GOOGLE_DRAWING = "application/vnd.google-apps.drawing"
GOOGLE_APPS_SCRIPT = "application/vnd.google-apps.script+json"

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

# Google Workspace type -> format it is exported to by default
DRIVE_EXPORT_TYPES: Dict[str, str] = {
    GOOGLE_DOCS: DOCX,
    GOOGLE_SHEETS: XLSX,
    GOOGLE_SLIDES: PPTX,
    GOOGLE_DRAWING: "image/png",
    GOOGLE_APPS_SCRIPT: "application/json",
}

# Office upload type -> Google Workspace type it is converted to
DRIVE_IMPORT_TYPES: Dict[str, str] = {
    DOCX: GOOGLE_DOCS,
    XLSX: GOOGLE_SHEETS,
    PPTX: GOOGLE_SLIDES,
}

GMAIL_WEB_BASE = "https://mail.google.com/mail/u/0/"
GMAIL_ALL_MAIL_URI = f"{GMAIL_WEB_BASE}#all"


def drive_export_type(mime_type: Optional[str]) -> Optional[str]:
    return DRIVE_EXPORT_TYPES.get(mime_type or "")


def drive_import_type(mime_type: Optional[str]) -> Optional[str]:
    return DRIVE_IMPORT_TYPES.get(mime_type or "")


def drive_content_uri(item: Dict[str, Any], export_type: Optional[str], api_base: str) -> str:
    file_id = item.get("id")
    if not file_id:
        return ""
    if export_type == "view":
        return f"https://drive.google.com/open?id={file_id}"

    export_links = item.get("exportLinks") or {}
    mime_type = item.get("mimeType") or ""
    if export_type and export_type in export_links:
        return export_links[export_type]
    default_export = drive_export_type(mime_type)
    if export_type in (None, "", "media") and default_export and default_export in export_links:
        return export_links[default_export]
    if mime_type.startswith("application/vnd.google-apps.") and item.get("webContentLink"):
        return item["webContentLink"]
    return f"{api_base.rstrip('/')}/drive/v3/files/{file_id}?alt=media"


def onedrive_content_uri(
    item: Dict[str, Any],
    api_content_url: str,
    export_type: Optional[str],
) -> str:
    if export_type == "view":
        return item.get("webUrl") or api_content_url or ""
    return item.get("@microsoft.graph.downloadUrl") or api_content_url or ""


def gmail_thread_view_uri(thread_id: str) -> str:
    return f"{GMAIL_WEB_BASE}#inbox/{thread_id}"


def gmail_label_uri(label_name: str) -> str:
    return f"{GMAIL_WEB_BASE}#search/label%3A{(label_name or '').replace(' ', '%2F')}"


def local_content_uri(absolute_path: Path) -> str:
    return "file://" + str(absolute_path).replace(" ", "%20")


def cache_archive_uri(public_base_url: str, archive_name: str) -> str:
    """Link to an archive served by the internal cache endpoint."""
    return f"{public_base_url.rstrip('/')}/files-api/v3/internal/cache/{quote(archive_name, safe='')}"
