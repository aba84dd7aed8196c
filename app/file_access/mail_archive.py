# app/file_access/mail_archive.py
"""
Zip archives synthesized from Gmail threads.

A thread has no single binary representation, so one is built on demand:
every message becomes a Markdown file (front matter, body, attachment
summary), every attachment is written beside it, and the lot is zipped into
the client's cache directory where the internal cache endpoint serves it.

Attachments are fetched one after another. A failed attachment fetch does
not fail the archive: its entry reads ``Failed to fetch attachment: ...``.
"""
import asyncio
import base64
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiofiles
import aiofiles.os
from bs4 import BeautifulSoup

from app.config import settings
from app.core.errors import GatewayError
from app.core.timestamps import parse_timestamp
from app.file_access.content_uri import cache_archive_uri
from app.integrations.gmail_api import GmailClient
from app.monitoring.logger import log

NO_SUBJECT = "(No Subject)"


@dataclass
class MailPart:
    filename: str
    mime_type: str
    size: int = 0
    attachment_id: Optional[str] = None
    data: Optional[str] = None


@dataclass
class ParsedMessage:
    id: str
    thread_id: str
    subject: str = NO_SUBJECT
    date: str = ""
    sender: str = ""
    to: str = ""
    text: str = ""
    attachments: List[MailPart] = field(default_factory=list)
    inline: List[MailPart] = field(default_factory=list)


def index_headers(headers: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """Headers keyed by lower-cased name."""
    return {header["name"].lower(): header.get("value", "") for header in headers or [] if header.get("name")}


def decode_base64url(data: Optional[str]) -> bytes:
    if not data:
        return b""
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def html_to_text(html: str) -> str:
    return BeautifulSoup(html, "html.parser").get_text("\n").strip()


def format_date(value: Optional[str]) -> str:
    """``YYYYMMDD`` for a mail ``Date`` header; ``NaN`` when it cannot be parsed."""
    parsed = parse_timestamp(value)
    return parsed.strftime("%Y%m%d") if parsed else "NaN"


def safe_name(text: str) -> str:
    return text.replace("/", "|")


def thread_file_name(date: Optional[str], thread_id: str, subject: Optional[str]) -> str:
    return safe_name(f"{format_date(date)} - {thread_id} - {subject or NO_SUBJECT}")


def parse_message(message: Dict[str, Any]) -> ParsedMessage:
    """Split a ``format=FULL`` message into header fields, body text and attachment parts."""
    payload = message.get("payload") or {}
    headers = index_headers(payload.get("headers"))
    result = ParsedMessage(
        id=message.get("id", ""),
        thread_id=message.get("threadId", ""),
        subject=headers.get("subject") or NO_SUBJECT,
        date=headers.get("date", ""),
        sender=headers.get("from", ""),
        to=headers.get("to", ""),
    )

    parts = [payload] if payload else []
    first = True
    while parts:
        part = parts.pop(0)
        parts.extend(part.get("parts") or [])
        if not first:
            headers = index_headers(part.get("headers"))
        first = False

        body = part.get("body")
        if not body:
            continue
        mime_type = part.get("mimeType") or ""
        disposition = headers.get("content-disposition", "").lower()
        is_attachment = bool(body.get("attachmentId")) or "attachment" in disposition

        if is_attachment or "inline" in disposition:
            target = result.attachments if is_attachment else result.inline
            target.append(
                MailPart(
                    filename=part.get("filename") or "attachment",
                    mime_type=mime_type,
                    size=body.get("size", 0),
                    attachment_id=body.get("attachmentId"),
                    data=body.get("data"),
                )
            )
        elif "text/html" in mime_type:
            result.text = html_to_text(decode_base64url(body.get("data")).decode("utf-8", errors="replace"))
        elif "text/plain" in mime_type:
            result.text = decode_base64url(body.get("data")).decode("utf-8", errors="replace")
    return result


async def _fetch_part(client: GmailClient, message_id: str, part: MailPart) -> Optional[bytes]:
    if part.data:
        return decode_base64url(part.data)
    if not part.attachment_id:
        return None
    result = await client.get_attachment(message_id, part.attachment_id)
    if not result.get("data"):
        return None
    return decode_base64url(result["data"])


def _part_file_name(prefix: str, filename: str, taken: set) -> str:
    """``{prefix} - {filename}``, numbered when a part of the thread already uses that name."""
    candidate = Path(safe_name(filename))
    name = f"{prefix} - {candidate.name}"
    counter = 1
    while name in taken:
        counter += 1
        name = f"{prefix} - {candidate.stem} ({counter}){candidate.suffix}"
    return name


async def _write_parts(
    client: GmailClient,
    message: ParsedMessage,
    parts: List[MailPart],
    prefix: str,
    directory: Path,
    written: List[Tuple[Path, str]],
) -> str:
    """Write each part to disk and return the text summary for the message file."""
    lines = []
    for part in parts:
        lines.extend([f"{part.filename}:", f" - mimeType: {part.mime_type}", f" - size: {part.size}"])
        try:
            data = await _fetch_part(client, message.id, part)
        except GatewayError as exc:
            log("WARNING", f"Attachment fetch failed: {exc.message}", module="mail_archive", message_id=message.id)
            lines.append(f"Failed to fetch attachment: {exc.message}")
            continue
        if data is None:
            lines.append("Failed to fetch attachment")
            continue
        name = _part_file_name(prefix, part.filename, {entry for _, entry in written})
        async with aiofiles.open(directory / name, "wb") as f:
            await f.write(data)
        written.append((directory / name, name))
    return "\n".join(lines)


def _message_markdown(message: ParsedMessage, attachments_text: str, inline_text: str) -> str:
    return "\n".join(
        [
            "---",
            f"subject: {message.subject}",
            f"date: {message.date}",
            f"from: {message.sender}",
            f"to: {message.to}",
            "---",
            "",
            message.text or "(No body)",
            "",
            "--",
            "Attachments:",
            attachments_text or "No attachments found",
            "--",
            "Inline attachments:",
            inline_text or "No inline attachments found",
        ]
    )


def _write_zip(archive_path: Path, entries: List[Tuple[Path, str]]) -> None:
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for path, name in entries:
            archive.write(path, arcname=name)


async def build_thread_archive(
    client: GmailClient,
    client_id: str,
    thread: Dict[str, Any],
    cache_dir: Optional[Path] = None,
    public_base_url: Optional[str] = None,
) -> str:
    """
    Materialize a thread as a zip archive and return the URL it is served at.

    Args:
        client: Gmail client used to fetch attachment bytes
        client_id: Gateway client the archive is cached for
        thread: Thread resource fetched with ``format=FULL``
    """
    cache_dir = Path(cache_dir or settings.CACHE_DIR)
    generated_dir = cache_dir / "_gmail" / "generated" / client_id
    archive_dir = cache_dir / "_cache" / client_id
    await aiofiles.os.makedirs(generated_dir, exist_ok=True)
    await aiofiles.os.makedirs(archive_dir, exist_ok=True)

    written: List[Tuple[Path, str]] = []
    archive_name = thread_file_name(None, thread.get("id", ""), None)
    for index, raw in enumerate(thread.get("messages") or [], start=1):
        message = parse_message(raw)
        prefix = thread_file_name(message.date, message.thread_id or thread.get("id", ""), message.subject)
        archive_name = prefix
        part_prefix = f"{prefix} - {index}"
        attachments_text = await _write_parts(client, message, message.attachments, part_prefix, generated_dir, written)
        inline_text = await _write_parts(client, message, message.inline, part_prefix, generated_dir, written)

        name = f"{prefix} - {index}.md"
        async with aiofiles.open(generated_dir / name, "w", encoding="utf-8") as f:
            await f.write(_message_markdown(message, attachments_text, inline_text))
        # Messages go first in the archive
        written.insert(index - 1, (generated_dir / name, name))

    archive_file = f"{archive_name}.zip"
    await asyncio.to_thread(_write_zip, archive_dir / archive_file, written)
    log("INFO", f"Archived thread {thread.get('id')} into {archive_file}", module="mail_archive", files=len(written))
    return cache_archive_uri(public_base_url or settings.public_base_url, archive_file)
