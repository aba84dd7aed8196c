# app/core/timestamps.py
"""
Timestamp parsing and ISO-8601 rendering for resource fields.
"""
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Union

from app.core.errors import BadRequest


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 or RFC 2822 (mail ``Date`` header) timestamp.

    Naive values are taken as UTC. Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        # Graph reports 7 fractional digits
        text = re.sub(r"(\.\d{6})\d+", r"\1", text)
        try:
            parsed = datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError, IndexError):
                return None
            if parsed is None:
                return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: Union[str, datetime, None]) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.mmmZ``; empty string when unknown."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    parsed = parsed.astimezone(timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def from_epoch(seconds: float) -> str:
    return to_iso(datetime.fromtimestamp(seconds, tz=timezone.utc))


def require_iso(value: Optional[str], field_name: str) -> Optional[str]:
    """Normalize a client-supplied timestamp, rejecting unparseable ones."""
    if value is None or value == "":
        return None
    iso = to_iso(value)
    if not iso:
        raise BadRequest(f"Invalid {field_name}: {value!r} is not a valid date")
    return iso
