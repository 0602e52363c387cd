"""Metadata codec: tags and location stored inside the reminder notes.

The native store keeps only a free-text body, so structured attributes are
appended to it as a single trailing marker:

    Buy the blue one

    [[mcp-reminder-meta:eyJ0YWdzIjpbIndvcmsiXX0]]

The token is unpadded base64url of a compact JSON object
{"tags"?: [...], "location"?: {...}}. Everything before the marker is the
human-written notes.
"""

import base64
import json
import re
from dataclasses import dataclass, field
from typing import List, Optional

from logger_config import setup_logger
from normalizers import normalize_location, normalize_tags
from schemas import ReminderMetadata

logger = setup_logger(__name__, 'codec.log')

METADATA_PREFIX = "[[mcp-reminder-meta:"
METADATA_SUFFIX = "]]"

METADATA_PATTERN = re.compile(r"\s*\[\[mcp-reminder-meta:([A-Za-z0-9_-]+)\]\]\s*\Z")


@dataclass
class ReminderBodyParts:
    """Reminder body split into visible notes and embedded metadata."""
    notes: Optional[str]
    metadata: ReminderMetadata = field(default_factory=ReminderMetadata)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(token: str) -> bytes:
    padding = "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode(token + padding)


def encode_metadata(metadata: ReminderMetadata) -> Optional[str]:
    """Encode metadata as a marker token, or None if nothing to store."""
    tags = normalize_tags(metadata.tags)
    location = normalize_location(metadata.location, strict=False)

    compact = {}
    if tags:
        compact["tags"] = tags
    if location:
        compact["location"] = location.to_payload()

    if not compact:
        return None

    payload = json.dumps(compact, separators=(",", ":"), ensure_ascii=False)
    return _b64encode(payload.encode("utf-8"))


def compose_body(notes: Optional[str], metadata: ReminderMetadata) -> Optional[str]:
    """Join notes and the metadata marker into one body string.

    Returns:
        The body to store, or None when there are neither notes nor metadata
    """
    token = encode_metadata(metadata)
    has_notes = notes is not None and notes.strip() != ""

    if not token:
        return notes if has_notes else None

    marker = f"{METADATA_PREFIX}{token}{METADATA_SUFFIX}"
    return f"{notes}\n\n{marker}" if has_notes else marker


def parse_body(body: Optional[str]) -> ReminderBodyParts:
    """Split a stored body into notes and metadata.

    Never raises: a marker that cannot be decoded is logged and the whole
    body is returned as notes with empty metadata.
    """
    if not body:
        return ReminderBodyParts(notes=None)

    match = METADATA_PATTERN.search(body)
    if not match:
        return ReminderBodyParts(notes=body)

    notes = body[:match.start()].rstrip()

    try:
        decoded = json.loads(_b64decode(match.group(1)).decode("utf-8"))
        if not isinstance(decoded, dict):
            raise ValueError(f"expected an object, got {type(decoded).__name__}")
        raw_tags = decoded.get("tags")
        tags: List[str] = normalize_tags(raw_tags) if isinstance(raw_tags, list) else []
        metadata = ReminderMetadata(
            tags=tags,
            location=normalize_location(decoded.get("location"), strict=False)
        )
    except Exception as e:
        # Any failure, decode or normalize, degrades to the raw body
        logger.warning(f"⚠️ Failed to parse reminder metadata, keeping raw body: {e}")
        return ReminderBodyParts(notes=body)

    return ReminderBodyParts(notes=notes or None, metadata=metadata)
