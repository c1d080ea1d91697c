"""Normalize the backend's upload wire shapes into ``UploadRecord``.

The listing endpoint has returned both a bare array and ``{"uploads": [...]}``,
and upload objects name their path either ``path`` or ``objectKey``. All of
that variation is absorbed here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from src.models.upload import UploadRecord

logger = logging.getLogger(__name__)


class MalformedResponse(ValueError):
    """A response body did not have any of the accepted shapes."""


def normalize_logical_path(path: str) -> str:
    """Slash-separated path relative to the images root, without a leading slash."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        # fromisoformat() rejects a trailing "Z" before Python 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable createdAt value: %r", value)
        return None


def record_from_wire(
    obj: Any, branch: Optional[str] = None, commit: Optional[str] = None
) -> Optional[UploadRecord]:
    """Build an ``UploadRecord`` from one wire object, or None if id/path is missing.

    ``branch``/``commit`` fill in values the object itself omits (upload
    responses do not always echo them back).
    """
    if not isinstance(obj, dict):
        return None
    upload_id = obj.get("id")
    path = obj.get("path") or obj.get("objectKey")
    if not upload_id or not path:
        return None
    return UploadRecord(
        id=str(upload_id),
        logical_path=normalize_logical_path(str(path)),
        branch=str(obj.get("branch") or branch or ""),
        commit=str(obj.get("commit") or commit or ""),
        created_at=_parse_timestamp(obj.get("createdAt")),
    )


def parse_upload_listing(body: Any) -> list[UploadRecord]:
    """Parse a listing response (bare array or ``{"uploads": [...]}``)."""
    if isinstance(body, dict) and isinstance(body.get("uploads"), list):
        items = body["uploads"]
    elif isinstance(body, list):
        items = body
    else:
        raise MalformedResponse(
            f"Upload listing is neither an array nor an object with 'uploads' (got {type(body).__name__})"
        )

    records = []
    for item in items:
        record = record_from_wire(item)
        if record is None:
            logger.debug("Skipping listing entry without id/path: %r", item)
            continue
        records.append(record)
    return records
