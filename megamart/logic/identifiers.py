"""Identifier, timestamp and slug helpers shared by repositories.

Record ids are 24-character lowercase hex strings shaped like MongoDB
ObjectIds (4-byte epoch seconds followed by 8 random bytes) so ids minted by
the API and by the offline client store are interchangeable.
"""

from __future__ import annotations

import re
import secrets
import string
import time
from datetime import datetime, timezone

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
_BASE36 = string.digits + string.ascii_uppercase


def new_object_id() -> str:
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


def is_valid_object_id(value: object) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


def utc_now_iso() -> str:
    """Return the current UTC time as ISO-8601 with microseconds and a 'Z' suffix."""
    return to_utc_iso(datetime.now(timezone.utc))


def to_utc_iso(moment: datetime) -> str:
    # Naive datetimes are taken to be UTC
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", (name or "").lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def new_transaction_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"TXN_{int(time.time() * 1000)}_{suffix}"


__all__ = [
    "new_object_id",
    "is_valid_object_id",
    "utc_now_iso",
    "to_utc_iso",
    "slugify",
    "new_transaction_id",
]
