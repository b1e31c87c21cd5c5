"""Path and query identifier checks shared by route modules."""

from __future__ import annotations

from typing import Optional

from megamart.logic.identifiers import is_valid_object_id
from megamart.logic.problem_factory import bad_request

# Placeholder strings clients send when an id was never set
_PLACEHOLDER_IDS = {"", "undefined", "null"}


def require_object_id(value: Optional[str], detail: str) -> str:
    """Return `value` when it is a 24-hex id, else raise a 400 with `detail`."""
    if not is_valid_object_id(value):
        raise bad_request(detail)
    return str(value)


def reject_placeholder_id(value: Optional[str], detail: str, message: Optional[str] = None) -> str:
    """Reject empty, `undefined` and `null` ids, echoing what was received."""
    if value is None or value.strip() in _PLACEHOLDER_IDS:
        extra = {"received": value}
        if message:
            extra["message"] = message
        raise bad_request(detail, **extra)
    return value


__all__ = ["require_object_id", "reject_placeholder_id"]
