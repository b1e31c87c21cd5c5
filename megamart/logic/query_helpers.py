"""Shared helpers for repository modules.

Covers the small amount of glue every repository repeats: JSON text columns,
boolean coercion for SQLite, pagination envelopes, whitelisted ORDER BY
clauses and partial-update SET clauses.
"""

from __future__ import annotations

import json
import math
from typing import Any, Callable, Dict, Mapping, Optional, Tuple


class DuplicateError(Exception):
    """Raised when a write violates a uniqueness rule."""


class InvalidQueryError(ValueError):
    """Raised when a client-supplied query option is not supported."""


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def load_json(text: Optional[str], default: Any = None) -> Any:
    if text is None or text == "":
        return default
    try:
        return json.loads(text)
    except (TypeError, json.JSONDecodeError):
        return default


def as_bool(value: Any) -> bool:
    # SQLite returns 0/1 for BOOLEAN columns
    return bool(value) if value is not None else False


def as_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


# Append after a `LIKE :param` produced by like_pattern()
LIKE_ESCAPE = "ESCAPE '\\'"


def like_pattern(term: str) -> str:
    """Return a case-folded `%term%` pattern with LIKE wildcards escaped (ESCAPE '\\')."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def order_by(sort: str, allowed: Mapping[str, str], tiebreak: str = "id") -> str:
    """Translate a `-field` style sort option into an ORDER BY clause.

    `allowed` maps public camelCase field names to column names; anything
    outside it raises InvalidQueryError so user input never reaches SQL.
    """
    raw = (sort or "").strip()
    descending = raw.startswith("-")
    field = raw.lstrip("-+")
    column = allowed.get(field)
    if column is None:
        raise InvalidQueryError(f"Unsupported sort field: {field or raw!r}")
    direction = "DESC" if descending else "ASC"
    return f"ORDER BY {column} {direction}, {tiebreak} {direction}"


def set_clause(
    changes: Mapping[str, Any],
    columns: Mapping[str, Optional[Callable[[Any], Any]]],
) -> Tuple[str, Dict[str, Any]]:
    """Build `col = :col, ...` for the whitelisted keys present in `changes`.

    `columns` maps column names to an optional encoder (e.g. dump_json).
    Unknown keys are ignored.
    """
    parts = []
    params: Dict[str, Any] = {}
    for key, value in changes.items():
        if key not in columns:
            continue
        encoder = columns[key]
        parts.append(f"{key} = :{key}")
        params[key] = encoder(value) if encoder is not None else value
    return ", ".join(parts), params


__all__ = [
    "DuplicateError",
    "InvalidQueryError",
    "dump_json",
    "load_json",
    "as_bool",
    "as_float",
    "LIKE_ESCAPE",
    "like_pattern",
    "offset_for",
    "pagination",
    "order_by",
    "set_clause",
]
