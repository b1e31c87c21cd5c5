"""Shared pydantic base for request payloads.

Payloads accept the storefront's camelCase JSON keys while exposing
snake_case attributes that line up with table column names.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Iterable

from pydantic import BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def columns(self, *, partial: bool = False, nullable: Iterable[str] = ()) -> Dict[str, Any]:
        """Return column -> value for this payload.

        With `partial`, only fields the client sent are returned. Explicit
        nulls are dropped unless the column is listed in `nullable`. Nested
        models are flattened to camelCase dicts for JSON columns.
        """
        names = self.model_fields_set if partial else type(self).model_fields.keys()
        allowed_null = set(nullable)
        out: Dict[str, Any] = {}
        for name in names:
            value = getattr(self, name)
            if value is None and partial and name not in allowed_null:
                continue
            out[name] = _plain(value)
        return out


__all__ = ["ApiModel", "Trimmed", "NonEmpty"]
