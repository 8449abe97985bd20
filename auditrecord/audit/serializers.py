"""Read-only projections of a finished audit record.

JSON is the only projection that can fail; text and URL parameters always
render. Text drops fields whose string form is empty, URL parameters keep them.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from .errors import AuditSerializationError


def string_or_none(value: Any) -> str | None:
    """Natural string form of a field value."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    return str(value)


def _to_json(fields: Mapping[str, Any], indent: int | None) -> str:
    separators = (",", ":") if indent is None else (",", ": ")
    try:
        return json.dumps(dict(fields), indent=indent, separators=separators, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise AuditSerializationError(str(e), e) from e


def to_json(fields: Mapping[str, Any]) -> str:
    """Render fields as a compact JSON object.

    Raises:
        AuditSerializationError: If a value cannot be encoded
    """
    return _to_json(fields, indent=None)


def to_pretty_json(fields: Mapping[str, Any]) -> str:
    """Render fields as an indented JSON object.

    Raises:
        AuditSerializationError: If a value cannot be encoded
    """
    return _to_json(fields, indent=2)


def to_text(fields: Mapping[str, Any]) -> str:
    """Render one ``key: value`` line per non-empty field, no trailing newline."""
    lines = []
    for key, value in fields.items():
        text = string_or_none(value)
        if text:
            lines.append(f"{key}: {text}")
    return "\n".join(lines)


def to_url_parameters(fields: Mapping[str, Any]) -> str:
    """Render every field as a URL-encoded query component (``?k=v&...``)."""
    pairs = [(key, string_or_none(value) or "") for key, value in fields.items()]
    if not pairs:
        return ""
    return "?" + urlencode(pairs)


__all__ = [
    "string_or_none",
    "to_json",
    "to_pretty_json",
    "to_text",
    "to_url_parameters",
]
