"""Conversion of structured content into canonical JSON text.

Request bodies and configuration documents reach the record builder in several
shapes (raw bytes with a media type, or an already parsed mapping). They are
normalized here so redaction always works on a single JSON text payload.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import yaml

from .errors import ContentConversionError

JSON_MEDIA_TYPES = frozenset({"application/json", "text/json"})
YAML_MEDIA_TYPES = frozenset({"application/yaml", "application/x-yaml", "text/yaml", "text/x-yaml"})
NDJSON_MEDIA_TYPES = frozenset({"application/x-ndjson", "application/ndjson"})


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _base_media_type(media_type: str) -> str:
    """Strip parameters such as ``; charset=utf-8`` and lowercase."""
    return media_type.split(";", 1)[0].strip().lower()


def _decode(content: bytes | str, media_type: str) -> str:
    if isinstance(content, str):
        return content
    try:
        return bytes(content).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ContentConversionError(media_type, f"Content is not valid UTF-8: {e}", e)
    except TypeError as e:
        raise ContentConversionError(media_type, f"Content is not bytes or text: {e}", e)


def convert_to_json(content: bytes | str, media_type: str) -> str:
    """Convert raw content of the given media type to compact JSON.

    Args:
        content: Raw body bytes (or already decoded text)
        media_type: Media type of the content, parameters allowed

    Returns:
        Compact JSON text

    Raises:
        ContentConversionError: If the media type is unsupported or the
            content cannot be parsed
    """
    base_type = _base_media_type(media_type or "")
    text = _decode(content, base_type)

    if base_type in JSON_MEDIA_TYPES or base_type.endswith("+json"):
        try:
            return _dumps(json.loads(text))
        except (ValueError, TypeError, RecursionError) as e:
            raise ContentConversionError(base_type, f"Invalid JSON content: {e}", e)

    if base_type in YAML_MEDIA_TYPES:
        try:
            return _dumps(yaml.safe_load(text))
        except yaml.YAMLError as e:
            raise ContentConversionError(base_type, f"Invalid YAML content: {e}", e)
        except (ValueError, TypeError, RecursionError) as e:
            raise ContentConversionError(base_type, f"YAML content is not JSON compatible: {e}", e)

    if base_type in NDJSON_MEDIA_TYPES:
        try:
            return "\n".join(_dumps(json.loads(line)) for line in text.splitlines() if line.strip())
        except (ValueError, TypeError, RecursionError) as e:
            raise ContentConversionError(base_type, f"Invalid NDJSON content: {e}", e)

    raise ContentConversionError(base_type or None, f"Unsupported media type: {media_type!r}")


def convert_map_to_json(mapping: Mapping[str, Any]) -> str:
    """Convert a key-value mapping to compact JSON.

    Raises:
        ContentConversionError: If a value is not JSON serializable
    """
    try:
        return _dumps(dict(mapping))
    except (ValueError, TypeError, RecursionError) as e:
        raise ContentConversionError(None, f"Mapping is not JSON serializable: {e}", e)


__all__ = [
    "convert_map_to_json",
    "convert_to_json",
]
