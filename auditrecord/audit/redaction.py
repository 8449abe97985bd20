"""Redaction policies for audit records.

Every function here is pure and is called inline by the record builder while a
value is being stored, so no unredacted secret ever lands in a record:

- Security configuration content tied to the internal users document has its
  password hashes (bcrypt, PBKDF2, argon2) replaced with a placeholder.
- REST bodies sent to account / user administration endpoints are replaced
  wholesale when they mention a password.
- Authorization headers and filter-matched headers are dropped; filter-matched
  URL parameters keep their key but lose their value.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .filter import AuditFilter


HASH_REPLACEMENT_VALUE = "__HASH__"
SENSITIVE_REPLACEMENT_VALUE = "__SENSITIVE__"
REDACTED_PARAM_VALUE = "REDACTED"
SENSITIVE_KEY = "password"
AUTHORIZATION_HEADER = "Authorization"
INTERNALUSERS_DOC_ID = "internalusers"

LEGACY_OPENDISTRO_PREFIX = "_opendistro/_security"
PLUGINS_PREFIX = "_plugins/_security"


class HashType(str, Enum):
    """Password hash encodings recognized in security configuration."""

    BCRYPT = "bcrypt"
    PBKDF2 = "pbkdf2"
    ARGON2 = "argon2"


@dataclass
class RedactionPattern:
    """A pattern for detecting and redacting a password hash."""

    hash_type: HashType
    pattern: re.Pattern
    replacement: str = HASH_REPLACEMENT_VALUE
    description: str = ""


BCRYPT_REGEX = r"\$2[ayb]\$.{56}"
PBKDF2_REGEX = r"\$\d+\$\d+\$[A-Za-z0-9+/]+={0,2}\$[A-Za-z0-9+/]+={0,2}"
ARGON2_REGEX = (
    r"\$argon2(?:id|i|d)\$v=\d+\$(?:[a-z]=\d+,?)+\$[A-Za-z0-9+/]+={0,2}\$[A-Za-z0-9+/]+={0,2}"
)

_HASH_PATTERNS: list[RedactionPattern] = [
    RedactionPattern(
        HashType.BCRYPT,
        re.compile(BCRYPT_REGEX),
        description="bcrypt hash ($2a$, $2b$, $2y$)",
    ),
    RedactionPattern(
        HashType.PBKDF2,
        re.compile(PBKDF2_REGEX),
        description="PBKDF2 hash ($<iterations>$<length>$<salt>$<hash>)",
    ),
    RedactionPattern(
        HashType.ARGON2,
        re.compile(ARGON2_REGEX),
        description="argon2 hash ($argon2id$, $argon2i$, $argon2d$)",
    ),
]

# Single alternation so one pass replaces every family; each family is a named group
HASH_REGEX_PATTERN = re.compile(
    "|".join(f"(?P<{p.hash_type.name}>{p.pattern.pattern})" for p in _HASH_PATTERNS)
)

_REPLACEMENTS = {p.hash_type.name: p.replacement for p in _HASH_PATTERNS}


def _replace_hash(match: re.Match) -> str:
    return _REPLACEMENTS[match.lastgroup]


SENSITIVE_PATHS = re.compile(
    "/("
    + re.escape(LEGACY_OPENDISTRO_PREFIX)
    + "|"
    + re.escape(PLUGINS_PREFIX)
    + ")/api/(account.*|internalusers.*|user.*)"
)


def get_hash_patterns() -> list[RedactionPattern]:
    """Return the hash patterns used for security configuration content."""
    return list(_HASH_PATTERNS)


def redact_security_config_content(content: str | None, doc_id: str | None) -> str | None:
    """Replace password hashes in security configuration content.

    Only content belonging to the internal users document is touched; anything
    else (including ``None``) is returned as is.

    Args:
        content: JSON text of the configuration document
        doc_id: Identifier of the configuration document

    Returns:
        Content with every recognized hash replaced by its pattern replacement
    """
    if content is not None and doc_id == INTERNALUSERS_DOC_ID:
        content = HASH_REGEX_PATTERN.sub(_replace_hash, content)
    return content


def is_sensitive_path(path: str | None) -> bool:
    """Check whether a REST path is an account or user administration endpoint."""
    return path is not None and SENSITIVE_PATHS.fullmatch(path) is not None


def redact_rest_request_body(path: str | None, body: str | None) -> str | None:
    """Replace a whole REST request body when it may carry credentials.

    Args:
        path: Request path
        body: Request body as JSON text

    Returns:
        ``__SENSITIVE__`` if the path is sensitive and the body mentions a
        password, otherwise the body unchanged
    """
    if body is not None and is_sensitive_path(path) and SENSITIVE_KEY in body:
        return SENSITIVE_REPLACEMENT_VALUE
    return body


def is_authorization_header(name: str) -> bool:
    """Case-insensitive check for the Authorization header."""
    return name.lower() == AUTHORIZATION_HEADER.lower()


def filter_rest_headers(
    headers: Mapping[str, list[str] | str],
    exclude_sensitive_headers: bool,
    audit_filter: AuditFilter | None = None,
) -> dict[str, list[str]]:
    """Drop sensitive and filter-excluded headers.

    Dropped headers leave no trace in the result. The input is not modified.
    A single string value is recorded as a one-element list.

    Args:
        headers: Header name to values
        exclude_sensitive_headers: Drop the Authorization header
        audit_filter: Optional filter with a header exclusion test

    Returns:
        A new header mapping
    """
    result = {name: [values] if isinstance(values, str) else list(values) for name, values in headers.items()}

    if exclude_sensitive_headers:
        result = {name: values for name, values in result.items() if not is_authorization_header(name)}

    if audit_filter is not None:
        result = {
            name: values for name, values in result.items() if not audit_filter.should_exclude_header(name)
        }

    return result


def filter_transport_headers(
    headers: Mapping[str, str],
    exclude_sensitive_headers: bool,
) -> dict[str, str]:
    """Drop the Authorization header from flat transport headers when asked to."""
    if exclude_sensitive_headers:
        return {name: value for name, value in headers.items() if not is_authorization_header(name)}
    return dict(headers)


def redact_url_params(
    params: Mapping[str, str],
    audit_filter: AuditFilter | None = None,
) -> dict[str, str]:
    """Mask filter-excluded URL parameters.

    Unlike headers, excluded parameters stay visible: the key is kept and its
    value becomes ``REDACTED``.

    Args:
        params: Parameter name to value
        audit_filter: Optional filter with a parameter exclusion test

    Returns:
        A new parameter mapping
    """
    result = {}
    for name, value in params.items():
        if audit_filter is not None and audit_filter.should_exclude_url_param(name):
            result[name] = REDACTED_PARAM_VALUE
        else:
            result[name] = value
    return result


# Exports
__all__ = [
    "ARGON2_REGEX",
    "AUTHORIZATION_HEADER",
    "BCRYPT_REGEX",
    "HASH_REGEX_PATTERN",
    "HASH_REPLACEMENT_VALUE",
    "HashType",
    "INTERNALUSERS_DOC_ID",
    "LEGACY_OPENDISTRO_PREFIX",
    "PBKDF2_REGEX",
    "PLUGINS_PREFIX",
    "REDACTED_PARAM_VALUE",
    "RedactionPattern",
    "SENSITIVE_KEY",
    "SENSITIVE_PATHS",
    "SENSITIVE_REPLACEMENT_VALUE",
    "filter_rest_headers",
    "filter_transport_headers",
    "get_hash_patterns",
    "is_authorization_header",
    "is_sensitive_path",
    "redact_rest_request_body",
    "redact_security_config_content",
    "redact_url_params",
]
