"""Audit filter: which headers, parameters and bodies may be recorded.

Filters are loaded from YAML files or derived from environment settings::

    exclude_sensitive_headers: true
    log_request_body: true
    ignore_headers:
      - X-Api-Key
      - X-Internal-*
    ignore_url_params:
      - token
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import AuditFilterLoadError

if TYPE_CHECKING:
    from ..config.settings import Settings

logger = logging.getLogger("auditrecord.config")


class AuditFilter(BaseModel):
    """Redaction policy for a single audited event.

    Attributes:
        exclude_sensitive_headers: Drop the Authorization header
        log_request_body: Capture REST request bodies at all
        ignore_headers: Wildcard patterns of headers to drop (case-insensitive)
        ignore_url_params: Wildcard patterns of URL parameters to redact
    """

    exclude_sensitive_headers: bool = Field(
        default=True,
        description="Drop the Authorization header",
    )
    log_request_body: bool = Field(
        default=True,
        description="Capture REST request bodies",
    )
    ignore_headers: list[str] = Field(
        default_factory=list,
        description="Header name patterns to drop (e.g., 'X-Internal-*')",
    )
    ignore_url_params: list[str] = Field(
        default_factory=list,
        description="URL parameter name patterns to redact",
    )

    @field_validator("ignore_headers", "ignore_url_params", mode="before")
    @classmethod
    def split_patterns(cls, v: Any) -> Any:
        """Accept comma-separated strings and drop blank entries."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(item).strip() for item in v if str(item).strip()]
        return v

    def should_exclude_sensitive_headers(self) -> bool:
        return self.exclude_sensitive_headers

    def should_log_request_body(self) -> bool:
        return self.log_request_body

    def should_exclude_header(self, name: str) -> bool:
        """Check if a header matches an ignore pattern (case-insensitive)."""
        lowered = name.lower()
        return any(fnmatch.fnmatchcase(lowered, pattern.lower()) for pattern in self.ignore_headers)

    def should_exclude_url_param(self, name: str) -> bool:
        """Check if a URL parameter matches an ignore pattern."""
        return any(fnmatch.fnmatchcase(name, pattern) for pattern in self.ignore_url_params)

    @classmethod
    def from_settings(cls, settings: Settings) -> AuditFilter:
        """Build a filter from environment settings."""
        return cls(
            exclude_sensitive_headers=settings.exclude_sensitive_headers,
            log_request_body=settings.log_request_body,
            ignore_headers=settings.ignore_headers,
            ignore_url_params=settings.ignore_url_params,
        )


def load_filter_from_file(path: str | Path) -> AuditFilter:
    """Load an audit filter from a YAML file.

    Args:
        path: Path to the filter YAML file

    Returns:
        AuditFilter instance

    Raises:
        AuditFilterLoadError: If the file cannot be loaded or parsed
    """
    path = Path(path).expanduser().resolve()

    if not path.exists():
        raise AuditFilterLoadError(f"Audit filter file not found: {path}")

    if not path.is_file():
        raise AuditFilterLoadError(f"Audit filter path is not a file: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise AuditFilterLoadError(f"Invalid YAML in audit filter file: {e}")
    except OSError as e:
        raise AuditFilterLoadError(f"Cannot read audit filter file: {e}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise AuditFilterLoadError("Audit filter file must contain a YAML mapping")

    try:
        audit_filter = AuditFilter.model_validate(data)
    except ValidationError as e:
        raise AuditFilterLoadError(f"Invalid audit filter configuration: {e}")

    logger.info(f"Loaded audit filter from {path}")
    return audit_filter


def load_filter(path: str | Path | None = None, settings: Settings | None = None) -> AuditFilter:
    """Load the effective audit filter.

    Precedence: explicit path, then ``AUDIT_FILTER_PATH``, then the filter
    settings from the environment. An explicit path that fails to load raises;
    a broken ``AUDIT_FILTER_PATH`` falls back to the environment settings.

    Args:
        path: Optional explicit filter file
        settings: Settings to use (defaults to the cached settings)

    Returns:
        AuditFilter instance
    """
    if path is not None:
        return load_filter_from_file(path)

    if settings is None:
        from ..config.settings import get_settings

        settings = get_settings()

    if settings.audit_filter_path is not None:
        try:
            return load_filter_from_file(settings.audit_filter_path)
        except AuditFilterLoadError as e:
            logger.warning(f"Failed to load audit filter from AUDIT_FILTER_PATH: {e}")

    return AuditFilter.from_settings(settings)


__all__ = [
    "AuditFilter",
    "load_filter",
    "load_filter_from_file",
]
