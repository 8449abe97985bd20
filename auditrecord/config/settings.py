"""Configuration settings using Pydantic."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Node identity (resolved from the local host when unset)
    node_id: str | None = Field(default=None, alias="AUDIT_NODE_ID")
    node_name: str | None = Field(default=None, alias="AUDIT_NODE_NAME")
    node_host_name: str | None = Field(default=None, alias="AUDIT_NODE_HOST_NAME")
    node_host_address: str | None = Field(default=None, alias="AUDIT_NODE_HOST_ADDRESS")
    cluster_name: str = Field(default="auditrecord", alias="AUDIT_CLUSTER_NAME")

    # Redaction filter
    audit_filter_path: Path | None = Field(
        default=None,
        alias="AUDIT_FILTER_PATH",
        description="Path to a YAML audit filter file",
    )
    exclude_sensitive_headers: bool = Field(
        default=True,
        alias="AUDIT_EXCLUDE_SENSITIVE_HEADERS",
        description="Drop the Authorization header from recorded headers",
    )
    log_request_body: bool = Field(
        default=True,
        alias="AUDIT_LOG_REQUEST_BODY",
        description="Record REST request bodies",
    )
    ignore_headers: str = Field(
        default="",
        alias="AUDIT_IGNORE_HEADERS",
        description="Comma-separated header name patterns to drop",
    )
    ignore_url_params: str = Field(
        default="",
        alias="AUDIT_IGNORE_URL_PARAMS",
        description="Comma-separated URL parameter name patterns to redact",
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()
