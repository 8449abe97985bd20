"""Tests for audit filters, their loading and settings."""

from __future__ import annotations

import logging

import pytest

from auditrecord.audit import (
    AuditFilter,
    AuditFilterLoadError,
    ClusterInfo,
    load_filter,
    load_filter_from_file,
)
from auditrecord.config.settings import Settings, get_settings

AUDIT_ENV_VARS = [
    "AUDIT_NODE_ID",
    "AUDIT_NODE_NAME",
    "AUDIT_NODE_HOST_NAME",
    "AUDIT_NODE_HOST_ADDRESS",
    "AUDIT_CLUSTER_NAME",
    "AUDIT_FILTER_PATH",
    "AUDIT_EXCLUDE_SENSITIVE_HEADERS",
    "AUDIT_LOG_REQUEST_BODY",
    "AUDIT_IGNORE_HEADERS",
    "AUDIT_IGNORE_URL_PARAMS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and .env files."""
    for name in AUDIT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAuditFilter:
    """Tests for the AuditFilter model."""

    def test_defaults(self):
        """Test default filter values."""
        audit_filter = AuditFilter()

        assert audit_filter.should_exclude_sensitive_headers() is True
        assert audit_filter.should_log_request_body() is True
        assert audit_filter.should_exclude_header("X-Api-Key") is False
        assert audit_filter.should_exclude_url_param("token") is False

    def test_header_patterns_case_insensitive(self):
        """Test wildcard header matching ignores case."""
        audit_filter = AuditFilter(ignore_headers=["X-Internal-*", "cookie"])

        assert audit_filter.should_exclude_header("x-internal-trace") is True
        assert audit_filter.should_exclude_header("Cookie") is True
        assert audit_filter.should_exclude_header("X-Request-Id") is False

    def test_param_patterns_case_sensitive(self):
        """Test wildcard parameter matching respects case."""
        audit_filter = AuditFilter(ignore_url_params=["token", "secret_*"])

        assert audit_filter.should_exclude_url_param("token") is True
        assert audit_filter.should_exclude_url_param("secret_key") is True
        assert audit_filter.should_exclude_url_param("Token") is False

    def test_comma_separated_patterns(self):
        """Test that comma-separated strings are split and trimmed."""
        audit_filter = AuditFilter(ignore_headers="X-A, X-B,,", ignore_url_params=None)

        assert audit_filter.ignore_headers == ["X-A", "X-B"]
        assert audit_filter.ignore_url_params == []


class TestSettings:
    """Tests for environment settings."""

    def test_defaults(self):
        """Test default settings values."""
        settings = Settings()

        assert settings.cluster_name == "auditrecord"
        assert settings.exclude_sensitive_headers is True
        assert settings.log_request_body is True
        assert settings.audit_filter_path is None
        assert settings.log_level == "INFO"

    def test_from_environment(self, monkeypatch):
        """Test settings loaded from environment variables."""
        monkeypatch.setenv("AUDIT_CLUSTER_NAME", "prod")
        monkeypatch.setenv("AUDIT_LOG_REQUEST_BODY", "false")
        monkeypatch.setenv("AUDIT_IGNORE_HEADERS", "X-Api-Key, X-Trace")

        settings = Settings()
        audit_filter = AuditFilter.from_settings(settings)

        assert settings.cluster_name == "prod"
        assert audit_filter.should_log_request_body() is False
        assert audit_filter.ignore_headers == ["X-Api-Key", "X-Trace"]

    def test_cluster_info_from_settings(self, monkeypatch):
        """Test node identity taken from settings."""
        monkeypatch.setenv("AUDIT_NODE_ID", "n1")
        monkeypatch.setenv("AUDIT_NODE_NAME", "node-1")
        monkeypatch.setenv("AUDIT_NODE_HOST_NAME", "host-1")
        monkeypatch.setenv("AUDIT_NODE_HOST_ADDRESS", "10.0.0.1")
        monkeypatch.setenv("AUDIT_CLUSTER_NAME", "prod")

        cluster = ClusterInfo.from_settings(Settings())

        assert cluster == ClusterInfo("n1", "10.0.0.1", "host-1", "node-1", "prod")

    def test_cluster_info_defaults(self, monkeypatch):
        """Test node identity falls back to the local host."""
        monkeypatch.setattr("socket.gethostname", lambda: "local-host")
        monkeypatch.setattr("socket.gethostbyname", lambda name: "127.0.1.1")

        cluster = ClusterInfo.from_settings(Settings())

        assert cluster.host_name == "local-host"
        assert cluster.node_name == "local-host"
        assert cluster.host_address == "127.0.1.1"
        assert cluster.node_id


class TestFilterLoading:
    """Tests for loading filters from YAML."""

    def test_load_from_file(self, tmp_path):
        """Test loading a complete filter file."""
        path = tmp_path / "audit_filter.yaml"
        path.write_text(
            "exclude_sensitive_headers: false\n"
            "log_request_body: false\n"
            "ignore_headers:\n"
            "  - X-Api-Key\n"
            "ignore_url_params: token, password\n"
        )

        audit_filter = load_filter_from_file(path)

        assert audit_filter.exclude_sensitive_headers is False
        assert audit_filter.log_request_body is False
        assert audit_filter.ignore_headers == ["X-Api-Key"]
        assert audit_filter.ignore_url_params == ["token", "password"]

    def test_empty_file(self, tmp_path):
        """Test that an empty file yields the default filter."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_filter_from_file(path) == AuditFilter()

    def test_missing_file(self, tmp_path):
        """Test error for a missing file."""
        with pytest.raises(AuditFilterLoadError, match="not found"):
            load_filter_from_file(tmp_path / "missing.yaml")

    def test_directory(self, tmp_path):
        """Test error for a directory path."""
        with pytest.raises(AuditFilterLoadError, match="not a file"):
            load_filter_from_file(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        """Test error for malformed YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("ignore_headers: [unclosed\n")
        with pytest.raises(AuditFilterLoadError, match="Invalid YAML"):
            load_filter_from_file(path)

    def test_not_a_mapping(self, tmp_path):
        """Test error for a YAML list."""
        path = tmp_path / "list.yaml"
        path.write_text("- X-Api-Key\n")
        with pytest.raises(AuditFilterLoadError, match="mapping"):
            load_filter_from_file(path)

    def test_invalid_values(self, tmp_path):
        """Test error for values that fail validation."""
        path = tmp_path / "invalid.yaml"
        path.write_text("log_request_body: sometimes\n")
        with pytest.raises(AuditFilterLoadError, match="Invalid audit filter"):
            load_filter_from_file(path)

    def test_load_filter_explicit_path(self, tmp_path):
        """Test that an explicit path wins."""
        path = tmp_path / "filter.yaml"
        path.write_text("log_request_body: false\n")
        assert load_filter(path).log_request_body is False

    def test_load_filter_from_settings_path(self, tmp_path, monkeypatch):
        """Test AUDIT_FILTER_PATH is honored."""
        path = tmp_path / "filter.yaml"
        path.write_text("ignore_url_params: [token]\n")
        monkeypatch.setenv("AUDIT_FILTER_PATH", str(path))

        assert load_filter().ignore_url_params == ["token"]

    def test_load_filter_bad_settings_path(self, tmp_path, monkeypatch, caplog):
        """Test fallback to environment settings when AUDIT_FILTER_PATH is broken."""
        monkeypatch.setenv("AUDIT_FILTER_PATH", str(tmp_path / "missing.yaml"))
        monkeypatch.setenv("AUDIT_IGNORE_HEADERS", "X-Api-Key")

        with caplog.at_level(logging.WARNING, logger="auditrecord.config"):
            audit_filter = load_filter()

        assert audit_filter.ignore_headers == ["X-Api-Key"]
        assert any("AUDIT_FILTER_PATH" in record.getMessage() for record in caplog.records)

    def test_load_filter_explicit_missing_raises(self, tmp_path):
        """Test that an explicit missing path is an error."""
        with pytest.raises(AuditFilterLoadError):
            load_filter(tmp_path / "missing.yaml")
