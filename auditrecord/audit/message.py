"""Audit message builder and immutable audit message.

An ``AuditMessageBuilder`` is created once per audited event and owned by the
flow handling that event. Accumulators can be called unconditionally: each one
ignores ``None`` or empty input and otherwise writes its field in full (last
write wins). Redaction runs inside the accumulators that handle risky data.
``build()`` freezes the collected fields into an ``AuditMessage`` which only
offers read access and serialization.

Example usage:
    from auditrecord.audit import AuditCategory, AuditMessageBuilder, ClusterInfo, Origin

    cluster = ClusterInfo("n1", "10.0.0.1", "host-1", "node-1", "prod")
    builder = AuditMessageBuilder(AuditCategory.AUTHENTICATED, cluster, Origin.REST)
    builder.add_effective_user("alice")
    builder.add_rest_request_info(request, audit_filter)

    message = builder.build()
    sink.write(message.to_json())
"""

from __future__ import annotations

import copy
import logging
import traceback
from collections.abc import Callable, Iterator, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .content import convert_map_to_json, convert_to_json
from .fields import (
    AUDIT_FORMAT_VERSION,
    FIELD_TYPES,
    AuditCategory,
    AuditField,
    Operation,
    Origin,
    RestMethod,
)
from .files import fingerprint_files
from .filter import AuditFilter
from .redaction import (
    filter_rest_headers,
    filter_transport_headers,
    redact_rest_request_body,
    redact_security_config_content,
    redact_url_params,
)
from .request import SOURCE_PARAM, AuditRequest, ClusterInfo, RestRequest, ShardId
from .serializers import to_json, to_pretty_json, to_text, to_url_parameters

logger = logging.getLogger("auditrecord.audit")

REQUEST_BODY_ERROR = "ERROR: Unable to generate request body"
CONVERSION_ERROR = "ERROR: Unable to convert to json"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class _AuditFieldsReader:
    """Read access shared by the builder and the built message."""

    _fields: Mapping[AuditField, Any]

    def get(self, field: AuditField | str, default: Any = None) -> Any:
        """Return a copy of a field value, or ``default`` if it is unset."""
        key = AuditField(field)
        if key not in self._fields:
            return default
        return copy.deepcopy(self._fields[key])

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of all fields keyed by wire name."""
        return {field.value: copy.deepcopy(value) for field, value in self._fields.items()}

    def __getitem__(self, field: AuditField | str) -> Any:
        return copy.deepcopy(self._fields[AuditField(field)])

    def __contains__(self, field: object) -> bool:
        try:
            return AuditField(field) in self._fields
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[str]:
        return (field.value for field in self._fields)

    @property
    def category(self) -> AuditCategory:
        return self._fields[AuditField.CATEGORY]

    @property
    def origin(self) -> Origin | None:
        return self._fields.get(AuditField.ORIGIN)

    @property
    def initiating_user(self) -> str | None:
        return self._fields.get(AuditField.REQUEST_INITIATING_USER)

    @property
    def effective_user(self) -> str | None:
        return self._fields.get(AuditField.REQUEST_EFFECTIVE_USER)

    @property
    def request_type(self) -> str | None:
        return self._fields.get(AuditField.TRANSPORT_REQUEST_TYPE)

    @property
    def request_method(self) -> RestMethod | None:
        return self._fields.get(AuditField.REST_REQUEST_METHOD)

    @property
    def privilege(self) -> str | None:
        return self._fields.get(AuditField.PRIVILEGE)

    @property
    def exception_stacktrace(self) -> str | None:
        return self._fields.get(AuditField.EXCEPTION)

    @property
    def request_body(self) -> str | None:
        return self._fields.get(AuditField.REQUEST_BODY)

    @property
    def node_id(self) -> str | None:
        return self._fields.get(AuditField.NODE_ID)

    @property
    def doc_id(self) -> str | None:
        return self._fields.get(AuditField.ID)


class AuditMessageBuilder(_AuditFieldsReader):
    """Accumulates the facts of one audited event.

    Not thread-safe: a builder belongs to the single flow handling its event.
    """

    def __init__(
        self,
        category: AuditCategory,
        cluster: ClusterInfo,
        origin: Origin | None = None,
        layer: Origin | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the builder with the mandatory identity fields.

        Args:
            category: Category of the audited event
            cluster: Identity of the local node
            origin: Layer the request came from
            layer: Layer the event is recorded on
            clock: Time source for the record timestamp

        Raises:
            ValueError: If category or cluster is missing
        """
        if category is None:
            raise ValueError("Audit category is required")
        if cluster is None:
            raise ValueError("Cluster info is required")

        self._fields: dict[AuditField, Any] = {}
        now = (clock or _utc_now)().astimezone(UTC)

        self._put(AuditField.FORMAT_VERSION, AUDIT_FORMAT_VERSION)
        self._put(AuditField.CATEGORY, AuditCategory(category))
        self._put(AuditField.UTC_TIMESTAMP, now.isoformat(timespec="milliseconds"))
        self._put(AuditField.NODE_HOST_ADDRESS, cluster.host_address)
        self._put(AuditField.NODE_ID, cluster.node_id)
        self._put(AuditField.NODE_HOST_NAME, cluster.host_name)
        self._put(AuditField.NODE_NAME, cluster.node_name)
        self._put(AuditField.CLUSTER_NAME, cluster.cluster_name)

        if origin is not None:
            self._put(AuditField.ORIGIN, Origin(origin))

        if layer is not None:
            self._put(AuditField.REQUEST_LAYER, Origin(layer))

    def _put(self, field: AuditField, value: Any) -> None:
        expected = FIELD_TYPES[field]
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise TypeError(f"{field.value} expects {expected}, got {type(value).__name__}")
        self._fields[field] = value

    def build(self) -> AuditMessage:
        """Freeze the current fields into an immutable message."""
        return AuditMessage(copy.deepcopy(self._fields))

    # --- Actor ---

    def add_remote_address(self, address: str | None) -> None:
        if address:
            self._put(AuditField.REMOTE_ADDRESS, address)

    def add_is_admin_dn(self, is_admin_dn: bool) -> None:
        self._put(AuditField.IS_ADMIN_DN, is_admin_dn)

    def add_initiating_user(self, user: str | None) -> None:
        if user:
            self._put(AuditField.REQUEST_INITIATING_USER, user)

    def add_effective_user(self, user: str | None) -> None:
        if user:
            self._put(AuditField.REQUEST_EFFECTIVE_USER, user)

    def add_privilege(self, privilege: str | None) -> None:
        if privilege:
            self._put(AuditField.PRIVILEGE, privilege)

    def add_exception(self, exc: BaseException | None) -> None:
        """Record the formatted stack trace of an exception."""
        if exc is not None:
            self._put(AuditField.EXCEPTION, "".join(traceback.format_exception(exc)))

    # --- Compliance ---

    def add_compliance_write_diff_source(self, diff: str | None) -> None:
        """Record a write diff.

        A non-empty diff is stored and marks the write as a change; an empty
        diff only marks the write as a no-op; ``None`` records nothing.
        """
        if diff is None:
            return
        if diff:
            self._put(AuditField.COMPLIANCE_DIFF_CONTENT, diff)
            self._put(AuditField.COMPLIANCE_DIFF_IS_NOOP, False)
        else:
            self._put(AuditField.COMPLIANCE_DIFF_IS_NOOP, True)

    def add_security_config_write_diff_source(self, diff: str | None, doc_id: str | None) -> None:
        self.add_compliance_write_diff_source(redact_security_config_content(diff, doc_id))

    def add_compliance_operation(self, operation: Operation | None) -> None:
        if operation is not None:
            self._put(AuditField.COMPLIANCE_OPERATION, Operation(operation))

    def add_compliance_doc_version(self, version: int) -> None:
        self._put(AuditField.COMPLIANCE_DOC_VERSION, version)

    def add_file_infos(self, paths: Mapping[str, str | Path] | None) -> None:
        """Record fingerprints of the given files, skipping unreadable ones."""
        if paths:
            self._put(AuditField.COMPLIANCE_FILE_INFOS, fingerprint_files(paths))

    # --- Request body ---

    def _put_request_body(self, body: str | None) -> None:
        if body:
            self._put(AuditField.REQUEST_BODY, body)

    def add_tuple_to_request_body(self, content: tuple[str, bytes] | None) -> None:
        """Record a ``(media_type, raw_bytes)`` body as JSON text.

        A body that cannot be converted is recorded as an error marker, never raised.
        """
        if content is None:
            return
        try:
            media_type, raw = content
            body = convert_to_json(raw, media_type)
        except Exception as e:
            body = f"{CONVERSION_ERROR} because of {type(e).__name__}: {e}"
        self._put_request_body(body)

    def add_map_to_request_body(self, mapping: Mapping[str, Any] | None) -> None:
        if not mapping:
            return
        try:
            body = convert_map_to_json(mapping)
        except Exception as e:
            body = f"{CONVERSION_ERROR} because of {type(e).__name__}: {e}"
        self._put_request_body(body)

    def add_unescaped_json_to_request_body(self, source: str | None) -> None:
        self._put_request_body(source)

    def add_security_config_content_to_request_body(self, source: str | None, doc_id: str | None) -> None:
        """Record security configuration content with password hashes redacted.

        Every security configuration body goes through here.
        """
        if source:
            self._put_request_body(redact_security_config_content(source, doc_id))

    def add_security_config_tuple_to_request_body(
        self,
        content: tuple[str, bytes] | None,
        doc_id: str | None,
    ) -> None:
        if content is None:
            return
        try:
            media_type, raw = content
            source = convert_to_json(raw, media_type)
        except Exception:
            self._put(AuditField.REQUEST_BODY, CONVERSION_ERROR)
            return
        self.add_security_config_content_to_request_body(source, doc_id)

    def add_security_config_map_to_request_body(
        self,
        mapping: Mapping[str, Any] | None,
        doc_id: str | None,
    ) -> None:
        if not mapping:
            return
        try:
            source = convert_map_to_json(mapping)
        except Exception:
            self._put(AuditField.REQUEST_BODY, CONVERSION_ERROR)
            return
        self.add_security_config_content_to_request_body(source, doc_id)

    # --- Transport / trace ---

    def add_request_type(self, request_type: str | None) -> None:
        if request_type:
            self._put(AuditField.TRANSPORT_REQUEST_TYPE, request_type)

    def add_action(self, action: str | None) -> None:
        if action:
            self._put(AuditField.TRANSPORT_ACTION, action)

    def add_id(self, doc_id: str | None) -> None:
        if doc_id:
            self._put(AuditField.ID, doc_id)

    def add_indices(self, indices: Sequence[str] | None) -> None:
        if indices:
            self._put(AuditField.INDICES, list(indices))

    def add_resolved_indices(self, resolved_indices: Sequence[str] | None) -> None:
        if resolved_indices:
            self._put(AuditField.RESOLVED_INDICES, list(resolved_indices))

    def add_task_id(self, task_id: int) -> None:
        """Record a task id; task ids are only unique per node."""
        self._put(AuditField.TASK_ID, f"{self._fields[AuditField.NODE_ID]}:{task_id}")

    def add_task_parent_id(self, parent_id: str | None) -> None:
        if parent_id:
            self._put(AuditField.TASK_PARENT_ID, parent_id)

    def add_shard_id(self, shard: ShardId | None) -> None:
        if shard is not None:
            self._put(AuditField.SHARD_ID, shard.id)

    def add_transport_headers(
        self,
        headers: Mapping[str, str] | None,
        exclude_sensitive_headers: bool,
    ) -> None:
        if headers:
            self._put(
                AuditField.TRANSPORT_REQUEST_HEADERS,
                filter_transport_headers(headers, exclude_sensitive_headers),
            )

    # --- REST ---

    def add_path(self, path: str | None) -> None:
        if path:
            self._put(AuditField.REST_REQUEST_PATH, path)

    def add_rest_method(self, method: RestMethod | None) -> None:
        if method is not None:
            self._put(AuditField.REST_REQUEST_METHOD, RestMethod(method))

    def add_rest_params(
        self,
        params: Mapping[str, str] | None,
        audit_filter: AuditFilter | None = None,
    ) -> None:
        """Record URL parameters; filter-excluded values become ``REDACTED``."""
        if params:
            self._put(AuditField.REST_REQUEST_PARAMS, redact_url_params(params, audit_filter))

    def add_rest_headers(
        self,
        headers: Mapping[str, list[str] | str] | None,
        exclude_sensitive_headers: bool,
        audit_filter: AuditFilter | None = None,
    ) -> None:
        """Record REST headers; sensitive and filter-excluded headers are dropped."""
        if headers:
            self._put(
                AuditField.REST_REQUEST_HEADERS,
                filter_rest_headers(headers, exclude_sensitive_headers, audit_filter),
            )

    def add_rest_request_info(
        self,
        request: AuditRequest | None,
        audit_filter: AuditFilter | None = None,
    ) -> None:
        """Record path, headers, params, method and (if enabled) body of a request.

        The body is only captured for ``RestRequest`` instances that carry
        content, and is replaced wholesale on sensitive account endpoints.
        Failing to read the body records an error marker instead of raising.
        """
        if request is None:
            return
        if audit_filter is None:
            audit_filter = AuditFilter()

        path = request.path
        params = dict(request.params)
        # The source param is a body channel and is redacted like a body
        if params.get(SOURCE_PARAM):
            params[SOURCE_PARAM] = redact_rest_request_body(path, params[SOURCE_PARAM])

        self.add_path(path)
        self.add_rest_headers(request.headers, audit_filter.should_exclude_sensitive_headers(), audit_filter)
        self.add_rest_params(params, audit_filter)
        self.add_rest_method(request.method)

        if not audit_filter.should_log_request_body():
            return

        # Only REST requests expose a body
        if not isinstance(request, RestRequest):
            return

        if not request.has_content_or_source_param():
            return

        try:
            media_type, raw = request.content_or_source_param()
            body = convert_to_json(raw, media_type)
            self._put_request_body(redact_rest_request_body(path, body))
        except Exception as e:
            self._put(AuditField.REQUEST_BODY, REQUEST_BODY_ERROR)
            logger.error(f"Error while generating request body for audit log: {e}")


class AuditMessage(_AuditFieldsReader):
    """Immutable snapshot of a built audit record.

    Safe to read and serialize from several threads at once.
    """

    def __init__(self, fields: Mapping[AuditField, Any]):
        self._fields = MappingProxyType(dict(fields))

    def _wire_fields(self) -> dict[str, Any]:
        return {field.value: value for field, value in self._fields.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuditMessage):
            return NotImplemented
        return dict(self._fields) == dict(other._fields)

    __hash__ = None

    def __repr__(self) -> str:
        return f"AuditMessage(category={self.category.value}, fields={len(self)})"

    def __str__(self) -> str:
        return self.to_json()

    def to_json(self) -> str:
        """Compact JSON; raises ``AuditSerializationError`` on failure."""
        return to_json(self._wire_fields())

    def to_pretty_json(self) -> str:
        """Indented JSON; raises ``AuditSerializationError`` on failure."""
        return to_pretty_json(self._wire_fields())

    def to_text(self) -> str:
        return to_text(self._wire_fields())

    def to_url_parameters(self) -> str:
        return to_url_parameters(self._wire_fields())


__all__ = [
    "AuditMessage",
    "AuditMessageBuilder",
    "CONVERSION_ERROR",
    "REQUEST_BODY_ERROR",
]
