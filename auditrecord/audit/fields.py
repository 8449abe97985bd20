"""Audit record field vocabulary.

The field names below are a versioned wire contract: downstream indices key off
these exact strings, and consumers branch on ``audit_format_version``. The set
is closed, so a record never carries a key that is not an ``AuditField``.
"""

from __future__ import annotations

from enum import Enum

AUDIT_FORMAT_VERSION = 4


class AuditCategory(str, Enum):
    """Category of the audited event."""

    BAD_HEADERS = "BAD_HEADERS"
    FAILED_LOGIN = "FAILED_LOGIN"
    MISSING_PRIVILEGES = "MISSING_PRIVILEGES"
    GRANTED_PRIVILEGES = "GRANTED_PRIVILEGES"
    SECURITY_INDEX_ATTEMPT = "SECURITY_INDEX_ATTEMPT"
    SSL_EXCEPTION = "SSL_EXCEPTION"
    AUTHENTICATED = "AUTHENTICATED"
    INDEX_EVENT = "INDEX_EVENT"
    COMPLIANCE_DOC_READ = "COMPLIANCE_DOC_READ"
    COMPLIANCE_DOC_WRITE = "COMPLIANCE_DOC_WRITE"
    COMPLIANCE_EXTERNAL_CONFIG = "COMPLIANCE_EXTERNAL_CONFIG"
    COMPLIANCE_INTERNAL_CONFIG_READ = "COMPLIANCE_INTERNAL_CONFIG_READ"
    COMPLIANCE_INTERNAL_CONFIG_WRITE = "COMPLIANCE_INTERNAL_CONFIG_WRITE"


class Origin(str, Enum):
    """Layer a request originated from (also used for the request layer)."""

    REST = "REST"
    TRANSPORT = "TRANSPORT"
    LOCAL = "LOCAL"


class Operation(str, Enum):
    """Compliance write operation."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RestMethod(str, Enum):
    """HTTP method of a REST request."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    PATCH = "PATCH"
    TRACE = "TRACE"
    CONNECT = "CONNECT"


class AuditField(str, Enum):
    """Every field an audit record may carry, valued by its wire name."""

    FORMAT_VERSION = "audit_format_version"
    CATEGORY = "audit_category"
    REQUEST_EFFECTIVE_USER = "audit_request_effective_user"
    REQUEST_INITIATING_USER = "audit_request_initiating_user"
    UTC_TIMESTAMP = "@timestamp"

    # Node identity
    CLUSTER_NAME = "audit_cluster_name"
    NODE_ID = "audit_node_id"
    NODE_HOST_ADDRESS = "audit_node_host_address"
    NODE_HOST_NAME = "audit_node_host_name"
    NODE_NAME = "audit_node_name"

    ORIGIN = "audit_request_origin"
    REMOTE_ADDRESS = "audit_request_remote_address"

    # REST layer
    REST_REQUEST_PATH = "audit_rest_request_path"
    REST_REQUEST_PARAMS = "audit_rest_request_params"
    REST_REQUEST_HEADERS = "audit_rest_request_headers"
    REST_REQUEST_METHOD = "audit_rest_request_method"

    # Transport layer
    TRANSPORT_REQUEST_TYPE = "audit_transport_request_type"
    TRANSPORT_ACTION = "audit_transport_action"
    TRANSPORT_REQUEST_HEADERS = "audit_transport_headers"

    # Trace
    ID = "audit_trace_doc_id"
    INDICES = "audit_trace_indices"
    SHARD_ID = "audit_trace_shard_id"
    RESOLVED_INDICES = "audit_trace_resolved_indices"
    TASK_ID = "audit_trace_task_id"
    TASK_PARENT_ID = "audit_trace_task_parent_id"

    EXCEPTION = "audit_request_exception_stacktrace"
    IS_ADMIN_DN = "audit_request_effective_user_is_admin"
    PRIVILEGE = "audit_request_privilege"

    REQUEST_BODY = "audit_request_body"
    REQUEST_LAYER = "audit_request_layer"

    # Compliance
    COMPLIANCE_DIFF_IS_NOOP = "audit_compliance_diff_is_noop"
    COMPLIANCE_DIFF_CONTENT = "audit_compliance_diff_content"
    COMPLIANCE_FILE_INFOS = "audit_compliance_file_infos"
    COMPLIANCE_OPERATION = "audit_compliance_operation"
    COMPLIANCE_DOC_VERSION = "audit_compliance_doc_version"


# Accepted value type(s) per field. bool is a subclass of int, so int fields
# reject bools explicitly in the builder.
FIELD_TYPES: dict[AuditField, type | tuple[type, ...]] = {
    AuditField.FORMAT_VERSION: int,
    AuditField.CATEGORY: AuditCategory,
    AuditField.REQUEST_EFFECTIVE_USER: str,
    AuditField.REQUEST_INITIATING_USER: str,
    AuditField.UTC_TIMESTAMP: str,
    AuditField.CLUSTER_NAME: str,
    AuditField.NODE_ID: str,
    AuditField.NODE_HOST_ADDRESS: str,
    AuditField.NODE_HOST_NAME: str,
    AuditField.NODE_NAME: str,
    AuditField.ORIGIN: Origin,
    AuditField.REMOTE_ADDRESS: str,
    AuditField.REST_REQUEST_PATH: str,
    AuditField.REST_REQUEST_PARAMS: dict,
    AuditField.REST_REQUEST_HEADERS: dict,
    AuditField.REST_REQUEST_METHOD: RestMethod,
    AuditField.TRANSPORT_REQUEST_TYPE: str,
    AuditField.TRANSPORT_ACTION: str,
    AuditField.TRANSPORT_REQUEST_HEADERS: dict,
    AuditField.ID: str,
    AuditField.INDICES: list,
    AuditField.SHARD_ID: int,
    AuditField.RESOLVED_INDICES: list,
    AuditField.TASK_ID: str,
    AuditField.TASK_PARENT_ID: str,
    AuditField.EXCEPTION: str,
    AuditField.IS_ADMIN_DN: bool,
    AuditField.PRIVILEGE: str,
    AuditField.REQUEST_BODY: str,
    AuditField.REQUEST_LAYER: Origin,
    AuditField.COMPLIANCE_DIFF_IS_NOOP: bool,
    AuditField.COMPLIANCE_DIFF_CONTENT: str,
    AuditField.COMPLIANCE_FILE_INFOS: list,
    AuditField.COMPLIANCE_OPERATION: Operation,
    AuditField.COMPLIANCE_DOC_VERSION: int,
}


__all__ = [
    "AUDIT_FORMAT_VERSION",
    "AuditCategory",
    "AuditField",
    "FIELD_TYPES",
    "Operation",
    "Origin",
    "RestMethod",
]
