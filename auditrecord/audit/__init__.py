"""Audit record building with inline redaction.

This module builds the structured record of a single security-relevant event:
- A closed, versioned field vocabulary (``audit_format_version`` 4)
- Guarded accumulators that ignore missing input
- Password hash, sensitive body, header and URL parameter redaction
- Best-effort file fingerprints for compliance events
- JSON, text and URL parameter serialization of the finished record

Example usage:
    from auditrecord.audit import (
        AuditCategory,
        AuditMessageBuilder,
        ClusterInfo,
        Origin,
        load_filter,
    )

    builder = AuditMessageBuilder(
        AuditCategory.GRANTED_PRIVILEGES,
        ClusterInfo.from_settings(get_settings()),
        origin=Origin.REST,
        layer=Origin.REST,
    )
    builder.add_effective_user("alice")
    builder.add_privilege("indices:data/read/search")
    builder.add_rest_request_info(request, load_filter())

    print(builder.build().to_pretty_json())
"""

from __future__ import annotations

from .content import convert_map_to_json, convert_to_json
from .errors import (
    AuditError,
    AuditFilterLoadError,
    AuditSerializationError,
    ContentConversionError,
)
from .fields import (
    AUDIT_FORMAT_VERSION,
    FIELD_TYPES,
    AuditCategory,
    AuditField,
    Operation,
    Origin,
    RestMethod,
)
from .files import FileInfo, compute_file_hash, fingerprint_files, format_timestamp
from .filter import AuditFilter, load_filter, load_filter_from_file
from .message import AuditMessage, AuditMessageBuilder
from .redaction import (
    HASH_REGEX_PATTERN,
    HASH_REPLACEMENT_VALUE,
    INTERNALUSERS_DOC_ID,
    REDACTED_PARAM_VALUE,
    SENSITIVE_PATHS,
    SENSITIVE_REPLACEMENT_VALUE,
    HashType,
    RedactionPattern,
    filter_rest_headers,
    filter_transport_headers,
    redact_rest_request_body,
    redact_security_config_content,
    redact_url_params,
)
from .request import AuditRequest, ClusterInfo, RestRequest, ShardId
from .serializers import to_json, to_pretty_json, to_text, to_url_parameters

__all__ = [
    # Fields
    "AUDIT_FORMAT_VERSION",
    "AuditCategory",
    "AuditField",
    "FIELD_TYPES",
    "Operation",
    "Origin",
    "RestMethod",
    # Records
    "AuditMessage",
    "AuditMessageBuilder",
    "AuditRequest",
    "ClusterInfo",
    "RestRequest",
    "ShardId",
    # Redaction
    "AuditFilter",
    "HASH_REGEX_PATTERN",
    "HASH_REPLACEMENT_VALUE",
    "HashType",
    "INTERNALUSERS_DOC_ID",
    "REDACTED_PARAM_VALUE",
    "RedactionPattern",
    "SENSITIVE_PATHS",
    "SENSITIVE_REPLACEMENT_VALUE",
    "filter_rest_headers",
    "filter_transport_headers",
    "load_filter",
    "load_filter_from_file",
    "redact_rest_request_body",
    "redact_security_config_content",
    "redact_url_params",
    # Content and files
    "FileInfo",
    "compute_file_hash",
    "convert_map_to_json",
    "convert_to_json",
    "fingerprint_files",
    "format_timestamp",
    # Serialization
    "to_json",
    "to_pretty_json",
    "to_text",
    "to_url_parameters",
    # Errors
    "AuditError",
    "AuditFilterLoadError",
    "AuditSerializationError",
    "ContentConversionError",
]
