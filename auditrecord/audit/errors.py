"""Audit record exceptions.

Missing input and unreadable fingerprint files are not errors and never show up
here. Content conversion failures are caught inside the builder and recorded as
field values; only serialization failures propagate out of a record.
"""


class AuditError(Exception):
    """Base exception for all audit record errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuditSerializationError(AuditError):
    """Raised when a record cannot be rendered as JSON."""

    def __init__(self, reason: str, cause: Exception | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to serialize audit record: {reason}")


class ContentConversionError(AuditError):
    """Raised when structured content cannot be converted to JSON text."""

    def __init__(self, media_type: str | None, reason: str, cause: Exception | None = None):
        self.media_type = media_type
        self.reason = reason
        self.cause = cause
        prefix = f"[{media_type}] " if media_type else ""
        super().__init__(f"{prefix}{reason}")


class AuditFilterLoadError(AuditError):
    """Raised when an audit filter configuration cannot be loaded."""

    pass
