"""auditrecord: audit event records with inline secret redaction."""

__version__ = "0.4.0"
