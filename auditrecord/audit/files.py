"""File fingerprints for compliance records.

Fingerprinting is best effort: files are rotated or removed underneath us often
enough that an unreadable entry is skipped rather than failing the record.
"""

from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger("auditrecord.audit")


class FileInfo(BaseModel):
    """Fingerprint of a single file."""

    key: str
    path: str
    sha256: str
    last_modified: str


def format_timestamp(epoch_seconds: float) -> str:
    """Format an epoch time as UTC ISO-8601 with milliseconds and offset."""
    return datetime.fromtimestamp(epoch_seconds, UTC).isoformat(timespec="milliseconds")


def compute_file_hash(file_path: str | Path) -> str:
    """Compute SHA256 hash of a file."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def fingerprint_file(key: str, file_path: str | Path) -> FileInfo | None:
    """Fingerprint one file, or return None if it is not readable."""
    path = Path(file_path)
    if not os.access(path, os.R_OK):
        return None

    checksum = compute_file_hash(path)
    # Modification time of the link itself, not its target
    last_modified = path.lstat().st_mtime

    return FileInfo(
        key=key,
        path=str(path.absolute()),
        sha256=checksum,
        last_modified=format_timestamp(last_modified),
    )


def fingerprint_files(paths: Mapping[str, str | Path]) -> list[dict[str, Any]]:
    """Fingerprint every readable file, in mapping order.

    Args:
        paths: Logical key to file path

    Returns:
        One ``{key, path, sha256, last_modified}`` mapping per readable file
    """
    infos = []
    for key, file_path in paths.items():
        try:
            info = fingerprint_file(key, file_path)
        except Exception as e:
            logger.debug(f"Skipping file fingerprint for {key} ({file_path}): {e}")
            continue

        if info is None:
            logger.debug(f"Skipping unreadable file for {key}: {file_path}")
            continue

        infos.append(info.model_dump())

    return infos


__all__ = [
    "FileInfo",
    "compute_file_hash",
    "fingerprint_file",
    "fingerprint_files",
    "format_timestamp",
]
