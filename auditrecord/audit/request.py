"""Types describing what the record builder consumes from its callers."""

from __future__ import annotations

import socket
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .fields import RestMethod

if TYPE_CHECKING:
    from ..config.settings import Settings

SOURCE_PARAM = "source"
SOURCE_CONTENT_TYPE_PARAM = "source_content_type"


@dataclass(frozen=True)
class ClusterInfo:
    """Identity of the local node and its cluster."""

    node_id: str
    host_address: str
    host_name: str
    node_name: str
    cluster_name: str

    @classmethod
    def from_settings(cls, settings: Settings) -> ClusterInfo:
        """Build node identity from settings, filling gaps from the local host."""
        host_name = settings.node_host_name or socket.gethostname()

        host_address = settings.node_host_address
        if host_address is None:
            try:
                host_address = socket.gethostbyname(host_name)
            except OSError:
                host_address = "127.0.0.1"

        return cls(
            node_id=settings.node_id or uuid.uuid4().hex,
            host_address=host_address,
            host_name=host_name,
            node_name=settings.node_name or host_name,
            cluster_name=settings.cluster_name,
        )


@dataclass(frozen=True)
class ShardId:
    """Shard of an index."""

    index: str
    id: int


@dataclass
class AuditRequest:
    """A request as seen by the audit layer. Carries no body."""

    path: str | None = None
    method: RestMethod | None = None
    headers: dict[str, list[str]] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


@dataclass
class RestRequest(AuditRequest):
    """A REST request whose body may be recorded.

    The body comes from ``content`` or, failing that, from the ``source`` URL
    parameter (with ``source_content_type`` giving its media type).
    """

    content: bytes | str | None = None
    media_type: str = "application/json"

    @property
    def source_param(self) -> str | None:
        return self.params.get(SOURCE_PARAM)

    def has_content_or_source_param(self) -> bool:
        return bool(self.content) or bool(self.source_param)

    def content_or_source_param(self) -> tuple[str, bytes]:
        """Return ``(media_type, raw_bytes)`` of the body.

        Raises:
            ValueError: If the request has neither content nor a source param
        """
        if self.content:
            raw = self.content.encode("utf-8") if isinstance(self.content, str) else bytes(self.content)
            return self.media_type, raw

        source = self.source_param
        if source:
            media_type = self.params.get(SOURCE_CONTENT_TYPE_PARAM)
            if not media_type:
                raise ValueError("source_content_type parameter is required with source")
            return media_type, source.encode("utf-8")

        raise ValueError("Request has no content or source parameter")


__all__ = [
    "SOURCE_CONTENT_TYPE_PARAM",
    "SOURCE_PARAM",
    "AuditRequest",
    "ClusterInfo",
    "RestRequest",
    "ShardId",
]
