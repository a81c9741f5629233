"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

MEDIA_IMAGE = "image"
MEDIA_VIDEO = "video"
MEDIA_KINDS = (MEDIA_IMAGE, MEDIA_VIDEO)


@dataclass(frozen=True)
class PostReference:
    """Normalized identifier for a single post."""

    platform_url: str
    author_handle: str
    status_id: str

    @property
    def canonical_url(self) -> str:
        # One spelling per post so twitter.com and x.com links compare equal.
        return f"https://x.com/{self.author_handle}/status/{self.status_id}"


@dataclass(frozen=True)
class MediaDescriptor:
    """A downloadable media attachment announced by the metadata service."""

    url: str
    kind: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class PostMetadata:
    """Author, body and media list for one post."""

    author_handle: Optional[str]
    body_text: Optional[str]
    media: Tuple[MediaDescriptor, ...] = ()


@dataclass(frozen=True)
class DownloadedFile:
    payload: bytes
    mime_type: str


@dataclass(frozen=True)
class MediaItem:
    """Binary media attached to a composed message."""

    kind: str
    payload: bytes
    mime_type: str


@dataclass(frozen=True)
class ComposedMessage:
    """Multi-part message produced by the resolver and consumed by dispatchers."""

    text_segments: Tuple[str, ...] = ()
    media_segments: Tuple[MediaItem, ...] = field(default=(), repr=False)
    bundle_compatible: bool = False

    @property
    def text(self) -> str:
        return "\n".join(self.text_segments)

    @property
    def is_empty(self) -> bool:
        return not self.text_segments and not self.media_segments


@dataclass(frozen=True)
class DedupRecord:
    """Persisted dedup cursor for one tracked account."""

    account_handle: str
    last_seen_reference: str
