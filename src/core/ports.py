"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for fetching, rendering, storage and
delivery adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import ComposedMessage, DedupRecord, DownloadedFile, PostMetadata, PostReference


class MetadataPort(Protocol):
    """Post metadata lookup. Raises FetchError."""

    async def fetch_metadata(self, url: str) -> PostMetadata:
        ...


class MediaPort(Protocol):
    """Media download. Raises DownloadError per item."""

    async def fetch_bytes(self, url: str) -> DownloadedFile:
        ...


class TranslatorPort(Protocol):
    """Best-effort translation. None means no translation is available."""

    async def translate(self, text: str, target_language: str) -> Optional[str]:
        ...


class BrowserPort(Protocol):
    """Headless browser operations. Raises CaptureError."""

    async def render_screenshot(self, url: str, credential: Optional[str] = None) -> bytes:
        ...

    async def discover_latest_post(
        self,
        account_handle: str,
        credential: Optional[str] = None,
        exclude_reposts: bool = False,
    ) -> Optional[PostReference]:
        ...


class DedupStorePort(Protocol):
    """Storage operations required by the poller."""

    def get(self, account_handle: str) -> Optional[DedupRecord]:
        ...

    def upsert(self, record: DedupRecord) -> None:
        ...


class DispatcherPort(Protocol):
    """Delivery operations required by the poller. Raises DeliveryError."""

    @property
    def label(self) -> str:
        ...

    @property
    def supports_bundle(self) -> bool:
        ...

    async def is_available(self) -> bool:
        ...

    async def dispatch(self, destination_id: str, message: ComposedMessage) -> None:
        ...
