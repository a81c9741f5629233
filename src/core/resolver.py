"""Content resolution pipeline.

Turns one post reference into a ComposedMessage. Only a metadata failure
aborts a resolution; screenshot, translation and media failures degrade the
one part they affect and the rest of the message is still delivered.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from core.config import ResolveOptions
from core.errors import CaptureError, DownloadError, FetchError
from core.models import (
    MEDIA_IMAGE,
    ComposedMessage,
    MediaDescriptor,
    MediaItem,
    PostReference,
)
from core.outcome import Outcome, attempt
from core.ports import BrowserPort, MediaPort, MetadataPort, TranslatorPort
from core.stepper import DiagnosticStepper

LOGGER = logging.getLogger(__name__)

NO_CONTENT_NOTICE = "No content could be retrieved."
FETCH_FAILED_NOTICE = "Failed to fetch post content: {reason}"
SCREENSHOT_MIME = "image/png"


def failure_message(reason: str) -> ComposedMessage:
    return ComposedMessage(text_segments=(FETCH_FAILED_NOTICE.format(reason=reason),))


class ContentResolver:
    """Orchestrates screenshot, metadata, translation and media collaborators."""

    def __init__(
        self,
        metadata: MetadataPort,
        media: MediaPort,
        browser: BrowserPort,
        translator: Optional[TranslatorPort] = None,
        credential: Optional[str] = None,
        screenshot_timeout: float = 60.0,
        diagnostics: bool = False,
    ) -> None:
        self._metadata = metadata
        self._media = media
        self._browser = browser
        self._translator = translator
        self._credential = credential
        self._screenshot_timeout = screenshot_timeout
        self._diagnostics = diagnostics

    async def resolve(
        self,
        reference: PostReference,
        options: ResolveOptions,
        bundle_capable: bool = False,
    ) -> ComposedMessage:
        """Resolve ``reference`` into a message according to ``options``."""

        step = DiagnosticStepper(reference.platform_url, self._diagnostics)
        step("Resolving post")

        text_segments: List[str] = []
        if options.include_source_link:
            step("Adding source link")
            text_segments.append(reference.platform_url)

        screenshot: Optional[Outcome[bytes]] = None
        if options.include_screenshot:
            step("Capturing screenshot")
            screenshot = await self.capture_screenshot(reference)
            if not screenshot.ok:
                step(f"Screenshot failed: {screenshot.reason}", is_warning=True)

        try:
            step("Fetching metadata")
            metadata = await self._metadata.fetch_metadata(reference.platform_url)
        except FetchError as exc:
            LOGGER.warning("Metadata fetch failed for %s: %s", reference.platform_url, exc)
            return failure_message(str(exc) or type(exc).__name__)

        if metadata.author_handle:
            text_segments.append(f"Author: @{metadata.author_handle}")

        body = (metadata.body_text or "").strip()
        if options.include_text and body:
            text_segments.append(f"Text: {body}")
            target = options.translation_target
            if target and self._translator is not None:
                step(f"Translating body to {target}")
                translated = await self.translate(body, target)
                if translated.ok:
                    text_segments.append(f"Translation ({target}):\n{translated.value}")
                else:
                    step(f"Translation skipped: {translated.reason}", is_warning=True)

        media_segments: List[MediaItem] = []
        # The screenshot stays ahead of any downloaded attachment.
        if screenshot is not None and screenshot.ok:
            media_segments.append(MediaItem(kind=MEDIA_IMAGE, payload=screenshot.value, mime_type=SCREENSHOT_MIME))

        if options.include_media and metadata.media:
            step(f"Downloading {len(metadata.media)} media item(s)")
            for index, descriptor in enumerate(metadata.media, start=1):
                downloaded = await self.download(descriptor)
                if downloaded.ok:
                    media_segments.append(downloaded.value)
                    step(f"Media {index}/{len(metadata.media)} ({descriptor.kind}) downloaded")
                else:
                    LOGGER.warning("Media download failed for %s: %s", descriptor.url, downloaded.reason)
                    step(f"Media {index}/{len(metadata.media)} skipped", is_warning=True)

        if not text_segments and not media_segments:
            step("Nothing could be collected", is_warning=True)
            return ComposedMessage(text_segments=(NO_CONTENT_NOTICE,))

        step("Message composed")
        return ComposedMessage(
            text_segments=tuple(text_segments),
            media_segments=tuple(media_segments),
            bundle_compatible=options.bundle_if_supported and bundle_capable,
        )

    async def capture_screenshot(self, reference: PostReference) -> Outcome[bytes]:
        outcome = await attempt(
            asyncio.wait_for(
                self._browser.render_screenshot(reference.platform_url, self._credential),
                timeout=self._screenshot_timeout,
            ),
            CaptureError,
            asyncio.TimeoutError,
        )
        if not outcome.ok:
            LOGGER.warning("Screenshot failed for %s: %s", reference.platform_url, outcome.reason)
        return outcome

    async def translate(self, text: str, target_language: str) -> Outcome[str]:
        if self._translator is None:
            return Outcome()
        # Any translator failure counts as "no translation".
        outcome = await attempt(self._translator.translate(text, target_language), Exception)
        if outcome.error is not None:
            LOGGER.warning("Translation to %s failed: %s", target_language, outcome.reason)
        return outcome

    async def download(self, descriptor: MediaDescriptor) -> Outcome[MediaItem]:
        outcome = await attempt(self._media.fetch_bytes(descriptor.url), DownloadError)
        if not outcome.ok:
            return Outcome(error=outcome.error)
        downloaded = outcome.value
        return Outcome(
            value=MediaItem(
                kind=descriptor.kind,
                payload=downloaded.payload,
                mime_type=downloaded.mime_type or descriptor.mime_type or "application/octet-stream",
            )
        )
