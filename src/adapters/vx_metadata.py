"""vxtwitter metadata and media adapter.

Implements MetadataPort and MediaPort on top of the public api.vxtwitter.com
mirror, which serves post metadata as JSON without authentication.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import Any, List, Mapping, Optional
from urllib.parse import urlsplit

import httpx

from core.errors import DownloadError, FetchError
from core.models import MEDIA_IMAGE, MEDIA_VIDEO, DownloadedFile, MediaDescriptor, PostMetadata
from core.references import reference_from_url

LOGGER = logging.getLogger(__name__)

API_BASE = "https://api.vxtwitter.com"
USER_AGENT = "birdwatch/1.0"

# InvalidURL and StreamError do not derive from HTTPError.
_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError)

# vxtwitter reports animated GIFs as "gif" but serves them as mp4.
_KIND_MAP = {"image": MEDIA_IMAGE, "photo": MEDIA_IMAGE, "video": MEDIA_VIDEO, "gif": MEDIA_VIDEO}


def api_url_for(url: str) -> str:
    """Return the vxtwitter API URL for a post link."""

    reference = reference_from_url(url)
    if reference is None:
        raise FetchError(f"Not a post link: {url}")
    return f"{API_BASE}/{reference.author_handle}/status/{reference.status_id}"


def guess_mime_type(url: str, kind: str) -> str:
    path = urlsplit(url).path
    guessed, _ = mimetypes.guess_type(path)
    if guessed:
        return guessed
    return "video/mp4" if kind == MEDIA_VIDEO else "image/jpeg"


def parse_metadata(payload: Mapping[str, Any]) -> PostMetadata:
    """Map a vxtwitter JSON payload onto PostMetadata."""

    media: List[MediaDescriptor] = []
    for item in payload.get("media_extended") or []:
        url = item.get("url")
        kind = _KIND_MAP.get(str(item.get("type", "")).lower())
        if not url or kind is None:
            LOGGER.debug("Ignoring unsupported media entry: %s", item)
            continue
        media.append(MediaDescriptor(url=url, kind=kind, mime_type=guess_mime_type(url, kind)))

    return PostMetadata(
        author_handle=payload.get("user_screen_name") or None,
        body_text=payload.get("text") or None,
        media=tuple(media),
    )


class VxTwitterClient:
    """Async HTTP client for post metadata and media downloads."""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    async def fetch_metadata(self, url: str) -> PostMetadata:
        api_url = api_url_for(url)
        try:
            async with self._client() as client:
                response = await client.get(api_url)
        except httpx.TimeoutException as exc:
            raise FetchError(f"Metadata request timed out after {self._timeout}s") from exc
        except _REQUEST_ERRORS as exc:
            raise FetchError(f"Metadata request failed: {exc}") from exc

        if response.status_code >= 400:
            raise FetchError(f"HTTP {response.status_code} from metadata service")
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchError("Metadata service returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise FetchError("Metadata service returned an unexpected payload")
        return parse_metadata(payload)

    async def fetch_bytes(self, url: str) -> DownloadedFile:
        try:
            async with self._client() as client:
                response = await client.get(url)
        except _REQUEST_ERRORS as exc:
            raise DownloadError(f"Download failed for {url}: {exc}") from exc

        if response.status_code >= 400:
            raise DownloadError(f"HTTP {response.status_code} for {url}")
        if not response.content:
            raise DownloadError(f"Empty body for {url}")

        content_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
        if not content_type or content_type == "application/octet-stream":
            content_type = mimetypes.guess_type(urlsplit(url).path)[0] or "application/octet-stream"
        return DownloadedFile(payload=response.content, mime_type=content_type)
