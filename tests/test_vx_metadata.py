import asyncio

import httpx
import pytest

from adapters.vx_metadata import VxTwitterClient, api_url_for, parse_metadata
from core.errors import DownloadError, FetchError

PAYLOAD = {
    "user_screen_name": "NASA",
    "text": "Liftoff!",
    "media_extended": [
        {"url": "https://pbs.twimg.com/media/a.jpg", "type": "image"},
        {"url": "https://video.twimg.com/b.mp4", "type": "gif"},
        {"url": "https://example.com/c", "type": "poll"},
    ],
}


def test_api_url_is_derived_from_post_link() -> None:
    assert api_url_for("https://twitter.com/nasa/status/42?s=1") == "https://api.vxtwitter.com/nasa/status/42"
    with pytest.raises(FetchError):
        api_url_for("https://example.com")


def test_parse_metadata_maps_media_kinds() -> None:
    metadata = parse_metadata(PAYLOAD)

    assert metadata.author_handle == "NASA"
    assert metadata.body_text == "Liftoff!"
    assert [(item.kind, item.mime_type) for item in metadata.media] == [("image", "image/jpeg"), ("video", "video/mp4")]


def test_parse_metadata_tolerates_missing_fields() -> None:
    metadata = parse_metadata({})

    assert metadata.author_handle is None
    assert metadata.body_text is None
    assert metadata.media == ()


def test_fetch_metadata_reads_api_response() -> None:
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, json=PAYLOAD)

    client = VxTwitterClient(transport=httpx.MockTransport(handler))

    metadata = asyncio.run(client.fetch_metadata("https://x.com/nasa/status/42"))

    assert requested == ["https://api.vxtwitter.com/nasa/status/42"]
    assert metadata.body_text == "Liftoff!"


def test_fetch_metadata_reports_http_and_payload_errors() -> None:
    not_found = VxTwitterClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
    garbage = VxTwitterClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")))

    with pytest.raises(FetchError, match="HTTP 404"):
        asyncio.run(not_found.fetch_metadata("https://x.com/nasa/status/42"))
    with pytest.raises(FetchError, match="invalid JSON"):
        asyncio.run(garbage.fetch_metadata("https://x.com/nasa/status/42"))


def test_fetch_bytes_uses_content_type_and_fails_on_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("missing.jpg"):
            return httpx.Response(500)
        return httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png; charset=binary"})

    client = VxTwitterClient(transport=httpx.MockTransport(handler))

    downloaded = asyncio.run(client.fetch_bytes("https://pbs.twimg.com/media/ok.jpg"))

    assert downloaded.payload == b"\x89PNG"
    assert downloaded.mime_type == "image/png"
    with pytest.raises(DownloadError):
        asyncio.run(client.fetch_bytes("https://pbs.twimg.com/media/missing.jpg"))


def test_fetch_bytes_converts_url_and_stream_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "broken" in request.url.path:
            raise httpx.StreamClosed()
        raise httpx.InvalidURL("Invalid non-printable ASCII character in URL")

    client = VxTwitterClient(transport=httpx.MockTransport(handler))

    with pytest.raises(DownloadError):
        asyncio.run(client.fetch_bytes("https://video.twimg.com/broken.mp4"))
    with pytest.raises(DownloadError):
        asyncio.run(client.fetch_bytes("https://pbs.twimg.com/media/odd.jpg"))
