from adapters.message_formatting import (
    album_batches,
    chunk_text,
    format_html,
    html_caption,
    html_chunks,
    media_filename,
    split_caption,
)
from core.models import MediaItem


def test_html_format_bolds_labels_links_urls_and_escapes() -> None:
    text = "\n".join(("https://x.com/nasa/status/1", "Author: @nasa", "Text: 1 < 2 & more"))

    rendered = format_html(text)

    assert rendered.split("\n") == [
        '<a href="https://x.com/nasa/status/1">https://x.com/nasa/status/1</a>',
        "<b>Author:</b> @nasa",
        "<b>Text:</b> 1 &lt; 2 &amp; more",
    ]


def test_chunk_text_respects_limit_and_line_boundaries() -> None:
    text = "\n".join(["a" * 6, "b" * 6, "c" * 15])

    chunks = chunk_text(text, limit=10)

    assert chunks == ["a" * 6, "b" * 6, "c" * 10, "c" * 5]
    assert chunk_text("", limit=10) == []


def test_split_caption_moves_long_text_out_of_the_album() -> None:
    assert split_caption("short", limit=10) == ("short", None)
    assert split_caption("x" * 11, limit=10) == (None, "x" * 11)
    assert split_caption("", limit=10) == (None, None)


def test_album_batches_and_filenames() -> None:
    items = tuple(MediaItem(kind="image", payload=bytes([index]), mime_type="image/png") for index in range(12))

    batches = album_batches(items)

    assert [len(batch) for batch in batches] == [10, 2]
    assert media_filename(items[0], 1) == "image_1.png"
    assert media_filename(MediaItem(kind="video", payload=b"v", mime_type="application/x-unknown"), 2) == "video_2.mp4"


def test_long_line_is_cut_before_escaping() -> None:
    text = "a" * 9 + "& b"

    chunks = html_chunks(text, limit=10)

    assert chunks == ["a" * 9 + "&amp;", " b"]


def test_long_body_with_ampersand_at_the_cut_keeps_entities_whole() -> None:
    # The ampersand is the last character that fits in the first message.
    text = "Text: " + "a" * 4089 + "& more"

    chunks = html_chunks(text)

    assert chunks == ["<b>Text:</b> " + "a" * 4089 + "&amp;", " more"]


def test_caption_fit_is_measured_on_plain_text() -> None:
    caption, overflow = html_caption("Text: " + "&" * 1000)

    assert overflow is None
    assert caption == "<b>Text:</b> " + "&amp;" * 1000
    assert html_caption("x" * 1025) == (None, "x" * 1025)
    assert html_caption("") == (None, None)
