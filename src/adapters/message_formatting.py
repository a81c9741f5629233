"""Shared message rendering helpers.

Keeping rendering here prevents drift between dispatchers and keeps pushes
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
import mimetypes
import re
from typing import List, Optional, Tuple

from core.models import MEDIA_VIDEO, MediaItem

# Telegram limits shared by the client and the Bot API.
MESSAGE_LIMIT = 4096
CAPTION_LIMIT = 1024
ALBUM_LIMIT = 10

_LABEL_PATTERN = re.compile(r"^(Author:|Text:|Translation \([\w-]+\):)")
_URL_PATTERN = re.compile(r"^https?://\S+$")


def _format_html_line(line: str) -> str:
    if _URL_PATTERN.match(line):
        safe = html.escape(line)
        return f"<a href=\"{safe}\">{safe}</a>"
    label = _LABEL_PATTERN.match(line)
    if label:
        head = html.escape(label.group(1))
        rest = html.escape(line[label.end():])
        return f"<b>{head}</b>{rest}"
    return html.escape(line)


def format_html(text: str) -> str:
    return "\n".join(_format_html_line(line) for line in text.split("\n"))


def chunk_text(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """Split ``text`` on line boundaries into chunks no longer than ``limit``."""

    if len(text) <= limit:
        return [text] if text else []

    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def split_caption(text: str, limit: int = CAPTION_LIMIT) -> Tuple[Optional[str], Optional[str]]:
    """Return (caption, overflow): text fits as a caption or must be sent on its own."""

    if not text:
        return None, None
    if len(text) <= limit:
        return text, None
    return None, text


def album_batches(items: Tuple[MediaItem, ...], size: int = ALBUM_LIMIT) -> List[Tuple[MediaItem, ...]]:
    return [items[index:index + size] for index in range(0, len(items), size)]


def media_filename(item: MediaItem, index: int) -> str:
    """Return a filename whose extension lets Telegram pick the right media type."""

    extension = mimetypes.guess_extension(item.mime_type or "") or (".mp4" if item.kind == MEDIA_VIDEO else ".jpg")
    if extension == ".jpe":
        extension = ".jpg"
    return f"{item.kind}_{index}{extension}"


def html_chunks(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """Chunk plain ``text`` by the Telegram limit, then render each chunk as HTML.

    Telegram counts the limit after entity parsing, and escaped markup must
    never be cut in the middle of an entity.
    """

    return [format_html(chunk) for chunk in chunk_text(text, limit)]


def html_caption(text: str, limit: int = CAPTION_LIMIT) -> Tuple[Optional[str], Optional[str]]:
    """Return (rendered caption, plain overflow) for an album."""

    caption, overflow = split_caption(text, limit)
    return (format_html(caption) if caption else None), overflow
