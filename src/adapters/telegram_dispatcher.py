"""Telegram client dispatch adapter.

Delivers composed messages through the logged-in Telethon client. Bundled
messages go out as a single album with the text as its caption; flat
messages are sent as text followed by each attachment.
"""

from __future__ import annotations

import io
import logging
from typing import List, Optional, Union

from telethon import TelegramClient
from telethon.errors import RPCError

from adapters.message_formatting import album_batches, html_caption, html_chunks, media_filename
from core.errors import DeliveryError
from core.models import MEDIA_VIDEO, ComposedMessage, MediaItem

LOGGER = logging.getLogger(__name__)


def parse_destination(destination_id: str) -> Union[int, str]:
    """Telethon accepts numeric peer ids as ints and usernames as strings."""

    value = str(destination_id).strip()
    try:
        return int(value)
    except ValueError:
        return value


def _as_file(item: MediaItem, index: int) -> io.BytesIO:
    handle = io.BytesIO(item.payload)
    handle.name = media_filename(item, index)
    return handle


class TelegramClientDispatcher:
    """Dispatcher adapter that sends messages as the logged-in user."""

    def __init__(self, client: TelegramClient, label: str = "telegram-client") -> None:
        self._client = client
        self._label = label

    @property
    def label(self) -> str:
        return self._label

    @property
    def supports_bundle(self) -> bool:
        return True

    async def is_available(self) -> bool:
        if not self._client.is_connected():
            return False
        try:
            return await self._client.is_user_authorized()
        except (RPCError, ConnectionError):
            return False

    async def dispatch(self, destination_id: str, message: ComposedMessage, reply_to: Optional[int] = None) -> None:
        """Send ``message`` to one chat; any Telegram failure becomes DeliveryError."""

        entity = parse_destination(destination_id)
        try:
            if message.bundle_compatible and message.media_segments:
                await self._send_bundle(entity, message, reply_to)
            else:
                await self._send_flat(entity, message, reply_to)
        except (RPCError, ValueError, ConnectionError) as exc:
            raise DeliveryError(f"Telegram rejected delivery to {destination_id}: {exc}") from exc
        LOGGER.debug(
            "Delivered to %s (%s media, bundled=%s)",
            destination_id,
            len(message.media_segments),
            message.bundle_compatible,
        )

    async def _send_text(self, entity, text: str, reply_to: Optional[int]) -> None:
        for chunk in html_chunks(text):
            await self._client.send_message(entity, chunk, parse_mode="html", link_preview=False, reply_to=reply_to)

    async def _send_flat(self, entity, message: ComposedMessage, reply_to: Optional[int]) -> None:
        if message.text:
            await self._send_text(entity, message.text, reply_to)
        for index, item in enumerate(message.media_segments, start=1):
            await self._client.send_file(
                entity,
                _as_file(item, index),
                reply_to=reply_to,
                supports_streaming=item.kind == MEDIA_VIDEO,
            )

    async def _send_bundle(self, entity, message: ComposedMessage, reply_to: Optional[int]) -> None:
        caption, overflow = html_caption(message.text)
        if overflow:
            await self._send_text(entity, overflow, reply_to)

        index = 1
        for batch in album_batches(message.media_segments):
            files: List[io.BytesIO] = []
            for item in batch:
                files.append(_as_file(item, index))
                index += 1
            await self._client.send_file(
                entity,
                files,
                caption=caption,
                parse_mode="html",
                reply_to=reply_to,
            )
            # Only the first album carries the caption.
            caption = None
