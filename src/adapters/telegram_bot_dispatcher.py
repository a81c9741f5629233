"""Telegram Bot API dispatch adapter.

Uses the Bot API for delivery so pushes can be routed via a bot account
instead of the user session. Bundled messages become a media group.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from adapters.message_formatting import album_batches, html_caption, html_chunks, media_filename
from core.errors import DeliveryError
from core.models import MEDIA_VIDEO, ComposedMessage, MediaItem

LOGGER = logging.getLogger(__name__)


def _media_type(item: MediaItem) -> str:
    return "video" if item.kind == MEDIA_VIDEO else "photo"


class TelegramBotDispatcher:
    """Dispatcher adapter that sends messages via the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._bot_token = bot_token
        self._timeout = timeout
        self._transport = transport

    @property
    def label(self) -> str:
        return "telegram-bot"

    @property
    def supports_bundle(self) -> bool:
        return True

    def _endpoint(self, method: str) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/{method}"

    async def _call(
        self,
        client: httpx.AsyncClient,
        method: str,
        data: Dict[str, Any],
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if files:
            response = await client.post(self._endpoint(method), data=data, files=files)
        else:
            response = await client.post(self._endpoint(method), json=data)
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {"ok": False, "description": response.text or "unexpected response"}
        if response.status_code >= 400 or not body.get("ok", False):
            description = body.get("description", "unknown error")
            raise DeliveryError(f"Bot API error {response.status_code}: {description}")
        return body.get("result")

    async def is_available(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                await self._call(client, "getMe", {})
        except (DeliveryError, httpx.HTTPError) as exc:
            LOGGER.warning("Bot API is not reachable: %s", exc)
            return False
        return True

    async def dispatch(self, destination_id: str, message: ComposedMessage) -> None:
        """Send ``message`` to one chat via the Bot API."""

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                if message.bundle_compatible and message.media_segments:
                    await self._send_bundle(client, destination_id, message)
                else:
                    await self._send_flat(client, destination_id, message)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise DeliveryError(f"Bot API request to {destination_id} failed: {exc}") from exc

    async def _send_text(self, client: httpx.AsyncClient, chat_id: str, text: str) -> None:
        for chunk in html_chunks(text):
            await self._call(
                client,
                "sendMessage",
                {"chat_id": chat_id, "text": chunk, "parse_mode": "HTML", "disable_web_page_preview": True},
            )

    async def _send_flat(self, client: httpx.AsyncClient, chat_id: str, message: ComposedMessage) -> None:
        if message.text:
            await self._send_text(client, chat_id, message.text)
        for index, item in enumerate(message.media_segments, start=1):
            await self._send_single(client, chat_id, item, index, caption=None)

    async def _send_single(
        self,
        client: httpx.AsyncClient,
        chat_id: str,
        item: MediaItem,
        index: int,
        caption: Optional[str],
    ) -> None:
        field = _media_type(item)
        data: Dict[str, Any] = {"chat_id": chat_id}
        if caption:
            data["caption"] = caption
            data["parse_mode"] = "HTML"
        await self._call(
            client,
            "sendVideo" if field == "video" else "sendPhoto",
            data,
            files={field: (media_filename(item, index), item.payload, item.mime_type)},
        )

    async def _send_bundle(self, client: httpx.AsyncClient, chat_id: str, message: ComposedMessage) -> None:
        caption, overflow = html_caption(message.text)
        if overflow:
            await self._send_text(client, chat_id, overflow)

        index = 1
        for batch in album_batches(message.media_segments):
            # Media groups need at least two items.
            if len(batch) == 1:
                await self._send_single(client, chat_id, batch[0], index, caption)
                index += 1
                caption = None
                continue
            media: List[Dict[str, Any]] = []
            files: Dict[str, Any] = {}
            for item in batch:
                key = f"file{index}"
                entry: Dict[str, Any] = {"type": _media_type(item), "media": f"attach://{key}"}
                if caption and not media:
                    entry["caption"] = caption
                    entry["parse_mode"] = "HTML"
                media.append(entry)
                files[key] = (media_filename(item, index), item.payload, item.mime_type)
                index += 1
            await self._call(client, "sendMediaGroup", {"chat_id": chat_id, "media": json.dumps(media)}, files=files)
            caption = None
