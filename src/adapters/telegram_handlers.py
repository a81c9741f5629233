"""Telethon event handlers for manual parsing and subscription commands.

This keeps Telethon-specific event details out of the core pipeline: the
handlers only extract what the core needs (text, chat id, message id) and
reply with whatever the core produced.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from telethon import TelegramClient, events

from adapters.telegram_dispatcher import TelegramClientDispatcher
from core.config import ResolveOptions
from core.errors import DeliveryError
from core.poller import SubscriptionPoller
from core.references import extract_reference
from core.resolver import ContentResolver

LOGGER = logging.getLogger(__name__)

CHECK_PATTERN = r"^/tw_check(?:@\w+)?(?:\s+@?(\w+))?\s*$"
PUSH_PATTERN = r"^/tw_push(?:@\w+)?\s*$"

RESOLVING_NOTICE = "Resolving post link, please wait..."
SUBSCRIPTIONS_DISABLED = "Subscriptions are disabled in config.json."


class ManualHandlers:
    """Reply to post links and to the /tw_check and /tw_push commands."""

    def __init__(
        self,
        resolver: ContentResolver,
        reply_dispatcher: TelegramClientDispatcher,
        parse_options: ResolveOptions,
        poller: Optional[SubscriptionPoller] = None,
        allowed_chats: Iterable[str] = (),
    ) -> None:
        self._resolver = resolver
        self._reply_dispatcher = reply_dispatcher
        self._parse_options = parse_options
        self._poller = poller
        self._allowed_chats = {str(chat).strip() for chat in allowed_chats if str(chat).strip()}

    def _chat_allowed(self, chat_id: int) -> bool:
        return not self._allowed_chats or str(chat_id) in self._allowed_chats

    async def on_link(self, event) -> None:
        reference = extract_reference(event.raw_text or "")
        if reference is None or not self._chat_allowed(event.chat_id):
            return

        # Never answer other bots, including our own push bot.
        sender = await event.get_sender()
        if sender is not None and getattr(sender, "bot", False):
            return

        LOGGER.info("Resolving %s for chat %s", reference.platform_url, event.chat_id)
        status = await event.reply(RESOLVING_NOTICE)
        try:
            message = await self._resolver.resolve(
                reference,
                self._parse_options,
                bundle_capable=self._reply_dispatcher.supports_bundle,
            )
            await self._reply_dispatcher.dispatch(str(event.chat_id), message, reply_to=event.id)
        except DeliveryError as exc:
            LOGGER.warning("Could not reply with %s: %s", reference.platform_url, exc)
        finally:
            await status.delete()

    async def on_check(self, event) -> None:
        if self._poller is None:
            await event.reply(SUBSCRIPTIONS_DISABLED)
            return
        username = event.pattern_match.group(1) if event.pattern_match else None
        if not username:
            await event.reply("Usage: /tw_check <username>")
            return
        await event.reply(f"Fetching the newest post of @{username} and pushing it here...")
        result = await self._poller.check_account(username, str(event.chat_id))
        await event.reply(result)

    async def on_push(self, event) -> None:
        if self._poller is None:
            await event.reply(SUBSCRIPTIONS_DISABLED)
            return
        await event.reply("Forcing a push for every subscription...")
        result = await self._poller.run_poll_cycle(forced=True)
        if result:
            await event.reply(result)


def register_handlers(client: TelegramClient, handlers: ManualHandlers) -> None:
    """Wire the handlers onto the client.

    Links are answered for incoming messages only, so our own pushes (which
    may contain the source link) never loop back. Commands are accepted from
    the logged-in account only.
    """

    async def _guard(callback, event) -> None:
        try:
            await callback(event)
        except Exception:
            LOGGER.exception("Error while handling message")

    @client.on(events.NewMessage(incoming=True))
    async def _link_handler(event) -> None:
        await _guard(handlers.on_link, event)

    @client.on(events.NewMessage(outgoing=True, pattern=CHECK_PATTERN))
    async def _check_handler(event) -> None:
        await _guard(handlers.on_check, event)

    @client.on(events.NewMessage(outgoing=True, pattern=PUSH_PATTERN))
    async def _push_handler(event) -> None:
        await _guard(handlers.on_push, event)
