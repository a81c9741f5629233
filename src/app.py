"""Application entry point for the birdwatch watcher."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.playwright_browser import PlaywrightBrowser
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_dispatcher import TelegramBotDispatcher
from adapters.telegram_dispatcher import TelegramClientDispatcher
from adapters.telegram_handlers import ManualHandlers, register_handlers
from adapters.translator import GoogleTranslator
from adapters.vx_metadata import VxTwitterClient
from client import authorize, build_client
from core.config import SubscriptionsEnabled
from core.poller import SubscriptionPoller
from core.references import reference_from_url
from core.resolver import ContentResolver
from core.scheduler import PollScheduler
from core.throttle import Throttle

NAME = "BIRDWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    names = redact_cfg.get("patterns", ["API_HASH", "BOT_API", "X_AUTH_TOKEN"])
    values = [os.getenv(name) for name in names]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/birdwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon and httpx are chatty at INFO.
    logging.getLogger("telethon").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_resolver(browser: PlaywrightBrowser) -> ContentResolver:
    http = VxTwitterClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    return ContentResolver(
        metadata=http,
        media=http,
        browser=browser,
        translator=GoogleTranslator(timeout=settings.HTTP_TIMEOUT_SECONDS),
        credential=settings.X_AUTH_TOKEN,
        screenshot_timeout=settings.SCREENSHOT_TIMEOUT_SECONDS,
        diagnostics=settings.LOG_DETAILS,
    )


def _build_poller(
    subscription: SubscriptionsEnabled,
    client,
    resolver: ContentResolver,
    browser: PlaywrightBrowser,
    storage: SQLiteStorage,
) -> SubscriptionPoller:
    # Select the delivery adapter based on configuration to keep the core
    # poller independent from delivery details.
    if subscription.delivery == "bot":
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when subscription.delivery=bot")
        dispatcher = TelegramBotDispatcher(bot_token=bot_token)
    else:
        dispatcher = TelegramClientDispatcher(client)
    logging.getLogger(__name__).info("Selected delivery method - %s", subscription.delivery)

    return SubscriptionPoller(
        subscriptions=subscription.subscriptions,
        resolver=resolver,
        browser=browser,
        store=storage,
        dispatcher=dispatcher,
        push_options=settings.PUSH_OPTIONS,
        throttle=Throttle(subscription.entry_delay_seconds),
        credential=settings.X_AUTH_TOKEN,
        diagnostics=settings.LOG_DETAILS,
    )


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    return storage


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting birdwatch")

    storage = _open_storage()
    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    browser = PlaywrightBrowser(settings.BROWSER)
    resolver = _build_resolver(browser)

    poller: Optional[SubscriptionPoller] = None
    scheduler: Optional[PollScheduler] = None
    subscription = settings.SUBSCRIPTION
    if isinstance(subscription, SubscriptionsEnabled):
        poller = _build_poller(subscription, client, resolver, browser, storage)
        scheduler = PollScheduler(poller, interval_seconds=subscription.update_interval_minutes * 60)
        logger.info(
            "%s subscription(s) loaded, checking every %s minute(s)",
            len(subscription.subscriptions),
            subscription.update_interval_minutes,
        )
    else:
        logger.info("Subscriptions are disabled")

    # Link parsing always replies through the user session.
    handlers = ManualHandlers(
        resolver=resolver,
        reply_dispatcher=TelegramClientDispatcher(client),
        parse_options=settings.PARSE_OPTIONS,
        poller=poller,
        allowed_chats=settings.PARSE_CHATS,
    )
    register_handlers(client, handlers)

    async def _start_scheduler() -> None:
        if scheduler is not None:
            scheduler.start()

    async def _shutdown() -> None:
        if scheduler is not None:
            await scheduler.stop()
        await browser.close()

    client.loop.run_until_complete(_start_scheduler())
    logger.info("Client connected. Listening for post links...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(_shutdown())


def _push() -> None:
    """Run one forced poll cycle and exit."""

    _configure_logging()
    subscription = settings.SUBSCRIPTION
    if not isinstance(subscription, SubscriptionsEnabled):
        print("Subscriptions are disabled in config.json.")
        return

    storage = _open_storage()
    client = build_client()
    browser = PlaywrightBrowser(settings.BROWSER)

    async def _run_push() -> None:
        await client.connect()
        await authorize(client)
        try:
            poller = _build_poller(subscription, client, _build_resolver(browser), browser, storage)
            print(await poller.run_poll_cycle(forced=True))
        finally:
            await browser.close()
            await client.disconnect()

    client.loop.run_until_complete(_run_push())


def _resolve(url: str) -> None:
    """Resolve one post with the parse profile and print the result."""

    _configure_logging()
    reference = reference_from_url(url)
    if reference is None:
        print(f"Not a post link: {url}")
        return

    async def _run_resolve() -> None:
        browser = PlaywrightBrowser(settings.BROWSER)
        try:
            message = await _build_resolver(browser).resolve(reference, settings.PARSE_OPTIONS)
        finally:
            await browser.close()
        print(message.text)
        for index, item in enumerate(message.media_segments, start=1):
            print(f"[media {index}] {item.kind} {item.mime_type} {len(item.payload)} bytes")

    asyncio.run(_run_resolve())


def _login() -> None:
    _print_banner()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client)
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="birdwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the watcher")
    subparsers.add_parser("push", help="Force-push the newest post of every subscription once")
    resolve_parser = subparsers.add_parser("resolve", help="Resolve a post link and print the result")
    resolve_parser.add_argument("url")
    subparsers.add_parser("login", help="Log the Telegram session in")

    args = parser.parse_args(argv)
    if args.command == "push":
        _push()
        return
    if args.command == "resolve":
        _resolve(args.url)
        return
    if args.command == "login":
        _login()
        return
    _run()


if __name__ == "__main__":
    main()
