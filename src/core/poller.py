"""Subscription polling pipeline.

One poll cycle walks the configured subscriptions strictly in order:
1) Skip malformed entries
2) Discover the newest post on the account page
3) Compare it with the persisted dedup cursor
4) Push when new (or when the cycle was forced)
5) Persist the cursor only for genuinely new posts
6) Throttle before the next account

Failures never escape an entry; a broken account only costs its own push.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from core.config import ResolveOptions, SubscriptionEntry
from core.errors import DeliveryError
from core.models import ComposedMessage, DedupRecord, PostReference
from core.ports import BrowserPort, DedupStorePort, DispatcherPort
from core.references import normalize_handle
from core.resolver import ContentResolver
from core.stepper import DiagnosticStepper
from core.throttle import Throttle

LOGGER = logging.getLogger(__name__)

FORCED_SUMMARY = "Manual check finished: pushed {count} subscription(s)."
DISPATCHER_OFFLINE = "Delivery account {label} is unavailable or offline."
CYCLE_BUSY = "A subscription check is already running, try again shortly."


class SubscriptionPoller:
    """Discovers new posts per tracked account and fans them out."""

    def __init__(
        self,
        subscriptions: Iterable[SubscriptionEntry],
        resolver: ContentResolver,
        browser: BrowserPort,
        store: DedupStorePort,
        dispatcher: DispatcherPort,
        push_options: ResolveOptions,
        throttle: Throttle,
        credential: Optional[str] = None,
        diagnostics: bool = False,
    ) -> None:
        self._subscriptions = list(subscriptions)
        self._resolver = resolver
        self._browser = browser
        self._store = store
        self._dispatcher = dispatcher
        self._push_options = push_options
        self._throttle = throttle
        self._credential = credential
        self._diagnostics = diagnostics
        self._cycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._cycle_lock.locked()

    async def run_poll_cycle(self, forced: bool = False) -> Optional[str]:
        """Run one pass over all subscriptions.

        Forced cycles push the current newest post even when it is unchanged
        and return a human-readable summary; scheduled cycles return None.
        """

        if self._cycle_lock.locked():
            LOGGER.info("Poll cycle already in progress, skipping %s run", "forced" if forced else "scheduled")
            return CYCLE_BUSY if forced else None

        async with self._cycle_lock:
            if not await self._dispatcher.is_available():
                LOGGER.warning("Dispatcher %s is unavailable, skipping poll cycle", self._dispatcher.label)
                return DISPATCHER_OFFLINE.format(label=self._dispatcher.label) if forced else None

            LOGGER.info(
                "Starting %s poll cycle over %s subscription(s)",
                "forced" if forced else "scheduled",
                len(self._subscriptions),
            )
            self._throttle.reset()
            pushed = 0
            for entry in self._subscriptions:
                if not entry.account_handle or not entry.destination_ids:
                    LOGGER.warning("Skipping malformed subscription entry: %r", entry)
                    continue
                await self._throttle.wait()
                try:
                    if await self._process_entry(entry, forced):
                        pushed += 1
                except Exception:
                    LOGGER.exception("Subscription check failed for %s", entry.account_handle)

            LOGGER.info("Poll cycle finished, %s subscription(s) pushed", pushed)

        if forced:
            return FORCED_SUMMARY.format(count=pushed)
        return None

    async def _process_entry(self, entry: SubscriptionEntry, forced: bool) -> bool:
        handle = entry.account_handle
        step = DiagnosticStepper(f"subscription:{handle}", self._diagnostics)
        step("Discovering newest post")

        discovered = await self._browser.discover_latest_post(
            handle,
            credential=self._credential,
            exclude_reposts=entry.exclude_reposts,
        )
        if discovered is None:
            LOGGER.warning("No post found on the page of %s", handle)
            step("Nothing discovered, skipping", is_warning=True)
            return False

        current = discovered.canonical_url
        record = self._store.get(handle)
        step(f"Last seen: {record.last_seen_reference if record else 'none'}, discovered: {current}")

        is_new = record is None or record.last_seen_reference != current
        if not is_new and not forced:
            step("No change")
            return False

        LOGGER.info("Pushing %s post for %s: %s", "new" if is_new else "unchanged", handle, current)
        delivered = await self._push(entry.destination_ids, discovered, step)
        if not delivered:
            LOGGER.warning("No destination accepted the push for %s", handle)
            return False

        # A forced push of an unchanged post must leave the cursor alone.
        if is_new:
            self._store.upsert(DedupRecord(account_handle=handle, last_seen_reference=current))
            step("Dedup cursor updated")
        return True

    async def _push(self, destination_ids: Iterable[str], reference: PostReference, step: DiagnosticStepper) -> int:
        message = await self._resolver.resolve(
            reference,
            self._push_options,
            bundle_capable=self._dispatcher.supports_bundle,
        )
        return await self._dispatch_all(destination_ids, message, step)

    async def _dispatch_all(self, destination_ids: Iterable[str], message: ComposedMessage, step: DiagnosticStepper) -> int:
        delivered = 0
        for destination_id in destination_ids:
            try:
                await self._dispatcher.dispatch(destination_id, message)
            except DeliveryError as exc:
                LOGGER.warning("Delivery to %s failed: %s", destination_id, exc)
                step(f"Delivery to {destination_id} failed", is_warning=True)
                continue
            delivered += 1
            step(f"Delivered to {destination_id}")
        return delivered

    async def check_account(self, account_handle: str, destination_id: str) -> str:
        """Push the newest post of any account to one chat without touching dedup state."""

        handle = normalize_handle(account_handle)
        if not handle:
            return "Please provide a username to check."

        step = DiagnosticStepper(f"check:{handle}", self._diagnostics)
        try:
            discovered = await self._browser.discover_latest_post(handle, credential=self._credential)
            if discovered is None:
                return f"Could not find any post for @{handle}."
            step(f"Discovered {discovered.canonical_url}")
            delivered = await self._push((destination_id,), discovered, step)
        except Exception as exc:
            LOGGER.warning("Account check for %s failed: %s", handle, exc)
            return f"Check failed: {exc}"

        if not delivered:
            return f"Found {discovered.canonical_url} but delivery failed."
        return f"Pushed latest post of @{handle}: {discovered.canonical_url}"
