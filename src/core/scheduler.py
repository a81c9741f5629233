"""Background timer that drives scheduled poll cycles.

Runs as an asyncio task on the same loop as the Telegram client, so manual
commands and scheduled cycles share one cooperative thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from core.poller import SubscriptionPoller

LOGGER = logging.getLogger(__name__)


class PollScheduler:
    """Run ``poller.run_poll_cycle()`` every ``interval_seconds``."""

    def __init__(self, poller: SubscriptionPoller, interval_seconds: float, run_immediately: bool = False) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._poller = poller
        self._interval = interval_seconds
        self._run_immediately = run_immediately
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="birdwatch-poll")
        LOGGER.info("Poll scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        LOGGER.info("Poll scheduler stopped")

    async def _loop(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self._interval)
        while True:
            try:
                await self._poller.run_poll_cycle(forced=False)
            except Exception:
                LOGGER.exception("Scheduled poll cycle crashed")
            await asyncio.sleep(self._interval)
