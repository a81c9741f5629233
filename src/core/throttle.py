"""Fixed-delay throttle between poll steps."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]


class Throttle:
    """Wait a fixed delay between consecutive steps.

    The first ``wait`` after construction or ``reset`` returns immediately,
    later calls sleep for ``delay_seconds``. ``sleep`` is injectable so the
    delay can be observed in tests without actually waiting.
    """

    def __init__(self, delay_seconds: float, sleep: Sleep = asyncio.sleep) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._sleep = sleep
        self._primed = False

    def reset(self) -> None:
        self._primed = False

    async def wait(self) -> None:
        if self._primed and self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)
        self._primed = True
