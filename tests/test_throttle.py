import asyncio

import pytest

from core.throttle import Throttle


class RecordingSleep:
    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def test_first_wait_is_free_and_later_waits_sleep() -> None:
    sleep = RecordingSleep()
    throttle = Throttle(2.5, sleep=sleep)

    async def scenario() -> None:
        for _ in range(3):
            await throttle.wait()

    asyncio.run(scenario())

    assert sleep.delays == [2.5, 2.5]


def test_reset_restarts_the_sequence() -> None:
    sleep = RecordingSleep()
    throttle = Throttle(1, sleep=sleep)

    async def scenario() -> None:
        await throttle.wait()
        throttle.reset()
        await throttle.wait()
        await throttle.wait()

    asyncio.run(scenario())

    assert sleep.delays == [1]


def test_zero_delay_never_sleeps() -> None:
    sleep = RecordingSleep()
    throttle = Throttle(0, sleep=sleep)

    async def scenario() -> None:
        await throttle.wait()
        await throttle.wait()

    asyncio.run(scenario())

    assert sleep.delays == []


def test_negative_delay_is_rejected() -> None:
    with pytest.raises(ValueError):
        Throttle(-1)
