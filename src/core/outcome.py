"""Explicit success/failure values for best-effort steps.

Degradable steps (screenshot, translation, media download) return an
``Outcome`` instead of raising, so every degradation path shows up in the
signature and can be asserted on directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, Type, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @property
    def reason(self) -> str:
        if self.error is None:
            return "empty result"
        return str(self.error) or type(self.error).__name__


async def attempt(awaitable: Awaitable[Optional[T]], *errors: Type[Exception]) -> Outcome[T]:
    """Await ``awaitable`` and fold the listed exception types into an Outcome.

    Anything not listed propagates, so programming errors still surface.
    """

    try:
        value = await awaitable
    except errors as exc:
        return Outcome(error=exc)
    return Outcome(value=value)
