"""Per-operation step logger used for verbose diagnostics."""

from __future__ import annotations

import logging
from typing import Optional

LOGGER = logging.getLogger(__name__)


class DiagnosticStepper:
    """Emit numbered diagnostic lines for a single operation.

    Each resolver or poller invocation builds its own instance, so step
    numbers start at 1 for every operation and never leak between them.
    Nothing is logged when diagnostics are disabled.
    """

    def __init__(self, label: str, enabled: bool, logger: Optional[logging.Logger] = None) -> None:
        self._label = label
        self._enabled = enabled
        self._logger = logger or LOGGER
        self._step = 0

    @property
    def steps_logged(self) -> int:
        return self._step

    def __call__(self, message: str, is_warning: bool = False) -> None:
        if not self._enabled:
            return
        self._step += 1
        level = logging.WARNING if is_warning else logging.INFO
        self._logger.log(level, "[%s] [step %s] %s", self._label, self._step, message)
