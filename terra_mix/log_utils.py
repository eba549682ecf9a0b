"""Rate-limited warnings for problems that repeat on every normalization.

A plant stuck on an unknown stage is normalized after every edit, so the same
warning would otherwise be logged over and over.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

__all__ = ["WarningThrottle", "warn_once", "reset_warnings"]


class WarningThrottle:
    """Remember when each warning code was last emitted.

    Codes are kept in least-recently-emitted order and the oldest is evicted
    once ``capacity`` codes are tracked.
    """

    def __init__(
        self,
        window: float = 300.0,
        capacity: int = 256,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.window = window
        self.capacity = capacity
        self._clock = clock
        self._emitted: OrderedDict[str, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._emitted)

    def __contains__(self, code: object) -> bool:
        return code in self._emitted

    def should_emit(self, code: str) -> bool:
        """Return ``True`` and record ``code`` if it is due to be logged."""

        now = self._clock() if self._clock is not None else time.monotonic()
        last = self._emitted.get(code)
        if last is not None and now - last <= self.window:
            return False
        self._emitted[code] = now
        self._emitted.move_to_end(code)
        while len(self._emitted) > self.capacity:
            self._emitted.popitem(last=False)
        return True

    def reset(self) -> None:
        self._emitted.clear()


_THROTTLE = WarningThrottle()


def warn_once(logger: logging.Logger, code: str, message: str, *args: object) -> bool:
    """Log ``message`` unless ``code`` was already logged within the window.

    ``message`` and ``args`` follow :meth:`logging.Logger.warning`. Returns
    whether the warning was emitted.
    """

    if not _THROTTLE.should_emit(code):
        return False
    logger.warning("[%s] " + message, code, *args)
    return True


def reset_warnings() -> None:
    """Forget previously issued warnings."""
    _THROTTLE.reset()
