"""Cooperative single-threaded main loop.

Periodic callbacks run on the loop's thread, one at a time, and must never
block. A callback returns ``TickResult.STOP`` to unschedule itself, so
nothing outside has to cancel it.
"""

import heapq
import itertools
import logging
import time
from enum import Enum
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class TickResult(Enum):
    CONTINUE = "continue"
    STOP = "stop"


TickCallback = Callable[[], TickResult]


class MainLoop:
    """Runs periodic callbacks until quit() or until none are left."""

    def __init__(self,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self._clock = clock
        self._sleep = sleep
        self._timers: List[Tuple[float, int, float, TickCallback]] = []
        self._seq = itertools.count()
        self._running = False

    def timeout_add(self, interval: float, callback: TickCallback) -> None:
        """Call ``callback`` every ``interval`` seconds while it returns CONTINUE."""
        due = self._clock() + interval
        heapq.heappush(self._timers, (due, next(self._seq), interval, callback))

    @property
    def pending(self) -> int:
        return len(self._timers)

    def quit(self) -> None:
        self._running = False

    def run(self) -> None:
        self._running = True
        logger.debug("Main loop running")
        while self._running and self._timers:
            due, seq, interval, callback = heapq.heappop(self._timers)
            delay = due - self._clock()
            if delay > 0:
                self._sleep(delay)

            try:
                result = callback()
            except Exception as e:
                logger.error(f"Tick callback {callback!r} failed, removing it: {e}", exc_info=True)
                continue

            if result is TickResult.CONTINUE:
                heapq.heappush(self._timers, (max(due + interval, self._clock()), seq, interval, callback))
        self._running = False
        logger.debug("Main loop stopped")
