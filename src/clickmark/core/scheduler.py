"""Debounced tasks keyed by kind.

Single-threaded and cooperative: nothing fires on its own. The host loop
calls :meth:`Debouncer.poll` (the CLI watcher does so every 100ms), and each
due task runs on the caller's thread. Scheduling a kind that is already
pending replaces it, so a burst of triggers collapses into one call.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from .ports import Clock

logger = logging.getLogger(__name__)


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic()


@dataclass
class _Task:
    due: float
    callback: Callable[[], None]


class Debouncer:
    def __init__(self, clock: Clock | None = None):
        self.clock = clock or MonotonicClock()
        self._tasks: dict[str, _Task] = {}

    def schedule(self, kind: str, delay_ms: int, callback: Callable[[], None]) -> None:
        """Run ``callback`` once ``delay_ms`` pass without another schedule of ``kind``."""
        self._tasks[kind] = _Task(self.clock.now() + delay_ms / 1000, callback)

    def pending(self, kind: str) -> bool:
        return kind in self._tasks

    def due_in(self, kind: str) -> float | None:
        """Seconds until ``kind`` fires, None if nothing is pending."""
        task = self._tasks.get(kind)
        if task is None:
            return None
        return max(0.0, task.due - self.clock.now())

    def poll(self) -> list[str]:
        """Fire every task whose delay has elapsed; return their kinds."""
        now = self.clock.now()
        due = sorted(
            (task.due, kind) for kind, task in self._tasks.items() if task.due <= now
        )
        fired = []
        for _, kind in due:
            task = self._tasks.get(kind)
            # an earlier callback may have rescheduled this kind
            if task is None or task.due > now:
                continue
            del self._tasks[kind]
            task.callback()
            fired.append(kind)
        return fired

    def flush(self, kind: str | None = None) -> list[str]:
        """Fire pending tasks immediately."""
        kinds = [kind] if kind is not None else list(self._tasks)
        fired = []
        for k in kinds:
            task = self._tasks.pop(k, None)
            if task is not None:
                task.callback()
                fired.append(k)
        return fired

    def cancel(self, kind: str | None = None) -> None:
        if kind is None:
            if self._tasks:
                logger.debug("cancelling %d pending task(s)", len(self._tasks))
            self._tasks.clear()
        else:
            self._tasks.pop(kind, None)
