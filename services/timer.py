"""Countdown controller and schedulable clocks for per-question timers."""
from __future__ import annotations

import heapq
import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Protocol, Tuple

AUTO_SUBMIT_TEXT = "Time ran out - no answer provided"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    """Time source plus a one-shot scheduler."""

    def now(self) -> datetime: ...

    def after(self, seconds: float, callback: Callable[[], None]) -> Cancellable: ...


class _ManualCall:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Virtual clock for tests: nothing fires until ``advance`` is called."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._queue: List[Tuple[datetime, int, _ManualCall, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def after(self, seconds: float, callback: Callable[[], None]) -> Cancellable:
        handle = _ManualCall()
        due = self._now + timedelta(seconds=seconds)
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback))
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due callbacks in order.

        Callbacks scheduled while advancing fire too if they fall inside the
        window.
        """

        target = self._now + timedelta(seconds=seconds)
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self._now = due
            if not handle.cancelled:
                callback()
        self._now = target


class ThreadingClock:
    """Wall clock backed by daemon ``threading.Timer`` threads."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def after(self, seconds: float, callback: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(seconds, callback)
        timer.daemon = True
        timer.start()
        return timer


class TimerController:
    """Countdown for the active question.

    ``tick`` decrements by one while armed. Reaching zero emits the auto-submit
    text once (returned and passed to ``on_expire``) and disarms. Every
    ``arm``/``cancel`` starts a new generation; ticks stamped with an older
    generation are ignored.
    """

    def __init__(self, on_expire: Optional[Callable[[str], None]] = None) -> None:
        self._on_expire = on_expire
        self._remaining = 0
        self._budget = 0
        self._armed = False
        self._generation = 0

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def budget(self) -> int:
        return self._budget

    @property
    def generation(self) -> int:
        return self._generation

    def arm(self, budget_seconds: int) -> int:
        if budget_seconds < 0:
            raise ValueError("budget must be >= 0")
        self._generation += 1
        self._budget = int(budget_seconds)
        self._remaining = int(budget_seconds)
        self._armed = True
        return self._generation

    def resume(self, budget_seconds: int, remaining_seconds: int) -> int:
        """Re-arm mid-countdown, e.g. after restoring a snapshot."""

        generation = self.arm(budget_seconds)
        self._remaining = max(0, min(int(remaining_seconds), self._budget))
        return generation

    def cancel(self) -> None:
        self._generation += 1
        self._armed = False

    def remaining(self) -> int:
        return self._remaining

    def tick(self, generation: Optional[int] = None) -> Optional[str]:
        if not self._armed:
            return None
        if generation is not None and generation != self._generation:
            return None
        self._remaining = max(0, self._remaining - 1)
        if self._remaining > 0:
            return None
        self._armed = False
        if self._on_expire is not None:
            self._on_expire(AUTO_SUBMIT_TEXT)
        return AUTO_SUBMIT_TEXT


__all__ = [
    "AUTO_SUBMIT_TEXT",
    "Cancellable",
    "Clock",
    "ManualClock",
    "ThreadingClock",
    "TimerController",
]
