"""Repeating timers used by the session tracker.

A scheduler runs ``callback`` once immediately and then every ``interval``
seconds until the returned handle is cancelled. Runs never overlap: the next
wait starts only after the previous callback returned.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Tuple

from typing_extensions import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...

    @property
    def active(self) -> bool:
        ...


class Scheduler(Protocol):
    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class _ThreadTimer:
    def __init__(self, interval: float, callback: Callable[[], None], name: str) -> None:
        self._interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                self._callback()
            except Exception:
                logger.exception("Scheduled callback failed")
            if self._stopped.wait(self._interval):
                break

    def cancel(self) -> None:
        self._stopped.set()

    @property
    def active(self) -> bool:
        return not self._stopped.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)


class ThreadScheduler:
    """One daemon worker thread per repeating timer."""

    def __init__(self, name: str = "session-poll") -> None:
        self._name = name
        self._counter = itertools.count(1)

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _ThreadTimer:
        timer = _ThreadTimer(interval, callback, name=f"{self._name}-{next(self._counter)}")
        timer.start()
        return timer


class _ManualTimer:
    def __init__(self, scheduler: "ManualScheduler", interval: float, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self.interval = interval
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def active(self) -> bool:
        return not self._cancelled


class ManualScheduler:
    """Virtual-clock scheduler; callbacks run synchronously inside advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualTimer]] = []
        self._seq = itertools.count()

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(self, interval, callback)
        timer.callback()
        if timer.active:
            self._push(self.now + interval, timer)
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            self.now = due
            timer.callback()
            if timer.active:
                self._push(due + timer.interval, timer)
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.active)

    def _push(self, due: float, timer: _ManualTimer) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), timer))
