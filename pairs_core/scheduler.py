from __future__ import annotations

import heapq
import itertools
import threading
from typing import Callable, List, Optional, Protocol, Tuple


class Handle(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Runs a callback once after `delay` seconds unless the returned handle is cancelled first."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...


class _ManualHandle:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Virtual clock. Nothing fires until `advance()` moves time past a callback's due time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, _ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Moves the clock forward and runs every due callback in due order. Returns how many ran."""
        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.fired = True
            handle.callback()
            ran += 1
        self.now = target
        return ran


class _TimerHandle:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ThreadingScheduler:
    """Wall-clock scheduler on `threading.Timer`. Callbacks run holding `lock`, the same lock
    callers take around engine calls, so the engine only ever sees one caller at a time."""

    def __init__(self, lock: threading.RLock) -> None:
        self.lock = lock

    def call_later(self, delay: float, callback: Callable[[], None]) -> _TimerHandle:
        handle: Optional[_TimerHandle] = None

        def run() -> None:
            with self.lock:
                if handle is not None and handle.cancelled:
                    return
                callback()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        handle = _TimerHandle(timer)
        timer.start()
        return handle
