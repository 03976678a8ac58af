"""
Task scheduling facility shared by every league: fixed-rate repeating tasks for match
ticking and one-shot delayed tasks for countdowns and gaps. Nothing here blocks; all
delays are deferred invocations, so one event loop serves many leagues.

A task that raises is logged and, if repeating, keeps its cadence: one league's bug
must not stop another league's timers.
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol

_log = logging.getLogger("season_sim.timers")


class TaskHandle:
    """Cancellation handle. cancel() is idempotent; only the first call returns True."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cancelled = False
        self._done = False
        self._cancel_fn: Callable[[], object] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return not self._cancelled and not self._done

    def cancel(self) -> bool:
        if self._cancelled or self._done:
            return False
        self._cancelled = True
        if self._cancel_fn is not None:
            self._cancel_fn()
        return True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self._done else "active"
        return f"TaskHandle({self.name!r}, {state})"


class TaskScheduler(Protocol):
    def call_later(self, delay: float, fn: Callable[[], None], name: str = "") -> TaskHandle: ...

    def call_every(
        self, interval: float, fn: Callable[[], None], initial_delay: float = 0.0, name: str = ""
    ) -> TaskHandle: ...

    def shutdown(self) -> None: ...


def _safe_call(handle: TaskHandle, fn: Callable[[], None]) -> None:
    try:
        fn()
    except Exception:
        _log.exception("Scheduled task %s failed", handle.name or fn)


# ---------- asyncio ----------
class AsyncioTaskScheduler:
    """Runs on an asyncio event loop (the API server's loop or asyncio.run in the CLI)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: set[TaskHandle] = set()
        self._closed = False

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, fn: Callable[[], None], name: str = "") -> TaskHandle:
        if self._closed:
            raise RuntimeError("Scheduler is shut down")
        handle = TaskHandle(name)

        def run() -> None:
            self._handles.discard(handle)
            if handle.cancelled:
                return
            handle._done = True
            _safe_call(handle, fn)

        timer = self._get_loop().call_later(max(0.0, delay), run)
        handle._cancel_fn = timer.cancel
        self._handles.add(handle)
        return handle

    def call_every(
        self, interval: float, fn: Callable[[], None], initial_delay: float = 0.0, name: str = ""
    ) -> TaskHandle:
        if self._closed:
            raise RuntimeError("Scheduler is shut down")
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TaskHandle(name)
        loop = self._get_loop()

        async def repeat() -> None:
            # Fixed rate: deadlines are start + k * interval, so a slow tick does not drift the schedule.
            deadline = loop.time() + max(0.0, initial_delay)
            try:
                while not handle.cancelled:
                    await asyncio.sleep(max(0.0, deadline - loop.time()))
                    if handle.cancelled:
                        break
                    _safe_call(handle, fn)
                    deadline += interval
            finally:
                self._handles.discard(handle)

        task = loop.create_task(repeat())
        handle._cancel_fn = task.cancel
        self._handles.add(handle)
        return handle

    def shutdown(self) -> None:
        self._closed = True
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()


# ---------- virtual clock ----------
class ManualTaskScheduler:
    """
    Deterministic scheduler on a virtual clock. Nothing runs until advance() or
    run_until() is called. Used for instant season runs and tests.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, TaskHandle, Callable[[], None], float | None]] = []
        self._seq = itertools.count()
        self._closed = False

    def call_later(self, delay: float, fn: Callable[[], None], name: str = "") -> TaskHandle:
        return self._push(self.now + max(0.0, delay), fn, name, None)

    def call_every(
        self, interval: float, fn: Callable[[], None], initial_delay: float = 0.0, name: str = ""
    ) -> TaskHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._push(self.now + max(0.0, initial_delay), fn, name, interval)

    def _push(self, due: float, fn: Callable[[], None], name: str, interval: float | None) -> TaskHandle:
        if self._closed:
            raise RuntimeError("Scheduler is shut down")
        handle = TaskHandle(name)
        heapq.heappush(self._queue, (due, next(self._seq), handle, fn, interval))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h, _, _ in self._queue if h.active)

    def _run_next(self) -> bool:
        while self._queue:
            due, _, handle, fn, interval = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self.now = max(self.now, due)
            if interval is None:
                handle._done = True
            _safe_call(handle, fn)
            if interval is not None and handle.active and not self._closed:
                heapq.heappush(self._queue, (due + interval, next(self._seq), handle, fn, interval))
            return True
        return False

    def next_due(self) -> float | None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)
        return self._queue[0][0] if self._queue else None

    def advance(self, seconds: float) -> None:
        """Run everything due within the next `seconds` of virtual time, in due order."""
        target = self.now + seconds
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self._run_next()
        self.now = target

    def run_until(self, predicate: Callable[[], bool], max_seconds: float = 1e9) -> bool:
        """Run tasks in order until predicate() holds. False if time ran out or nothing is pending."""
        limit = self.now + max_seconds
        while not predicate():
            due = self.next_due()
            if due is None or due > limit:
                return False
            self._run_next()
        return True

    def shutdown(self) -> None:
        self._closed = True
        for _, _, handle, _, _ in self._queue:
            handle.cancel()
        self._queue.clear()
