# -*- coding: utf-8 -*-
"""
Scheduling - Timer services injected as the "scheduler" dependency.

Time-based nodes (Delay, Now) never touch a clock directly; they ask the
scheduler. ManualScheduler keeps a simulated clock that only moves when
advance() is called, which makes timing deterministic in tests.

Example:
    scheduler = ManualScheduler()
    scheduler.call_later(1.0, lambda: print("one second later"))
    scheduler.advance(1.0)
"""
import asyncio
import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple
from loguru import logger


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, cancel: Optional[Callable[[], None]] = None):
        self._cancel = cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel is not None:
            self._cancel()


class Scheduler(ABC):
    """Clock plus one-shot timers."""

    @abstractmethod
    def time(self) -> float:
        """Current time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        pass


class ManualScheduler(Scheduler):
    """
    Simulated clock.

    Timers fire only inside advance(), in due order (ties in scheduling
    order), with the clock set to each timer's due time while it runs.
    """

    def __init__(self, start_time: float = 0.0):
        self._now = start_time
        self._timers: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()
        due = self._now + max(0.0, delay)
        heapq.heappush(self._timers, (due, next(self._sequence), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        """Number of timers not yet fired or cancelled."""
        return sum(1 for _, _, handle, _ in self._timers if not handle.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, firing every timer that falls due.

        Timers scheduled by a firing callback also fire if they fall due
        within the same advance.

        Returns:
            Number of callbacks fired
        """
        target = self._now + seconds
        fired = 0
        while self._timers and self._timers[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._timers)
            self._now = due
            if handle.cancelled:
                continue
            handle._cancelled = True
            callback()
            fired += 1
        self._now = target
        return fired


class AsyncioScheduler(Scheduler):
    """Timers on an asyncio event loop (the running loop by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def time(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        timer = loop.call_later(max(0.0, delay), callback)
        return TimerHandle(timer.cancel)


class ThreadingScheduler(Scheduler):
    """
    Timers on background threads.

    Callbacks run on the timer thread; the engine marshals async
    completions back to its own thread.
    """

    def time(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        def _run():
            try:
                callback()
            except Exception as e:
                logger.exception(f"Timer callback failed: {e}")

        timer = threading.Timer(max(0.0, delay), _run)
        timer.daemon = True
        timer.start()
        return TimerHandle(timer.cancel)
