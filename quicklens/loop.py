#!/usr/bin/env python3
"""
Host event loop interface

The quick lookup core is single-threaded: every state change happens on the
host loop. Worker threads (HTTP requests, key listeners) re-enter it through
call_soon(). The Tk implementation lives in gui.core.TkHostLoop.
"""

import heapq
import itertools
import queue
import threading
import time
from typing import Callable


class TimerHandle:
    """Handle returned by HostLoop.call_later()."""

    def cancel(self):
        raise NotImplementedError


class HostLoop:
    """Minimal cooperative event loop used by the dispatcher and presenter."""

    def call_soon(self, func: Callable[[], None]):
        """Run func on the loop thread as soon as possible."""
        raise NotImplementedError

    def call_later(self, delay: float, func: Callable[[], None]) -> TimerHandle:
        """Run func on the loop thread after delay seconds."""
        raise NotImplementedError


class _BlockingTimer(TimerHandle):
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class BlockingHostLoop(HostLoop):
    """
    Loop driven by the calling thread through run_until().

    Used by the command line, where no GUI thread is running.
    """

    def __init__(self):
        self._ready: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._timers = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def call_soon(self, func: Callable[[], None]):
        self._ready.put(func)

    def call_later(self, delay: float, func: Callable[[], None]) -> TimerHandle:
        timer = _BlockingTimer()
        with self._lock:
            heapq.heappush(self._timers, (time.monotonic() + delay, next(self._counter), timer, func))
        return timer

    def _run_due_timers(self):
        now = time.monotonic()
        while True:
            with self._lock:
                if not self._timers or self._timers[0][0] > now:
                    return
                _, _, timer, func = heapq.heappop(self._timers)
            if not timer.cancelled:
                func()

    def run_until(self, predicate: Callable[[], bool], timeout: float) -> bool:
        """Process callbacks until predicate() is true or timeout expires."""
        deadline = time.monotonic() + timeout
        while not predicate():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            try:
                func = self._ready.get(timeout=min(remaining, 0.05))
            except queue.Empty:
                pass
            else:
                func()
            self._run_due_timers()
        return True
