"""Fixed-period background tasks with explicit stop tokens."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger("gesture.scheduler")


class PeriodicTask:
    """Call *callback(dt)* every *period* seconds on a daemon thread.

    Each task owns its own ``threading.Event``; :meth:`stop` sets it and the
    loop exits after the current call.  A call that overruns the period is
    followed immediately by the next one, never by an overlapping one.
    """

    def __init__(self, name: str, period: float, callback: Callable[[float], None]) -> None:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self.name = name
        self.period = period
        self.callback = callback
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("Started %s every %.0f ms", self.name, self.period * 1000)

    def stop(self, timeout: Optional[float] = 1.0) -> None:
        self.stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
        logger.info("Stopped %s", self.name)

    def _run(self) -> None:
        last = time.monotonic()
        next_at = last
        while not self.stop_event.is_set():
            now = time.monotonic()
            dt = now - last
            last = now
            try:
                self.callback(dt)
            except Exception:
                logger.exception("%s callback failed; stopping", self.name)
                self.stop_event.set()
                break
            next_at = max(next_at + self.period, time.monotonic())
            self.stop_event.wait(max(0.0, next_at - time.monotonic()))
