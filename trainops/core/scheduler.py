from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Tuple


logger = logging.getLogger(__name__)


class TickScheduler:
    """Periodic driver calling `on_tick` once per interval while running.

    Every run gets its own thread and stop event. Ticks are fired under the
    scheduler lock after re-checking that run's stop event, so once `stop()`
    returns no tick from that run can be delivered.

    With `use_thread=False` no timer is started and ticks are delivered only
    through `advance()`, which is how tests drive a simulated clock.
    """

    def __init__(
        self,
        on_tick: Callable[[], object],
        interval_ms: int = 1000,
        use_thread: bool = True,
        name: str = "TickScheduler",
    ) -> None:
        _check_interval(interval_ms)
        self._on_tick = on_tick
        self._interval_ms = interval_ms
        self._use_thread = use_thread
        self._name = name
        self._lock = threading.RLock()
        self._running = False
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._start_timer_locked()
        logger.info("scheduler started", extra={"interval_ms": self._interval_ms})

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            _, thread = self._cancel_timer_locked()
        _join(thread)
        logger.info("scheduler stopped")

    def set_interval(self, interval_ms: int) -> None:
        _check_interval(interval_ms)
        thread = None
        with self._lock:
            if interval_ms == self._interval_ms:
                return
            self._interval_ms = interval_ms
            if self._running:
                _, thread = self._cancel_timer_locked()
                self._start_timer_locked()
        _join(thread)
        logger.info("interval changed", extra={"interval_ms": interval_ms})

    def advance(self, ticks: int = 1) -> int:
        """Fire up to `ticks` ticks synchronously; stops early once stopped."""
        fired = 0
        for _ in range(ticks):
            with self._lock:
                if not self._running:
                    break
                self._on_tick()
            fired += 1
        return fired

    def _start_timer_locked(self) -> None:
        if not self._use_thread:
            return
        stop = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(stop, self._interval_ms / 1000.0),
            name=self._name,
            daemon=True,
        )
        self._stop, self._thread = stop, thread
        thread.start()

    def _cancel_timer_locked(self) -> Tuple[Optional[threading.Event], Optional[threading.Thread]]:
        stop, thread = self._stop, self._thread
        self._stop, self._thread = None, None
        if stop is not None:
            stop.set()
        return stop, thread

    def _run(self, stop: threading.Event, interval_sec: float) -> None:
        while not stop.wait(timeout=interval_sec):
            with self._lock:
                if stop.is_set():
                    return
                tick = self._on_tick()
            logger.debug("tick", extra={"tick": tick})


def _check_interval(interval_ms: int) -> None:
    if interval_ms <= 0:
        raise ValueError("interval_ms must be positive")


def _join(thread: Optional[threading.Thread]) -> None:
    # A tick callback may stop its own scheduler; never join the current thread
    if thread is not None and thread is not threading.current_thread():
        thread.join(timeout=5)
