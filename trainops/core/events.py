from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

from .walker import RandomSource


INFO_ABOVE = 0.92
WARN_BELOW = 0.04

LEVELS = ("info", "warn", "error")


@dataclass(frozen=True)
class LogEntry:
    time: str  # local wall-clock "HH:MM:SS"
    text: str
    level: str = "info"


class EventLog:
    """Bounded event list, newest first."""

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._lock = threading.RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)

    def prepend(self, entry: LogEntry) -> None:
        if entry.level not in LEVELS:
            raise ValueError(f"unknown log level {entry.level!r}")
        with self._lock:
            # appendleft on a bounded deque drops from the right (oldest)
            self._entries.appendleft(entry)

    def entries(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            items = list(self._entries)
        return items if limit is None else items[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class EventLogGenerator:
    """Sparse synthetic log noise: roughly 8% info, 4% warn, 88% silence."""

    def __init__(self, log: EventLog, rng: RandomSource) -> None:
        self.log = log
        self._rng = rng

    def maybe_emit(self, tick_index: int, now: Optional[datetime] = None) -> Optional[LogEntry]:
        roll = self._rng()
        if roll > INFO_ABOVE:
            entry = LogEntry(
                time=_clock_text(now),
                text=f"Step {tick_index}: validation improved",
                level="info",
            )
        elif roll < WARN_BELOW:
            entry = LogEntry(
                time=_clock_text(now),
                text="GPU 3 throttle detected. Fan curve adjusted",
                level="warn",
            )
        else:
            return None
        self.log.prepend(entry)
        return entry


def _clock_text(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime("%H:%M:%S")
