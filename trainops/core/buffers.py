from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional


def utc_now_ts() -> float:
    return datetime.now(timezone.utc).timestamp()


@dataclass(frozen=True)
class Sample:
    timestamp: float
    value: float
    # Paired fields for series that plot more than one number (e.g. VRAM free)
    extras: Dict[str, float] = field(default_factory=dict)


class SeriesBuffer:
    """Fixed-capacity, chronologically ordered sample history for one metric.

    Appending past capacity silently drops the oldest sample.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._capacity: int = capacity
        self._buffer: Deque[Sample] = deque(maxlen=capacity)
        self._lock = threading.RLock()

    def append(self, sample: Sample) -> None:
        with self._lock:
            self._buffer.append(sample)

    def add(self, value: float, timestamp: Optional[float] = None, **extras: float) -> Sample:
        ts = timestamp if timestamp is not None else utc_now_ts()
        sample = Sample(timestamp=ts, value=value, extras=dict(extras))
        self.append(sample)
        return sample

    def size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def capacity(self) -> int:
        return self._capacity

    def to_array(self) -> List[Sample]:
        with self._lock:
            return list(self._buffer)

    def values(self) -> List[float]:
        with self._lock:
            return [s.value for s in self._buffer]

    def latest(self) -> Optional[Sample]:
        """Newest sample, or None when nothing has been recorded yet."""
        with self._lock:
            return self._buffer[-1] if self._buffer else None
