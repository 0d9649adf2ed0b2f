from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from .buffers import Sample, SeriesBuffer, utc_now_ts
from .events import EventLog, EventLogGenerator, LogEntry
from .schedule import CosineSchedule
from .smoothing import smooth_samples
from .walker import RandomSource, Walker, WalkerParams, make_random_source


logger = logging.getLogger(__name__)

LR_SERIES = "lr"
VRAM_TOTAL_GB = 80.0


@dataclass(frozen=True)
class MetricSpec:
    key: str
    label: str
    unit: str
    params: WalkerParams
    # Constant companion fields stored on every sample
    extras: Dict[str, float] = field(default_factory=dict)


REFERENCE_METRICS: Sequence[MetricSpec] = (
    MetricSpec("loss", "Training loss", "", WalkerParams(2.4, -0.015, 0.08, 0.05, 5.0)),
    MetricSpec("accuracy", "Accuracy", "%", WalkerParams(40.0, 0.4, 2.0, 0.0, 100.0)),
    MetricSpec("tokens_per_sec", "Tokens per sec", "t/s", WalkerParams(2000.0, 50.0, 300.0, 200.0, 6000.0)),
    MetricSpec(
        "vram", "VRAM usage", "GB", WalkerParams(34.0, 0.1, 0.6, 20.0, 80.0),
        extras={"free": VRAM_TOTAL_GB},
    ),
    MetricSpec("latency_ms", "Latency", "ms", WalkerParams(120.0, -0.5, 10.0, 30.0, 300.0)),
    MetricSpec("grad_norm", "Gradient norm", "", WalkerParams(1.5, -0.01, 0.05, 0.2, 5.0)),
)

GAUGE_METRIC = MetricSpec("gpu_util", "GPU Util", "", WalkerParams(0.65, 0.0, 0.02, 0.2, 0.98))


@dataclass
class PipelineSnapshot:
    tick_index: int
    series: Dict[str, List[Sample]]
    smoothed: Dict[str, List[Sample]]
    gauge: float
    logs: List[LogEntry]
    window: int

    def latest(self, key: str) -> Optional[Sample]:
        samples = self.series.get(key) or []
        return samples[-1] if samples else None


class MetricsPipeline:
    """Owns every walker, buffer and the event log of one simulated session.

    `tick()` is the only writer. It runs under the pipeline lock, as do all
    the readers, so a reader never sees some buffers advanced and others not.
    """

    def __init__(
        self,
        capacity: int = 180,
        log_capacity: int = 50,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], float]] = None,
        metrics: Sequence[MetricSpec] = REFERENCE_METRICS,
        gauge: MetricSpec = GAUGE_METRIC,
        schedule: Optional[CosineSchedule] = None,
    ) -> None:
        self._rng = rng or make_random_source()
        self._clock = clock or utc_now_ts
        self._lock = threading.RLock()
        self.metrics: Dict[str, MetricSpec] = {m.key: m for m in metrics}
        self._walkers: Dict[str, Walker] = {m.key: Walker(m.params, self._rng) for m in metrics}
        self._buffers: Dict[str, SeriesBuffer] = {m.key: SeriesBuffer(capacity) for m in metrics}
        self._buffers[LR_SERIES] = SeriesBuffer(capacity)
        self.gauge_spec = gauge
        self._gauge_walker = Walker(gauge.params, self._rng)
        self._gauge_value = self._gauge_walker.v
        self.schedule = schedule or CosineSchedule()
        self.log = EventLog(log_capacity)
        self._events = EventLogGenerator(self.log, self._rng)
        self._tick_index = 0

    @property
    def tick_index(self) -> int:
        with self._lock:
            return self._tick_index

    def keys(self) -> List[str]:
        return list(self._buffers)

    def tick(self, now: Optional[float] = None) -> int:
        """Advance every series by one sample; returns the new tick count."""
        with self._lock:
            ts = now if now is not None else self._clock()
            for key, walker in self._walkers.items():
                self._buffers[key].add(walker.step(), timestamp=ts, **self.metrics[key].extras)
            self._buffers[LR_SERIES].add(self.schedule.value_at(ts), timestamp=ts)
            self._gauge_value = self._gauge_walker.step()
            entry = self._events.maybe_emit(self._tick_index, now=datetime.fromtimestamp(ts))
            if entry is not None:
                logger.debug("synthetic event", extra={"tick": self._tick_index, "level_name": entry.level})
            self._tick_index += 1
            return self._tick_index

    def series(self, key: str) -> List[Sample]:
        with self._lock:
            return self._buffers[key].to_array()

    def latest(self, key: str) -> Optional[Sample]:
        with self._lock:
            return self._buffers[key].latest()

    def smoothed(self, key: str, window: int) -> List[Sample]:
        with self._lock:
            samples = self._buffers[key].to_array()
        return smooth_samples(samples, window)

    def gauge(self) -> float:
        with self._lock:
            return self._gauge_value

    def logs(self) -> List[LogEntry]:
        return self.log.entries()

    def snapshot(self, window: int) -> PipelineSnapshot:
        with self._lock:
            series = {key: buf.to_array() for key, buf in self._buffers.items()}
            tick_index = self._tick_index
            gauge = self._gauge_value
            logs = self.log.entries()
        smoothed = {key: smooth_samples(series[key], window) for key in self.metrics}
        return PipelineSnapshot(
            tick_index=tick_index,
            series=series,
            smoothed=smoothed,
            gauge=gauge,
            logs=logs,
            window=window,
        )
