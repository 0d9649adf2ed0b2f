from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..config import INTERVAL_CHOICES_MS, SMOOTH_WINDOW_CHOICES, RuntimeConfig
from .pipeline import MetricsPipeline, PipelineSnapshot
from .scheduler import TickScheduler
from .visibility import VisibilityController
from .walker import RandomSource, make_random_source


@dataclass
class SessionView:
    snapshot: PipelineSnapshot
    running: bool
    visible: bool
    interval_ms: int
    smooth_window: int


class SimulationSession:
    """One live dashboard session: pipeline, tick scheduler and visibility.

    Sessions share nothing, so several can run side by side.
    """

    def __init__(
        self,
        runtime: Optional[RuntimeConfig] = None,
        rng: Optional[RandomSource] = None,
        clock: Optional[Callable[[], float]] = None,
        use_thread: bool = True,
    ) -> None:
        self.runtime = runtime or RuntimeConfig()
        self.pipeline = MetricsPipeline(
            capacity=self.runtime.buffer_capacity,
            log_capacity=self.runtime.log_capacity,
            rng=rng or make_random_source(self.runtime.seed),
            clock=clock,
        )
        self.scheduler = TickScheduler(
            self.pipeline.tick,
            interval_ms=self.runtime.interval_ms,
            use_thread=use_thread,
        )
        self.visibility = VisibilityController(on_hidden=self.pause)
        self.smooth_window = self.runtime.smooth_window

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def open(self) -> None:
        """Start ticking if the configuration asks for a running session."""
        if self.runtime.running:
            self.scheduler.start()

    def close(self) -> None:
        self.scheduler.stop()

    def resume(self) -> None:
        self.scheduler.start()

    def pause(self) -> None:
        self.scheduler.stop()

    def set_running(self, running: bool) -> None:
        if running:
            self.resume()
        else:
            self.pause()

    def set_interval(self, interval_ms: int) -> None:
        if interval_ms not in INTERVAL_CHOICES_MS:
            raise ValueError(f"interval_ms must be one of {INTERVAL_CHOICES_MS}")
        self.scheduler.set_interval(interval_ms)

    def set_window(self, window: int) -> None:
        if window not in SMOOTH_WINDOW_CHOICES:
            raise ValueError(f"smooth_window must be one of {SMOOTH_WINDOW_CHOICES}")
        self.smooth_window = window

    def set_page_hidden(self, hidden: bool) -> None:
        self.visibility.update(hidden)

    def advance(self, ticks: int = 1) -> int:
        return self.scheduler.advance(ticks)

    def view(self) -> SessionView:
        return SessionView(
            snapshot=self.pipeline.snapshot(self.smooth_window),
            running=self.running,
            visible=self.visibility.visible,
            interval_ms=self.scheduler.interval_ms,
            smooth_window=self.smooth_window,
        )
