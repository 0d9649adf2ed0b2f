from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class CosineSchedule:
    """Cosine learning-rate decay that restarts every `period` seconds.

    Starts each period at `base` and falls across the whole period towards
    0.1 * base (0.55 * base at the midpoint), then jumps back to `base`.
    """

    base: float = 1e-3
    period: float = 120.0

    def value_at(self, t: float) -> float:
        phase = (t % self.period) / self.period
        return self.base * (0.55 + 0.45 * math.cos(phase * math.pi))
