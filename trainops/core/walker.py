from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional


# Uniform draw in [0, 1); injected so tests can script the walk.
RandomSource = Callable[[], float]


def make_random_source(seed: Optional[int] = None) -> RandomSource:
    return random.Random(seed).random


@dataclass(frozen=True)
class WalkerParams:
    start: float
    drift: float
    volatility: float
    clamp_min: float = float("-inf")
    clamp_max: float = float("inf")


class Walker:
    """Bounded random walk: drift plus uniform noise scaled by volatility."""

    def __init__(self, params: WalkerParams, rng: RandomSource) -> None:
        if params.clamp_min > params.clamp_max:
            raise ValueError(
                f"clamp_min {params.clamp_min} exceeds clamp_max {params.clamp_max}"
            )
        self.drift = params.drift
        self.volatility = params.volatility
        self.clamp_min = params.clamp_min
        self.clamp_max = params.clamp_max
        self._rng = rng
        self.v = self._clamp(params.start)

    def _clamp(self, x: float) -> float:
        return min(self.clamp_max, max(self.clamp_min, x))

    def step(self, bias: float = 0.0) -> float:
        delta = (self._rng() - 0.5 + bias) * self.volatility + self.drift
        self.v = self._clamp(self.v + delta)
        return self.v
