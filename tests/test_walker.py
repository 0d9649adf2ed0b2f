from __future__ import annotations

import itertools

import pytest

from trainops.core.walker import Walker, WalkerParams, make_random_source


def const(x: float):
    return lambda: x


def test_step_applies_drift_and_volatility() -> None:
    w = Walker(WalkerParams(start=10.0, drift=1.0, volatility=2.0), rng=const(0.75))
    # (0.75 - 0.5) * 2 + 1 = 1.5
    assert w.step() == pytest.approx(11.5)
    assert w.v == pytest.approx(11.5)


def test_bias_shifts_the_draw() -> None:
    w = Walker(WalkerParams(start=0.0, drift=0.0, volatility=1.0), rng=const(0.5))
    assert w.step(bias=0.25) == pytest.approx(0.25)


@pytest.mark.parametrize("draw", [0.0, 0.999999])
def test_adversarial_draws_stay_in_bounds(draw: float) -> None:
    w = Walker(WalkerParams(start=2.4, drift=-0.015, volatility=0.08, clamp_min=0.05, clamp_max=5.0), rng=const(draw))
    for _ in range(500):
        v = w.step(bias=10.0 if draw > 0.5 else -10.0)
        assert 0.05 <= v <= 5.0
    assert w.v in (0.05, 5.0)


def test_seeded_walk_never_leaves_bounds() -> None:
    rng = make_random_source(7)
    w = Walker(WalkerParams(2000.0, 50.0, 300.0, 200.0, 6000.0), rng=rng)
    values = [w.step() for _ in range(2000)]
    assert min(values) >= 200.0
    assert max(values) <= 6000.0


def test_same_seed_same_walk() -> None:
    params = WalkerParams(40.0, 0.4, 2.0, 0.0, 100.0)
    a = Walker(params, make_random_source(3))
    b = Walker(params, make_random_source(3))
    assert [a.step() for _ in range(20)] == [b.step() for _ in range(20)]


def test_start_outside_bounds_is_clamped() -> None:
    w = Walker(WalkerParams(start=9.0, drift=0.0, volatility=0.0, clamp_min=0.0, clamp_max=1.0), rng=const(0.5))
    assert w.v == 1.0


def test_inverted_bounds_rejected() -> None:
    with pytest.raises(ValueError):
        Walker(WalkerParams(0.0, 0.0, 1.0, clamp_min=5.0, clamp_max=1.0), rng=const(0.5))


def test_draws_come_from_injected_source() -> None:
    draws = itertools.cycle([0.0, 1.0])
    w = Walker(WalkerParams(0.0, 0.0, 1.0), rng=lambda: next(draws))
    assert w.step() == pytest.approx(-0.5)
    assert w.step() == pytest.approx(0.0)
