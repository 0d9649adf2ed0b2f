from __future__ import annotations

import itertools
import time

import pytest

from trainops.config import RuntimeConfig
from trainops.core.session import SimulationSession


def fake_clock(start: float = 1_700_000_000.0, step: float = 1.0):
    ticks = itertools.count()
    return lambda: start + next(ticks) * step


def make_session(**overrides) -> SimulationSession:
    runtime = RuntimeConfig(seed=42, **overrides)
    return SimulationSession(runtime, clock=fake_clock(), use_thread=False)


def test_end_to_end_ten_ticks() -> None:
    session = make_session(interval_ms=1000, smooth_window=4)
    session.open()
    assert session.advance(10) == 10
    view = session.view()
    snap = view.snapshot
    assert snap.tick_index == 10
    for key, samples in snap.series.items():
        assert len(samples) == 10, key
    smoothed_loss = snap.smoothed["loss"]
    assert len(smoothed_loss) == 10
    assert smoothed_loss[0].value == snap.series["loss"][0].value
    assert view.smooth_window == 4
    assert view.interval_ms == 1000


def test_pause_stops_growth() -> None:
    session = make_session()
    session.open()
    session.advance(3)
    session.pause()
    assert session.advance(5) == 0
    assert session.view().snapshot.tick_index == 3


def test_hidden_page_forces_pause_without_auto_resume() -> None:
    session = make_session()
    session.open()
    session.advance(2)
    session.set_page_hidden(True)
    assert not session.running
    assert session.advance(1) == 0
    session.set_page_hidden(False)
    assert not session.running
    session.set_running(True)
    assert session.advance(1) == 1
    assert session.view().snapshot.tick_index == 3


def test_interval_change_keeps_tick_sequence() -> None:
    session = make_session()
    session.open()
    session.advance(4)
    session.set_interval(500)
    session.advance(4)
    session.set_interval(5000)
    session.advance(2)
    snap = session.view().snapshot
    assert snap.tick_index == 10
    stamps = [s.timestamp for s in snap.series["loss"]]
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 10


def test_window_change_affects_view_only() -> None:
    session = make_session(smooth_window=1)
    session.open()
    session.advance(6)
    raw = [s.value for s in session.view().snapshot.series["accuracy"]]
    assert [s.value for s in session.view().snapshot.smoothed["accuracy"]] == raw
    session.set_window(8)
    smoothed = [s.value for s in session.view().snapshot.smoothed["accuracy"]]
    assert smoothed[-1] == pytest.approx(sum(raw) / len(raw))


def test_open_respects_running_flag() -> None:
    session = make_session(running=False)
    session.open()
    assert not session.running
    assert session.advance(1) == 0


def test_rejects_unsupported_controls() -> None:
    session = make_session()
    with pytest.raises(ValueError):
        session.set_interval(750)
    with pytest.raises(ValueError):
        session.set_window(5)


def test_seeded_sessions_reproduce() -> None:
    a, b = make_session(), make_session()
    for s in (a, b):
        s.open()
        s.advance(20)
    assert [x.value for x in a.view().snapshot.series["loss"]] == [
        x.value for x in b.view().snapshot.series["loss"]
    ]


def wait_for(pred, timeout: float = 4.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.01)
    return pred()


def test_threaded_interval_change_then_hide() -> None:
    session = SimulationSession(RuntimeConfig(seed=7, interval_ms=500))
    try:
        session.open()
        assert wait_for(lambda: session.pipeline.tick_index >= 2)
        session.set_interval(1000)
        assert session.running
        before = session.pipeline.tick_index
        assert wait_for(lambda: session.pipeline.tick_index >= before + 1)

        session.set_page_hidden(True)
        assert not session.running
        frozen = session.view().snapshot
        time.sleep(1.2)
        after = session.view().snapshot

        assert after.tick_index == frozen.tick_index
        stamps = [s.timestamp for s in after.series["loss"]]
        assert len(stamps) == after.tick_index
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)
    finally:
        session.close()
