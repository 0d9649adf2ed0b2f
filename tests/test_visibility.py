from __future__ import annotations

from trainops.core.visibility import VisibilityController


def test_hide_forces_pause_once() -> None:
    calls: list[int] = []
    vc = VisibilityController(on_hidden=lambda: calls.append(1))
    assert vc.visible
    vc.update(hidden=True)
    vc.update(hidden=True)
    assert not vc.visible
    assert calls == [1]


def test_show_does_not_call_back() -> None:
    calls: list[int] = []
    vc = VisibilityController(on_hidden=lambda: calls.append(1))
    vc.update(hidden=False)
    assert calls == []
    vc.update(hidden=True)
    vc.update(hidden=False)
    assert vc.visible
    assert calls == [1]
    vc.update(hidden=True)
    assert calls == [1, 1]
