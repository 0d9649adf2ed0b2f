from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from trainops.config import AppConfig, RuntimeConfig, read_runtime


def test_defaults_match_reference_session() -> None:
    rc = RuntimeConfig()
    assert rc.interval_ms == 1000
    assert rc.smooth_window == 4
    assert rc.running is True
    assert rc.buffer_capacity == 180
    assert rc.log_capacity == 50
    assert rc.seed is None


@pytest.mark.parametrize("field,value", [("interval_ms", 750), ("smooth_window", 2), ("buffer_capacity", 0)])
def test_invalid_runtime_values(field: str, value: int) -> None:
    with pytest.raises(ValidationError):
        RuntimeConfig(**{field: value})


def test_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("interval_ms: 500\nsmooth_window: 8\nseed: 9\n", encoding="utf-8")
    cfg = AppConfig.load(path)
    assert cfg.runtime.interval_ms == 500
    assert cfg.runtime.smooth_window == 8
    assert cfg.runtime.seed == 9


def test_load_invalid_yaml_raises_value_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("interval_ms: 123\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        AppConfig.load(path)


def test_env_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DASH_PORT", "9001")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    cfg = AppConfig.load()
    assert cfg.env.DASH_PORT == 9001
    assert cfg.env.LOG_LEVEL == "DEBUG"
    assert cfg.runtime == RuntimeConfig()


def test_env_accepts_dict() -> None:
    cfg = AppConfig(env={"DASH_HOST": "127.0.0.1", "DASH_PORT": 1, "LOG_LEVEL": "INFO"}, runtime=RuntimeConfig())
    assert cfg.env.DASH_HOST == "127.0.0.1"


def test_missing_yaml_gives_reference_runtime(tmp_path: Path) -> None:
    assert read_runtime(tmp_path / "absent.yaml") == RuntimeConfig()


def test_empty_yaml_gives_reference_runtime(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert AppConfig.load(path).runtime == RuntimeConfig()
