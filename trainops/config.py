from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


INTERVAL_CHOICES_MS = (500, 1000, 2000, 5000)
SMOOTH_WINDOW_CHOICES = (1, 3, 4, 8)
DEFAULT_CONFIG_PATH = Path("config.yaml")


class RuntimeConfig(BaseModel):
    """Session knobs exposed to the dashboard controls."""

    interval_ms: int = Field(1000, description="Tick period in milliseconds")
    smooth_window: int = Field(4, description="Moving-average window for smoothed series")
    running: bool = Field(True, description="Start ticking as soon as the session is built")
    buffer_capacity: int = Field(180, description="Samples retained per metric")
    log_capacity: int = Field(50, description="Event log entries retained")
    seed: Optional[int] = Field(None, description="Seed for a reproducible random source")

    @field_validator("interval_ms")
    @classmethod
    def _check_interval(cls, v: int) -> int:
        if v not in INTERVAL_CHOICES_MS:
            raise ValueError(f"interval_ms must be one of {INTERVAL_CHOICES_MS}")
        return v

    @field_validator("smooth_window")
    @classmethod
    def _check_window(cls, v: int) -> int:
        if v not in SMOOTH_WINDOW_CHOICES:
            raise ValueError(f"smooth_window must be one of {SMOOTH_WINDOW_CHOICES}")
        return v

    @field_validator("buffer_capacity", "log_capacity")
    @classmethod
    def _check_capacity(cls, v: int) -> int:
        if v < 1:
            raise ValueError("capacities must be positive")
        return v


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DASH_HOST: str = "0.0.0.0"
    DASH_PORT: int = 8050
    LOG_LEVEL: str = "INFO"


class AppConfig(BaseModel):
    env: EnvSettings
    runtime: RuntimeConfig

    @field_validator("env", mode="before")
    @classmethod
    def _coerce_env(cls, v):  # type: ignore[no-untyped-def]
        if isinstance(v, dict):
            return EnvSettings(**v)
        return v

    @staticmethod
    def load(config_path: Optional[Path] = None) -> "AppConfig":
        path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        return AppConfig(env=EnvSettings(), runtime=read_runtime(path))


def read_runtime(path: Path) -> RuntimeConfig:
    """Session knobs from a YAML file; reference defaults when it is absent."""
    if not path.is_file():
        return RuntimeConfig()
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    try:
        return RuntimeConfig.model_validate(raw)
    except ValidationError as ve:
        raise ValueError(f"Invalid config.yaml: {ve}") from ve


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Environment settings plus session knobs from an optional YAML file."""

    return AppConfig.load(config_path)
