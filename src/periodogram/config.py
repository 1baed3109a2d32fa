from __future__ import annotations

"""Configuration utilities for periodogram.

This module defines a hierarchical configuration schema using Pydantic models.
The :class:`Settings` container groups the signal synthesis parameters, the
initial codec parameters, visualisation and logging options.  Instances can be
populated from environment variables or from YAML/JSON files with matching
nested keys.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import EnvSettingsSource

try:  # pragma: no cover - optional dependency
    import yaml  # type: ignore
except Exception:  # pragma: no cover
    yaml = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _split_floats(value: str) -> list[float]:
    return [float(item) for item in value.split(",") if item.strip()]


class SectionModel(BaseModel):
    """Base model for configuration subsections that ignores unknown fields."""

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Settings schema
# ---------------------------------------------------------------------------


class SignalSettings(SectionModel):
    """Parameters of the noisy sinusoid model."""

    amplitude_range: tuple[float, float] = (-3.3, 3.3)
    freq: float = 50.0
    noise_fraction: float = 0.1
    duration: float = 0.1
    sample_count: int = 256
    rectified: bool = False
    seed: int | None = None

    @field_validator("amplitude_range", mode="before")
    @classmethod
    def _coerce_range(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(_split_floats(value))
        if isinstance(value, list):
            return tuple(float(item) for item in value)
        return value

    @field_validator("amplitude_range")
    @classmethod
    def _check_range(cls, value: tuple[float, float]) -> tuple[float, float]:
        lo, hi = value
        if not lo < hi:
            raise ValueError("amplitude_range must be increasing")
        return value

    @property
    def amplitude(self) -> float:
        """Peak amplitude of the generated carrier."""

        return self.amplitude_range[1]


class CodecSettings(SectionModel):
    """Initial DCT parameters and their caps."""

    outputs_count: int = 64
    coeffs_count: int = 8
    max_coeffs: int = 16
    max_outputs: int | None = 256
    provider: str = "scipy"


class VizSettings(SectionModel):
    """Configuration for simple visualisation helpers."""

    title: str = "DCT reconstruction"
    save: str | None = None


class LoggingSettings(SectionModel):
    """Logging verbosity for the command line tools."""

    level: str = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value


class Settings(BaseSettings):
    """Container for all runtime configuration sections."""

    signal: SignalSettings = Field(default_factory=SignalSettings)
    codec: CodecSettings = Field(default_factory=CodecSettings)
    viz: VizSettings = Field(default_factory=VizSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="PERIODOGRAM_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from defaults and ``PERIODOGRAM_*`` variables."""

        return cls()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        class LegacyEnvSettingsSource(EnvSettingsSource):
            def decode_complex_value(self, field_name, target_field, value):  # type: ignore[override]
                try:
                    return super().decode_complex_value(field_name, target_field, value)
                except json.JSONDecodeError:
                    return value

        env_settings.__class__ = LegacyEnvSettingsSource
        return init_settings, env_settings, dotenv_settings, file_secret_settings


# ---------------------------------------------------------------------------
# Loading utilities
# ---------------------------------------------------------------------------


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON or YAML file."""

    p = Path(path)
    text = p.read_text()
    if p.suffix.lower() in {".yaml", ".yml"}:
        if yaml is None:
            raise RuntimeError("PyYAML is required to load YAML files")
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise TypeError("Configuration file must define a mapping")
    return Settings.model_validate(data)
