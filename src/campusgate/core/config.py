"""campusgate configuration: Pydantic model, TOML load, and env overlay."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from campusgate.core.constants import (
    CONFIG_FILENAME,
    OVERRIDES_FILENAME,
    SIMULATED_REMOTE_DELAY_S,
    _default_data_dir,
)
from campusgate.core.exceptions import ConfigError, ConfigNotFoundError


def campusgate_dir() -> Path:
    """Return the campusgate data directory, creating it if needed."""
    d = _default_data_dir()
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v


_VALID_STORES = frozenset({"memory", "yaml"})


class FeaturesConfig(BaseModel):
    """Feature-gating behaviour."""

    store: str = "memory"
    overrides_path: str = ""  # empty → <data dir>/role_features.yaml
    auto_create_overrides: bool = False
    raise_on_denied: bool = False
    remote_delay_s: float = SIMULATED_REMOTE_DELAY_S

    @field_validator("store")
    @classmethod
    def validate_store(cls, v: str) -> str:
        v = v.lower()
        if v not in _VALID_STORES:
            raise ValueError(f"Invalid store {v!r}. Must be one of: {sorted(_VALID_STORES)}")
        return v

    @field_validator("remote_delay_s")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if not (0.0 <= v <= 10.0):
            raise ValueError("remote_delay_s must be between 0 and 10")
        return v


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class CampusGateConfig(BaseModel):
    """Root campusgate configuration model."""

    model_config = {"extra": "forbid"}

    config_version: int = 1
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)

    @property
    def overrides_path(self) -> Path:
        if self.features.overrides_path:
            return Path(self.features.overrides_path).expanduser()
        return campusgate_dir() / OVERRIDES_FILENAME


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("CAMPUSGATE_CONFIG"):
        return Path(env_path)
    return _default_data_dir() / CONFIG_FILENAME


def load_config(path: Path | str | None = None) -> CampusGateConfig:
    """
    Load CampusGateConfig from a TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (CAMPUSGATE_*)
      2. Config file (platform data dir / config.toml, or CAMPUSGATE_CONFIG)
    """
    import tomllib

    cfg_path = Path(path) if path is not None else _config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    return _validate(data, source=str(cfg_path))


def load_config_or_default(path: Path | str | None = None) -> CampusGateConfig:
    """Like :func:`load_config`, but fall back to defaults when no file exists.

    An explicitly passed *path* that does not exist is still an error.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        if path is not None:
            raise
    return _validate({}, source="defaults")


def _validate(data: dict[str, Any], *, source: str) -> CampusGateConfig:
    _apply_env_overrides(data)
    try:
        return CampusGateConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config ({source}): {exc}") from exc


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay CAMPUSGATE_* environment variables onto parsed TOML."""
    env = os.environ.get

    if level := env("CAMPUSGATE_LOG_LEVEL", ""):
        data.setdefault("logging", {})["level"] = level
    if fmt := env("CAMPUSGATE_LOG_FORMAT", ""):
        data.setdefault("logging", {})["format"] = fmt

    if store := env("CAMPUSGATE_FEATURE_STORE", ""):
        data.setdefault("features", {})["store"] = store
    if overrides := env("CAMPUSGATE_OVERRIDES_PATH", ""):
        data.setdefault("features", {})["overrides_path"] = overrides
    if auto := env("CAMPUSGATE_AUTO_CREATE_OVERRIDES", ""):
        data.setdefault("features", {})["auto_create_overrides"] = _env_bool(auto)
    if strict := env("CAMPUSGATE_RAISE_ON_DENIED", ""):
        data.setdefault("features", {})["raise_on_denied"] = _env_bool(strict)
