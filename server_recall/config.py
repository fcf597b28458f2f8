"""Settings loader and validation for server-recall.

Resolves the data directory (where the server lists live) and reads optional
YAML overrides from ~/.config/server-recall/config.yaml (or the
SERVER_RECALL_CONFIG env override). A missing config file means defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

APP_NAME = "server-recall"
DEFAULT_DATA_DIR = Path.home() / ".config" / APP_NAME
CONFIG_FILE_NAME = "config.yaml"
ENV_HOME_VAR = "SERVER_RECALL_HOME"
ENV_CONFIG_VAR = "SERVER_RECALL_CONFIG"
SUPPORTED_CONFIG_VERSION = 1
DEFAULT_PORT = 38465

STORE_NAMES = ("favorites", "history", "recent")

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Settings:
    """Top-level server-recall settings."""

    version: int = SUPPORTED_CONFIG_VERSION
    data_dir: Path = DEFAULT_DATA_DIR
    default_port: int = DEFAULT_PORT
    capacities: dict[str, int] = field(default_factory=dict)
    config_path: Path | None = None  # None when running on defaults

    def capacity_for(self, store_name: str, default: int) -> int:
        return self.capacities.get(store_name, default)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Determine the default data directory."""
    env = os.environ.get(ENV_HOME_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return DEFAULT_DATA_DIR


def get_config_path() -> Path:
    """Determine which config file to use."""
    env = os.environ.get(ENV_CONFIG_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return get_data_dir() / CONFIG_FILE_NAME


def _parse_port(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 65535:
        raise ConfigError(f"'default_port' must be an integer between 1 and 65535, got {value!r}.")
    return value


def _parse_capacities(raw: Any) -> dict[str, int]:
    """Parse the ``stores`` mapping into store_name -> capacity."""
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("'stores' must be a mapping of store_name -> {capacity}.")

    capacities: dict[str, int] = {}
    for name, data in raw.items():
        if name not in STORE_NAMES:
            raise ConfigError(
                f"Unknown store '{name}'. Expected one of: {', '.join(STORE_NAMES)}."
            )
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ConfigError(f"Store '{name}' must be a mapping.")
        if "capacity" not in data:
            continue
        capacity = data["capacity"]
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ConfigError(
                f"Store '{name}' capacity must be a positive integer, got {capacity!r}."
            )
        capacities[name] = capacity
    return capacities


def load_settings(path: Path | None = None) -> Settings:
    """Load, validate, and return Settings, falling back to defaults."""
    config_path = path or get_config_path()

    if not config_path.exists():
        return Settings(data_dir=get_data_dir())

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {config_path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must be a YAML mapping at the top level.")

    version = raw.get("version", SUPPORTED_CONFIG_VERSION)
    if version != SUPPORTED_CONFIG_VERSION:
        raise ConfigError(
            f"Unsupported config version {version}. Expected {SUPPORTED_CONFIG_VERSION}."
        )

    data_dir_raw = raw.get("data_dir")
    if data_dir_raw is None:
        data_dir = get_data_dir()
    elif isinstance(data_dir_raw, str) and data_dir_raw.strip():
        data_dir = Path(data_dir_raw).expanduser()
        if not data_dir.is_absolute():
            data_dir = (config_path.parent / data_dir).resolve()
    else:
        raise ConfigError(f"'data_dir' must be a non-empty path string, got {data_dir_raw!r}.")

    return Settings(
        version=version,
        data_dir=data_dir,
        default_port=_parse_port(raw.get("default_port", DEFAULT_PORT)),
        capacities=_parse_capacities(raw.get("stores")),
        config_path=config_path,
    )


def validate_config_file(path: Path | None = None) -> tuple[bool, str]:
    """Validate a config file and return (ok, message)."""
    config_path = path or get_config_path()
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        return False, str(exc)
    if settings.config_path is None:
        return True, f"No config file at {config_path}, using defaults."
    overrides = ", ".join(f"{k}={v}" for k, v in sorted(settings.capacities.items())) or "none"
    return True, (
        f"Config OK — data dir {settings.data_dir}, "
        f"capacity overrides: {overrides}"
    )
