"""Runtime configuration for the travel orders service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

DEFAULT_ADMIN_NAME = "Admin"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    """Configuration resolved from an optional YAML file and the environment."""

    database_path: Path
    debug: bool = False
    admin_name: str = DEFAULT_ADMIN_NAME
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw configuration data."""

        raw_path = data.get("database_path")
        admin_name = str(data.get("admin_name") or DEFAULT_ADMIN_NAME).strip()
        if not admin_name:
            raise ValueError("admin_name must not be empty")
        debug = data.get("debug", False)
        if isinstance(debug, str):
            debug = _env_flag(debug)
        return Settings(
            database_path=resolve_database_path(str(raw_path) if raw_path else None),
            debug=bool(debug),
            admin_name=admin_name,
            log_level=str(data.get("log_level", "INFO")).upper(),
            host=str(data.get("host", "0.0.0.0")),
            port=int(data.get("port", 8000)),
        )


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load raw settings from a YAML file."""

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return raw


def load_settings(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Resolve settings. Environment variables take precedence over the file."""

    if env is None:
        env = os.environ

    if config_path is None and env.get("TRAVEL_ORDERS_CONFIG"):
        config_path = Path(env["TRAVEL_ORDERS_CONFIG"]).expanduser()

    data: Dict[str, object] = {}
    if config_path is not None:
        data.update(load_config_file(config_path))

    overrides = {
        "database_path": env.get("TRAVEL_ORDERS_DB_PATH"),
        "debug": env.get("TRAVEL_ORDERS_DEBUG"),
        "admin_name": env.get("TRAVEL_ORDERS_ADMIN_NAME"),
        "log_level": env.get("TRAVEL_ORDERS_LOG_LEVEL"),
    }
    data.update({key: value for key, value in overrides.items() if value is not None})
    return Settings.from_dict(data)


__all__ = ["DEFAULT_ADMIN_NAME", "Settings", "load_config_file", "load_settings"]
