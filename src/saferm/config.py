"""Configuration management for saferm."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

BACKENDS: frozenset[str] = frozenset({"directory", "freedesktop"})
CONFLICT_STYLES: frozenset[str] = frozenset({"counter", "timestamp"})
LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a YAML value as a boolean.

    Args:
        value: Raw value from the config file.
        default: Returned when value is None.

    Returns:
        Parsed boolean.

    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value and os.path.isabs(value):
        return Path(value)
    return Path.home() / fallback


def _expand(value: str) -> Path:
    return Path(os.path.expanduser(value))


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"Section {key!r} must be a mapping, got {type(section).__name__}")
    return section


@dataclass
class SafeRmConfig:
    """Configuration for saferm."""

    # Holding area
    backend: str = "directory"
    trash_dir: Path = field(default_factory=lambda: Path.home() / ".saferm-trash")
    conflict_style: str = "counter"
    rename_on_restore: bool = False

    # Retention
    tidy_days: int = 30

    # Logging; log_file=None disables file logging
    log_file: Path | None = field(
        default_factory=lambda: _xdg_dir("XDG_STATE_HOME", ".local/state") / "saferm" / "saferm.log"
    )
    log_level: str = "INFO"

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        return _xdg_dir("XDG_CONFIG_HOME", ".config") / "saferm" / "config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> SafeRmConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration.

        Raises:
            ConfigError: If the file holds invalid values.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        with config_path.open(encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {config_path}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> SafeRmConfig:
        """Create config from dictionary."""
        config = cls()

        trash = _section(data, "trash")
        if "backend" in trash:
            config.backend = str(trash["backend"])
        if "directory" in trash:
            config.trash_dir = _expand(str(trash["directory"]))
        if "conflict_style" in trash:
            config.conflict_style = str(trash["conflict_style"])
        if "rename_on_restore" in trash:
            config.rename_on_restore = parse_bool(trash["rename_on_restore"], False)

        retention = _section(data, "retention")
        if "tidy_days" in retention:
            try:
                config.tidy_days = int(retention["tidy_days"])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"retention.tidy_days must be an integer: {e}") from e

        logging_cfg = _section(data, "logging")
        if "file" in logging_cfg:
            log_file = logging_cfg["file"]
            config.log_file = _expand(str(log_file)) if log_file else None
        if "level" in logging_cfg:
            config.log_level = str(logging_cfg["level"]).upper()

        config.validate()
        return config

    def validate(self) -> None:
        """Check field values.

        Raises:
            ConfigError: On the first invalid value found.

        """
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown trash backend: {self.backend!r} (expected one of {sorted(BACKENDS)})"
            )
        if self.conflict_style not in CONFLICT_STYLES:
            raise ConfigError(
                f"Unknown conflict style: {self.conflict_style!r} "
                f"(expected one of {sorted(CONFLICT_STYLES)})"
            )
        if self.tidy_days < 0:
            raise ConfigError(f"retention.tidy_days must not be negative: {self.tidy_days}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log_level: {self.log_level!r}")

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level)

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "trash": {
                "backend": self.backend,
                "directory": str(self.trash_dir),
                "conflict_style": self.conflict_style,
                "rename_on_restore": self.rename_on_restore,
            },
            "retention": {
                "tidy_days": self.tidy_days,
            },
            "logging": {
                "file": str(self.log_file) if self.log_file else None,
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
