"""Configuration for marker parsing, loaded from env vars and YAML.

All settings have sensible defaults. Override via JAT_* env vars or a
``markers:`` section in ``~/.config/jat/dashboard.yaml``:

    markers:
      capture_lines: 200
      strip_ansi: true
      output_format: json
      log_level: DEBUG

Precedence (highest wins): CLI flags, YAML, env vars, defaults.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .markers.errors import ConfigError

logger = logging.getLogger(__name__)

MAX_CAPTURE_LINES = 500
OUTPUT_FORMATS = ("table", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def default_config_path() -> Path:
    """Return the global dashboard settings path."""
    return Path.home() / ".config" / "jat" / "dashboard.yaml"


@dataclass
class MarkerConfig:
    """Settings for reading and rendering captured session output."""

    # Trailing lines of a captured pane that get parsed
    capture_lines: int = 50
    # Strip color codes before scanning; they can split a marker's tag
    strip_ansi: bool = False
    output_format: str = "table"
    log_level: str = "WARNING"

    def validate(self) -> None:
        """Raise ConfigError for out-of-range values."""
        if isinstance(self.capture_lines, bool) or not isinstance(self.capture_lines, int):
            raise ConfigError("capture_lines", self.capture_lines, "expected an integer")
        if not 0 < self.capture_lines <= MAX_CAPTURE_LINES:
            raise ConfigError(
                "capture_lines",
                self.capture_lines,
                f"must be between 1 and {MAX_CAPTURE_LINES}",
            )
        if not isinstance(self.strip_ansi, bool):
            raise ConfigError("strip_ansi", self.strip_ansi, "expected a boolean")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                "output_format",
                self.output_format,
                f"expected one of {', '.join(OUTPUT_FORMATS)}",
            )
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigError(
                "log_level", self.log_level, f"expected one of {', '.join(LOG_LEVELS)}"
            )
        self.log_level = str(self.log_level).upper()

    @classmethod
    def from_env(cls) -> MarkerConfig:
        """Load configuration from JAT_* environment variables."""
        jat_vars = {k: v for k, v in os.environ.items() if k.startswith("JAT_")}
        if jat_vars:
            logger.debug(
                "MarkerConfig.from_env: JAT_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(jat_vars.items())),
            )

        config = cls(
            capture_lines=_parse_int(
                "JAT_CAPTURE_LINES",
                os.getenv("JAT_CAPTURE_LINES", str(cls.capture_lines)),
            ),
            strip_ansi=_parse_bool(
                "JAT_STRIP_ANSI", os.getenv("JAT_STRIP_ANSI", "")
            ),
            output_format=os.getenv("JAT_OUTPUT_FORMAT", cls.output_format).lower(),
            log_level=os.getenv("JAT_LOG_LEVEL", cls.log_level),
        )
        config.validate()
        return config


def load_yaml_config(path: str | Path | None = None) -> MarkerConfig:
    """Load the ``markers`` section of a YAML settings file.

    Without *path* the global settings file is used if it exists, falling
    back to env vars and defaults. An explicit *path* must exist.
    """
    config = MarkerConfig.from_env()
    if path is None:
        path = default_config_path()
        if not path.is_file():
            logger.debug("load_yaml_config: no settings file at %s", path)
            return config
    path = Path(path)

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path)
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise ConfigError("path", str(path), f"invalid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("path", str(path), "top level must be a mapping")
    section = raw.get("markers") or {}
    if not isinstance(section, dict):
        raise ConfigError("markers", section, "expected a mapping")

    known = {f.name for f in fields(MarkerConfig)}
    for key, value in section.items():
        if key not in known:
            logger.warning("load_yaml_config: ignoring unknown key markers.%s", key)
            continue
        setattr(config, key, _coerce(key, value))

    config.validate()
    logger.debug("load_yaml_config: loaded %s -> %s", path, config)
    return config


def _coerce(key: str, value: Any) -> Any:
    if key == "strip_ansi" and isinstance(value, str):
        return _parse_bool(key, value)
    if key == "output_format" and isinstance(value, str):
        return value.lower()
    return value


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(key, value, "expected an integer") from exc


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(key, value, "expected a boolean")
