"""Configuration file loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from .models import EngineConfig
from .exceptions import ConfigError


def load_config(config_path: Path | str) -> EngineConfig:
    """Load and validate a YAML engine configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse configuration file: {e}") from e

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return EngineConfig.from_dict(parsed)
