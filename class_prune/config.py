"""Load PruneConfig values from a JSON file."""

from __future__ import annotations

import json
from dataclasses import fields, replace
from pathlib import Path
from typing import Any

from class_prune.models import LivenessMode, PruneConfig, ResolutionStrategy


class ConfigError(ValueError):
    """A config file is unreadable or holds invalid values."""


_LIST_KEYS = {"skip_dirs", "excluded_prefixes", "reserved_prefixes"}
_KNOWN_KEYS = {f.name for f in fields(PruneConfig)}


def load_config(path: Path) -> dict[str, Any]:
    """Read a JSON object of PruneConfig fields."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must hold a JSON object")
    return data


def config_from_dict(data: dict[str, Any], base: PruneConfig | None = None) -> PruneConfig:
    """Apply ``data`` over ``base`` (or the defaults), validating each value."""
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key == "source_dir":
            values[key] = Path(value)
        elif key in _LIST_KEYS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{key} must be a list of strings")
            values[key] = list(value)
        elif key == "strategy":
            values[key] = _enum(ResolutionStrategy, value, key)
        elif key == "mode":
            values[key] = _enum(LivenessMode, value, key)
        elif key == "workers":
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError("workers must be a non-negative integer")
            values[key] = value
        elif key == "timeout":
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigError("timeout must be a non-negative number")
            values[key] = float(value)

    if base is None:
        return PruneConfig(**values)
    return replace(base, **values)


def _enum(enum_cls, value, key: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(e.value for e in enum_cls)
        raise ConfigError(f"{key} must be one of: {choices}") from None
