"""
YAML → typed settings loader.

Loads settings from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.liftlog/settings.yaml.

Usage:
    from liftlog.core.engine.config_loader import load_settings
    settings = load_settings()
    settings.unit_system   # "lbs" or "kg"

If the bundled YAML cannot be parsed, the Python defaults from config.py
are used (no crash).  If the user override file has parse errors, a
warning is logged and the file is ignored.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import (
    CANONICAL_UNIT,
    DATA_DIR_NAME,
    DEFAULT_REST_SECONDS,
    SUPERSET_TRANSITION_SECONDS,
    UNIT_SYSTEMS,
)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Ignoring settings file {path}: {exc}")
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppSettings:
    """User-adjustable settings."""

    unit_system: str = CANONICAL_UNIT
    default_rest_seconds: int = DEFAULT_REST_SECONDS
    superset_transition_seconds: int = SUPERSET_TRANSITION_SECONDS


def get_bundled_yaml_path() -> Path:
    """Return the path to the bundled settings.yaml."""
    # config_loader.py lives at src/liftlog/core/engine/config_loader.py
    return Path(__file__).parent.parent.parent / "settings.yaml"


def get_user_yaml_path(data_dir: Path | None = None) -> Path:
    """Return the user override path (which may not exist yet)."""
    if data_dir is None:
        home = Path(os.environ.get("HOME", "~")).expanduser()
        data_dir = home / DATA_DIR_NAME
    return data_dir / "settings.yaml"


def load_config(data_dir: Path | None = None) -> dict[str, Any]:
    """
    Load and merge raw settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/liftlog/settings.yaml
    2. User override at <data_dir>/settings.yaml

    Returns:
        Merged dict of settings sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled.exists():
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path(data_dir)
    if user.exists():
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_dict(config: dict[str, Any]) -> AppSettings:
    """Build AppSettings from a merged config dict, falling back per key."""
    units = config.get("units", {}) or {}
    rest = config.get("rest", {}) or {}

    unit_system = str(units.get("unit_system", CANONICAL_UNIT))
    if unit_system not in UNIT_SYSTEMS:
        logger.warning(f"Unknown unit_system {unit_system!r}; using {CANONICAL_UNIT}")
        unit_system = CANONICAL_UNIT

    try:
        default_rest = int(rest.get("default_rest_seconds", DEFAULT_REST_SECONDS))
        transition = int(rest.get("superset_transition_seconds", SUPERSET_TRANSITION_SECONDS))
    except (TypeError, ValueError):
        logger.warning("Invalid rest settings; using defaults")
        default_rest, transition = DEFAULT_REST_SECONDS, SUPERSET_TRANSITION_SECONDS

    return AppSettings(
        unit_system=unit_system,
        default_rest_seconds=max(1, default_rest),
        superset_transition_seconds=max(0, transition),
    )


def load_settings(data_dir: Path | None = None) -> AppSettings:
    """Load the effective settings for ``data_dir`` (default ~/.liftlog)."""
    return settings_from_dict(load_config(data_dir))


def save_user_settings(updates: dict[str, Any], data_dir: Path | None = None) -> Path:
    """
    Merge ``updates`` into the user override file and write it back.

    Args:
        updates: Nested dict of sections to change, e.g. {"units": {"unit_system": "kg"}}
        data_dir: Data directory holding settings.yaml

    Returns:
        Path of the written file
    """
    path = get_user_yaml_path(data_dir)
    current = _load_yaml_file(path) if path.exists() else {}
    merged = _deep_merge(current, updates)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(merged, fh, sort_keys=False)
    return path
