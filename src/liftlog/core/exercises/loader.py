"""
YAML → CatalogEntry loader.

Loads the exercise catalog from the bundled ``src/liftlog/exercises.yaml``.
User overrides live in ``~/.liftlog/exercises.yaml`` with the same layout:
an entry whose ``id`` matches a bundled exercise is merged over it, so only
changed keys need to be listed; any other entry is added as a new exercise.

Usage (internal, called by registry.py):
    from .loader import load_catalog_entries
    entries = load_catalog_entries()
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from ..config import DATA_DIR_NAME
from ..models import CatalogEntry

_REQUIRED_FIELDS: frozenset[str] = frozenset({"id", "name"})


def entry_from_dict(d: dict) -> CatalogEntry:
    """Convert a raw dict (from YAML) to a CatalogEntry.

    Raises ValueError if any required field is absent.
    """
    missing = _REQUIRED_FIELDS - set(d)
    if missing:
        raise ValueError(f"exercise entry missing fields: {sorted(missing)}")
    return CatalogEntry(
        exercise_id=str(d["id"]),
        name=str(d["name"]),
        muscle_group=str(d.get("muscle_group", "")),
        equipment=str(d.get("equipment", "")),
        is_time_based=bool(d.get("time_based", False)),
        description=str(d.get("description", "")),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} on any error."""
    import yaml

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Could not read exercise file {path}: {exc}")
        return {}


def get_bundled_catalog_path() -> Path:
    """Return the path to the bundled exercises.yaml."""
    # loader.py lives at src/liftlog/core/exercises/loader.py
    return Path(__file__).parent.parent.parent / "exercises.yaml"


def get_user_catalog_path() -> Path | None:
    """Return ~/.liftlog/exercises.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / DATA_DIR_NAME / "exercises.yaml"
    return p if p.exists() else None


def _raw_entries(path: Path) -> list[dict]:
    raw = _load_yaml_file(path).get("exercises", [])
    return [e for e in raw if isinstance(e, dict)] if isinstance(raw, list) else []


def load_catalog_entries(
    bundled_path: Path | None = None,
    user_path: Path | None = None,
) -> list[CatalogEntry]:
    """Return catalog entries from the bundled file merged with user overrides.

    Entries that fail validation are skipped with a warning rather than
    aborting the whole catalog.
    """
    bundled_path = bundled_path or get_bundled_catalog_path()
    user_path = user_path if user_path is not None else get_user_catalog_path()

    merged: dict[str, dict] = {}
    for d in _raw_entries(bundled_path):
        if "id" in d:
            merged[str(d["id"])] = dict(d)

    if user_path is not None:
        for d in _raw_entries(user_path):
            if "id" not in d:
                continue
            key = str(d["id"])
            merged[key] = {**merged.get(key, {}), **d}

    entries: list[CatalogEntry] = []
    for key, d in merged.items():
        try:
            entries.append(entry_from_dict(d))
        except ValueError as exc:
            logger.warning(f"Skipping exercise '{key}': {exc}")
    return entries
