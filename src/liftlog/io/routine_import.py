"""
Routine definitions written by hand in YAML.

Example::

    name: Push Day
    description: Chest, shoulders and triceps
    exercises:
      - exercise: barbell-bench-press
        sets: 3
        reps: 8
        rest: 120
        days: [monday, thursday]
      - exercise: cable-flyes
        superset: A
        sets_config:
          - {reps: 12, rest: 60}
          - {reps: 10, rest: 60}
      - exercise: plank
        sets: 3
        duration: 45

Keys are translated to the stored (camelCase) form and validated by the
same code that reads ``routines.json``.
"""

from pathlib import Path
from typing import Any

import yaml

from ..core.config import DEFAULT_REST_SECONDS
from ..core.exercises.base import ExerciseCatalog
from ..core.models import RoutineExercise
from .serializers import ValidationError, dict_to_routine_exercise

# YAML key → stored key
_EXERCISE_KEYS = {
    "exercise": "exerciseId",
    "id": "exerciseId",
    "sets": "sets",
    "reps": "reps",
    "rest": "restPeriod",
    "days": "days",
    "superset": "supersetGroup",
    "duration": "duration",
}

_SET_CONFIG_KEYS = {
    "reps": "reps",
    "rest": "restPeriod",
    "duration": "duration",
}


def _translate(data: dict[str, Any], keys: dict[str, str], where: str) -> dict[str, Any]:
    unknown = set(data) - set(keys) - {"sets_config"}
    if unknown:
        raise ValidationError(f"{where}: unknown keys {sorted(unknown)}")
    return {keys[k]: v for k, v in data.items() if k in keys}


def routine_exercise_from_yaml(data: Any, position: int) -> RoutineExercise:
    """
    Convert one YAML exercise entry.

    Raises:
        ValidationError: If the entry is malformed
    """
    where = f"exercise #{position}"
    if not isinstance(data, dict):
        raise ValidationError(f"{where}: expected a mapping, got {data!r}")

    stored = _translate(data, _EXERCISE_KEYS, where)
    if isinstance(stored.get("days"), str):
        stored["days"] = [stored["days"]]
    if stored.get("supersetGroup") is not None:
        stored["supersetGroup"] = str(stored["supersetGroup"])

    raw_config = data.get("sets_config")
    if raw_config:
        if not isinstance(raw_config, list):
            raise ValidationError(f"{where}: sets_config must be a list")
        stored["setsConfig"] = [
            _translate(entry, _SET_CONFIG_KEYS, f"{where} set {j}")
            for j, entry in enumerate(raw_config, 1)
            if isinstance(entry, dict)
        ]
        if len(stored["setsConfig"]) != len(raw_config):
            raise ValidationError(f"{where}: every sets_config entry must be a mapping")
        for entry in stored["setsConfig"]:
            entry.setdefault("reps", 0)
            entry.setdefault("restPeriod", stored.get("restPeriod") or DEFAULT_REST_SECONDS)

    try:
        return dict_to_routine_exercise(stored)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{where}: {e}") from e


def parse_routine_yaml(text: str) -> tuple[str, str | None, list[RoutineExercise]]:
    """
    Parse a routine definition.

    Returns:
        (name, description, exercises)

    Raises:
        ValidationError: If the YAML is invalid or incomplete
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError("Routine file must be a mapping with 'name' and 'exercises'")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Routine needs a non-empty 'name'")

    raw_exercises = data.get("exercises")
    if not isinstance(raw_exercises, list) or not raw_exercises:
        raise ValidationError("Routine needs a non-empty 'exercises' list")

    exercises = [
        routine_exercise_from_yaml(entry, i) for i, entry in enumerate(raw_exercises, 1)
    ]
    description = data.get("description")
    return name.strip(), str(description) if description else None, exercises


def load_routine_file(path: str | Path) -> tuple[str, str | None, list[RoutineExercise]]:
    """Read and parse a routine YAML file (OSError propagates)."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_routine_yaml(f.read())


def unknown_exercise_ids(exercises: list[RoutineExercise], catalog: ExerciseCatalog) -> list[str]:
    """IDs referenced by ``exercises`` that the catalog does not know."""
    return [ex.exercise_id for ex in exercises if ex.exercise_id not in catalog]


def get_sample_routine_path() -> Path:
    """Return the path to the bundled sample routine."""
    return Path(__file__).parent.parent / "sample_routine.yaml"
