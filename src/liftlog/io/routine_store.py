"""
JSON-based storage for workout routines.

All routines live in a single ``routines.json`` file::

    {"routines": [{"id": ..., "name": ..., "exercises": [...]}, ...]}
"""

import json
import uuid
from datetime import datetime
from pathlib import Path

from loguru import logger

from ..core.models import Routine, RoutineExercise
from .serializers import ValidationError, dict_to_routine, routine_to_dict


class RoutineNotFoundError(LookupError):
    """Raised when a routine ID is not in the store."""


class RoutineStore:
    """Manages routine templates stored in a JSON file."""

    def __init__(self, routines_path: str | Path):
        """
        Initialize the routine store.

        Args:
            routines_path: Path to the routines JSON file
        """
        self.routines_path = Path(routines_path)

    def exists(self) -> bool:
        return self.routines_path.exists()

    def init(self) -> None:
        """Create an empty routines file (and parent directories) if missing."""
        self.routines_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.routines_path.exists():
            self._write([])

    def load_routines(self) -> list[Routine]:
        """
        Load all routines, newest first.

        Returns:
            List of routines (empty if the file does not exist)

        Raises:
            ValidationError: If the file is corrupt
        """
        if not self.routines_path.exists():
            return []

        try:
            with open(self.routines_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.routines_path}: {e}") from e

        raw = data.get("routines", []) if isinstance(data, dict) else []
        routines = [dict_to_routine(r) for r in raw]
        routines.sort(key=lambda r: r.created_at or "", reverse=True)
        return routines

    def get_routine(self, routine_id: str) -> Routine:
        """
        Return one routine by ID.

        Raises:
            RoutineNotFoundError: If no routine has this ID
        """
        for routine in self.load_routines():
            if routine.id == routine_id:
                return routine
        raise RoutineNotFoundError(f"Routine not found: {routine_id}")

    def find_routine(self, key: str) -> Routine:
        """
        Look up a routine by ID, ID prefix or case-insensitive name.

        Raises:
            RoutineNotFoundError: If nothing (or more than one routine) matches
        """
        routines = self.load_routines()
        for r in routines:
            if r.id == key:
                return r
        matches = [
            r for r in routines
            if r.id.startswith(key) or r.name.lower() == key.lower()
        ]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise RoutineNotFoundError(f"'{key}' matches {len(matches)} routines; use the full ID")
        raise RoutineNotFoundError(f"Routine not found: {key}")

    def create_routine(
        self,
        name: str,
        exercises: list[RoutineExercise],
        description: str | None = None,
    ) -> Routine:
        """Store a new routine with a generated ID and creation timestamp."""
        routine = Routine(
            id=str(uuid.uuid4()),
            name=name,
            exercises=list(exercises),
            description=description,
            created_at=datetime.now().isoformat(timespec="seconds"),
        )
        self.save_routine(routine)
        return routine

    def save_routine(self, routine: Routine) -> None:
        """Insert ``routine`` or replace the stored routine with the same ID."""
        routines = self.load_routines()
        for i, existing in enumerate(routines):
            if existing.id == routine.id:
                routines[i] = routine
                break
        else:
            routines.append(routine)
        self._write(routines)

    def update_exercises(self, routine_id: str, exercises: list[RoutineExercise]) -> Routine:
        """
        Replace the exercise list of one routine (partial update).

        Raises:
            RoutineNotFoundError: If no routine has this ID
        """
        routines = self.load_routines()
        for i, existing in enumerate(routines):
            if existing.id == routine_id:
                existing.exercises = list(exercises)
                routines[i] = existing
                self._write(routines)
                logger.debug(f"Updated exercises of routine {routine_id}")
                return existing
        raise RoutineNotFoundError(f"Routine not found: {routine_id}")

    def delete_routine(self, routine_id: str) -> None:
        """
        Delete one routine.

        Raises:
            RoutineNotFoundError: If no routine has this ID
        """
        routines = self.load_routines()
        remaining = [r for r in routines if r.id != routine_id]
        if len(remaining) == len(routines):
            raise RoutineNotFoundError(f"Routine not found: {routine_id}")
        self._write(remaining)

    def _write(self, routines: list[Routine]) -> None:
        self.routines_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.routines_path, "w", encoding="utf-8") as f:
            json.dump({"routines": [routine_to_dict(r) for r in routines]}, f, indent=2)
