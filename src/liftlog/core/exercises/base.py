"""
Exercise catalog lookup.

The catalog is a read-only mapping from exercise ID to its display name,
equipment class and whether it is time-based.  Unknown IDs never fail a
lookup that only needs a display name: they degrade to a placeholder.
"""

from typing import Iterable

from ..config import PLACEHOLDER_EXERCISE_NAME
from ..models import CatalogEntry


class ExerciseCatalog:
    """In-memory exercise catalog."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()):
        self._entries: dict[str, CatalogEntry] = {e.exercise_id: e for e in entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._entries

    def get(self, exercise_id: str) -> CatalogEntry | None:
        """Return the entry for ``exercise_id`` or None."""
        return self._entries.get(exercise_id)

    def require(self, exercise_id: str) -> CatalogEntry:
        """
        Return the entry for ``exercise_id``.

        Raises:
            ValueError: If the ID is not in the catalog
        """
        entry = self._entries.get(exercise_id)
        if entry is None:
            raise ValueError(f"Unknown exercise '{exercise_id}'")
        return entry

    def display_name(self, exercise_id: str) -> str:
        entry = self._entries.get(exercise_id)
        return entry.name if entry is not None else PLACEHOLDER_EXERCISE_NAME

    def is_time_based(self, exercise_id: str) -> bool:
        entry = self._entries.get(exercise_id)
        return entry.is_time_based if entry is not None else False

    def all(self) -> list[CatalogEntry]:
        """All entries sorted by muscle group, then name."""
        return sorted(self._entries.values(), key=lambda e: (e.muscle_group, e.name))
