"""
Durable snapshot of the in-progress workout.

The session is mirrored to a key-value store after every change so a
workout can be resumed after the process exits.  A stored snapshot is
only resumed when its routine and day match the requested ones; anything
else (mismatch, corrupt content) is discarded and a fresh session is built.

Cache failures are logged and never propagate: the in-memory session is
the source of truth while the workout runs.
"""

import json
from pathlib import Path
from typing import Protocol

from loguru import logger

from ..core.config import ACTIVE_WORKOUT_KEY
from ..core.models import WorkoutSession
from .serializers import ValidationError, json_to_session, session_to_json


class KeyValueStore(Protocol):
    """
    Minimal string key-value contract.

    ``get`` returns None for a missing key; ``delete`` of a missing key is
    a no-op.
    """

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local key-value store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """
    File-backed key-value store: one ``<key>.json`` file per key.

    Writes go to a temporary file that replaces the target, so a crash
    mid-write leaves the previous value intact.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class SessionCache:
    """Mirrors the active WorkoutSession into a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: str = ACTIVE_WORKOUT_KEY):
        self.store = store
        self.key = key

    def save(self, session: WorkoutSession) -> bool:
        """
        Snapshot ``session``.

        An empty shell (no exercise logs yet) is not persisted.

        Returns:
            True if the snapshot was written
        """
        if not session.exercise_logs:
            return False
        try:
            self.store.put(self.key, session_to_json(session))
        except (OSError, TypeError, ValueError) as exc:
            logger.warning(f"Could not save workout snapshot: {exc}")
            return False
        return True

    def peek(self) -> WorkoutSession | None:
        """Return the stored session regardless of routine/day, or None."""
        try:
            raw = self.store.get(self.key)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read workout snapshot: {exc}")
            return None
        if raw is None:
            return None
        try:
            return json_to_session(raw)
        except ValidationError as exc:
            logger.warning(f"Discarding corrupt workout snapshot: {exc}")
            self.erase()
            return None

    def load(self, routine_id: str, selected_day: str | None) -> WorkoutSession | None:
        """
        Return the stored session if it belongs to ``routine_id``/``selected_day``.

        A snapshot for another routine or day is stale: it is erased and
        None is returned.
        """
        session = self.peek()
        if session is None:
            return None
        if not session.matches(routine_id, selected_day) or not session.exercise_logs:
            logger.info(
                f"Discarding stale workout snapshot for routine {session.routine_id} "
                f"({session.selected_day or 'all days'})"
            )
            self.erase()
            return None
        logger.debug(f"Restored workout snapshot for routine {routine_id}")
        return session

    def erase(self) -> None:
        try:
            self.store.delete(self.key)
        except OSError as exc:
            logger.warning(f"Could not erase workout snapshot: {exc}")


def dump_snapshot(session: WorkoutSession) -> str:
    """Pretty JSON of a session snapshot, for display and export."""
    return json.dumps(json.loads(session_to_json(session)), indent=2)
