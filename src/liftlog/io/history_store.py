"""
JSONL-based history storage for finished workouts.

Handles reading, writing, and managing the workout history file.
"""

import json
from pathlib import Path

from ..core.config import DATA_DIR_NAME
from ..core.models import WorkoutRecord
from .serializers import ValidationError, dict_to_workout_record, workout_to_json_line


class HistoryStore:
    """
    Manages workout history stored in JSONL format.

    The history file contains one JSON object per line, one line per
    finished workout.
    """

    def __init__(self, history_path: str | Path):
        """
        Initialize the history store.

        Args:
            history_path: Path to the JSONL history file
        """
        self.history_path = Path(history_path)

    def exists(self) -> bool:
        """Check if the history file exists."""
        return self.history_path.exists()

    def init(self) -> None:
        """
        Initialize empty history file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.history_path.exists():
            self.history_path.touch()

    def load_history(self) -> list[WorkoutRecord]:
        """
        Load all workouts from the history file.

        Returns:
            List of WorkoutRecord, sorted by date (empty if no file yet)

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.history_path.exists():
            return []

        workouts: list[WorkoutRecord] = []

        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    data = json.loads(line)
                    workouts.append(dict_to_workout_record(data))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        workouts.sort(key=lambda w: w.date)
        return workouts

    def append_workout(self, record: WorkoutRecord) -> None:
        """
        Append a finished workout to the history file.

        Args:
            record: Workout to append

        Raises:
            OSError: If the file cannot be written
        """
        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(workout_to_json_line(record) + "\n")

    def _write_workouts(self, workouts: list[WorkoutRecord]) -> None:
        with open(self.history_path, "w", encoding="utf-8") as f:
            for record in workouts:
                f.write(workout_to_json_line(record) + "\n")

    def get_latest_workout(self) -> WorkoutRecord | None:
        """
        Get the most recent workout.

        Returns:
            Latest WorkoutRecord or None if no history
        """
        workouts = self.load_history()
        return workouts[-1] if workouts else None

    def delete_workout_at(self, index: int) -> WorkoutRecord:
        """
        Delete the workout at the given 0-based index in sorted history.

        Args:
            index: 0-based index

        Returns:
            The deleted workout

        Raises:
            IndexError: If index is out of range
        """
        workouts = self.load_history()
        if index < 0 or index >= len(workouts):
            raise IndexError(f"Workout index {index} out of range (0–{len(workouts) - 1})")
        removed = workouts.pop(index)
        self._write_workouts(workouts)
        return removed


def get_default_data_dir() -> Path:
    """Return the default data directory (~/.liftlog)."""
    return Path.home() / DATA_DIR_NAME
