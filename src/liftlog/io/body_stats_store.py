"""
JSONL storage for body-stat entries (body weight, body fat, measurements).

Lives next to the workout history and follows the same one-object-per-line
format.
"""

import json
from pathlib import Path

from ..core.models import BodyStat
from .serializers import ValidationError, body_stat_to_json_line, dict_to_body_stat


class BodyStatsStore:
    """Manages body-stat entries stored in JSONL format."""

    def __init__(self, stats_path: str | Path):
        self.stats_path = Path(stats_path)

    def exists(self) -> bool:
        return self.stats_path.exists()

    def init(self) -> None:
        """Create an empty file (and parent directories) if missing."""
        self.stats_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.stats_path.exists():
            self.stats_path.touch()

    def load_stats(self) -> list[BodyStat]:
        """
        Load all entries, sorted by date.

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.stats_path.exists():
            return []

        stats: list[BodyStat] = []
        with open(self.stats_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    stats.append(dict_to_body_stat(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.stats_path}: {e}"
                    ) from e

        stats.sort(key=lambda s: s.date)
        return stats

    def append_stat(self, stat: BodyStat) -> None:
        self.stats_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.stats_path, "a", encoding="utf-8") as f:
            f.write(body_stat_to_json_line(stat) + "\n")

    def get_latest(self) -> BodyStat | None:
        stats = self.load_stats()
        return stats[-1] if stats else None

    def delete_stat_at(self, index: int) -> BodyStat:
        """
        Delete the entry at the given 0-based index in date order.

        Raises:
            IndexError: If index is out of range
        """
        stats = self.load_stats()
        if index < 0 or index >= len(stats):
            raise IndexError(f"Body stat index {index} out of range")
        removed = stats.pop(index)
        with open(self.stats_path, "w", encoding="utf-8") as f:
            for stat in stats:
                f.write(body_stat_to_json_line(stat) + "\n")
        return removed
