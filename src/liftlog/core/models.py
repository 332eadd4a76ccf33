"""
Data models for liftlog.

All core dataclasses representing routines, the exercise catalog, the
in-progress workout session and finished workout records.  Weights are
always held in the canonical unit (pounds); conversion to the display
unit happens at the input/output boundary only.
"""

from dataclasses import dataclass, field
from typing import Literal

from .config import MEASUREMENT_SITES

SetField = Literal["weight", "reps", "duration"]


@dataclass
class WorkoutSet:
    """
    A single set inside an active workout.

    Rep-based exercises use ``reps``; time-based exercises use ``duration``
    (seconds).  ``completed`` only ever moves from False to True.
    """

    weight: float = 0.0  # canonical unit (lbs)
    reps: int | None = None
    duration: int | None = None
    completed: bool = False
    rest_period: int = 90  # seconds of rest after this set

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps is not None and self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.duration is not None and self.duration < 0:
            raise ValueError("duration must be non-negative")
        if self.rest_period < 0:
            raise ValueError("rest_period must be non-negative")


@dataclass
class ExerciseLog:
    """
    Per-exercise progress inside an active workout.

    ``routine_exercise_index`` points back at the originating entry of the
    stored routine, which may differ from the log's own position when a
    day filter dropped entries.
    """

    exercise_id: str
    exercise_name: str
    default_rest_period: int
    sets: list[WorkoutSet] = field(default_factory=list)
    superset_group: str | None = None
    is_time_based: bool = False
    routine_exercise_index: int = 0

    @property
    def completed_count(self) -> int:
        """Number of completed sets."""
        return sum(1 for s in self.sets if s.completed)

    @property
    def is_done(self) -> bool:
        """True when every set of this exercise is completed."""
        return bool(self.sets) and all(s.completed for s in self.sets)


@dataclass
class RestState:
    """
    Countdown state of the rest timer.

    Both resting indices are None when no rest is active.
    """

    remaining_seconds: int = 0
    paused: bool = False
    resting_exercise_index: int | None = None
    resting_set_index: int | None = None

    def __post_init__(self) -> None:
        """Validate rest state."""
        if self.remaining_seconds < 0:
            raise ValueError("remaining_seconds must be non-negative")
        if (self.resting_exercise_index is None) != (self.resting_set_index is None):
            raise ValueError("resting indices must both be set or both be None")

    @property
    def is_active(self) -> bool:
        """True while a rest countdown is running or paused."""
        return self.resting_exercise_index is not None


@dataclass
class WorkoutSession:
    """
    One attempt at a routine day.

    ``routine_id`` and ``selected_day`` identify the session and key its
    persisted snapshot.  ``start_time`` is an epoch timestamp in seconds.
    """

    routine_id: str
    selected_day: str | None
    start_time: float
    exercise_logs: list[ExerciseLog] = field(default_factory=list)
    current_exercise_index: int = 0
    starting_point_index: int = 0
    rest_state: RestState = field(default_factory=RestState)

    def __post_init__(self) -> None:
        """Validate session pointers."""
        if self.exercise_logs:
            if not 0 <= self.current_exercise_index < len(self.exercise_logs):
                raise ValueError(
                    f"current_exercise_index {self.current_exercise_index} out of range"
                )
            if not 0 <= self.starting_point_index < len(self.exercise_logs):
                raise ValueError(
                    f"starting_point_index {self.starting_point_index} out of range"
                )

    def elapsed_seconds(self, now: float) -> int:
        """Seconds since the session started (never negative)."""
        return max(0, int(now - self.start_time))

    def matches(self, routine_id: str, selected_day: str | None) -> bool:
        """True if this session belongs to the given routine and day."""
        return self.routine_id == routine_id and self.selected_day == selected_day


@dataclass
class SetConfigEntry:
    """Explicit configuration of one set inside a routine exercise."""

    reps: int
    rest_period: int
    duration: int | None = None

    def __post_init__(self) -> None:
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.rest_period < 0:
            raise ValueError("rest_period must be non-negative")


@dataclass
class RoutineExercise:
    """
    One exercise entry of a stored routine.

    Either aggregate (``sets`` × ``reps`` with one ``rest_period``) or, when
    ``sets_config`` is non-empty, an explicit per-set configuration that
    overrides the aggregate fields.
    """

    exercise_id: str
    sets: int
    reps: int
    days: list[str] = field(default_factory=lambda: ["any"])
    rest_period: int | None = None
    sets_config: list[SetConfigEntry] | None = None
    superset_group: str | None = None
    duration: int | None = None  # seconds per set for time-based exercises

    def __post_init__(self) -> None:
        if self.sets < 0:
            raise ValueError("sets must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")

    def runs_on(self, day: str | None) -> bool:
        """True if the exercise is scheduled on ``day`` (None means every day)."""
        if day is None:
            return True
        days = [d.lower() for d in self.days]
        return "any" in days or day.lower() in days


@dataclass
class Routine:
    """A stored workout routine template."""

    id: str
    name: str
    exercises: list[RoutineExercise] = field(default_factory=list)
    description: str | None = None
    created_at: str | None = None  # ISO timestamp

    @property
    def days(self) -> list[str]:
        """Distinct day names used by this routine, in first-seen order."""
        seen: list[str] = []
        for ex in self.exercises:
            for d in ex.days:
                if d.lower() not in seen:
                    seen.append(d.lower())
        return seen


@dataclass(frozen=True)
class CatalogEntry:
    """Read-only exercise catalog entry."""

    exercise_id: str
    name: str
    muscle_group: str = ""
    equipment: str = ""
    is_time_based: bool = False
    description: str = ""


@dataclass
class RecordedExercise:
    """Completed sets of one exercise inside a finished workout."""

    exercise_id: str
    exercise_name: str
    default_rest_period: int | None = None
    sets: list[WorkoutSet] = field(default_factory=list)


@dataclass
class WorkoutRecord:
    """
    A finished workout as appended to history.

    Only exercises with at least one completed set are kept, and only
    their completed sets.
    """

    routine_name: str
    date: str  # ISO timestamp of the session start
    duration: int  # seconds
    exercises: list[RecordedExercise] = field(default_factory=list)
    total_volume: float = 0.0
    routine_id: str | None = None
    day: str | None = None

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError("duration must be non-negative")
        if self.total_volume < 0:
            raise ValueError("total_volume must be non-negative")

    @property
    def set_count(self) -> int:
        """Number of completed sets in this workout."""
        return sum(len(ex.sets) for ex in self.exercises)


@dataclass
class BodyStat:
    """
    One body-stat log entry.

    Any of weight, body fat and measurements may be left out, but not all
    of them.  Measurements map a site in MEASUREMENT_SITES to its
    circumference.
    """

    date: str  # ISO timestamp
    weight: float | None = None  # canonical unit (lbs)
    body_fat: float | None = None  # percent
    measurements: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.weight is not None and not self.weight > 0:
            raise ValueError("weight must be positive")
        if self.body_fat is not None and not 0 < self.body_fat < 100:
            raise ValueError("body fat must be between 0 and 100 percent")
        for site, value in self.measurements.items():
            if site not in MEASUREMENT_SITES:
                raise ValueError(f"Unknown measurement site: {site!r}")
            if not value > 0:
                raise ValueError(f"{site} must be positive")
        if self.weight is None and self.body_fat is None and not self.measurements:
            raise ValueError("Body stat needs a weight, body fat or measurement")
