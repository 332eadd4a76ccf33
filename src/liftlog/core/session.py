"""
Active workout session state.

Functions here are the only code that mutates a WorkoutSession.  They are
synchronous and free of I/O; persistence, history and routine write-back
are sequenced by core/manager.py.
"""

import math
import time
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from . import rest_timer
from .config import (
    DEFAULT_REST_SECONDS,
    REST_EDIT_MAX_SECONDS,
    REST_EDIT_MIN_SECONDS,
    SUPERSET_TRANSITION_SECONDS,
)
from .errors import SetValidationError
from .exercises.base import ExerciseCatalog
from .metrics import total_volume
from .models import (
    ExerciseLog,
    RecordedExercise,
    Routine,
    SetField,
    WorkoutRecord,
    WorkoutSession,
    WorkoutSet,
)
from .set_spec import build_workout_sets, set_spec_for
from .units import to_canonical


@dataclass
class SetCompletion:
    """Outcome of completing a set."""

    rest_seconds: int
    advanced: bool  # current exercise pointer moved
    exercise_complete: bool
    workout_complete: bool


# =============================================================================
# Creation
# =============================================================================


def initialize_session(
    routine: Routine,
    day: str | None,
    catalog: ExerciseCatalog,
    starting_index: int = 0,
    now: float | None = None,
    default_rest: int = DEFAULT_REST_SECONDS,
) -> WorkoutSession:
    """
    Build a fresh session for one routine day.

    Exercises not scheduled on ``day`` are left out.  An exercise with an
    explicit per-set configuration gets one set per entry; otherwise its
    aggregate sets/reps/rest fields are expanded into uniform sets.  IDs
    missing from the catalog get a placeholder name.

    Args:
        routine: Stored routine template
        day: Day name to filter on, or None for every exercise
        catalog: Exercise catalog for names and time-based flags
        starting_index: Exercise to start from (clamped into range)
        now: Epoch seconds of the start (default: current time)
        default_rest: Rest used when an entry has none

    Returns:
        New WorkoutSession
    """
    logs: list[ExerciseLog] = []
    for routine_index, ex in enumerate(routine.exercises):
        if not ex.runs_on(day):
            continue
        default_rest_period = ex.rest_period or default_rest
        logs.append(
            ExerciseLog(
                exercise_id=ex.exercise_id,
                exercise_name=catalog.display_name(ex.exercise_id),
                default_rest_period=default_rest_period,
                sets=build_workout_sets(set_spec_for(ex, default_rest)),
                superset_group=ex.superset_group or None,
                is_time_based=catalog.is_time_based(ex.exercise_id),
                routine_exercise_index=routine_index,
            )
        )

    start = 0
    if logs:
        start = max(0, min(int(starting_index), len(logs) - 1))

    return WorkoutSession(
        routine_id=routine.id,
        selected_day=day,
        start_time=time.time() if now is None else now,
        exercise_logs=logs,
        current_exercise_index=start,
        starting_point_index=start,
    )


# =============================================================================
# Field edits
# =============================================================================


def _get_log(session: WorkoutSession, exercise_index: int) -> ExerciseLog:
    if not 0 <= exercise_index < len(session.exercise_logs):
        raise IndexError(f"Exercise index {exercise_index} out of range")
    return session.exercise_logs[exercise_index]


def _get_set(session: WorkoutSession, exercise_index: int, set_index: int) -> WorkoutSet:
    log = _get_log(session, exercise_index)
    if not 0 <= set_index < len(log.sets):
        raise IndexError(
            f"Set index {set_index} out of range for {log.exercise_name}"
        )
    return log.sets[set_index]


def parse_non_negative(raw_value: Any) -> float | None:
    """
    Parse user input as a non-negative finite number.

    Returns None for empty, non-numeric, NaN/inf or negative input.
    """
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, (int, float)):
        value = float(raw_value)
    else:
        text = str(raw_value).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def update_set_field(
    session: WorkoutSession,
    exercise_index: int,
    set_index: int,
    field: SetField,
    raw_value: Any,
    unit: str = "lbs",
) -> bool:
    """
    Update weight, reps or duration of one set from raw user input.

    Invalid input is rejected silently so partially typed values never
    raise: the set is left untouched and False is returned.  Reps and
    duration must be whole numbers.  Weight is converted from ``unit`` to
    the canonical unit before it is stored.  Completed sets are read-only.

    Raises:
        IndexError: If the exercise or set index does not exist
        ValueError: If ``field`` is not an editable set field
    """
    if field not in ("weight", "reps", "duration"):
        raise ValueError(f"Unknown set field: {field!r}")

    workout_set = _get_set(session, exercise_index, set_index)
    if workout_set.completed:
        return False

    value = parse_non_negative(raw_value)
    if value is None:
        return False

    if field == "weight":
        workout_set.weight = to_canonical(value, unit)
        return True

    if not value.is_integer():
        return False
    setattr(workout_set, field, int(value))
    return True


# =============================================================================
# Completion and navigation
# =============================================================================


def next_exercise_index(session: WorkoutSession, exercise_index: int) -> int | None:
    """
    Index to move to after ``exercise_index`` is finished, or None to stay.

    Past the last exercise the pointer wraps to 0 only for sessions that
    started part-way through the routine.  Such a loop is closed at the
    starting point: the exercise just before it never advances back into
    already-visited territory.
    """
    n = len(session.exercise_logs)
    candidate = exercise_index + 1
    if candidate >= n:
        if session.starting_point_index <= 0:
            return None
        candidate = 0
    # Closed loop: the exercise just before the starting point stays put
    # rather than moving back onto the starting point.
    if session.starting_point_index > 0 and candidate == session.starting_point_index:
        return None
    return candidate


def resolve_rest_seconds(
    session: WorkoutSession,
    exercise_index: int,
    set_index: int,
    superset_transition: int = SUPERSET_TRANSITION_SECONDS,
) -> int:
    """
    Rest to take after completing a set.

    The set's own rest period is used, except after the last set of an
    exercise whose adjacent next exercise shares its superset group; that
    transition is capped at ``superset_transition`` seconds.
    """
    log = _get_log(session, exercise_index)
    workout_set = _get_set(session, exercise_index, set_index)
    rest = workout_set.rest_period if workout_set.rest_period > 0 else log.default_rest_period

    is_last = set_index == len(log.sets) - 1
    next_index = exercise_index + 1
    if (
        is_last
        and log.superset_group
        and next_index < len(session.exercise_logs)
        and session.exercise_logs[next_index].superset_group == log.superset_group
    ):
        return min(rest, superset_transition)
    return rest


def complete_set(
    session: WorkoutSession,
    exercise_index: int,
    set_index: int,
    superset_transition: int = SUPERSET_TRANSITION_SECONDS,
) -> SetCompletion:
    """
    Mark a set as completed and start the rest that follows it.

    Finishing the last set of an exercise whose other sets are all done
    advances the current exercise pointer (see next_exercise_index).

    Raises:
        IndexError: If the exercise or set index does not exist
        SetValidationError: If the set has no positive reps (duration for
            time-based exercises) or is already completed
    """
    log = _get_log(session, exercise_index)
    workout_set = _get_set(session, exercise_index, set_index)

    if workout_set.completed:
        raise SetValidationError(
            f"Set {set_index + 1} of {log.exercise_name} is already completed"
        )
    if log.is_time_based:
        if not workout_set.duration or workout_set.duration <= 0:
            raise SetValidationError("Enter a positive duration before completing the set")
    elif not workout_set.reps or workout_set.reps <= 0:
        raise SetValidationError("Enter a positive number of reps before completing the set")

    workout_set.completed = True

    advanced = False
    is_last = set_index == len(log.sets) - 1
    if is_last and log.is_done:
        target = next_exercise_index(session, exercise_index)
        if target is not None:
            session.current_exercise_index = target
            advanced = True

    rest = resolve_rest_seconds(session, exercise_index, set_index, superset_transition)
    session.rest_state = rest_timer.start_rest(
        session.rest_state, rest, exercise_index, set_index
    )

    return SetCompletion(
        rest_seconds=rest,
        advanced=advanced,
        exercise_complete=log.is_done,
        workout_complete=is_complete(session),
    )


def go_to_exercise(session: WorkoutSession, index: int) -> int:
    """Point the session at ``index`` (clamped into range) and return it."""
    if not session.exercise_logs:
        return 0
    session.current_exercise_index = max(0, min(int(index), len(session.exercise_logs) - 1))
    return session.current_exercise_index


def add_set(session: WorkoutSession, exercise_index: int) -> int:
    """
    Append a set to an exercise for this session.

    The new set copies the previous set's weight, reps and duration and
    uses the exercise's default rest period.

    Returns:
        Index of the new set
    """
    log = _get_log(session, exercise_index)
    previous = log.sets[-1] if log.sets else None
    log.sets.append(
        WorkoutSet(
            weight=previous.weight if previous else 0.0,
            reps=previous.reps if previous else None,
            duration=previous.duration if previous else None,
            completed=False,
            rest_period=log.default_rest_period,
        )
    )
    return len(log.sets) - 1


def change_rest_period(
    session: WorkoutSession, seconds: int
) -> tuple[int, int, int] | None:
    """
    Change the rest of the set currently being rested after.

    The value is clamped to the editable range, written to that set and
    the countdown restarts from it.

    Returns:
        (exercise_index, set_index, clamped_seconds), or None when no rest
        is active
    """
    state = session.rest_state
    ei, si = state.resting_exercise_index, state.resting_set_index
    if ei is None or si is None:
        return None

    clamped = max(REST_EDIT_MIN_SECONDS, min(REST_EDIT_MAX_SECONDS, int(seconds)))
    _get_set(session, ei, si).rest_period = clamped
    session.rest_state = rest_timer.start_rest(state, clamped, ei, si)
    return ei, si, clamped


# =============================================================================
# Summary
# =============================================================================


def is_complete(session: WorkoutSession) -> bool:
    """True iff every set of every exercise is completed."""
    return all(s.completed for log in session.exercise_logs for s in log.sets)


def finish_session(
    session: WorkoutSession,
    routine_name: str,
    now: float | None = None,
) -> WorkoutRecord:
    """
    Snapshot the completed part of a session as a history record.

    Only exercises with at least one completed set are kept, and only
    their completed sets.  The session itself is not modified.
    """
    now = time.time() if now is None else now
    exercises = [
        RecordedExercise(
            exercise_id=log.exercise_id,
            exercise_name=log.exercise_name,
            default_rest_period=log.default_rest_period,
            sets=[replace(s) for s in log.sets if s.completed],
        )
        for log in session.exercise_logs
        if any(s.completed for s in log.sets)
    ]

    return WorkoutRecord(
        routine_name=routine_name,
        date=datetime.fromtimestamp(session.start_time).isoformat(timespec="seconds"),
        duration=session.elapsed_seconds(now),
        exercises=exercises,
        total_volume=total_volume(session.exercise_logs),
        routine_id=session.routine_id,
        day=session.selected_day,
    )
