"""
JSON serialization for liftlog data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Keys use
camelCase where the routine/workout documents are shared with other
clients (``exerciseId``, ``setsConfig``, ``restPeriod``).
"""

import json
import math
from typing import Any

from ..core.errors import LiftlogError
from ..core.models import (
    BodyStat,
    ExerciseLog,
    RecordedExercise,
    RestState,
    Routine,
    RoutineExercise,
    SetConfigEntry,
    WorkoutRecord,
    WorkoutSession,
    WorkoutSet,
)


class ValidationError(LiftlogError):
    """Raised when stored data fails validation."""

    pass


def validate_non_negative(value: Any, name: str) -> float:
    """
    Validate that a value is a finite, non-negative number.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value as float

    Raises:
        ValidationError: If value is not a number or is negative
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return float(value)


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    return int(validate_non_negative(value, key))


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValidationError(f"Missing field: {key}")
    return data[key]


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _require_list(data: Any, what: str) -> list[Any]:
    if not isinstance(data, list):
        raise ValidationError(f"{what} must be a list, got {type(data).__name__}")
    return data


# =============================================================================
# Sets
# =============================================================================


def workout_set_to_dict(workout_set: WorkoutSet) -> dict[str, Any]:
    """
    Convert WorkoutSet to JSON-compatible dict.

    ``duration`` is only written for time-based sets.
    """
    d: dict[str, Any] = {
        "weight": workout_set.weight,
        "reps": workout_set.reps,
        "completed": workout_set.completed,
        "restPeriod": workout_set.rest_period,
    }
    if workout_set.duration is not None:
        d["duration"] = workout_set.duration
    return d


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    Raises:
        ValidationError: If data is invalid
    """
    _require_object(data, "Set")
    return WorkoutSet(
        weight=validate_non_negative(data.get("weight", 0.0), "weight"),
        reps=_optional_int(data, "reps"),
        duration=_optional_int(data, "duration"),
        completed=bool(data.get("completed", False)),
        rest_period=int(validate_non_negative(data.get("restPeriod", 0), "restPeriod")),
    )


def set_config_to_dict(entry: SetConfigEntry) -> dict[str, Any]:
    d: dict[str, Any] = {"reps": entry.reps, "restPeriod": entry.rest_period}
    if entry.duration is not None:
        d["duration"] = entry.duration
    return d


def dict_to_set_config(data: dict[str, Any]) -> SetConfigEntry:
    _require_object(data, "setsConfig entry")
    return SetConfigEntry(
        reps=int(validate_non_negative(data.get("reps", 0), "reps")),
        rest_period=int(validate_non_negative(_require(data, "restPeriod"), "restPeriod")),
        duration=_optional_int(data, "duration"),
    )


# =============================================================================
# Routines
# =============================================================================


def routine_exercise_to_dict(exercise: RoutineExercise) -> dict[str, Any]:
    """
    Convert RoutineExercise to JSON-compatible dict.

    Optional fields are only written when set.
    """
    d: dict[str, Any] = {
        "exerciseId": exercise.exercise_id,
        "sets": exercise.sets,
        "reps": exercise.reps,
        "days": list(exercise.days),
    }
    if exercise.rest_period is not None:
        d["restPeriod"] = exercise.rest_period
    if exercise.sets_config:
        d["setsConfig"] = [set_config_to_dict(e) for e in exercise.sets_config]
    if exercise.superset_group:
        d["supersetGroup"] = exercise.superset_group
    if exercise.duration is not None:
        d["duration"] = exercise.duration
    return d


def dict_to_routine_exercise(data: dict[str, Any]) -> RoutineExercise:
    """
    Convert dict to RoutineExercise.

    Raises:
        ValidationError: If data is invalid
    """
    _require_object(data, "Routine exercise")
    exercise_id = _require(data, "exerciseId")
    if not isinstance(exercise_id, str) or not exercise_id.strip():
        raise ValidationError(f"Invalid exerciseId: {exercise_id!r}")

    days = data.get("days") or ["any"]
    if not isinstance(days, list) or not all(isinstance(d, str) for d in days):
        raise ValidationError(f"days must be a list of day names, got {days!r}")

    raw_config = data.get("setsConfig")
    sets_config = None
    if raw_config:
        sets_config = [dict_to_set_config(e) for e in _require_list(raw_config, "setsConfig")]

    sets = data.get("sets")
    if sets is None:
        sets = len(sets_config) if sets_config else 0

    return RoutineExercise(
        exercise_id=exercise_id,
        sets=int(validate_non_negative(sets, "sets")),
        reps=int(validate_non_negative(data.get("reps", 0), "reps")),
        days=[d.lower() for d in days],
        rest_period=_optional_int(data, "restPeriod"),
        sets_config=sets_config,
        superset_group=data.get("supersetGroup") or None,
        duration=_optional_int(data, "duration"),
    )


def routine_to_dict(routine: Routine) -> dict[str, Any]:
    return {
        "id": routine.id,
        "name": routine.name,
        "description": routine.description,
        "exercises": [routine_exercise_to_dict(e) for e in routine.exercises],
        "createdAt": routine.created_at,
    }


def dict_to_routine(data: dict[str, Any]) -> Routine:
    """
    Convert dict to Routine.

    Raises:
        ValidationError: If data is invalid
    """
    _require_object(data, "Routine")
    name = _require(data, "name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Invalid routine name: {name!r}")
    exercises = data.get("exercises", [])
    if not isinstance(exercises, list):
        raise ValidationError("exercises must be a list")
    try:
        return Routine(
            id=str(_require(data, "id")),
            name=name,
            description=data.get("description"),
            exercises=[dict_to_routine_exercise(e) for e in exercises],
            created_at=data.get("createdAt"),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid routine {data.get('id')!r}: {e}") from e


# =============================================================================
# Active session
# =============================================================================


def exercise_log_to_dict(log: ExerciseLog) -> dict[str, Any]:
    return {
        "exerciseId": log.exercise_id,
        "exerciseName": log.exercise_name,
        "defaultRestPeriod": log.default_rest_period,
        "supersetGroup": log.superset_group,
        "isTimeBased": log.is_time_based,
        "routineExerciseIndex": log.routine_exercise_index,
        "sets": [workout_set_to_dict(s) for s in log.sets],
    }


def dict_to_exercise_log(data: dict[str, Any]) -> ExerciseLog:
    _require_object(data, "Exercise log")
    return ExerciseLog(
        exercise_id=str(_require(data, "exerciseId")),
        exercise_name=str(_require(data, "exerciseName")),
        default_rest_period=int(
            validate_non_negative(data.get("defaultRestPeriod", 0), "defaultRestPeriod")
        ),
        sets=[dict_to_workout_set(s) for s in _require_list(_require(data, "sets"), "sets")],
        superset_group=data.get("supersetGroup") or None,
        is_time_based=bool(data.get("isTimeBased", False)),
        routine_exercise_index=int(data.get("routineExerciseIndex", 0)),
    )


def rest_state_to_dict(state: RestState) -> dict[str, Any]:
    return {
        "remainingSeconds": state.remaining_seconds,
        "paused": state.paused,
        "restingExerciseIndex": state.resting_exercise_index,
        "restingSetIndex": state.resting_set_index,
    }


def dict_to_rest_state(data: dict[str, Any]) -> RestState:
    _require_object(data, "restState")
    return RestState(
        remaining_seconds=int(data.get("remainingSeconds", 0)),
        paused=bool(data.get("paused", False)),
        resting_exercise_index=data.get("restingExerciseIndex"),
        resting_set_index=data.get("restingSetIndex"),
    )


def session_to_dict(session: WorkoutSession) -> dict[str, Any]:
    """
    Convert WorkoutSession to JSON-compatible dict.

    Elapsed time is not stored; it is recomputed from ``startTime``.
    """
    return {
        "routineId": session.routine_id,
        "selectedDay": session.selected_day,
        "startTime": session.start_time,
        "currentExerciseIndex": session.current_exercise_index,
        "startingPointIndex": session.starting_point_index,
        "restState": rest_state_to_dict(session.rest_state),
        "exerciseLogs": [exercise_log_to_dict(log) for log in session.exercise_logs],
    }


def dict_to_session(data: dict[str, Any]) -> WorkoutSession:
    """
    Convert dict to WorkoutSession.

    Raises:
        ValidationError: If data is invalid or violates session invariants
    """
    if not isinstance(data, dict):
        raise ValidationError("Session snapshot must be an object")
    try:
        raw_logs = _require_list(_require(data, "exerciseLogs"), "exerciseLogs")
        logs = [dict_to_exercise_log(d) for d in raw_logs]
        raw_rest = data.get("restState")
        rest = RestState() if raw_rest is None else dict_to_rest_state(raw_rest)
        ei, si = rest.resting_exercise_index, rest.resting_set_index
        if ei is not None and si is not None:
            if not 0 <= ei < len(logs) or not 0 <= si < len(logs[ei].sets):
                raise ValidationError(f"Resting set ({ei}, {si}) out of range")
        return WorkoutSession(
            routine_id=str(_require(data, "routineId")),
            selected_day=data.get("selectedDay"),
            start_time=float(_require(data, "startTime")),
            exercise_logs=logs,
            current_exercise_index=int(data.get("currentExerciseIndex", 0)),
            starting_point_index=int(data.get("startingPointIndex", 0)),
            rest_state=rest,
        )
    except (TypeError, ValueError, KeyError, IndexError, AttributeError) as e:
        raise ValidationError(f"Invalid session snapshot: {e}") from e


def session_to_json(session: WorkoutSession) -> str:
    return json.dumps(session_to_dict(session))


def json_to_session(text: str) -> WorkoutSession:
    """
    Parse a serialized session.

    Raises:
        ValidationError: If the text is not valid JSON or not a valid session
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Corrupt session snapshot: {e}") from e
    return dict_to_session(data)


# =============================================================================
# History
# =============================================================================


def workout_record_to_dict(record: WorkoutRecord) -> dict[str, Any]:
    """Convert WorkoutRecord to JSON-compatible dict."""
    return {
        "routineId": record.routine_id,
        "routineName": record.routine_name,
        "day": record.day,
        "date": record.date,
        "duration": record.duration,
        "totalVolume": record.total_volume,
        "exercises": [
            {
                "exerciseId": ex.exercise_id,
                "exerciseName": ex.exercise_name,
                "defaultRestPeriod": ex.default_rest_period,
                "sets": [workout_set_to_dict(s) for s in ex.sets],
            }
            for ex in record.exercises
        ],
    }


def dict_to_workout_record(data: dict[str, Any]) -> WorkoutRecord:
    """
    Convert dict to WorkoutRecord.

    Raises:
        ValidationError: If data is invalid
    """
    _require_object(data, "Workout record")
    try:
        exercises = [
            RecordedExercise(
                exercise_id=str(_require(ex, "exerciseId")),
                exercise_name=str(ex.get("exerciseName") or ex["exerciseId"]),
                default_rest_period=ex.get("defaultRestPeriod"),
                sets=[dict_to_workout_set(s) for s in ex.get("sets", [])],
            )
            for ex in data.get("exercises", [])
        ]
        return WorkoutRecord(
            routine_name=str(_require(data, "routineName")),
            date=str(_require(data, "date")),
            duration=int(validate_non_negative(data.get("duration", 0), "duration")),
            exercises=exercises,
            total_volume=validate_non_negative(data.get("totalVolume", 0.0), "totalVolume"),
            routine_id=data.get("routineId"),
            day=data.get("day"),
        )
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise ValidationError(f"Invalid workout record: {e}") from e


def workout_to_json_line(record: WorkoutRecord) -> str:
    """Convert WorkoutRecord to a single JSON line for JSONL storage."""
    return json.dumps(workout_record_to_dict(record), separators=(",", ":"))


# =============================================================================
# Body stats
# =============================================================================


def body_stat_to_dict(stat: BodyStat) -> dict[str, Any]:
    """Convert BodyStat to JSON-compatible dict; measurements only when set."""
    d: dict[str, Any] = {
        "date": stat.date,
        "weight": stat.weight,
        "bodyFat": stat.body_fat,
    }
    if stat.measurements:
        d["measurements"] = dict(stat.measurements)
    return d


def _optional_float(data: dict[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    return validate_non_negative(value, key)


def dict_to_body_stat(data: dict[str, Any]) -> BodyStat:
    """
    Convert dict to BodyStat.

    Raises:
        ValidationError: If data is invalid
    """
    _require_object(data, "Body stat")
    measurements = _require_object(data.get("measurements") or {}, "measurements")
    try:
        return BodyStat(
            date=str(_require(data, "date")),
            weight=_optional_float(data, "weight"),
            body_fat=_optional_float(data, "bodyFat"),
            measurements={
                str(site): validate_non_negative(value, str(site))
                for site, value in measurements.items()
            },
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid body stat: {e}") from e


def body_stat_to_json_line(stat: BodyStat) -> str:
    return json.dumps(body_stat_to_dict(stat), separators=(",", ":"))
