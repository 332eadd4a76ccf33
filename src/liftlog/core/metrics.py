"""
Pure metric computation functions.

Volume, estimated one-rep max and personal records over workout sets, and
body-weight trend over body-stat entries.
All weights are in the canonical unit (lbs).
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import BodyStat, ExerciseLog, WorkoutRecord, WorkoutSet


def set_volume(workout_set: WorkoutSet) -> float:
    """
    Volume of a single set: weight × reps.

    Sets without positive weight and positive reps contribute nothing.
    """
    reps = workout_set.reps or 0
    if workout_set.weight <= 0 or reps <= 0:
        return 0.0
    return workout_set.weight * reps


def total_volume(logs: Iterable[ExerciseLog]) -> float:
    """Sum of set volume over all completed sets."""
    return sum(
        set_volume(s)
        for log in logs
        for s in log.sets
        if s.completed
    )


def estimate_1rm(weight: float, reps: int) -> float:
    """
    Estimate one-rep max with the Epley formula.

    1RM = weight × (1 + reps / 30); a single rep is its own 1RM.

    Args:
        weight: Weight lifted
        reps: Reps performed

    Returns:
        Estimated 1RM, or 0.0 for non-positive inputs
    """
    if weight <= 0 or reps <= 0:
        return 0.0
    if reps == 1:
        return weight
    return weight * (1 + reps / 30)


def best_estimated_1rm(sets: Sequence[WorkoutSet]) -> float:
    """Highest Epley estimate over the completed sets, 0.0 if none qualify."""
    estimates = [
        estimate_1rm(s.weight, s.reps or 0)
        for s in sets
        if s.completed
    ]
    return max(estimates, default=0.0)


def completed_set_count(logs: Iterable[ExerciseLog]) -> int:
    return sum(log.completed_count for log in logs)


def total_set_count(logs: Iterable[ExerciseLog]) -> int:
    return sum(len(log.sets) for log in logs)


@dataclass
class PersonalRecord:
    """Best lifts for one exercise across workout history."""

    exercise_id: str
    exercise_name: str
    max_weight: float = 0.0
    best_1rm: float = 0.0
    best_set_volume: float = 0.0
    total_volume: float = 0.0
    workouts: int = 0
    last_date: str | None = None


def personal_records(history: Sequence[WorkoutRecord]) -> list[PersonalRecord]:
    """
    Aggregate personal records per exercise.

    Args:
        history: Finished workouts, in any order

    Returns:
        One PersonalRecord per exercise, sorted by exercise name
    """
    records: dict[str, PersonalRecord] = {}

    for workout in sorted(history, key=lambda w: w.date):
        for ex in workout.exercises:
            rec = records.get(ex.exercise_id)
            if rec is None:
                rec = PersonalRecord(ex.exercise_id, ex.exercise_name)
                records[ex.exercise_id] = rec
            rec.exercise_name = ex.exercise_name
            rec.workouts += 1
            rec.last_date = workout.date
            for s in ex.sets:
                vol = set_volume(s)
                rec.max_weight = max(rec.max_weight, s.weight)
                rec.best_1rm = max(rec.best_1rm, estimate_1rm(s.weight, s.reps or 0))
                rec.best_set_volume = max(rec.best_set_volume, vol)
                rec.total_volume += vol

    return sorted(records.values(), key=lambda r: r.exercise_name.lower())


def weight_changes(stats: Sequence[BodyStat]) -> list[float | None]:
    """
    Change in body weight since the previous weighed entry.

    ``stats`` must be in date order.  Entries without a weight, and the
    first weighed entry, get None.
    """
    changes: list[float | None] = []
    previous: float | None = None
    for stat in stats:
        if stat.weight is None:
            changes.append(None)
            continue
        changes.append(None if previous is None else stat.weight - previous)
        previous = stat.weight
    return changes
