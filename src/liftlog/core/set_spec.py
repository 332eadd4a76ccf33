"""
Set specification of a routine exercise.

A routine exercise describes its sets in one of two shapes:

* UniformSets: the aggregate ``sets × reps`` form with a single rest period
* PerSetConfig: an explicit entry per set

Partial edits (changing one set's rest, appending one set) need per-set
addressability, so UniformSets is expanded into PerSetConfig first.
"""

from dataclasses import dataclass, field

from .config import DEFAULT_REST_SECONDS
from .models import RoutineExercise, SetConfigEntry, WorkoutSet


@dataclass(frozen=True)
class UniformSets:
    count: int
    reps: int
    rest_period: int
    duration: int | None = None


@dataclass(frozen=True)
class PerSetConfig:
    entries: tuple[SetConfigEntry, ...] = field(default_factory=tuple)


SetSpec = UniformSets | PerSetConfig


def set_spec_for(
    exercise: RoutineExercise,
    default_rest: int = DEFAULT_REST_SECONDS,
) -> SetSpec:
    """Return the set specification a routine exercise is stored with."""
    if exercise.sets_config:
        return PerSetConfig(tuple(exercise.sets_config))
    return UniformSets(
        count=exercise.sets,
        reps=exercise.reps,
        rest_period=exercise.rest_period or default_rest,
        duration=exercise.duration,
    )


def expand_uniform(spec: SetSpec) -> PerSetConfig:
    """Expand aggregate sets into one explicit entry per set."""
    if isinstance(spec, PerSetConfig):
        return spec
    return PerSetConfig(
        tuple(
            SetConfigEntry(reps=spec.reps, rest_period=spec.rest_period, duration=spec.duration)
            for _ in range(spec.count)
        )
    )


def build_workout_sets(spec: SetSpec) -> list[WorkoutSet]:
    """Create fresh, uncompleted workout sets from a specification."""
    return [
        WorkoutSet(
            weight=0.0,
            reps=entry.reps,
            duration=entry.duration,
            completed=False,
            rest_period=entry.rest_period,
        )
        for entry in expand_uniform(spec).entries
    ]
