"""
Write-back of session changes to the stored routine.

Adding a set or changing a rest period always applies to the running
session first.  The user may then make the change permanent, in which
case it is translated into the routine's per-set configuration and
written back.  A change that cannot be located in the stored routine is
skipped; the session keeps its local change either way.
"""

from dataclasses import dataclass, replace
from typing import Literal, Protocol

from loguru import logger

from .errors import LiftlogError, WriteBackSkipped
from .models import Routine, RoutineExercise, SetConfigEntry
from .set_spec import expand_uniform, set_spec_for

ChangeKind = Literal["add_set", "rest_period"]


@dataclass(frozen=True)
class PendingChange:
    """A session-local change that may be made permanent."""

    kind: ChangeKind
    routine_id: str
    routine_exercise_index: int
    exercise_id: str
    set_index: int
    rest_period: int
    reps: int | None = None
    duration: int | None = None


@dataclass(frozen=True)
class ReconcileOutcome:
    applied: bool
    message: str


class RoutineWriter(Protocol):
    """The part of the routine store the reconciler needs."""

    def get_routine(self, routine_id: str) -> Routine: ...

    def update_exercises(self, routine_id: str, exercises: list[RoutineExercise]) -> Routine: ...


def apply_change(routine: Routine, change: PendingChange) -> Routine:
    """
    Return a copy of ``routine`` with ``change`` applied.

    An aggregate sets/reps exercise is first expanded to explicit per-set
    entries so a single set can be addressed.

    Raises:
        WriteBackSkipped: If the exercise or set cannot be found in the
            stored routine
    """
    idx = change.routine_exercise_index
    if not 0 <= idx < len(routine.exercises):
        raise WriteBackSkipped(f"Exercise #{idx + 1} is no longer in routine '{routine.name}'")

    exercise = routine.exercises[idx]
    if exercise.exercise_id != change.exercise_id:
        raise WriteBackSkipped(
            f"Routine '{routine.name}' changed: expected {change.exercise_id} "
            f"at position {idx + 1}, found {exercise.exercise_id}"
        )

    entries = list(expand_uniform(set_spec_for(exercise)).entries)

    if change.kind == "rest_period":
        if not 0 <= change.set_index < len(entries):
            raise WriteBackSkipped(
                f"Set {change.set_index + 1} does not exist in the stored routine"
            )
        entries[change.set_index] = replace(
            entries[change.set_index], rest_period=change.rest_period
        )
    elif change.kind == "add_set":
        if change.set_index != len(entries):
            raise WriteBackSkipped(
                f"Set {change.set_index + 1} exceeds the routine's "
                f"{len(entries)} stored sets"
            )
        entries.append(
            SetConfigEntry(
                reps=change.reps or 0,
                rest_period=change.rest_period,
                duration=change.duration,
            )
        )
    else:
        raise ValueError(f"Unknown change kind: {change.kind!r}")

    updated = replace(exercise, sets=len(entries), sets_config=entries)
    exercises = list(routine.exercises)
    exercises[idx] = updated
    return replace(routine, exercises=exercises)


class Reconciler:
    """Makes session changes permanent against a routine store."""

    def __init__(self, routine_store: RoutineWriter):
        self.routine_store = routine_store

    def make_permanent(self, change: PendingChange) -> ReconcileOutcome:
        """
        Write ``change`` back to its routine.

        Never raises for expected failures: a missing target or a store
        error is reported through the returned outcome.
        """
        try:
            routine = self.routine_store.get_routine(change.routine_id)
            updated = apply_change(routine, change)
            self.routine_store.update_exercises(change.routine_id, updated.exercises)
        except WriteBackSkipped as exc:
            logger.info(f"Write-back skipped for {change.kind}: {exc}")
            return ReconcileOutcome(False, f"Could not make the change permanent: {exc}")
        except (LiftlogError, LookupError, OSError, ValueError) as exc:
            logger.warning(f"Write-back failed for routine {change.routine_id}: {exc}")
            return ReconcileOutcome(False, f"Could not update routine: {exc}")

        logger.info(
            f"Routine {change.routine_id} updated: {change.kind} "
            f"(exercise {change.exercise_id}, set {change.set_index + 1})"
        )
        if change.kind == "add_set":
            return ReconcileOutcome(True, "Set added to the routine")
        return ReconcileOutcome(True, f"Rest period saved as {change.rest_period}s")
