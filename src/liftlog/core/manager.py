"""
Sequencing of an active workout.

SessionManager owns the in-memory WorkoutSession and fans each mutation
out to its collaborators: the rest timer (inside the session), the
durable snapshot cache and, on request, routine write-back and history.
All collaborators are injected, so the manager itself does no I/O.
"""

import time
from typing import Any, Callable, Protocol

from loguru import logger

from . import rest_timer, session as session_ops
from .engine.config_loader import AppSettings
from .errors import HistorySaveError
from .exercises.base import ExerciseCatalog
from .models import Routine, SetField, WorkoutRecord, WorkoutSession
from .reconciler import PendingChange, ReconcileOutcome, Reconciler
from .rest_timer import RestEvent
from .session import SetCompletion


class SnapshotCache(Protocol):
    def save(self, session: WorkoutSession) -> bool: ...

    def load(self, routine_id: str, selected_day: str | None) -> WorkoutSession | None: ...

    def erase(self) -> None: ...


class HistoryWriter(Protocol):
    def append_workout(self, record: WorkoutRecord) -> None: ...


class SessionManager:
    """
    Runs one workout attempt at a time.

    Args:
        cache: Durable snapshot cache (save/load/erase)
        history: Workout history (append_workout)
        reconciler: Routine write-back for permanent changes
        settings: Display unit and rest defaults
        clock: Returns epoch seconds; injectable for tests
    """

    def __init__(
        self,
        cache: SnapshotCache,
        history: HistoryWriter,
        reconciler: Reconciler,
        settings: AppSettings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.history = history
        self.reconciler = reconciler
        self.settings = settings or AppSettings()
        self.clock = clock
        self._session: WorkoutSession | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def session(self) -> WorkoutSession:
        if self._session is None:
            raise RuntimeError("No active workout. Call start() first.")
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    def start(
        self,
        routine: Routine,
        day: str | None,
        catalog: ExerciseCatalog,
        starting_index: int = 0,
    ) -> bool:
        """
        Resume the stored session for this routine/day, or build a new one.

        Building happens at most once per session: a matching snapshot
        always wins so logged progress is never overwritten.

        Returns:
            True if a stored session was resumed
        """
        restored = self.cache.load(routine.id, day)
        if restored is not None:
            self._session = restored
            logger.info(f"Resumed workout for routine {routine.name!r}")
            return True

        self._session = session_ops.initialize_session(
            routine,
            day,
            catalog,
            starting_index=starting_index,
            now=self.clock(),
            default_rest=self.settings.default_rest_seconds,
        )
        logger.info(
            f"Started workout for routine {routine.name!r} "
            f"({len(self._session.exercise_logs)} exercises)"
        )
        self._snapshot()
        return False

    def finish(self, routine_name: str) -> WorkoutRecord:
        """
        Save the completed part of the workout to history and end it.

        Raises:
            HistorySaveError: If history could not be written; the session
                stays open and its snapshot is kept
        """
        record = session_ops.finish_session(self.session, routine_name, now=self.clock())
        try:
            self.history.append_workout(record)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not save workout to history: {exc}")
            raise HistorySaveError(f"Failed to save workout: {exc}") from exc

        logger.info(
            f"Finished workout {routine_name!r}: {record.set_count} sets, "
            f"volume {record.total_volume:.0f}"
        )
        self.cache.erase()
        self._session = None
        return record

    def discard(self) -> None:
        """Abandon the workout and its snapshot."""
        self.cache.erase()
        self._session = None
        logger.info("Discarded workout")

    def elapsed_seconds(self) -> int:
        return self.session.elapsed_seconds(self.clock())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _snapshot(self) -> None:
        if self._session is not None:
            self.cache.save(self._session)

    def update_set_field(
        self, exercise_index: int, set_index: int, field: SetField, raw_value: Any
    ) -> bool:
        """Edit a set from raw input in the display unit; False if rejected."""
        changed = session_ops.update_set_field(
            self.session,
            exercise_index,
            set_index,
            field,
            raw_value,
            unit=self.settings.unit_system,
        )
        if changed:
            self._snapshot()
        return changed

    def complete_set(self, exercise_index: int, set_index: int) -> SetCompletion:
        """
        Complete a set and start its rest.

        Raises:
            SetValidationError: If the set cannot be completed; nothing changes
        """
        result = session_ops.complete_set(
            self.session,
            exercise_index,
            set_index,
            superset_transition=self.settings.superset_transition_seconds,
        )
        logger.debug(
            f"Completed set {set_index + 1} of exercise {exercise_index + 1}; "
            f"rest {result.rest_seconds}s"
        )
        self._snapshot()
        return result

    def add_set(self, exercise_index: int) -> PendingChange:
        """Add a set for this session and describe it for optional write-back."""
        set_index = session_ops.add_set(self.session, exercise_index)
        self._snapshot()
        log = self.session.exercise_logs[exercise_index]
        new_set = log.sets[set_index]
        return PendingChange(
            kind="add_set",
            routine_id=self.session.routine_id,
            routine_exercise_index=log.routine_exercise_index,
            exercise_id=log.exercise_id,
            set_index=set_index,
            rest_period=new_set.rest_period,
            reps=new_set.reps,
            duration=new_set.duration,
        )

    def change_rest_period(self, seconds: int) -> PendingChange | None:
        """Edit the active rest; None when no rest is running."""
        changed = session_ops.change_rest_period(self.session, seconds)
        if changed is None:
            return None
        exercise_index, set_index, clamped = changed
        self._snapshot()
        log = self.session.exercise_logs[exercise_index]
        return PendingChange(
            kind="rest_period",
            routine_id=self.session.routine_id,
            routine_exercise_index=log.routine_exercise_index,
            exercise_id=log.exercise_id,
            set_index=set_index,
            rest_period=clamped,
        )

    def make_permanent(self, change: PendingChange) -> ReconcileOutcome:
        """Write a session change back to the routine; session state is unaffected."""
        return self.reconciler.make_permanent(change)

    def go_to(self, exercise_index: int) -> int:
        index = session_ops.go_to_exercise(self.session, exercise_index)
        self._snapshot()
        return index

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def tick(self) -> list[RestEvent]:
        """Advance the rest countdown by one second."""
        state, events = rest_timer.tick(self.session.rest_state)
        if state != self.session.rest_state:
            self.session.rest_state = state
            self._snapshot()
        return events

    def pause_rest(self) -> None:
        self.session.rest_state = rest_timer.pause(self.session.rest_state)
        self._snapshot()

    def resume_rest(self) -> None:
        self.session.rest_state = rest_timer.resume(self.session.rest_state)
        self._snapshot()

    def skip_rest(self) -> None:
        self.session.rest_state = rest_timer.skip(self.session.rest_state)
        self._snapshot()

    def rest_phase(self) -> rest_timer.RestPhase:
        return rest_timer.phase(self.session.rest_state)
