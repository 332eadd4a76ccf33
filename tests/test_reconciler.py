"""
Tests for routine write-back and the session manager that drives it.
"""

import tempfile
from dataclasses import replace
from pathlib import Path

import pytest

from liftlog.core.engine.config_loader import AppSettings
from liftlog.core.errors import HistorySaveError, WriteBackSkipped
from liftlog.core.exercises.base import ExerciseCatalog
from liftlog.core.manager import SessionManager
from liftlog.core.models import CatalogEntry, RoutineExercise, SetConfigEntry
from liftlog.core.reconciler import PendingChange, Reconciler, apply_change
from liftlog.core.rest_timer import RestEvent
from liftlog.core.set_spec import PerSetConfig, UniformSets, expand_uniform, set_spec_for
from liftlog.io.routine_store import RoutineStore
from liftlog.io.session_cache import MemoryKeyValueStore, SessionCache

T0 = 1_700_000_000.0


@pytest.fixture
def routine_store():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield RoutineStore(Path(tmpdir) / "routines.json")


def _catalog() -> ExerciseCatalog:
    return ExerciseCatalog([
        CatalogEntry("bench", "Bench Press"),
        CatalogEntry("row", "Barbell Row"),
    ])


def _push(store: RoutineStore):
    return store.create_routine("Push", [
        RoutineExercise("bench", sets=3, reps=8, rest_period=120),
        RoutineExercise("row", sets=0, reps=0, sets_config=[
            SetConfigEntry(10, 60),
            SetConfigEntry(8, 90),
        ]),
    ])


def _change(kind: str, exercise_index: int, exercise_id: str, set_index: int, rest: int = 75, **kw):
    return PendingChange(
        kind=kind,
        routine_id="r",
        routine_exercise_index=exercise_index,
        exercise_id=exercise_id,
        set_index=set_index,
        rest_period=rest,
        **kw,
    )


class ListHistory:
    """History collaborator that keeps records in memory."""

    def __init__(self, fail: bool = False):
        self.records = []
        self.fail = fail

    def append_workout(self, record):
        if self.fail:
            raise OSError("read-only file system")
        self.records.append(record)


class Clock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _manager(store: RoutineStore, history=None, cache=None, clock=None) -> SessionManager:
    return SessionManager(
        cache=cache or SessionCache(MemoryKeyValueStore()),
        history=history or ListHistory(),
        reconciler=Reconciler(store),
        settings=AppSettings(),
        clock=clock or Clock(),
    )


# ---------------------------------------------------------------------------
# Set specification
# ---------------------------------------------------------------------------


class TestSetSpec:

    def test_aggregate_is_uniform(self):
        spec = set_spec_for(RoutineExercise("bench", sets=3, reps=8, rest_period=120))
        assert spec == UniformSets(count=3, reps=8, rest_period=120)

    def test_config_is_per_set(self):
        config = [SetConfigEntry(5, 60)]
        spec = set_spec_for(RoutineExercise("bench", sets=9, reps=9, sets_config=config))
        assert spec == PerSetConfig((SetConfigEntry(5, 60),))

    def test_expansion_copies_aggregate_values(self):
        spec = expand_uniform(UniformSets(count=3, reps=8, rest_period=120))
        assert spec.entries == (SetConfigEntry(8, 120),) * 3

    def test_expansion_of_per_set_is_identity(self):
        spec = PerSetConfig((SetConfigEntry(5, 60),))
        assert expand_uniform(spec) is spec


# ---------------------------------------------------------------------------
# apply_change
# ---------------------------------------------------------------------------


class TestApplyChange:

    def test_rest_change_expands_uniform_exercise(self, routine_store):
        routine = _push(routine_store)
        updated = apply_change(routine, _change("rest_period", 0, "bench", 1, rest=45))

        bench = updated.exercises[0]
        assert bench.sets == 3
        assert bench.sets_config == [
            SetConfigEntry(8, 120),
            SetConfigEntry(8, 45),
            SetConfigEntry(8, 120),
        ]
        # input routine untouched
        assert routine.exercises[0].sets_config is None

    def test_rest_change_edits_per_set_entry(self, routine_store):
        routine = _push(routine_store)
        updated = apply_change(routine, _change("rest_period", 1, "row", 0, rest=30))
        assert updated.exercises[1].sets_config == [SetConfigEntry(10, 30), SetConfigEntry(8, 90)]

    def test_add_set_appends_entry(self, routine_store):
        routine = _push(routine_store)
        updated = apply_change(routine, _change("add_set", 0, "bench", 3, rest=90, reps=8))

        bench = updated.exercises[0]
        assert bench.sets == 4
        assert bench.sets_config[-1] == SetConfigEntry(8, 90)

    def test_add_set_beyond_stored_count_is_skipped(self, routine_store):
        routine = _push(routine_store)
        with pytest.raises(WriteBackSkipped):
            apply_change(routine, _change("add_set", 0, "bench", 4, reps=8))

    @pytest.mark.parametrize(
        "change",
        [
            _change("rest_period", 0, "bench", 3),
            _change("rest_period", 5, "bench", 0),
            _change("rest_period", 0, "row", 0),
        ],
    )
    def test_missing_target_is_skipped(self, routine_store, change):
        with pytest.raises(WriteBackSkipped):
            apply_change(_push(routine_store), change)


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class TestReconciler:

    def test_make_permanent_writes_back(self, routine_store):
        routine = _push(routine_store)
        change = _change("rest_period", 0, "bench", 0, rest=60)
        outcome = Reconciler(routine_store).make_permanent(
            replace(change, routine_id=routine.id)
        )

        assert outcome.applied
        stored = routine_store.get_routine(routine.id)
        assert stored.exercises[0].sets_config[0].rest_period == 60

    def test_skip_is_reported(self, routine_store):
        routine = _push(routine_store)
        change = _change("rest_period", 0, "bench", 9)
        outcome = Reconciler(routine_store).make_permanent(
            replace(change, routine_id=routine.id)
        )

        assert not outcome.applied
        assert routine_store.get_routine(routine.id) == routine

    def test_missing_routine_is_reported(self, routine_store):
        outcome = Reconciler(routine_store).make_permanent(_change("rest_period", 0, "bench", 0))
        assert not outcome.applied

    def test_corrupt_routine_file_is_reported(self, routine_store):
        routine_store.routines_path.write_text(
            '{"routines": [{"id": "r", "name": "Push", "exercises": '
            '[{"exerciseId": "bench", "sets": 1, "setsConfig": [1]}]}]}'
        )
        outcome = Reconciler(routine_store).make_permanent(_change("rest_period", 0, "bench", 0))
        assert not outcome.applied


# ---------------------------------------------------------------------------
# Session manager
# ---------------------------------------------------------------------------


class TestSessionManager:

    def test_session_only_add_set_leaves_routine_unchanged(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())

        change = manager.add_set(0)
        assert len(manager.session.exercise_logs[0].sets) == 4
        assert change.set_index == 3
        manager.discard()

        # a new session is built from the stored definition
        reloaded = routine_store.get_routine(routine.id)
        assert reloaded == routine
        fresh = _manager(routine_store)
        fresh.start(reloaded, None, _catalog())
        assert len(fresh.session.exercise_logs[0].sets) == 3

    def test_permanent_add_set_reaches_next_session(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())

        outcome = manager.make_permanent(manager.add_set(1))

        assert outcome.applied
        fresh = _manager(routine_store)
        fresh.start(routine_store.get_routine(routine.id), None, _catalog())
        assert [s.reps for s in fresh.session.exercise_logs[1].sets] == [10, 8, 8]

    def test_second_added_set_cannot_be_permanent(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())

        manager.add_set(0)
        outcome = manager.make_permanent(manager.add_set(0))

        assert not outcome.applied
        assert len(manager.session.exercise_logs[0].sets) == 5

    def test_permanent_rest_change(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())
        manager.complete_set(0, 0)

        change = manager.change_rest_period(200)
        assert change.rest_period == 200
        assert manager.make_permanent(change).applied
        assert routine_store.get_routine(routine.id).exercises[0].sets_config[0].rest_period == 200

    def test_restore_wins_over_rebuild(self, routine_store):
        routine = _push(routine_store)
        cache = SessionCache(MemoryKeyValueStore())
        first = _manager(routine_store, cache=cache)
        assert first.start(routine, None, _catalog()) is False
        first.update_set_field(0, 0, "weight", "135")
        first.complete_set(0, 0)

        second = _manager(routine_store, cache=cache)
        assert second.start(routine, None, _catalog()) is True
        assert second.session.exercise_logs[0].sets[0].completed
        assert second.session.exercise_logs[0].sets[0].weight == 135.0

    def test_other_day_starts_fresh(self, routine_store):
        routine = _push(routine_store)
        cache = SessionCache(MemoryKeyValueStore())
        first = _manager(routine_store, cache=cache)
        first.start(routine, None, _catalog())
        first.complete_set(0, 0)

        second = _manager(routine_store, cache=cache)
        assert second.start(routine, "monday", _catalog()) is False
        assert not second.session.exercise_logs[0].sets[0].completed

    def test_kg_input_is_stored_in_lbs(self, routine_store):
        routine = _push(routine_store)
        manager = SessionManager(
            cache=SessionCache(MemoryKeyValueStore()),
            history=ListHistory(),
            reconciler=Reconciler(routine_store),
            settings=AppSettings(unit_system="kg"),
            clock=Clock(),
        )
        manager.start(routine, None, _catalog())

        manager.update_set_field(0, 0, "weight", "100")
        assert manager.session.exercise_logs[0].sets[0].weight == pytest.approx(220.462, abs=1e-3)

    def test_tick_runs_rest_to_completion(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())
        manager.complete_set(0, 0)

        events = []
        while manager.rest_phase() == "running":
            events.extend(manager.tick())

        assert events.count(RestEvent.COUNTDOWN) == 3
        assert events[-1] == RestEvent.FINISHED
        assert manager.rest_phase() == "idle"

    def test_pause_resume_skip(self, routine_store):
        routine = _push(routine_store)
        manager = _manager(routine_store)
        manager.start(routine, None, _catalog())
        manager.complete_set(0, 0)

        manager.pause_rest()
        remaining = manager.session.rest_state.remaining_seconds
        assert manager.tick() == []
        assert manager.session.rest_state.remaining_seconds == remaining

        manager.resume_rest()
        assert manager.rest_phase() == "running"
        manager.skip_rest()
        assert manager.rest_phase() == "idle"

    def test_finish_appends_history_and_clears_cache(self, routine_store):
        routine = _push(routine_store)
        cache = SessionCache(MemoryKeyValueStore())
        history = ListHistory()
        clock = Clock()
        manager = _manager(routine_store, history=history, cache=cache, clock=clock)
        manager.start(routine, None, _catalog())
        manager.update_set_field(0, 0, "weight", "100")
        manager.update_set_field(0, 0, "reps", "5")
        manager.complete_set(0, 0)
        clock.now += 600

        record = manager.finish(routine.name)

        assert history.records == [record]
        assert record.total_volume == 500
        assert record.duration == 600
        assert cache.peek() is None
        assert not manager.active

    def test_failed_history_keeps_session(self, routine_store):
        routine = _push(routine_store)
        cache = SessionCache(MemoryKeyValueStore())
        manager = _manager(routine_store, history=ListHistory(fail=True), cache=cache)
        manager.start(routine, None, _catalog())
        manager.complete_set(0, 0)

        with pytest.raises(HistorySaveError):
            manager.finish(routine.name)

        assert manager.active
        assert cache.peek() is not None
