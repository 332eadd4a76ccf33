"""
Tests for snapshot caching, routine/history stores and YAML loading.
"""

import json
import tempfile
from pathlib import Path

import pytest

from liftlog.core.engine.config_loader import load_settings, save_user_settings
from liftlog.core.exercises.base import ExerciseCatalog
from liftlog.core.exercises.loader import load_catalog_entries
from liftlog.core.models import (
    BodyStat,
    ExerciseLog,
    RecordedExercise,
    RestState,
    RoutineExercise,
    SetConfigEntry,
    WorkoutRecord,
    WorkoutSession,
    WorkoutSet,
)
from liftlog.io.body_stats_store import BodyStatsStore
from liftlog.io.history_store import HistoryStore
from liftlog.io.routine_import import get_sample_routine_path, load_routine_file, parse_routine_yaml
from liftlog.io.routine_store import RoutineNotFoundError, RoutineStore
from liftlog.io.serializers import (
    ValidationError,
    json_to_session,
    session_to_json,
)
from liftlog.io.session_cache import (
    JsonFileKeyValueStore,
    MemoryKeyValueStore,
    SessionCache,
)


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _session(routine_id: str = "r1", day: str | None = "monday") -> WorkoutSession:
    return WorkoutSession(
        routine_id=routine_id,
        selected_day=day,
        start_time=1_700_000_000.5,
        exercise_logs=[
            ExerciseLog(
                exercise_id="bench",
                exercise_name="Bench Press",
                default_rest_period=90,
                sets=[
                    WorkoutSet(weight=135.0, reps=8, completed=True, rest_period=90),
                    WorkoutSet(weight=135.0, reps=8, rest_period=90),
                ],
                superset_group="A",
                routine_exercise_index=2,
            ),
            ExerciseLog(
                exercise_id="plank",
                exercise_name="Plank",
                default_rest_period=60,
                sets=[WorkoutSet(reps=0, duration=45, rest_period=60)],
                is_time_based=True,
            ),
        ],
        current_exercise_index=1,
        starting_point_index=1,
        rest_state=RestState(remaining_seconds=42, paused=True,
                             resting_exercise_index=0, resting_set_index=0),
    )


def _record(date: str, name: str = "Push") -> WorkoutRecord:
    return WorkoutRecord(
        routine_name=name,
        date=date,
        duration=1800,
        exercises=[RecordedExercise("bench", "Bench Press", 90,
                                    [WorkoutSet(weight=100, reps=5, completed=True)])],
        total_volume=500.0,
        routine_id="r1",
    )


# ---------------------------------------------------------------------------
# Snapshot cache
# ---------------------------------------------------------------------------


class TestSessionCache:

    def test_round_trip_same_routine_and_day(self):
        cache = SessionCache(MemoryKeyValueStore())
        original = _session()
        assert cache.save(original)

        restored = cache.load("r1", "monday")

        assert restored is not None
        assert restored.exercise_logs == original.exercise_logs
        assert restored.current_exercise_index == original.current_exercise_index
        assert restored.rest_state == original.rest_state
        assert restored == original

    @pytest.mark.parametrize("routine_id, day", [("r2", "monday"), ("r1", "friday"), ("r1", None)])
    def test_mismatch_is_discarded(self, routine_id, day):
        store = MemoryKeyValueStore()
        cache = SessionCache(store)
        cache.save(_session())

        assert cache.load(routine_id, day) is None
        assert store.get(cache.key) is None

    def test_empty_shell_not_persisted(self):
        store = MemoryKeyValueStore()
        cache = SessionCache(store)
        empty = WorkoutSession(routine_id="r1", selected_day=None, start_time=0.0)

        assert cache.save(empty) is False
        assert store.get(cache.key) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[]",
            '{"routineId": "r1"}',
            '{"routineId":"r1","startTime":0,"exerciseLogs":[],"restState":"x"}',
            '{"routineId":"r1","startTime":0,"exerciseLogs":[],"restState":5}',
            '{"routineId":"r1","startTime":0,"exerciseLogs":[],"restState":[1]}',
            '{"routineId":"r1","startTime":0,"exerciseLogs":[1]}',
            '{"routineId":"r1","startTime":0,"exerciseLogs":"abc"}',
        ],
    )
    def test_corrupt_snapshot_is_erased(self, raw):
        store = MemoryKeyValueStore()
        cache = SessionCache(store)
        store.put(cache.key, raw)

        assert cache.load("r1", "monday") is None
        assert store.get(cache.key) is None

    def test_out_of_range_rest_pointer_is_corrupt(self):
        data = json.loads(session_to_json(_session()))
        data["restState"]["restingSetIndex"] = 9
        with pytest.raises(ValidationError):
            json_to_session(json.dumps(data))

    def test_erase(self):
        cache = SessionCache(MemoryKeyValueStore())
        cache.save(_session())
        cache.erase()
        assert cache.peek() is None

    def test_file_store_round_trip(self, tmp_dir):
        cache = SessionCache(JsonFileKeyValueStore(tmp_dir / "cache"))
        cache.save(_session())

        assert (tmp_dir / "cache" / "active_workout.json").exists()
        assert SessionCache(JsonFileKeyValueStore(tmp_dir / "cache")).load("r1", "monday") == _session()

        cache.erase()
        assert not (tmp_dir / "cache" / "active_workout.json").exists()
        cache.erase()  # missing file is fine

    def test_save_failure_is_reported_not_raised(self):
        class BrokenStore(MemoryKeyValueStore):
            def put(self, key, value):
                raise OSError("disk full")

        assert SessionCache(BrokenStore()).save(_session()) is False


# ---------------------------------------------------------------------------
# Routine store
# ---------------------------------------------------------------------------


class TestRoutineStore:

    def test_init_creates_empty_file(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        store.init()
        assert store.exists()
        assert store.load_routines() == []

    def test_create_and_get(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        exercises = [
            RoutineExercise("bench", sets=3, reps=8, rest_period=120, days=["monday"]),
            RoutineExercise("row", sets=2, reps=0,
                            sets_config=[SetConfigEntry(10, 60), SetConfigEntry(8, 90)],
                            superset_group="A"),
        ]
        created = store.create_routine("Push", exercises, "desc")

        loaded = store.get_routine(created.id)
        assert loaded == created
        assert loaded.exercises[1].sets_config == [SetConfigEntry(10, 60), SetConfigEntry(8, 90)]

    def test_find_by_name_and_prefix(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        routine = store.create_routine("Leg Day", [RoutineExercise("squat", 3, 5)])

        assert store.find_routine("leg day").id == routine.id
        assert store.find_routine(routine.id[:6]).id == routine.id
        with pytest.raises(RoutineNotFoundError):
            store.find_routine("arms")

    def test_update_exercises_is_partial(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        routine = store.create_routine("Push", [RoutineExercise("bench", 3, 8)], "keep me")

        store.update_exercises(routine.id, [RoutineExercise("bench", 4, 6)])

        loaded = store.get_routine(routine.id)
        assert loaded.description == "keep me"
        assert (loaded.exercises[0].sets, loaded.exercises[0].reps) == (4, 6)

    def test_missing_routine(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        with pytest.raises(RoutineNotFoundError):
            store.get_routine("nope")
        with pytest.raises(RoutineNotFoundError):
            store.update_exercises("nope", [])
        with pytest.raises(RoutineNotFoundError):
            store.delete_routine("nope")

    def test_delete(self, tmp_dir):
        store = RoutineStore(tmp_dir / "routines.json")
        routine = store.create_routine("Push", [])
        store.delete_routine(routine.id)
        assert store.load_routines() == []

    @pytest.mark.parametrize(
        "content",
        [
            "{oops",
            '{"routines": [1]}',
            '{"routines": [{"id": "r1", "name": "Push", "exercises": [1]}]}',
            '{"routines": [{"id": "r1", "name": "Push", "exercises": '
            '[{"exerciseId": "bench", "sets": 1, "setsConfig": [1]}]}]}',
            '{"routines": [{"id": "r1", "name": "Push", "exercises": '
            '[{"exerciseId": "bench", "sets": 1, "setsConfig": "abc"}]}]}',
        ],
    )
    def test_corrupt_file(self, tmp_dir, content):
        path = tmp_dir / "routines.json"
        path.write_text(content)
        with pytest.raises(ValidationError):
            RoutineStore(path).load_routines()


# ---------------------------------------------------------------------------
# History store
# ---------------------------------------------------------------------------


class TestHistoryStore:

    def test_missing_file_is_empty(self, tmp_dir):
        assert HistoryStore(tmp_dir / "history.jsonl").load_history() == []

    def test_append_and_load_sorted(self, tmp_dir):
        store = HistoryStore(tmp_dir / "history.jsonl")
        store.init()
        store.append_workout(_record("2026-02-03T10:00:00", "B"))
        store.append_workout(_record("2026-02-01T10:00:00", "A"))

        workouts = store.load_history()
        assert [w.routine_name for w in workouts] == ["A", "B"]
        assert workouts[0].total_volume == 500.0
        assert workouts[0].exercises[0].sets[0].reps == 5
        assert store.get_latest_workout().routine_name == "B"

    def test_delete_workout_at(self, tmp_dir):
        store = HistoryStore(tmp_dir / "history.jsonl")
        store.append_workout(_record("2026-02-01T10:00:00", "A"))
        store.append_workout(_record("2026-02-02T10:00:00", "B"))

        removed = store.delete_workout_at(0)

        assert removed.routine_name == "A"
        assert [w.routine_name for w in store.load_history()] == ["B"]
        with pytest.raises(IndexError):
            store.delete_workout_at(5)

    def test_bad_line_reports_line_number(self, tmp_dir):
        path = tmp_dir / "history.jsonl"
        path.write_text('{"routineName": "A", "date": "2026-01-01"}\nnot json\n')
        with pytest.raises(ValidationError, match="line 2"):
            HistoryStore(path).load_history()


# ---------------------------------------------------------------------------
# Body stats store
# ---------------------------------------------------------------------------


class TestBodyStatsStore:

    def test_missing_file_is_empty(self, tmp_dir):
        assert BodyStatsStore(tmp_dir / "body_stats.jsonl").load_stats() == []

    def test_append_and_load_sorted(self, tmp_dir):
        store = BodyStatsStore(tmp_dir / "body_stats.jsonl")
        store.init()
        store.append_stat(BodyStat("2026-02-03T08:00:00", weight=181.0, body_fat=15.5))
        store.append_stat(BodyStat("2026-02-01T08:00:00", weight=182.5,
                                   measurements={"waist": 33.5}))

        stats = store.load_stats()
        assert [s.date for s in stats] == ["2026-02-01T08:00:00", "2026-02-03T08:00:00"]
        assert stats[0].measurements == {"waist": 33.5}
        assert stats[0].body_fat is None
        assert store.get_latest().body_fat == 15.5

    def test_delete_stat_at(self, tmp_dir):
        store = BodyStatsStore(tmp_dir / "body_stats.jsonl")
        store.append_stat(BodyStat("2026-02-01T08:00:00", weight=182.5))
        store.append_stat(BodyStat("2026-02-02T08:00:00", weight=182.0))

        removed = store.delete_stat_at(0)

        assert removed.weight == 182.5
        assert [s.weight for s in store.load_stats()] == [182.0]
        with pytest.raises(IndexError):
            store.delete_stat_at(3)

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "[1]",
            '{"weight": 180}',
            '{"date": "2026-01-01", "weight": -1}',
            '{"date": "2026-01-01"}',
            '{"date": "2026-01-01", "measurements": {"neck": 15}}',
            '{"date": "2026-01-01", "measurements": [1]}',
        ],
    )
    def test_bad_line_is_rejected(self, tmp_dir, line):
        path = tmp_dir / "body_stats.jsonl"
        path.write_text(line + "\n")
        with pytest.raises(ValidationError, match="line 1"):
            BodyStatsStore(path).load_stats()


# ---------------------------------------------------------------------------
# YAML: settings, catalog, routine import
# ---------------------------------------------------------------------------


class TestSettings:

    def test_bundled_defaults(self, tmp_dir):
        settings = load_settings(tmp_dir)
        assert settings.unit_system == "lbs"
        assert settings.default_rest_seconds == 90
        assert settings.superset_transition_seconds == 15

    def test_user_override_round_trip(self, tmp_dir):
        save_user_settings({"units": {"unit_system": "kg"}}, tmp_dir)
        save_user_settings({"rest": {"default_rest_seconds": 120}}, tmp_dir)

        settings = load_settings(tmp_dir)
        assert settings.unit_system == "kg"
        assert settings.default_rest_seconds == 120
        assert settings.superset_transition_seconds == 15

    def test_invalid_unit_falls_back(self, tmp_dir):
        (tmp_dir / "settings.yaml").write_text("units:\n  unit_system: stone\n")
        assert load_settings(tmp_dir).unit_system == "lbs"

    def test_broken_yaml_is_ignored(self, tmp_dir):
        (tmp_dir / "settings.yaml").write_text("units: [unclosed\n")
        assert load_settings(tmp_dir).unit_system == "lbs"


class TestCatalog:

    def test_bundled_catalog(self, tmp_dir):
        catalog = ExerciseCatalog(load_catalog_entries(user_path=tmp_dir / "none.yaml"))
        assert "barbell-bench-press" in catalog
        assert catalog.is_time_based("plank")
        assert not catalog.is_time_based("barbell-squat")

    def test_user_override_merges_by_id(self, tmp_dir):
        user = tmp_dir / "exercises.yaml"
        user.write_text(
            "exercises:\n"
            "  - id: plank\n"
            "    name: Front Plank\n"
            "  - id: sled-push\n"
            "    name: Sled Push\n"
            "    time_based: true\n"
        )
        catalog = ExerciseCatalog(load_catalog_entries(user_path=user))

        assert catalog.display_name("plank") == "Front Plank"
        assert catalog.is_time_based("plank")
        assert catalog.is_time_based("sled-push")

    def test_placeholder_for_unknown(self):
        catalog = ExerciseCatalog([])
        assert catalog.display_name("mystery") == "Unknown Exercise"
        assert catalog.get("mystery") is None


class TestRoutineImport:

    def test_sample_routine_parses(self):
        name, description, exercises = load_routine_file(get_sample_routine_path())
        assert name == "Full Body Starter"
        assert description
        groups = [ex.superset_group for ex in exercises if ex.superset_group]
        assert groups == ["A", "A"]
        row = next(ex for ex in exercises if ex.exercise_id == "barbell-row")
        assert [e.reps for e in row.sets_config] == [10, 8, 6]
        assert row.sets == 3

    def test_keys_translated(self):
        _, _, (ex,) = parse_routine_yaml(
            "name: X\n"
            "exercises:\n"
            "  - exercise: bench\n"
            "    sets: 4\n"
            "    reps: 6\n"
            "    rest: 150\n"
            "    days: Monday\n"
            "    superset: 1\n"
        )
        assert (ex.exercise_id, ex.sets, ex.reps, ex.rest_period) == ("bench", 4, 6, 150)
        assert ex.days == ["monday"]
        assert ex.superset_group == "1"

    def test_set_config_inherits_exercise_rest(self):
        _, _, (ex,) = parse_routine_yaml(
            "name: X\n"
            "exercises:\n"
            "  - exercise: bench\n"
            "    rest: 75\n"
            "    sets_config:\n"
            "      - {reps: 5}\n"
            "      - {reps: 3, rest: 200}\n"
        )
        assert ex.sets_config == [SetConfigEntry(5, 75), SetConfigEntry(3, 200)]

    @pytest.mark.parametrize(
        "text",
        [
            "just a string",
            "name: X\n",
            "name: X\nexercises: []\n",
            "exercises:\n  - exercise: bench\n",
            "name: X\nexercises:\n  - exercise: bench\n    weight: 100\n",
            "name: X\nexercises:\n  - sets: 3\n",
            "name: X\nexercises:\n  - exercise: bench\n    sets: -1\n",
            "name: [unclosed\n",
        ],
    )
    def test_invalid_definitions(self, text):
        with pytest.raises(ValidationError):
            parse_routine_yaml(text)
