import pytest

import backend.workout_session as ws
from backend.errors import (
    ExerciseNotFoundError,
    InvalidSetError,
    SessionStateError,
)
from backend.exercises import ExerciseCatalog
from backend.models import ExerciseRef, Routine, RoutineExercise
from backend.workout_logs import WorkoutLogStore
from backend.workout_session import WorkoutSession

BENCH = ExerciseRef("bench-press", "Bench Press", "chest", "barbell")
SQUAT = ExerciseRef("squats", "Squats", "legs", "barbell")


@pytest.fixture
def session(sample_db, recovery_base):
    return WorkoutSession(
        "user-1", log_store=WorkoutLogStore(sample_db), recovery_base=recovery_base
    )


@pytest.fixture
def clock(monkeypatch):
    now = [1_700_000_000.0]
    monkeypatch.setattr(ws.time, "time", lambda: now[0])
    return now


def test_start_with_routine_materialises_exercises(session, push_day, sample_db):
    session.start_with_routine(push_day, ExerciseCatalog(sample_db, "user-1"))

    assert session.is_active
    assert len(session.exercises) == len(push_day.exercises)
    assert [ex.exercise.id for ex in session.exercises] == [
        "bench-press",
        "overhead-press",
        "push-ups",
    ]
    assert [ex.order for ex in session.exercises] == [0, 1, 2]
    assert session.exercises[1].planned_sets == 3
    assert session.exercises[1].planned_reps == 8
    assert session.exercises[0].exercise.name == "Bench Press"
    assert session.current_exercise_index == 0
    assert session.current_exercise is session.exercises[0]
    assert session.notes == ""
    assert session.routine_id == push_day.id
    assert session.routine_name == "Push Day"


def test_missing_exercise_keeps_session_idle(session, sample_db):
    routine = Routine(
        id="r1",
        name="Broken",
        exercises=[
            RoutineExercise("bench-press", 3, 10, 0),
            RoutineExercise("does-not-exist", 3, 10, 1),
        ],
    )
    with pytest.raises(ExerciseNotFoundError) as info:
        session.start_with_routine(routine, ExerciseCatalog(sample_db, "user-1"))
    assert info.value.exercise_id == "does-not-exist"
    assert not session.is_active
    assert session.exercises == []
    assert session.recovery.load() is None

    session.start_empty()
    assert session.is_active
    assert session.exercises == []


def test_start_twice_is_rejected(session):
    session.start_empty()
    with pytest.raises(SessionStateError):
        session.start_empty()


def test_operations_require_active_session(session):
    with pytest.raises(SessionStateError):
        session.add_exercise(BENCH, 3, 10)
    with pytest.raises(SessionStateError):
        session.finish()
    with pytest.raises(SessionStateError):
        session.cancel()
    assert session.current_exercise is None
    assert session.workout_duration == 0


def test_empty_workout_volume_scenario(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 135, 10)
    session.log_set(0, 140, 8)

    assert session.total_volume == 135 * 10 + 140 * 8 == 2470
    sets = session.exercises[0].completed_sets
    assert len(sets) == 2
    assert [s.order for s in sets] == [1, 2]
    assert all(s.exercise_id == "bench-press" for s in sets)
    assert sets[0].id != sets[1].id


def test_add_exercise_mid_session_appends(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 100, 5)
    added = session.add_exercise(SQUAT, 5, 5)
    assert added.order == 1
    assert added.completed_sets == []
    assert session.exercises[-1] is added


@pytest.mark.parametrize("sets,reps", [(0, 10), (3, 0), (-1, 5), (2.5, 5), (True, 5)])
def test_add_exercise_rejects_bad_targets(session, sets, reps):
    session.start_empty()
    with pytest.raises(ValueError):
        session.add_exercise(BENCH, sets, reps)
    assert session.exercises == []


@pytest.mark.parametrize(
    "weight,reps",
    [(-5, 10), (135, 0), (135, -3), (135, 2.5), (float("nan"), 5), ("heavy", 5)],
)
def test_invalid_sets_leave_state_unchanged(session, weight, reps):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 100, 5)
    before = list(session.exercises[0].completed_sets)

    with pytest.raises(InvalidSetError):
        session.log_set(0, weight, reps)
    assert session.exercises[0].completed_sets == before


def test_zero_weight_is_allowed(session):
    session.start_empty()
    session.add_exercise(ExerciseRef("push-ups", "Push-ups"), 3, 15)
    entry = session.log_set(0, 0, 15)
    assert entry.weight == 0
    assert session.total_volume == 0


def test_log_set_unknown_exercise_index(session):
    session.start_empty()
    with pytest.raises(IndexError):
        session.log_set(0, 100, 5)


def test_planned_sets_are_not_a_cap(session):
    session.start_empty()
    session.add_exercise(BENCH, 1, 10)
    for _ in range(3):
        session.log_set(0, 100, 10)
    assert len(session.exercises[0].completed_sets) == 3
    assert session.exercises[0].planned_sets == 1


def test_log_then_undo_round_trip(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 100, 10)
    before = list(session.exercises[0].completed_sets)

    session.log_set(0, 110, 8)
    assert session.undo_last_set(0)
    assert session.exercises[0].completed_sets == before


def test_undo_on_empty_exercise_is_noop(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    assert session.undo_last_set(0) is False
    assert session.exercises[0].completed_sets == []


def test_undo_then_log_keeps_orders_contiguous(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 100, 10)
    session.log_set(0, 100, 10)
    session.undo_last_set(0)
    session.log_set(0, 105, 9)
    assert [s.order for s in session.exercises[0].completed_sets] == [1, 2]


def test_volume_is_independent_of_interleaving(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.add_exercise(SQUAT, 3, 5)
    calls = [(0, 100, 10), (1, 200, 5), (0, 105, 8), (1, 210, 5), (0, 0, 12)]
    for idx, w, r in calls:
        session.log_set(idx, w, r)
    assert session.total_volume == sum(w * r for _, w, r in calls)


def test_navigation_is_clamped(session, push_day, sample_db):
    session.start_with_routine(push_day, ExerciseCatalog(sample_db, "user-1"))

    assert session.previous_exercise() == 0
    assert session.next_exercise() == 1
    assert session.next_exercise() == 2
    assert session.next_exercise() == 2
    assert session.current_exercise.exercise.id == "push-ups"
    assert session.previous_exercise() == 1


def test_navigation_on_empty_workout(session):
    session.start_empty()
    assert session.next_exercise() == 0
    assert session.previous_exercise() == 0
    assert session.current_exercise is None


def test_notes_are_replaced_verbatim(session):
    session.start_empty()
    session.update_notes("  felt strong\n")
    assert session.notes == "  felt strong\n"
    session.update_notes("")
    assert session.notes == ""


def test_finish_duration(session, clock):
    clock[0] = 1000.0
    session.start_empty()
    clock[0] = 1095.0
    record = session.finish()
    assert record.duration == 95
    assert record.started_at == 1000.0
    assert record.completed_at == 1095.0


def test_workout_duration_is_derived(session, clock):
    clock[0] = 500.0
    session.start_empty()
    clock[0] = 561.7
    assert session.workout_duration == 61


def test_finish_flattens_sets_and_clears(session, push_day, sample_db):
    session.start_with_routine(push_day, ExerciseCatalog(sample_db, "user-1"))
    session.log_set(1, 95, 8)
    session.log_set(0, 135, 10)
    session.log_set(0, 135, 9)
    session.update_notes("good day")

    record = session.finish()

    assert [(s.exercise_id, s.order) for s in record.sets] == [
        ("bench-press", 1),
        ("bench-press", 2),
        ("overhead-press", 1),
    ]
    assert record.routine_id == push_day.id
    assert record.routine_name == "Push Day"
    assert record.notes == "good day"
    assert record.user_id == "user-1"
    assert not session.is_active
    assert session.exercises == []
    assert session.recovery.load() is None


def test_empty_workout_record_has_no_routine(session):
    session.start_empty()
    record = session.finish()
    assert record.routine_id is None
    assert record.routine_name is None
    assert record.sets == []


def test_cancel_discards_everything(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 100, 10)
    assert session.recovery.load() is not None

    session.cancel()

    assert not session.is_active
    assert session.exercises == []
    assert session.total_volume == 0
    assert session.recovery.load() is None
    session.start_empty()
    assert session.exercises == []


def test_summary_lists_sets(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.log_set(0, 135, 10)
    text = session.summary()
    assert "Empty workout" in text
    assert "Bench Press (1/3)" in text
    assert "Set 1: 135 x 10" in text


def test_duration_survives_reset_from_finishing_thread(session, monkeypatch):
    session.start_empty()

    def time_during_reset():
        # finish() resets the session while the stopwatch is reading it
        session._reset()
        return session_started + 30

    session_started = session.started_at
    monkeypatch.setattr(ws.time, "time", time_during_reset)
    assert session.workout_duration == 30


def test_current_exercise_tolerates_stale_index(session):
    session.start_empty()
    session.add_exercise(BENCH, 3, 10)
    session.current_exercise_index = 4
    assert session.current_exercise.exercise == BENCH
