import pytest

from backend import settings
from backend.errors import ExerciseNotFoundError
from backend.models import RoutineExercise
from backend.user_session import UserSession
from backend.workout_logs import get_workout_logs


def test_login_finish_and_history(sample_db, tmp_path, push_day):
    user = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    assert not user.resumed

    user.start_routine(push_day.id)
    user.workout.log_set(0, 135, 10)
    record = user.workout.finish()

    logs = get_workout_logs("user-1", db_path=sample_db).value
    assert [log.id for log in logs] == [record.id]
    assert logs[0].routine_name == "Push Day"
    assert logs[0].total_volume == 1350


def test_interrupted_workout_is_resumed_at_next_login(sample_db, tmp_path, push_day):
    first = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    first.start_routine(push_day.id)
    first.workout.next_exercise()
    first.workout.log_set(1, 95, 8)
    first.logout()
    assert first.workout is None

    second = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    assert second.resumed
    assert second.workout.current_exercise_index == 1
    assert second.workout.total_volume == 95 * 8

    # another user does not see it
    other = UserSession.login("user-2", db_path=sample_db, recovery_dir=tmp_path)
    assert not other.resumed


def test_start_unknown_routine(sample_db, tmp_path):
    user = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    with pytest.raises(LookupError):
        user.start_routine("missing")
    assert not user.workout.is_active


def test_start_routine_with_deleted_exercise(sample_db, tmp_path):
    user = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    routine = user.routines.add_routine(
        "Custom", [RoutineExercise("bench-press", 3, 10, 0)]
    ).value
    user.routines.update_routine(
        routine.id, exercises=[RoutineExercise("gone", 3, 10, 0)]
    )
    with pytest.raises(ExerciseNotFoundError):
        user.start_routine(routine.id)
    user.workout.start_empty()
    assert user.workout.is_active


def test_login_requires_user(sample_db, tmp_path):
    with pytest.raises(ValueError):
        UserSession.login("", db_path=sample_db, recovery_dir=tmp_path)


def test_settings_defaults_and_updates():
    assert settings.get_value("default_planned_sets") == 3
    assert settings.get_value("default_planned_reps") == 10
    assert settings.get_value("weight_unit") == "lb"

    settings.set_value("weight_unit", "kg")
    settings.reset_cache()
    assert settings.get_value("weight_unit") == "kg"
    with pytest.raises(ValueError):
        settings.set_value("weight_unit", "stone")


def test_corrupt_settings_fall_back_to_defaults():
    settings.SETTINGS_PATH.write_text("{broken")
    assert settings.get_value("default_planned_reps") == 10


def test_mood_journal_is_per_user(sample_db, tmp_path):
    alice = UserSession.login("user-1", db_path=sample_db, recovery_dir=tmp_path)
    bob = UserSession.login("user-2", db_path=sample_db, recovery_dir=tmp_path)
    assert alice.moods.add("excited", 5).ok
    assert [m.mood for m in alice.moods.list().value] == ["excited"]
    assert bob.moods.list().value == []
