from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.db_io import init_database  # noqa: E402
from backend.models import RoutineExercise, StoreResult  # noqa: E402
from backend.routines import add_routine  # noqa: E402


class FlakyLogStore:
    """Workout log store that fails until told otherwise."""

    def __init__(self, fail: bool = True):
        self.fail = fail
        self.submitted = []

    def submit(self, record):
        self.submitted.append(record)
        if self.fail:
            return StoreResult.failure("network unavailable")
        return StoreResult.success(record)


@pytest.fixture
def sample_db(tmp_path: Path) -> Path:
    """Create a temporary database with the built-in exercises and a 'Push Day' routine."""
    db_path = tmp_path / "workout.db"
    init_database(db_path)
    result = add_routine(
        "user-1",
        "Push Day",
        [
            RoutineExercise("bench-press", 3, 10, 0),
            RoutineExercise("overhead-press", 3, 8, 1),
            RoutineExercise("push-ups", 2, 15, 2),
        ],
        db_path=db_path,
    )
    assert result.ok
    return db_path


@pytest.fixture
def push_day(sample_db):
    from backend.routines import get_routines

    return get_routines("user-1", sample_db).value[0]


@pytest.fixture
def recovery_base(tmp_path: Path) -> Path:
    return tmp_path / "session_recovery"


@pytest.fixture
def flaky_store():
    return FlakyLogStore()


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Keep settings reads and writes inside the test's temp directory."""
    from backend import settings

    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "settings.json")
    settings.reset_cache()
    yield
    settings.reset_cache()
