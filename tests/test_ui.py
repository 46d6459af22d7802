import importlib.util
import os
from datetime import datetime

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "offscreen")
# Skip tests entirely if Kivy (and KivyMD) are not installed
kivy_available = (
    importlib.util.find_spec("kivy") is not None
    and importlib.util.find_spec("kivymd") is not None
)

if kivy_available:
    os.environ.setdefault("KIVY_UNITTEST", "1")

    from kivy.app import App
    from kivy.properties import ObjectProperty
    from kivymd.theming import ThemeManager

    import ui.screens.general.home_screen as home
    import ui.screens.session.workout_active_screen as active
    from ui.screens.general.workout_history_screen import (
        format_log_entry,
        format_mood_stats,
        format_stats,
    )
    from backend.errors import InvalidSetError, SessionStateError
    from backend.models import ExerciseRef, SetEntry, WorkoutLogRecord
    from backend.workout_session import WorkoutSession

    class _DummyApp:
        """Minimal stand-in for :class:`~kivymd.app.MDApp` used in tests."""

        theme_cls = ThemeManager()
        workout_session = None
        user_session = None

        def property(self, name, default=None):  # pragma: no cover - simple shim
            return ObjectProperty(None)

    @pytest.fixture
    def dummy_app(monkeypatch):
        app = _DummyApp()
        monkeypatch.setattr(App, "get_running_app", lambda: app)
        yield app

    class _Dialog:
        """Records dialogs instead of drawing them."""

        opened = []

        def __init__(self, **kwargs):
            self.kwargs = kwargs

        def open(self):
            _Dialog.opened.append(self)

        def dismiss(self):
            pass

    class _Button:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

    @pytest.fixture
    def dialogs(monkeypatch):
        _Dialog.opened = []
        for module in (active, home):
            monkeypatch.setattr(module, "MDDialog", _Dialog)
            monkeypatch.setattr(module, "MDFlatButton", _Button)
            monkeypatch.setattr(module, "MDRaisedButton", _Button)
        return _Dialog.opened


pytestmark = pytest.mark.skipif(not kivy_available, reason="Kivy and KivyMD are required")


def test_format_elapsed():
    assert active.format_elapsed(0) == "00:00"
    assert active.format_elapsed(95) == "01:35"
    assert active.format_elapsed(3725) == "1:02:05"
    assert active.format_elapsed(-3) == "00:00"


def test_parse_set_input():
    assert active.parse_set_input("135", "10") == (135.0, 10)
    assert active.parse_set_input("", "12") == (0.0, 12)
    with pytest.raises(InvalidSetError):
        active.parse_set_input("135", "")
    with pytest.raises(InvalidSetError):
        active.parse_set_input("abc", "5")


def test_history_entry_text(monkeypatch):
    import ui.screens.general.workout_history_screen as w

    class DummyDateTime:
        @classmethod
        def fromtimestamp(cls, ts):
            return datetime(2025, 8, 11, 14, 29)

    monkeypatch.setattr(w, "datetime", DummyDateTime)
    log = WorkoutLogRecord(
        id="x",
        user_id="u",
        sets=[SetEntry("s", "bench-press", 100, 10, 1, 0.0)],
        duration=1860,
        started_at=0.0,
        completed_at=1860.0,
    )
    title, secondary = format_log_entry(log, "kg")
    assert title == "Empty workout"
    assert secondary == "14:29 Mon 11/08/2025  31 min  1 sets  1000 kg"


def test_stats_text():
    text = format_stats(
        {"total_workouts": 4, "this_week": 1, "this_month": 3, "avg_duration": 2700}
    )
    assert text == "4 workouts, 1 this week, 3 this month, avg 45 min"


def test_active_screen_logs_and_finishes(dummy_app, recovery_base, flaky_store, monkeypatch):
    session = WorkoutSession("user-1", log_store=flaky_store, recovery_base=recovery_base)
    session.start_empty()
    session.add_exercise(ExerciseRef("bench-press", "Bench Press"), 3, 10)
    dummy_app.workout_session = session
    monkeypatch.setattr(active.Clock, "schedule_once", lambda cb, *a: cb(0))

    screen = active.WorkoutActiveScreen()
    screen.refresh()
    assert screen.exercise_name == "Bench Press"
    assert screen.exercise_detail == "0 of 3 sets, target 10 reps"

    assert not screen.log_set("135", "0")
    assert screen.error_text
    assert screen.log_set("135", "10")
    assert screen.error_text == ""
    assert screen.sets_text == "Set 1: 135 lb x 10"
    assert screen.volume_text == "1350 lb"

    failures = []
    monkeypatch.setattr(screen, "_on_finish_failed", lambda msg: failures.append(msg))
    screen._finish_worker(session)
    assert failures and session.is_active

    flaky_store.fail = False
    screen._finish_worker(session)
    assert not session.is_active
    assert not screen.finish_pending


def _active_screen(dummy_app, session, monkeypatch):
    dummy_app.workout_session = session
    monkeypatch.setattr(active.Clock, "schedule_once", lambda cb, *a: cb(0))
    screen = active.WorkoutActiveScreen()
    screen.refresh()
    return screen


def test_active_screen_rejects_changes_while_saving(
    dummy_app, recovery_base, flaky_store, monkeypatch
):
    session = WorkoutSession("user-1", log_store=flaky_store, recovery_base=recovery_base)
    session.start_empty()
    session.add_exercise(ExerciseRef("bench-press", "Bench Press"), 3, 10)
    session.add_exercise(ExerciseRef("squats", "Squats"), 3, 5)
    session.log_set(0, 100, 10)
    screen = _active_screen(dummy_app, session, monkeypatch)
    snapshot = session.to_dict()

    # a finish is running on the worker thread
    session._finish_lock.acquire()
    try:
        screen.next_exercise()
        assert screen.error_text == "Workout is being saved"
        screen.error_text = ""
        screen.previous_exercise()
        assert screen.error_text
        screen.error_text = ""
        screen.undo_last_set()
        assert screen.error_text
        screen.error_text = ""
        screen.update_notes("tired legs")
        assert screen.error_text
        screen.error_text = ""
        screen.add_exercise(ExerciseRef("lunges", "Lunges"))
        assert screen.error_text
        assert not screen.log_set("100", "8")
    finally:
        session._finish_lock.release()
    assert session.to_dict() == snapshot

    screen.next_exercise()
    assert screen.error_text == ""
    assert screen.exercise_name == "Squats"


class _ExplodingStore:
    def submit(self, record):
        raise OSError("disk full")


def test_unexpected_finish_error_reenables_finish(
    dummy_app, recovery_base, monkeypatch, dialogs
):
    session = WorkoutSession(
        "user-1", log_store=_ExplodingStore(), recovery_base=recovery_base
    )
    session.start_empty()
    screen = _active_screen(dummy_app, session, monkeypatch)

    screen.finish_pending = True
    screen._finish_worker(session)

    assert not screen.finish_pending
    assert "disk full" in screen.error_text
    assert dialogs and dialogs[0].kwargs["title"] == "Save failed"
    assert session.is_active


def test_picker_reports_unreadable_catalog(dummy_app, tmp_path, monkeypatch, dialogs):
    from backend.exercises import ExerciseCatalog

    class _User:
        catalog = ExerciseCatalog(tmp_path / "no_tables.db", "user-1")

    dummy_app.user_session = _User()
    screen = active.WorkoutActiveScreen()
    screen.open_exercise_picker()
    assert screen.error_text.startswith("Could not load exercises")
    assert dialogs == []


class _FakeWorkout:
    is_active = True

    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class _FakeUser:
    def __init__(self, resumed=True, start_error=None):
        self.resumed = resumed
        self.workout = _FakeWorkout()
        self.start_error = start_error

    def start_routine(self, routine_id):
        if self.start_error:
            raise self.start_error


def test_resume_dialog_is_offered_once(dummy_app, dialogs):
    dummy_app.user_session = _FakeUser(resumed=True)
    screen = home.HomeScreen()
    screen.on_enter()
    screen.on_enter()
    assert len(dialogs) == 1
    assert "Resume" in dialogs[0].kwargs["text"]
    assert dummy_app.user_session.resumed is False


def test_no_resume_dialog_for_workout_started_this_login(dummy_app, dialogs):
    dummy_app.user_session = _FakeUser(resumed=False)
    home.HomeScreen().on_enter()
    assert dialogs == []


def test_starting_routine_during_workout_tells_user(dummy_app, dialogs):
    dummy_app.user_session = _FakeUser(
        resumed=False, start_error=SessionStateError("already running")
    )
    screen = home.HomeScreen()
    opened = []
    screen._open_workout = lambda: opened.append(True)
    screen.start_routine("r1")
    assert opened == []
    assert dialogs[0].kwargs["title"] == "Workout in progress"


def test_mood_summary_text():
    stats = {"total": 0}
    assert format_mood_stats(stats, []) == "No moods logged yet"
    stats = {"total": 3, "most_frequent": "happy", "weekly_average_intensity": 3.5}
    trends = [{"count": 1}, {"count": 0}, {"count": 2}]
    assert format_mood_stats(stats, trends) == (
        "Mostly \U0001F60A happy, avg 3.5/5 this week, logged on 2 of the last 3 days"
    )
