import logging
import threading

from kivymd.uix.screen import MDScreen
from kivy.properties import BooleanProperty, StringProperty
from kivy.clock import Clock
from kivymd.app import MDApp
from kivymd.uix.dialog import MDDialog
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivy.uix.scrollview import ScrollView
from kivymd.uix.list import MDList, OneLineListItem

from backend import settings
from backend.errors import (
    InvalidSetError,
    PersistenceFailure,
    SessionBusyError,
    WorkoutSessionError,
)


def format_elapsed(seconds: int) -> str:
    """Return ``seconds`` as ``MM:SS`` or ``H:MM:SS`` past the hour."""

    hours, rest = divmod(max(0, int(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def parse_set_input(weight_text: str, reps_text: str) -> tuple[float, int]:
    """Convert the set logger fields to numbers.

    An empty weight means a bodyweight set and counts as ``0``.
    """

    try:
        weight = float(weight_text.strip() or 0)
        reps = int(reps_text.strip())
    except ValueError:
        raise InvalidSetError("Enter a weight and a whole number of reps") from None
    return weight, reps


class WorkoutActiveScreen(MDScreen):
    """Screen that shows the workout in progress with a stopwatch."""

    formatted_time = StringProperty("00:00")
    exercise_name = StringProperty("")
    exercise_detail = StringProperty("")
    position_text = StringProperty("")
    volume_text = StringProperty("0")
    sets_text = StringProperty("")
    error_text = StringProperty("")
    notes = StringProperty("")
    finish_pending = BooleanProperty(False)
    _event = None

    @property
    def session(self):
        app = MDApp.get_running_app()
        return getattr(app, "workout_session", None) if app else None

    def on_pre_enter(self, *args):
        self.refresh()
        self.start_timer()
        return super().on_pre_enter(*args)

    def on_leave(self, *args):
        self.stop_timer()
        return super().on_leave(*args)

    def start_timer(self, *args):
        self.stop_timer()
        self._event = Clock.schedule_interval(self._update_elapsed, 0.5)
        self._update_elapsed(0)

    def stop_timer(self, *args):
        if self._event:
            self._event.cancel()
            self._event = None

    def _update_elapsed(self, dt):
        session = self.session
        self.formatted_time = format_elapsed(session.workout_duration if session else 0)

    def refresh(self) -> None:
        """Copy the session state into the display properties."""

        session = self.session
        if not session or not session.is_active:
            self.exercise_name = ""
            self.exercise_detail = ""
            self.position_text = ""
            self.sets_text = ""
            self.volume_text = "0"
            return
        unit = settings.get_value("weight_unit")
        self.volume_text = f"{session.total_volume:g} {unit}"
        self.notes = session.notes
        current = session.current_exercise
        if current is None:
            self.exercise_name = "No exercises yet"
            self.exercise_detail = "Add an exercise to start logging sets"
            self.position_text = ""
            self.sets_text = ""
            return
        done = len(current.completed_sets)
        self.exercise_name = current.exercise.name
        self.exercise_detail = (
            f"{done} of {current.planned_sets} sets, target {current.planned_reps} reps"
        )
        self.position_text = (
            f"{session.current_exercise_index + 1} / {len(session.exercises)}"
        )
        self.sets_text = "\n".join(
            f"Set {s.order}: {s.weight:g} {unit} x {s.reps}"
            for s in current.completed_sets
        )

    # ------------------------------------------------------------------
    # Actions bound in main.kv
    # ------------------------------------------------------------------

    def log_set(self, weight_text: str, reps_text: str) -> bool:
        session = self.session
        if not session or session.current_exercise is None:
            return False
        try:
            weight, reps = parse_set_input(weight_text, reps_text)
            session.log_set(session.current_exercise_index, weight, reps)
        except (InvalidSetError, SessionBusyError) as exc:
            self.error_text = str(exc)
            return False
        self.error_text = ""
        self.refresh()
        return True

    def _run(self, action, *args) -> bool:
        """Apply ``action`` to the session and redraw.

        A pending finish rejects every change; the reason is shown in
        ``error_text`` instead of escaping the Kivy callback.
        """

        try:
            action(*args)
        except SessionBusyError as exc:
            self.error_text = str(exc)
            return False
        self.error_text = ""
        self.refresh()
        return True

    def undo_last_set(self) -> None:
        session = self.session
        if session and session.current_exercise is not None:
            self._run(session.undo_last_set, session.current_exercise_index)

    def next_exercise(self) -> None:
        if self.session:
            self._run(self.session.next_exercise)

    def previous_exercise(self) -> None:
        if self.session:
            self._run(self.session.previous_exercise)

    def update_notes(self, text: str) -> None:
        session = self.session
        if session and session.is_active and text != session.notes:
            self._run(session.update_notes, text)

    def add_exercise(self, exercise) -> None:
        session = self.session
        if not session:
            return

        def append():
            session.add_exercise(
                exercise,
                int(settings.get_value("default_planned_sets")),
                int(settings.get_value("default_planned_reps")),
            )
            # jump to the new exercise
            while session.current_exercise_index < len(session.exercises) - 1:
                session.next_exercise()

        self._run(append)

    def open_exercise_picker(self) -> None:
        app = MDApp.get_running_app()
        catalog = app.user_session.catalog if app else None
        if catalog is None:
            return
        result = catalog.all()
        if not result.ok:
            self.error_text = f"Could not load exercises: {result.error}"
            return

        box = MDList()
        scroll = ScrollView(size_hint_y=None, height="320dp")
        scroll.add_widget(box)

        def choose(exercise):
            dialog.dismiss()
            self.add_exercise(exercise)

        for exercise in result.value:
            box.add_widget(
                OneLineListItem(
                    text=exercise.name,
                    on_release=lambda _, ex=exercise: choose(ex),
                )
            )
        dialog = MDDialog(
            title="Add exercise",
            type="custom",
            content_cls=scroll,
            buttons=[MDFlatButton(text="Close", on_release=lambda *_: dialog.dismiss())],
        )
        dialog.open()

    # ------------------------------------------------------------------
    # Finishing and cancelling
    # ------------------------------------------------------------------

    def confirm_finish(self):
        def finish(*_):
            dialog.dismiss()
            self.finish_workout()

        dialog = MDDialog(
            text="Finish and save this workout?",
            buttons=[
                MDFlatButton(text="Keep going", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Finish", on_release=finish),
            ],
        )
        dialog.open()

    def finish_workout(self) -> None:
        """Save the workout on a worker thread.

        The finish button is disabled through ``finish_pending`` until the
        store answers.
        """

        if self.finish_pending or not self.session:
            return
        self.finish_pending = True
        threading.Thread(
            target=self._finish_worker, args=(self.session,), daemon=True
        ).start()

    def _finish_worker(self, session) -> None:
        try:
            record = session.finish()
        except PersistenceFailure as exc:
            message = str(exc)
            Clock.schedule_once(lambda dt: self._on_finish_failed(message))
            return
        except WorkoutSessionError as exc:
            logging.warning("Finish rejected: %s", exc)
            Clock.schedule_once(lambda dt: self._on_finish_rejected())
            return
        except Exception as exc:
            logging.exception("Saving workout failed")
            message = f"Could not save workout: {exc}"
            Clock.schedule_once(lambda dt: self._on_finish_failed(message))
            return
        Clock.schedule_once(lambda dt: self._on_finished(record))

    def _on_finished(self, record) -> None:
        self.finish_pending = False
        self.stop_timer()
        self.refresh()
        if self.manager:
            self.manager.current = "history"

    def _on_finish_rejected(self) -> None:
        self.finish_pending = False

    def _on_finish_failed(self, message: str) -> None:
        self.finish_pending = False
        self.error_text = message

        def retry(*_):
            dialog.dismiss()
            self.finish_workout()

        dialog = MDDialog(
            title="Save failed",
            text=f"{message}\nYour workout is kept and can be saved later.",
            buttons=[
                MDFlatButton(text="Later", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Retry", on_release=retry),
            ],
        )
        dialog.open()

    def confirm_cancel(self):
        def discard(*_):
            dialog.dismiss()
            self.cancel_workout()

        dialog = MDDialog(
            text="Discard this workout? Logged sets will be lost.",
            buttons=[
                MDFlatButton(text="Keep", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Discard", on_release=discard),
            ],
        )
        dialog.open()

    def cancel_workout(self) -> None:
        session = self.session
        if not session:
            return
        try:
            session.cancel()
        except SessionBusyError as exc:
            self.error_text = str(exc)
            return
        self.stop_timer()
        self.refresh()
        if self.manager:
            self.manager.current = "home"
