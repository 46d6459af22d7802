from kivymd.app import MDApp
from kivymd.uix.screen import MDScreen
from kivymd.uix.dialog import MDDialog
from kivymd.uix.button import MDFlatButton, MDRaisedButton
from kivymd.uix.list import TwoLineListItem
from kivy.properties import StringProperty

from backend.errors import (
    ExerciseNotFoundError,
    PersistenceFailure,
    SessionBusyError,
    SessionStateError,
)


def routine_secondary_text(routine) -> str:
    count = len(routine.exercises)
    return f"{count} exercise" + ("" if count == 1 else "s")


class HomeScreen(MDScreen):
    """Lists the user's routines and starts workouts.

    Offers to resume a workout restored from the recovery files.
    """

    status_text = StringProperty("")

    @property
    def user_session(self):
        app = MDApp.get_running_app()
        return getattr(app, "user_session", None) if app else None

    def on_pre_enter(self, *args):
        self.populate()
        return super().on_pre_enter(*args)

    def on_enter(self, *args):
        session = self.user_session
        if session and session.resumed and session.workout.is_active:
            # offer it once per login
            session.resumed = False
            self._show_recovery_dialog()
        return super().on_enter(*args)

    def populate(self) -> None:
        """Fill the routine list from the routine store."""
        session = self.user_session
        lst = self.ids.get("routine_list")
        if not session or not lst:
            return
        lst.clear_widgets()
        result = session.routines.get_routines()
        if not result.ok:
            self.status_text = f"Could not load routines: {result.error}"
            return
        self.status_text = "" if result.value else "No routines yet"
        for routine in result.value:
            lst.add_widget(
                TwoLineListItem(
                    text=routine.name,
                    secondary_text=routine_secondary_text(routine),
                    on_release=lambda _, rid=routine.id: self.start_routine(rid),
                )
            )

    def start_routine(self, routine_id: str) -> None:
        session = self.user_session
        if not session:
            return
        try:
            session.start_routine(routine_id)
        except ExerciseNotFoundError as exc:
            self._show_error(
                f"This routine uses an exercise that no longer exists ({exc.exercise_id})."
            )
            return
        except (LookupError, PersistenceFailure) as exc:
            self._show_error(str(exc))
            return
        except SessionStateError:
            self._show_in_progress_dialog()
            return
        self._open_workout()

    def start_empty(self) -> None:
        session = self.user_session
        if not session:
            return
        if not session.workout.is_active:
            session.workout.start_empty()
        self._open_workout()

    def _open_workout(self) -> None:
        if self.manager:
            self.manager.current = "workout_active"

    def _show_error(self, message: str) -> None:
        dialog = MDDialog(
            title="Cannot start workout",
            text=message,
            buttons=[MDFlatButton(text="OK", on_release=lambda *_: dialog.dismiss())],
        )
        dialog.open()

    def _show_recovery_dialog(self) -> None:
        workout = self.user_session.workout

        def resume(*_):
            dialog.dismiss()
            self._open_workout()

        def discard(*_):
            dialog.dismiss()
            try:
                workout.cancel()
            except (SessionBusyError, SessionStateError) as exc:
                self.status_text = str(exc)

        dialog = MDDialog(
            text="Resume the workout you started earlier?",
            buttons=[
                MDFlatButton(text="Discard", on_release=discard),
                MDRaisedButton(text="Resume", on_release=resume),
            ],
        )
        dialog.open()

    def _show_in_progress_dialog(self) -> None:
        def resume(*_):
            dialog.dismiss()
            self._open_workout()

        dialog = MDDialog(
            title="Workout in progress",
            text="Finish or cancel the current workout before starting another.",
            buttons=[
                MDFlatButton(text="Close", on_release=lambda *_: dialog.dismiss()),
                MDRaisedButton(text="Open workout", on_release=resume),
            ],
        )
        dialog.open()
