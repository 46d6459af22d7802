from datetime import datetime

from kivymd.uix.screen import MDScreen
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.button import MDFlatButton
from kivymd.uix.dialog import MDDialog
from kivymd.uix.label import MDLabel
from kivymd.uix.list import OneLineListItem, TwoLineListItem
from kivymd.uix.slider import MDSlider
from kivy.app import App
from kivy.properties import StringProperty

from backend import settings
from backend.moods import MAX_INTENSITY, MIN_INTENSITY, MOODS, mood_stats, mood_trends
from backend.workout_logs import get_workout_logs, recent_logs, workout_stats


def format_log_entry(log, unit: str = "lb") -> tuple[str, str]:
    """Return the primary and secondary list text for a workout log."""

    dt = datetime.fromtimestamp(log.completed_at)
    minutes = log.duration // 60
    title = log.routine_name or "Empty workout"
    secondary = (
        f"{dt.strftime('%H:%M %a %d/%m/%Y')}  {minutes} min  "
        f"{len(log.sets)} sets  {log.total_volume:g} {unit}"
    )
    return title, secondary


def format_stats(stats: dict) -> str:
    return (
        f"{stats['total_workouts']} workouts, {stats['this_week']} this week, "
        f"{stats['this_month']} this month, "
        f"avg {stats['avg_duration'] // 60} min"
    )


def format_mood_stats(stats: dict, trends: list[dict]) -> str:
    """Summarise the mood journal next to the workout statistics."""

    if not stats["total"]:
        return "No moods logged yet"
    mood = stats["most_frequent"]
    days = sum(1 for day in trends if day["count"])
    return (
        f"Mostly {MOODS[mood]} {mood}, avg {stats['weekly_average_intensity']:.1f}/"
        f"{MAX_INTENSITY} this week, logged on {days} of the last {len(trends)} days"
    )


class WorkoutHistoryScreen(MDScreen):
    """Display past workouts, overall statistics and the mood journal.

    Attributes:
        return_to (str): Name of the screen to return to when the Back
            button is pressed. Defaults to ``"home"``.
    """

    return_to = StringProperty("home")
    stats_text = StringProperty("")
    mood_text = StringProperty("")

    @property
    def user_session(self):
        app = App.get_running_app()
        return getattr(app, "user_session", None) if app else None

    def on_pre_enter(self, *args):
        """Populate the history list before the screen becomes visible."""
        self.populate()
        return super().on_pre_enter(*args)

    def populate(self) -> None:
        """Fill the history list with finished workouts."""
        session = self.user_session
        if session is None:
            return
        self.populate_moods()
        result = get_workout_logs(session.user_id, db_path=session.db_path)
        if not result.ok:
            self.stats_text = f"Could not load history: {result.error}"
            return
        logs = result.value
        self.stats_text = format_stats(workout_stats(logs))
        lst = self.ids.get("history_list")
        if not lst:
            return
        lst.clear_widgets()
        unit = settings.get_value("weight_unit")
        for log in recent_logs(logs, 50):
            title, secondary = format_log_entry(log, unit)
            lst.add_widget(TwoLineListItem(text=title, secondary_text=secondary))

    def populate_moods(self) -> None:
        session = self.user_session
        if session is None:
            return
        result = session.moods.list()
        if not result.ok:
            self.mood_text = f"Could not load moods: {result.error}"
            return
        self.mood_text = format_mood_stats(
            mood_stats(result.value), mood_trends(result.value)
        )

    def log_mood(self, mood: str, intensity: int) -> bool:
        session = self.user_session
        if session is None:
            return False
        result = session.moods.add(mood, intensity)
        if not result.ok:
            self.mood_text = f"Could not save mood: {result.error}"
            return False
        self.populate_moods()
        return True

    def open_mood_dialog(self) -> None:
        content = MDBoxLayout(orientation="vertical", adaptive_height=True)
        slider = MDSlider(min=MIN_INTENSITY, max=MAX_INTENSITY, step=1, value=3)
        content.add_widget(MDLabel(text="Intensity", adaptive_height=True))
        content.add_widget(slider)

        def choose(mood):
            dialog.dismiss()
            self.log_mood(mood, int(slider.value))

        for mood, emoji in MOODS.items():
            content.add_widget(
                OneLineListItem(
                    text=f"{emoji}  {mood.capitalize()}",
                    on_release=lambda _, m=mood: choose(m),
                )
            )
        dialog = MDDialog(
            title="How do you feel?",
            type="custom",
            content_cls=content,
            buttons=[MDFlatButton(text="Close", on_release=lambda *_: dialog.dismiss())],
        )
        dialog.open()
