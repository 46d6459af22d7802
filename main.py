from kivymd.app import MDApp
from kivy.lang import Builder
from kivy.properties import ObjectProperty
from pathlib import Path
import logging

from core import DEFAULT_DB_PATH, RECOVERY_DIR, UserSession
from backend import settings
from ui.screens import HomeScreen, WorkoutActiveScreen, WorkoutHistoryScreen

__all__ = ["WorkoutApp", "HomeScreen", "WorkoutActiveScreen", "WorkoutHistoryScreen"]


class WorkoutApp(MDApp):
    user_session = ObjectProperty(None, allownone=True)

    @property
    def workout_session(self):
        """The active workout of the logged in user."""
        return self.user_session.workout if self.user_session else None

    def build(self):
        self.title = "Workout Tracker"
        self.login(settings.get_value("user_id"))
        return Builder.load_file(str(Path(__file__).with_name("main.kv")))

    def login(self, user_id: str) -> None:
        if self.user_session:
            self.logout()
        self.user_session = UserSession.login(
            user_id, db_path=DEFAULT_DB_PATH, recovery_dir=RECOVERY_DIR
        )

    def logout(self) -> None:
        if self.user_session:
            self.user_session.logout()
            self.user_session = None

    def on_stop(self):
        self.logout()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    WorkoutApp().run()
