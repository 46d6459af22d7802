"""Per-user ownership of the active workout.

A :class:`UserSession` is created when a user logs in and discarded when they
log out.  It wires the stores for that user together and resumes any workout
left in the recovery files.
"""

from __future__ import annotations

import logging
from pathlib import Path

from backend import DEFAULT_DB_PATH, RECOVERY_DIR
from backend.db_io import init_database
from backend.errors import SessionStateError
from backend.exercises import ExerciseCatalog
from backend.moods import MoodStore
from backend.recovery import recovery_base_for
from backend.routines import RoutineStore
from backend.workout_logs import WorkoutLogStore
from backend.workout_session import WorkoutSession


class UserSession:
    def __init__(
        self,
        user_id: str,
        db_path: Path = DEFAULT_DB_PATH,
        recovery_dir: Path = RECOVERY_DIR,
    ):
        self.user_id = user_id
        self.db_path = Path(db_path)
        self.catalog = ExerciseCatalog(self.db_path, user_id)
        self.routines = RoutineStore(user_id, self.db_path)
        self.moods = MoodStore(user_id, self.db_path)
        self.workout = WorkoutSession(
            user_id,
            log_store=WorkoutLogStore(self.db_path),
            recovery_base=recovery_base_for(user_id, recovery_dir),
        )
        self.resumed = False

    @classmethod
    def login(
        cls,
        user_id: str,
        db_path: Path = DEFAULT_DB_PATH,
        recovery_dir: Path = RECOVERY_DIR,
    ) -> "UserSession":
        """Open the session of ``user_id`` and resume an interrupted workout."""

        if not user_id:
            raise ValueError("user_id is required")
        init_database(db_path)
        session = cls(user_id, db_path, recovery_dir)
        session.resumed = session.workout.restore()
        logging.info("User %s logged in (resumed=%s)", user_id, session.resumed)
        return session

    def logout(self) -> None:
        """Release the session.

        An unfinished workout stays in the recovery files and is resumed at
        the next login.
        """

        if self.workout.is_finishing:
            raise SessionStateError("Cannot log out while a workout is being saved")
        logging.info("User %s logged out", self.user_id)
        self.workout = None

    def start_routine(self, routine_id: str) -> None:
        """Start the workout from the stored routine ``routine_id``.

        Raises ``LookupError`` if the routine cannot be loaded.
        """

        result = self.routines.get_routine(routine_id)
        if not result.ok:
            raise LookupError(result.error)
        self.workout.start_with_routine(result.value, self.catalog)
