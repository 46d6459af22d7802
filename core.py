"""Convenience re-exports for the application entry point.

The domain code lives in :mod:`backend`; this module gathers what the UI
needs behind a single import.
"""

from __future__ import annotations

from backend import (
    DEFAULT_DB_PATH,
    DEFAULT_PLANNED_REPS,
    DEFAULT_PLANNED_SETS,
    RECOVERY_DIR,
)
from backend.errors import (
    ExerciseNotFoundError,
    InvalidSetError,
    PersistenceFailure,
    SessionBusyError,
    SessionStateError,
    WorkoutSessionError,
)
from backend.exercises import ExerciseCatalog, get_all_exercises
from backend.models import (
    ExerciseRef,
    MoodEntry,
    Routine,
    RoutineExercise,
    WorkoutLogRecord,
)
from backend.moods import MOODS, mood_stats, mood_trends
from backend.user_session import UserSession
from backend.workout_logs import get_workout_logs, workout_stats
from backend.workout_session import WorkoutSession

__all__ = [
    "DEFAULT_DB_PATH",
    "DEFAULT_PLANNED_REPS",
    "DEFAULT_PLANNED_SETS",
    "RECOVERY_DIR",
    "ExerciseNotFoundError",
    "InvalidSetError",
    "PersistenceFailure",
    "SessionBusyError",
    "SessionStateError",
    "WorkoutSessionError",
    "ExerciseCatalog",
    "get_all_exercises",
    "ExerciseRef",
    "MoodEntry",
    "MOODS",
    "mood_stats",
    "mood_trends",
    "Routine",
    "RoutineExercise",
    "WorkoutLogRecord",
    "UserSession",
    "get_workout_logs",
    "workout_stats",
    "WorkoutSession",
]
