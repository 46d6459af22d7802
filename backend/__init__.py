"""Shared constants and globals for backend modules."""

from __future__ import annotations

from pathlib import Path

# Default targets used when an exercise is added without a routine
DEFAULT_PLANNED_SETS = 3
DEFAULT_PLANNED_REPS = 10

# Path to the SQLite database holding exercises, routines and workout logs
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout.db"
)

# Directory holding the per-user recovery files of in-progress sessions
RECOVERY_DIR = Path(__file__).resolve().parent.parent / "data"

MUSCLE_GROUPS = (
    "chest",
    "back",
    "shoulders",
    "arms",
    "legs",
    "core",
    "cardio",
    "other",
)

EQUIPMENT = ("barbell", "dumbbell", "machine", "bodyweight", "cable", "other")

__all__ = [
    "DEFAULT_PLANNED_SETS",
    "DEFAULT_PLANNED_REPS",
    "DEFAULT_DB_PATH",
    "RECOVERY_DIR",
    "MUSCLE_GROUPS",
    "EQUIPMENT",
]
