"""Schema creation and validation for the workout database."""
from __future__ import annotations

from pathlib import Path
import logging
import sqlite3
from typing import List, Tuple

from backend import DEFAULT_DB_PATH

# Minimal set of tables expected to exist in any valid workout database.
REQUIRED_TABLES = [
    "library_exercises",
    "routine_routines",
    "routine_exercises",
    "log_workout_logs",
    "log_sets",
    "mood_entries",
]

SCHEMA = """
CREATE TABLE IF NOT EXISTS library_exercises (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    muscle_group TEXT NOT NULL DEFAULT 'other',
    equipment TEXT NOT NULL DEFAULT 'other',
    is_custom INTEGER NOT NULL DEFAULT 0,
    user_id TEXT,
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS routine_routines (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT NOT NULL,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS routine_exercises (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    routine_id TEXT NOT NULL REFERENCES routine_routines(id),
    exercise_id TEXT NOT NULL,
    planned_sets INTEGER NOT NULL,
    planned_reps INTEGER NOT NULL,
    position INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS log_workout_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    routine_id TEXT,
    routine_name TEXT,
    duration INTEGER NOT NULL,
    started_at REAL NOT NULL,
    completed_at REAL NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    deleted INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS log_sets (
    log_id TEXT NOT NULL REFERENCES log_workout_logs(id),
    id TEXT NOT NULL,
    exercise_id TEXT NOT NULL,
    weight REAL NOT NULL,
    reps INTEGER NOT NULL,
    set_order INTEGER NOT NULL,
    completed_at REAL NOT NULL,
    position INTEGER NOT NULL,
    PRIMARY KEY (log_id, id)
);

CREATE TABLE IF NOT EXISTS mood_entries (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    mood TEXT NOT NULL,
    intensity INTEGER NOT NULL,
    recorded_at REAL NOT NULL,
    notes TEXT NOT NULL DEFAULT '',
    deleted INTEGER NOT NULL DEFAULT 0
);
"""

# Built-in exercise library: (id, name, muscle_group, equipment)
DEFAULT_EXERCISES = [
    ("bench-press", "Bench Press", "chest", "barbell"),
    ("dumbbell-press", "Dumbbell Press", "chest", "dumbbell"),
    ("push-ups", "Push-ups", "chest", "bodyweight"),
    ("incline-bench-press", "Incline Bench Press", "chest", "barbell"),
    ("chest-fly", "Chest Fly", "chest", "dumbbell"),
    ("deadlift", "Deadlift", "back", "barbell"),
    ("pull-ups", "Pull-ups", "back", "bodyweight"),
    ("bent-over-row", "Bent-over Row", "back", "barbell"),
    ("lat-pulldown", "Lat Pulldown", "back", "machine"),
    ("seated-row", "Seated Row", "back", "cable"),
    ("overhead-press", "Overhead Press", "shoulders", "barbell"),
    ("lateral-raises", "Lateral Raises", "shoulders", "dumbbell"),
    ("front-raises", "Front Raises", "shoulders", "dumbbell"),
    ("rear-delt-fly", "Rear Delt Fly", "shoulders", "dumbbell"),
    ("bicep-curls", "Bicep Curls", "arms", "dumbbell"),
    ("tricep-dips", "Tricep Dips", "arms", "bodyweight"),
    ("hammer-curls", "Hammer Curls", "arms", "dumbbell"),
    ("tricep-extensions", "Tricep Extensions", "arms", "dumbbell"),
    ("squats", "Squats", "legs", "barbell"),
    ("lunges", "Lunges", "legs", "bodyweight"),
    ("leg-press", "Leg Press", "legs", "machine"),
    ("leg-curls", "Leg Curls", "legs", "machine"),
    ("calf-raises", "Calf Raises", "legs", "bodyweight"),
    ("bulgarian-split-squats", "Bulgarian Split Squats", "legs", "bodyweight"),
    ("plank", "Plank", "core", "bodyweight"),
    ("crunches", "Crunches", "core", "bodyweight"),
    ("russian-twists", "Russian Twists", "core", "bodyweight"),
    ("mountain-climbers", "Mountain Climbers", "core", "bodyweight"),
    ("dead-bug", "Dead Bug", "core", "bodyweight"),
    ("running", "Running", "cardio", "other"),
    ("cycling", "Cycling", "cardio", "other"),
    ("jumping-jacks", "Jumping Jacks", "cardio", "bodyweight"),
    ("burpees", "Burpees", "cardio", "bodyweight"),
]


def init_database(db_path: Path = DEFAULT_DB_PATH, *, seed: bool = True) -> Path:
    """Create the schema in ``db_path`` and seed the exercise library.

    Safe to call on an existing database; tables are only created when
    missing and built-in exercises are only inserted once.
    """

    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(db_path)) as conn:
        conn.executescript(SCHEMA)
        if seed:
            conn.executemany(
                """
                INSERT OR IGNORE INTO library_exercises
                    (id, name, muscle_group, equipment, is_custom)
                VALUES (?, ?, ?, ?, 0)
                """,
                DEFAULT_EXERCISES,
            )
    logging.info("Initialised workout database at %s", db_path)
    return db_path


def validate_database(db_path: Path) -> Tuple[bool, List[str]]:
    """Run validation checks on ``db_path``.

    Currently the function ensures all tables listed in
    :data:`REQUIRED_TABLES` exist. The returned tuple contains a boolean
    indicating success and a list of error messages.
    """
    errors: List[str] = []
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cur = conn.cursor()
            for table in REQUIRED_TABLES:
                cur.execute(
                    "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                    (table,),
                )
                if not cur.fetchone():
                    errors.append(f"missing table: {table}")
    except sqlite3.Error as exc:
        errors.append(str(exc))
    return (len(errors) == 0, errors)
