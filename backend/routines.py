"""Routine storage.

A routine is a named template: an ordered list of exercises with planned
sets and reps.  Routines belong to a single user.
"""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Iterable

from . import DEFAULT_DB_PATH
from .models import Routine, RoutineExercise, StoreResult


def _validate(name: str, exercises: Iterable[RoutineExercise]) -> list[str]:
    errors = []
    if not name.strip():
        errors.append("Routine name is required")
    for ex in exercises:
        if ex.planned_sets <= 0 or ex.planned_reps <= 0:
            errors.append(
                f"Planned sets and reps must be positive for {ex.exercise_id}"
            )
    return errors


def _load_exercises(cursor, routine_id: str) -> list[RoutineExercise]:
    cursor.execute(
        """
        SELECT exercise_id, planned_sets, planned_reps, position
        FROM routine_exercises
        WHERE routine_id = ?
        ORDER BY position
        """,
        (routine_id,),
    )
    return [
        RoutineExercise(
            exercise_id=ex_id, planned_sets=sets, planned_reps=reps, order=pos
        )
        for ex_id, sets, reps, pos in cursor.fetchall()
    ]


def _write_exercises(cursor, routine_id: str, exercises) -> None:
    cursor.execute("DELETE FROM routine_exercises WHERE routine_id = ?", (routine_id,))
    for pos, ex in enumerate(sorted(exercises, key=lambda e: e.order)):
        cursor.execute(
            """
            INSERT INTO routine_exercises
                (routine_id, exercise_id, planned_sets, planned_reps, position)
            VALUES (?, ?, ?, ?, ?)
            """,
            (routine_id, ex.exercise_id, ex.planned_sets, ex.planned_reps, pos),
        )


def get_routine(
    user_id: str, routine_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Return the routine ``routine_id`` owned by ``user_id``."""

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, created_at, updated_at FROM routine_routines
                WHERE id = ? AND user_id = ? AND deleted = 0
                """,
                (routine_id, user_id),
            )
            row = cursor.fetchone()
            if row is None:
                return StoreResult.failure(f"Routine not found: {routine_id}")
            rid, name, created, updated = row
            exercises = _load_exercises(cursor, rid)
    except sqlite3.Error as exc:
        logging.exception("Loading routine %s failed", routine_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(
        Routine(
            id=rid,
            user_id=user_id,
            name=name,
            exercises=exercises,
            created_at=created,
            updated_at=updated,
        )
    )


def get_routines(user_id: str, db_path: Path = DEFAULT_DB_PATH) -> StoreResult:
    """Return all routines of ``user_id``, most recently updated first."""

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, created_at, updated_at FROM routine_routines
                WHERE user_id = ? AND deleted = 0
                ORDER BY updated_at DESC
                """,
                (user_id,),
            )
            routines = [
                Routine(
                    id=rid,
                    user_id=user_id,
                    name=name,
                    created_at=created,
                    updated_at=updated,
                )
                for rid, name, created, updated in cursor.fetchall()
            ]
            for routine in routines:
                routine.exercises = _load_exercises(cursor, routine.id)
    except sqlite3.Error as exc:
        logging.exception("Loading routines for %s failed", user_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(routines)


def add_routine(
    user_id: str,
    name: str,
    exercises: list[RoutineExercise],
    db_path: Path = DEFAULT_DB_PATH,
) -> StoreResult:
    """Create a routine.  The result's ``value`` is the new :class:`Routine`."""

    errors = _validate(name, exercises)
    if errors:
        return StoreResult.failure("; ".join(errors))
    now = time.time()
    routine = Routine(
        id=uuid.uuid4().hex,
        user_id=user_id,
        name=name.strip(),
        exercises=list(exercises),
        created_at=now,
        updated_at=now,
    )
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO routine_routines (id, user_id, name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (routine.id, user_id, routine.name, now, now),
            )
            _write_exercises(cursor, routine.id, routine.exercises)
    except sqlite3.Error as exc:
        logging.exception("Adding routine %r failed", name)
        return StoreResult.failure(str(exc))
    return StoreResult.success(routine)


def update_routine(
    user_id: str,
    routine_id: str,
    *,
    name: str | None = None,
    exercises: list[RoutineExercise] | None = None,
    db_path: Path = DEFAULT_DB_PATH,
) -> StoreResult:
    """Rename a routine and/or replace its exercise list."""

    errors = _validate(name if name is not None else "-", exercises or [])
    if errors:
        return StoreResult.failure("; ".join(errors))
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM routine_routines WHERE id = ? AND user_id = ? AND deleted = 0",
                (routine_id, user_id),
            )
            if cursor.fetchone() is None:
                return StoreResult.failure(f"Routine not found: {routine_id}")
            if name is not None:
                cursor.execute(
                    "UPDATE routine_routines SET name = ? WHERE id = ?",
                    (name.strip(), routine_id),
                )
            if exercises is not None:
                _write_exercises(cursor, routine_id, exercises)
            cursor.execute(
                "UPDATE routine_routines SET updated_at = ? WHERE id = ?",
                (time.time(), routine_id),
            )
    except sqlite3.Error as exc:
        logging.exception("Updating routine %s failed", routine_id)
        return StoreResult.failure(str(exc))
    return get_routine(user_id, routine_id, db_path)


def delete_routine(
    user_id: str, routine_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Soft delete a routine.  Past workout logs keep their routine name."""

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.execute(
                """
                UPDATE routine_routines SET deleted = 1
                WHERE id = ? AND user_id = ? AND deleted = 0
                """,
                (routine_id, user_id),
            )
            changed = cursor.rowcount
    except sqlite3.Error as exc:
        logging.exception("Deleting routine %s failed", routine_id)
        return StoreResult.failure(str(exc))
    if not changed:
        return StoreResult.failure(f"Routine not found: {routine_id}")
    return StoreResult.success()


class RoutineStore:
    """Routine access bound to one user and database."""

    def __init__(self, user_id: str, db_path: Path = DEFAULT_DB_PATH):
        self.user_id = user_id
        self.db_path = Path(db_path)

    def get_routine(self, routine_id: str) -> StoreResult:
        return get_routine(self.user_id, routine_id, self.db_path)

    def get_routines(self) -> StoreResult:
        return get_routines(self.user_id, self.db_path)

    def add_routine(self, name: str, exercises: list[RoutineExercise]) -> StoreResult:
        return add_routine(self.user_id, name, exercises, self.db_path)

    def update_routine(self, routine_id: str, **changes) -> StoreResult:
        return update_routine(
            self.user_id, routine_id, db_path=self.db_path, **changes
        )

    def delete_routine(self, routine_id: str) -> StoreResult:
        return delete_routine(self.user_id, routine_id, self.db_path)
