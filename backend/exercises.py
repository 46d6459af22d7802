"""Exercise library helpers.

Exercises live in the ``library_exercises`` table.  Built-in exercises have no
owner; custom exercises belong to a single user and are only visible to that
user.  Store operations return :class:`~backend.models.StoreResult` objects
and never raise database errors to the caller.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from pathlib import Path

from . import DEFAULT_DB_PATH, EQUIPMENT, MUSCLE_GROUPS
from .errors import PersistenceFailure
from .models import ExerciseRef, StoreResult

_COLUMNS = "id, name, muscle_group, equipment, is_custom"


def _row_to_exercise(row) -> ExerciseRef:
    ex_id, name, group, equipment, is_custom = row
    return ExerciseRef(
        id=ex_id,
        name=name,
        muscle_group=group,
        equipment=equipment,
        is_custom=bool(is_custom),
    )


def get_exercise(
    exercise_id: str,
    user_id: str | None = None,
    db_path: Path = DEFAULT_DB_PATH,
) -> StoreResult:
    """Look up the exercise with ``exercise_id``.

    The result's ``value`` is ``None`` when no such exercise is visible to
    ``user_id``; custom exercises are only returned for their owner.
    """

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM library_exercises"
                " WHERE id = ? AND deleted = 0"
                " AND (user_id IS NULL OR user_id = ?)",
                (exercise_id, user_id),
            )
            row = cursor.fetchone()
    except sqlite3.Error as exc:
        logging.exception("Exercise lookup for %s failed", exercise_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(_row_to_exercise(row) if row else None)


def get_all_exercises(
    user_id: str | None = None,
    db_path: Path = DEFAULT_DB_PATH,
    *,
    muscle_group: str | None = None,
    equipment: str | None = None,
    search: str = "",
) -> StoreResult:
    """Return built-in exercises plus the custom ones owned by ``user_id``.

    The list is ordered by name and may be narrowed by ``muscle_group``,
    ``equipment`` and a case-insensitive ``search`` on the name.
    """

    query = (
        f"SELECT {_COLUMNS} FROM library_exercises"
        " WHERE deleted = 0 AND (user_id IS NULL OR user_id = ?)"
    )
    params: list = [user_id]
    if muscle_group:
        query += " AND muscle_group = ?"
        params.append(muscle_group)
    if equipment:
        query += " AND equipment = ?"
        params.append(equipment)
    if search.strip():
        query += " AND name LIKE ?"
        params.append(f"%{search.strip()}%")
    query += " ORDER BY name COLLATE NOCASE"

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
    except sqlite3.Error as exc:
        logging.exception("Loading exercises for %s failed", user_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success([_row_to_exercise(row) for row in rows])


def add_custom_exercise(
    user_id: str,
    name: str,
    muscle_group: str = "other",
    equipment: str = "other",
    db_path: Path = DEFAULT_DB_PATH,
) -> StoreResult:
    """Create a custom exercise for ``user_id``.

    On success the result's ``value`` is the new :class:`ExerciseRef`.
    """

    name = name.strip()
    if not name:
        return StoreResult.failure("Exercise name is required")
    if muscle_group not in MUSCLE_GROUPS:
        return StoreResult.failure(f"Unknown muscle group: {muscle_group}")
    if equipment not in EQUIPMENT:
        return StoreResult.failure(f"Unknown equipment: {equipment}")

    exercise = ExerciseRef(
        id=uuid.uuid4().hex,
        name=name,
        muscle_group=muscle_group,
        equipment=equipment,
        is_custom=True,
    )
    try:
        with sqlite3.connect(str(db_path)) as conn:
            conn.execute(
                """
                INSERT INTO library_exercises
                    (id, name, muscle_group, equipment, is_custom, user_id)
                VALUES (?, ?, ?, ?, 1, ?)
                """,
                (exercise.id, name, muscle_group, equipment, user_id),
            )
    except sqlite3.Error as exc:
        logging.exception("Adding custom exercise %r failed", name)
        return StoreResult.failure(str(exc))
    return StoreResult.success(exercise)


def delete_custom_exercise(
    user_id: str, exercise_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Soft delete a custom exercise owned by ``user_id``.

    Built-in exercises cannot be deleted.
    """

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.execute(
                """
                UPDATE library_exercises SET deleted = 1
                WHERE id = ? AND user_id = ? AND is_custom = 1 AND deleted = 0
                """,
                (exercise_id, user_id),
            )
            changed = cursor.rowcount
    except sqlite3.Error as exc:
        logging.exception("Deleting custom exercise %s failed", exercise_id)
        return StoreResult.failure(str(exc))
    if not changed:
        return StoreResult.failure(f"Custom exercise not found: {exercise_id}")
    return StoreResult.success()


class ExerciseCatalog:
    """Resolves exercise identifiers for one user."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, user_id: str | None = None):
        self.db_path = Path(db_path)
        self.user_id = user_id

    def resolve(self, exercise_id: str) -> ExerciseRef | None:
        """Return the exercise or ``None`` when it does not exist.

        Raises :class:`PersistenceFailure` when the library cannot be read,
        so a storage problem is never mistaken for a missing exercise.
        """

        result = get_exercise(exercise_id, self.user_id, self.db_path)
        if not result.ok:
            raise PersistenceFailure(
                f"Exercise library unavailable: {result.error}", result.error
            )
        return result.value

    def all(self, **filters) -> StoreResult:
        return get_all_exercises(self.user_id, self.db_path, **filters)
