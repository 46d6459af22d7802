"""Workout log storage and history helpers.

A workout log is the persisted record of a finished session.  Submitting a
record whose id already exists is treated as a success so a retried finish
never stores the same workout twice.
"""

from __future__ import annotations

import calendar
import logging
import sqlite3
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from . import DEFAULT_DB_PATH
from .models import SetEntry, StoreResult, WorkoutLogRecord


def submit_workout_log(
    record: WorkoutLogRecord, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Persist ``record``.  The log and all its sets are written atomically."""

    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM log_workout_logs WHERE id = ?", (record.id,)
            )
            if cursor.fetchone():
                logging.info("Workout log %s already stored", record.id)
                return StoreResult.success(record)
            cursor.execute(
                """
                INSERT INTO log_workout_logs
                    (id, user_id, routine_id, routine_name, duration,
                     started_at, completed_at, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.user_id,
                    record.routine_id,
                    record.routine_name,
                    record.duration,
                    record.started_at,
                    record.completed_at,
                    record.notes,
                ),
            )
            cursor.executemany(
                """
                INSERT INTO log_sets
                    (log_id, id, exercise_id, weight, reps, set_order,
                     completed_at, position)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        record.id,
                        s.id,
                        s.exercise_id,
                        s.weight,
                        s.reps,
                        s.order,
                        s.completed_at,
                        pos,
                    )
                    for pos, s in enumerate(record.sets)
                ],
            )
    except sqlite3.Error as exc:
        logging.exception("Saving workout log %s failed", record.id)
        return StoreResult.failure(str(exc))
    logging.info(
        "Saved workout log %s with %d sets", record.id, len(record.sets)
    )
    return StoreResult.success(record)


def _load_sets(cursor, log_id: str) -> list[SetEntry]:
    cursor.execute(
        """
        SELECT id, exercise_id, weight, reps, set_order, completed_at
        FROM log_sets WHERE log_id = ? ORDER BY position
        """,
        (log_id,),
    )
    return [
        SetEntry(
            id=sid,
            exercise_id=ex_id,
            weight=weight,
            reps=reps,
            order=order,
            completed_at=done,
        )
        for sid, ex_id, weight, reps, order, done in cursor.fetchall()
    ]


def _row_to_record(cursor, row) -> WorkoutLogRecord:
    log_id, user_id, rid, rname, duration, started, completed, notes = row
    return WorkoutLogRecord(
        id=log_id,
        user_id=user_id,
        routine_id=rid,
        routine_name=rname,
        sets=_load_sets(cursor, log_id),
        duration=duration,
        started_at=started,
        completed_at=completed,
        notes=notes,
    )


_LOG_COLUMNS = (
    "id, user_id, routine_id, routine_name, duration, started_at, completed_at, notes"
)


def get_workout_logs(
    user_id: str, limit: int | None = None, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Return the workout logs of ``user_id``, newest first."""

    query = (
        f"SELECT {_LOG_COLUMNS} FROM log_workout_logs"
        " WHERE user_id = ? AND deleted = 0 ORDER BY completed_at DESC"
    )
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            logs = [_row_to_record(cursor, row) for row in rows]
    except sqlite3.Error as exc:
        logging.exception("Loading workout logs for %s failed", user_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(logs)


def get_workout_log(
    user_id: str, log_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_LOG_COLUMNS} FROM log_workout_logs"
                " WHERE id = ? AND user_id = ? AND deleted = 0",
                (log_id, user_id),
            )
            row = cursor.fetchone()
            if row is None:
                return StoreResult.failure(f"Workout log not found: {log_id}")
            record = _row_to_record(cursor, row)
    except sqlite3.Error as exc:
        logging.exception("Loading workout log %s failed", log_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(record)


def delete_workout_log(
    user_id: str, log_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.execute(
                """
                UPDATE log_workout_logs SET deleted = 1
                WHERE id = ? AND user_id = ? AND deleted = 0
                """,
                (log_id, user_id),
            )
            changed = cursor.rowcount
    except sqlite3.Error as exc:
        logging.exception("Deleting workout log %s failed", log_id)
        return StoreResult.failure(str(exc))
    if not changed:
        return StoreResult.failure(f"Workout log not found: {log_id}")
    return StoreResult.success()


class WorkoutLogStore:
    """Write side of the workout log store used by a session."""

    def __init__(self, db_path: Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)

    def submit(self, record: WorkoutLogRecord) -> StoreResult:
        return submit_workout_log(record, self.db_path)


# --------------------------------------------------------------
# History helpers (pure, operate on already loaded logs)
# --------------------------------------------------------------


def _month_before(moment: datetime) -> datetime:
    year, month = moment.year, moment.month - 1
    if month == 0:
        year, month = year - 1, 12
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def workout_stats(
    logs: Iterable[WorkoutLogRecord], now: float | None = None
) -> dict:
    """Return aggregate statistics for ``logs``.

    ``now`` is a UNIX timestamp and defaults to the current time.  Workouts
    count towards ``this_week`` / ``this_month`` when they were completed in
    the last seven days or since the same day of the previous month.
    """

    logs = list(logs)
    moment = datetime.fromtimestamp(now) if now is not None else datetime.now()
    week_ago = (moment - timedelta(days=7)).timestamp()
    month_ago = _month_before(moment).timestamp()

    total_duration = sum(log.duration for log in logs)
    frequency: Counter = Counter(
        s.exercise_id for log in logs for s in log.sets
    )
    return {
        "total_workouts": len(logs),
        "total_duration": total_duration,
        "total_volume": sum(log.total_volume for log in logs),
        "total_sets": sum(len(log.sets) for log in logs),
        "this_week": sum(1 for log in logs if log.completed_at >= week_ago),
        "this_month": sum(1 for log in logs if log.completed_at >= month_ago),
        "avg_duration": round(total_duration / len(logs)) if logs else 0,
        "most_frequent_exercises": [
            {"exercise_id": ex_id, "count": count}
            for ex_id, count in frequency.most_common(5)
        ],
    }


def recent_logs(logs: list[WorkoutLogRecord], count: int = 10) -> list[WorkoutLogRecord]:
    return logs[:count]


def logs_in_range(
    logs: Iterable[WorkoutLogRecord], start: float, end: float
) -> list[WorkoutLogRecord]:
    """Return logs completed between ``start`` and ``end`` inclusive."""
    return [log for log in logs if start <= log.completed_at <= end]


def logs_for_routine(
    logs: Iterable[WorkoutLogRecord], routine_id: str
) -> list[WorkoutLogRecord]:
    return [log for log in logs if log.routine_id == routine_id]
