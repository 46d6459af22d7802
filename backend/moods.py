"""Mood journal storage and trend helpers.

Mood entries live in the ``mood_entries`` table next to the workout logs and
use the same :class:`~backend.models.StoreResult` contract: store calls never
raise database errors to the caller.
"""

from __future__ import annotations

import logging
import sqlite3
import time
import uuid
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from . import DEFAULT_DB_PATH
from .models import MoodEntry, StoreResult

# mood name -> emoji shown in the UI
MOODS = {
    "happy": "\U0001F60A",
    "neutral": "\U0001F610",
    "sad": "\U0001F614",
    "angry": "\U0001F621",
    "anxious": "\U0001F630",
    "tired": "\U0001F634",
    "excited": "\U0001F929",
    "peaceful": "\U0001F60C",
}

MIN_INTENSITY = 1
MAX_INTENSITY = 5

_COLUMNS = "id, user_id, mood, intensity, recorded_at, notes"


def add_mood(
    user_id: str,
    mood: str,
    intensity: int,
    notes: str = "",
    db_path: Path = DEFAULT_DB_PATH,
    recorded_at: float | None = None,
) -> StoreResult:
    """Record a mood for ``user_id``.

    ``mood`` must be one of :data:`MOODS` and ``intensity`` a whole number
    from 1 to 5.  On success the result's ``value`` is the new
    :class:`MoodEntry`.
    """

    if mood not in MOODS:
        return StoreResult.failure(f"Unknown mood: {mood}")
    if (
        isinstance(intensity, bool)
        or not isinstance(intensity, int)
        or not MIN_INTENSITY <= intensity <= MAX_INTENSITY
    ):
        return StoreResult.failure(
            f"Intensity must be between {MIN_INTENSITY} and {MAX_INTENSITY}"
        )
    entry = MoodEntry(
        id=uuid.uuid4().hex,
        user_id=user_id,
        mood=mood,
        intensity=intensity,
        recorded_at=time.time() if recorded_at is None else recorded_at,
        notes=notes.strip(),
    )
    try:
        with sqlite3.connect(str(db_path)) as conn:
            conn.execute(
                f"INSERT INTO mood_entries ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    entry.id,
                    entry.user_id,
                    entry.mood,
                    entry.intensity,
                    entry.recorded_at,
                    entry.notes,
                ),
            )
    except sqlite3.Error as exc:
        logging.exception("Saving mood for %s failed", user_id)
        return StoreResult.failure(str(exc))
    logging.info("Recorded mood %s (%d) for %s", mood, intensity, user_id)
    return StoreResult.success(entry)


def get_moods(
    user_id: str, limit: int | None = None, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    """Return the mood entries of ``user_id``, newest first."""

    query = (
        f"SELECT {_COLUMNS} FROM mood_entries"
        " WHERE user_id = ? AND deleted = 0 ORDER BY recorded_at DESC"
    )
    params: tuple = (user_id,)
    if limit is not None:
        query += " LIMIT ?"
        params = (user_id, limit)
    try:
        with sqlite3.connect(str(db_path)) as conn:
            rows = conn.execute(query, params).fetchall()
    except sqlite3.Error as exc:
        logging.exception("Loading moods for %s failed", user_id)
        return StoreResult.failure(str(exc))
    return StoreResult.success(
        [
            MoodEntry(mid, uid, mood, intensity, recorded, notes)
            for mid, uid, mood, intensity, recorded, notes in rows
        ]
    )


def delete_mood(
    user_id: str, mood_id: str, db_path: Path = DEFAULT_DB_PATH
) -> StoreResult:
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.execute(
                """
                UPDATE mood_entries SET deleted = 1
                WHERE id = ? AND user_id = ? AND deleted = 0
                """,
                (mood_id, user_id),
            )
            changed = cursor.rowcount
    except sqlite3.Error as exc:
        logging.exception("Deleting mood %s failed", mood_id)
        return StoreResult.failure(str(exc))
    if not changed:
        return StoreResult.failure(f"Mood not found: {mood_id}")
    return StoreResult.success()


class MoodStore:
    """Mood journal of one user."""

    def __init__(self, user_id: str, db_path: Path = DEFAULT_DB_PATH):
        self.user_id = user_id
        self.db_path = Path(db_path)

    def add(self, mood: str, intensity: int, notes: str = "") -> StoreResult:
        return add_mood(self.user_id, mood, intensity, notes, self.db_path)

    def list(self, limit: int | None = None) -> StoreResult:
        return get_moods(self.user_id, limit, self.db_path)

    def delete(self, mood_id: str) -> StoreResult:
        return delete_mood(self.user_id, mood_id, self.db_path)


# --------------------------------------------------------------
# Trend helpers (pure, operate on already loaded entries)
# --------------------------------------------------------------


def _average(entries: list[MoodEntry]) -> float:
    if not entries:
        return 0.0
    return sum(e.intensity for e in entries) / len(entries)


def _day_start(day) -> float:
    return datetime.combine(day, datetime.min.time()).timestamp()


def mood_stats(moods: Iterable[MoodEntry], now: float | None = None) -> dict:
    """Return counts and average intensities for ``moods``.

    ``this_week`` covers the last seven days and ``today`` starts at local
    midnight.  ``most_frequent`` is ``"neutral"`` when there are no entries.
    """

    moods = list(moods)
    moment = datetime.fromtimestamp(now) if now is not None else datetime.now()
    week_ago = (moment - timedelta(days=7)).timestamp()
    midnight = _day_start(moment.date())
    weekly = [m for m in moods if m.recorded_at >= week_ago]
    today = [m for m in moods if m.recorded_at >= midnight]
    counts = Counter(m.mood for m in moods)
    return {
        "total": len(moods),
        "this_week": len(weekly),
        "today": len(today),
        "average_intensity": _average(moods),
        "weekly_average_intensity": _average(weekly),
        "today_average_intensity": _average(today),
        "most_frequent": counts.most_common(1)[0][0] if counts else "neutral",
    }


def mood_trends(
    moods: Iterable[MoodEntry], now: float | None = None, days: int = 7
) -> list[dict]:
    """Return one bucket per calendar day for the last ``days`` days.

    Buckets are ordered oldest first; days without entries have a ``count``
    and ``average_intensity`` of ``0``.
    """

    moods = list(moods)
    today = (datetime.fromtimestamp(now) if now is not None else datetime.now()).date()
    trends = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = _day_start(day)
        end = _day_start(day + timedelta(days=1))
        entries = [m for m in moods if start <= m.recorded_at < end]
        trends.append(
            {
                "date": day.isoformat(),
                "count": len(entries),
                "average_intensity": _average(entries),
            }
        )
    return trends
