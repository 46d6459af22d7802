"""Plain data records shared by the session and the stores.

Each record converts to and from a JSON-friendly ``dict`` so sessions can be
written to the recovery files and workout logs can be stored as rows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ExerciseRef:
    """Snapshot of an exercise taken when it enters a session."""

    id: str
    name: str
    muscle_group: str = "other"
    equipment: str = "other"
    is_custom: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "muscle_group": self.muscle_group,
            "equipment": self.equipment,
            "is_custom": self.is_custom,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseRef":
        return cls(
            id=data["id"],
            name=data["name"],
            muscle_group=data.get("muscle_group", "other"),
            equipment=data.get("equipment", "other"),
            is_custom=bool(data.get("is_custom", False)),
        )


@dataclass(frozen=True)
class SetEntry:
    """One completed set.  ``order`` is 1-based within its exercise."""

    id: str
    exercise_id: str
    weight: float
    reps: int
    order: int
    completed_at: float

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "exercise_id": self.exercise_id,
            "weight": self.weight,
            "reps": self.reps,
            "order": self.order,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SetEntry":
        return cls(
            id=data["id"],
            exercise_id=data["exercise_id"],
            weight=float(data["weight"]),
            reps=int(data["reps"]),
            order=int(data["order"]),
            completed_at=float(data["completed_at"]),
        )


@dataclass
class SessionExercise:
    """An exercise slot inside an active session."""

    exercise: ExerciseRef
    planned_sets: int
    planned_reps: int
    order: int
    completed_sets: list[SetEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "exercise": self.exercise.to_dict(),
            "planned_sets": self.planned_sets,
            "planned_reps": self.planned_reps,
            "order": self.order,
            "completed_sets": [s.to_dict() for s in self.completed_sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionExercise":
        return cls(
            exercise=ExerciseRef.from_dict(data["exercise"]),
            planned_sets=int(data["planned_sets"]),
            planned_reps=int(data["planned_reps"]),
            order=int(data["order"]),
            completed_sets=[
                SetEntry.from_dict(s) for s in data.get("completed_sets", [])
            ],
        )


@dataclass(frozen=True)
class RoutineExercise:
    exercise_id: str
    planned_sets: int
    planned_reps: int
    order: int

    def to_dict(self) -> dict:
        return {
            "exercise_id": self.exercise_id,
            "planned_sets": self.planned_sets,
            "planned_reps": self.planned_reps,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RoutineExercise":
        return cls(
            exercise_id=data["exercise_id"],
            planned_sets=int(data["planned_sets"]),
            planned_reps=int(data["planned_reps"]),
            order=int(data["order"]),
        )


@dataclass
class Routine:
    """Reusable template of exercises with planned sets and reps."""

    id: str
    name: str
    exercises: list[RoutineExercise] = field(default_factory=list)
    user_id: str = ""
    created_at: float | None = None
    updated_at: float | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "exercises": [e.to_dict() for e in self.exercises],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Routine":
        return cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            name=data["name"],
            exercises=[
                RoutineExercise.from_dict(e) for e in data.get("exercises", [])
            ],
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class WorkoutLogRecord:
    """Persisted record of a finished session."""

    id: str
    user_id: str
    sets: list[SetEntry]
    duration: int
    started_at: float
    completed_at: float
    notes: str = ""
    routine_id: str | None = None
    routine_name: str | None = None

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.sets)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "routine_id": self.routine_id,
            "routine_name": self.routine_name,
            "sets": [s.to_dict() for s in self.sets],
            "duration": self.duration,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutLogRecord":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            routine_id=data.get("routine_id"),
            routine_name=data.get("routine_name"),
            sets=[SetEntry.from_dict(s) for s in data.get("sets", [])],
            duration=int(data["duration"]),
            started_at=float(data["started_at"]),
            completed_at=float(data["completed_at"]),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class MoodEntry:
    """How the user felt at ``recorded_at`` on a 1 to 5 intensity scale."""

    id: str
    user_id: str
    mood: str
    intensity: int
    recorded_at: float
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "mood": self.mood,
            "intensity": self.intensity,
            "recorded_at": self.recorded_at,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MoodEntry":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            mood=data["mood"],
            intensity=int(data["intensity"]),
            recorded_at=float(data["recorded_at"]),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of a store operation.

    Stores never raise across their boundary; callers check ``ok``.
    """

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "StoreResult":
        return cls(True, value, None)

    @classmethod
    def failure(cls, error: str) -> "StoreResult":
        return cls(False, None, error)

    def __bool__(self) -> bool:
        return self.ok
