import logging
import math
import threading
import time
import uuid
from pathlib import Path

from backend import DEFAULT_DB_PATH
from backend.errors import (
    ExerciseNotFoundError,
    InvalidSetError,
    PersistenceFailure,
    SessionBusyError,
    SessionStateError,
)
from backend.models import (
    ExerciseRef,
    Routine,
    SessionExercise,
    SetEntry,
    WorkoutLogRecord,
)
from backend.recovery import RecoveryStore, recovery_base_for
from backend.workout_logs import WorkoutLogStore


class WorkoutSession:
    """The active workout of one user.

    The session is either idle or in progress.  Every mutating call writes
    the full in-progress state to the recovery files so a crashed app can
    pick the workout up again with :meth:`restore`.  Durations and volume
    are derived from the stored sets on every read and never cached.

    ``log_store`` is any object with a ``submit(record)`` method returning a
    :class:`~backend.models.StoreResult`.
    """

    def __init__(
        self,
        user_id: str,
        log_store=None,
        recovery_base: Path | None = None,
        db_path: Path = DEFAULT_DB_PATH,
    ):
        self.user_id = user_id
        self.log_store = log_store or WorkoutLogStore(db_path)
        self.recovery = RecoveryStore(recovery_base or recovery_base_for(user_id))
        self._finish_lock = threading.Lock()
        self._reset()

    def _reset(self) -> None:
        self.is_active = False
        self.routine_id: str | None = None
        self.routine_name: str | None = None
        self.exercises: list[SessionExercise] = []
        self.current_exercise_index = 0
        self.started_at: float | None = None
        self.notes = ""
        # client generated id of the workout log; reused by finish retries
        self.log_id: str | None = None

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _require_idle(self) -> None:
        if self.is_active:
            raise SessionStateError(
                "A workout is already in progress; finish or cancel it first"
            )

    def _require_active(self) -> None:
        if not self.is_active:
            raise SessionStateError("No workout in progress")
        if self._finish_lock.locked():
            raise SessionBusyError("Workout is being saved")

    def _exercise_at(self, exercise_index: int) -> SessionExercise:
        if exercise_index < 0 or exercise_index >= len(self.exercises):
            raise IndexError("Invalid exercise index")
        return self.exercises[exercise_index]

    # ------------------------------------------------------------------
    # Starting
    # ------------------------------------------------------------------

    def start_with_routine(self, routine: Routine, catalog) -> None:
        """Start a workout from ``routine``.

        Every routine exercise is resolved through ``catalog.resolve``.  If
        one is missing :class:`ExerciseNotFoundError` is raised, and if the
        catalog cannot be read :class:`PersistenceFailure`.  Either way the
        session stays idle.
        """

        self._require_idle()
        exercises = []
        for routine_exercise in routine.exercises:
            exercise = catalog.resolve(routine_exercise.exercise_id)
            if exercise is None:
                raise ExerciseNotFoundError(routine_exercise.exercise_id)
            exercises.append(
                SessionExercise(
                    exercise=exercise,
                    planned_sets=routine_exercise.planned_sets,
                    planned_reps=routine_exercise.planned_reps,
                    order=routine_exercise.order,
                )
            )
        self._begin(exercises, routine.id, routine.name)

    def start_empty(self) -> None:
        """Start a workout without a routine."""

        self._require_idle()
        self._begin([], None, None)

    def _begin(self, exercises, routine_id, routine_name) -> None:
        self.is_active = True
        self.routine_id = routine_id
        self.routine_name = routine_name
        self.exercises = exercises
        self.current_exercise_index = 0
        self.started_at = time.time()
        self.notes = ""
        self.log_id = uuid.uuid4().hex
        logging.info(
            "Started workout %s for %s (%s)",
            self.log_id,
            self.user_id,
            routine_name or "empty",
        )
        self.save_recovery_state()

    # ------------------------------------------------------------------
    # In-progress operations
    # ------------------------------------------------------------------

    def add_exercise(
        self, exercise: ExerciseRef, planned_sets: int, planned_reps: int
    ) -> SessionExercise:
        """Append ``exercise`` to the workout."""

        self._require_active()
        for value in (planned_sets, planned_reps):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError("Planned sets and reps must be positive integers")
        entry = SessionExercise(
            exercise=exercise,
            planned_sets=planned_sets,
            planned_reps=planned_reps,
            order=len(self.exercises),
        )
        self.exercises.append(entry)
        self.save_recovery_state()
        return entry

    def log_set(self, exercise_index: int, weight: float, reps: int) -> SetEntry:
        """Record a completed set for the exercise at ``exercise_index``.

        ``weight`` must be a finite number ``>= 0`` and ``reps`` a positive
        integer, otherwise :class:`InvalidSetError` is raised and nothing is
        recorded.  Planned sets are targets only; extra sets are accepted.
        """

        self._require_active()
        exercise = self._exercise_at(exercise_index)
        if isinstance(reps, bool) or not isinstance(reps, int) or reps <= 0:
            raise InvalidSetError(f"Reps must be a positive integer, got {reps!r}")
        if isinstance(weight, bool):
            raise InvalidSetError(f"Invalid weight {weight!r}")
        try:
            weight = float(weight)
        except (TypeError, ValueError):
            raise InvalidSetError(f"Invalid weight {weight!r}") from None
        if not math.isfinite(weight) or weight < 0:
            raise InvalidSetError(f"Weight must not be negative, got {weight!r}")

        entry = SetEntry(
            id=uuid.uuid4().hex,
            exercise_id=exercise.exercise.id,
            weight=weight,
            reps=reps,
            order=len(exercise.completed_sets) + 1,
            completed_at=time.time(),
        )
        exercise.completed_sets.append(entry)
        self.save_recovery_state()
        return entry

    def undo_last_set(self, exercise_index: int) -> bool:
        """Remove the most recent set of an exercise.

        Returns ``True`` if a set was removed, ``False`` when there was none.
        """

        self._require_active()
        exercise = self._exercise_at(exercise_index)
        if not exercise.completed_sets:
            return False
        exercise.completed_sets.pop()
        self.save_recovery_state()
        return True

    def next_exercise(self) -> int:
        self._require_active()
        if self.current_exercise_index < len(self.exercises) - 1:
            self.current_exercise_index += 1
            self.save_recovery_state()
        return self.current_exercise_index

    def previous_exercise(self) -> int:
        self._require_active()
        if self.current_exercise_index > 0:
            self.current_exercise_index -= 1
            self.save_recovery_state()
        return self.current_exercise_index

    def update_notes(self, text: str) -> None:
        self._require_active()
        self.notes = text
        self.save_recovery_state()

    # ------------------------------------------------------------------
    # Ending
    # ------------------------------------------------------------------

    def build_log_record(self, completed_at: float | None = None) -> WorkoutLogRecord:
        """Return the workout log for the current state without submitting it."""

        if not self.is_active:
            raise SessionStateError("No workout in progress")
        completed_at = time.time() if completed_at is None else completed_at
        sets = [s for ex in self.exercises for s in ex.completed_sets]
        return WorkoutLogRecord(
            id=self.log_id,
            user_id=self.user_id,
            routine_id=self.routine_id,
            routine_name=self.routine_name,
            sets=sets,
            duration=max(0, int(completed_at - self.started_at)),
            started_at=self.started_at,
            completed_at=completed_at,
            notes=self.notes,
        )

    def finish(self) -> WorkoutLogRecord:
        """Submit the workout to the log store and end the session.

        On success the session becomes idle, the recovery files are removed
        and the stored record is returned.  If the store reports a failure
        :class:`PersistenceFailure` is raised and the session, including its
        recovery files, is left untouched so ``finish`` can be retried.
        Retries reuse the same log id.  A second call while one is still
        running raises :class:`SessionBusyError`.
        """

        if not self._finish_lock.acquire(blocking=False):
            raise SessionBusyError("Workout is already being saved")
        try:
            record = self.build_log_record()
            result = self.log_store.submit(record)
            if not result.ok:
                logging.warning(
                    "Saving workout %s failed: %s", record.id, result.error
                )
                raise PersistenceFailure(
                    f"Could not save workout: {result.error}", result.error
                )
            logging.info(
                "Finished workout %s (%ds, volume %s)",
                record.id,
                record.duration,
                record.total_volume,
            )
            self._reset()
            self.recovery.clear()
            return record
        finally:
            self._finish_lock.release()

    def cancel(self) -> None:
        """Discard the workout without saving it."""

        self._require_active()
        logging.info("Cancelled workout %s", self.log_id)
        self._reset()
        self.recovery.clear()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_finishing(self) -> bool:
        return self._finish_lock.locked()

    @property
    def current_exercise(self) -> SessionExercise | None:
        # finish() resets the session from a worker thread; read each field once
        exercises = self.exercises
        index = self.current_exercise_index
        if not exercises:
            return None
        return exercises[min(index, len(exercises) - 1)]

    @property
    def workout_duration(self) -> int:
        """Whole seconds since the workout started, ``0`` when idle."""

        started_at = self.started_at
        if not self.is_active or started_at is None:
            return 0
        return max(0, int(time.time() - started_at))

    @property
    def total_volume(self) -> float:
        return sum(s.volume for ex in self.exercises for s in ex.completed_sets)

    def summary(self) -> str:
        """Return a formatted text summary of the session."""

        if not self.is_active:
            return ""
        lines = [f"Workout: {self.routine_name or 'Empty workout'}"]
        start = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.started_at))
        m, s = divmod(self.workout_duration, 60)
        lines.append(f"Start: {start}")
        lines.append(f"Duration: {m}m {s}s")
        lines.append(f"Volume: {self.total_volume:g}")
        for ex in self.exercises:
            lines.append(
                f"\n{ex.exercise.name} ({len(ex.completed_sets)}/{ex.planned_sets})"
            )
            for entry in ex.completed_sets:
                lines.append(f"  Set {entry.order}: {entry.weight:g} x {entry.reps}")
        return "\n".join(lines)

    # --------------------------------------------------------------
    # Persistence helpers
    # --------------------------------------------------------------

    def to_dict(self) -> dict:
        """Return a JSON-serialisable representation of the session."""

        return {
            "user_id": self.user_id,
            "is_active": self.is_active,
            "routine_id": self.routine_id,
            "routine_name": self.routine_name,
            "exercises": [ex.to_dict() for ex in self.exercises],
            "current_exercise_index": self.current_exercise_index,
            "started_at": self.started_at,
            "notes": self.notes,
            "log_id": self.log_id,
        }

    def _apply_state(self, data: dict) -> None:
        exercises = [SessionExercise.from_dict(ex) for ex in data["exercises"]]
        index = int(data.get("current_exercise_index", 0))
        self.routine_id = data.get("routine_id")
        self.routine_name = data.get("routine_name")
        self.exercises = exercises
        self.current_exercise_index = min(max(index, 0), max(len(exercises) - 1, 0))
        self.started_at = float(data["started_at"])
        self.notes = data.get("notes", "")
        self.log_id = data.get("log_id") or uuid.uuid4().hex
        self.is_active = True

    @classmethod
    def from_dict(cls, data: dict, **kwargs) -> "WorkoutSession":
        """Reconstruct a :class:`WorkoutSession` from ``data``."""

        obj = cls(data["user_id"], **kwargs)
        if data.get("is_active"):
            obj._apply_state(data)
        return obj

    def save_recovery_state(self) -> None:
        """Persist the current session state to the recovery files."""

        if self.is_active:
            self.recovery.save(self.to_dict())

    def restore(self) -> bool:
        """Resume a workout from the recovery files.

        Returns ``True`` if a session was restored.  Snapshots that cannot be
        parsed or belong to another user are discarded.
        """

        self._require_idle()
        data = self.recovery.load()
        if not data or not data.get("is_active"):
            return False
        if data.get("user_id") != self.user_id:
            logging.warning("Discarding recovery state of another user")
            self.recovery.clear()
            return False
        try:
            self._apply_state(data)
        except (KeyError, TypeError, ValueError):
            logging.exception("Discarding unreadable recovery state")
            self._reset()
            self.recovery.clear()
            return False
        logging.info("Restored workout %s for %s", self.log_id, self.user_id)
        return True
