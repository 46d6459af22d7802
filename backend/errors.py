"""Errors raised by the active workout session."""


class WorkoutSessionError(Exception):
    """Base class for all session errors."""


class SessionStateError(WorkoutSessionError):
    """Operation is not valid in the session's current state."""


class SessionBusyError(WorkoutSessionError):
    """A ``finish`` call for this session is still pending."""


class ExerciseNotFoundError(WorkoutSessionError):
    """A routine references an exercise the catalog does not know."""

    def __init__(self, exercise_id: str):
        super().__init__(f"Exercise not found: {exercise_id}")
        self.exercise_id = exercise_id


class InvalidSetError(WorkoutSessionError, ValueError):
    """A set was logged with negative weight or non-positive reps."""


class PersistenceFailure(WorkoutSessionError):
    """A store could not be read or rejected a write.

    A failed ``finish`` leaves the session in progress so the caller can
    retry.
    """

    def __init__(self, message: str, cause: object = None):
        super().__init__(message)
        self.cause = cause
