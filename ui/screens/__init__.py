"""UI screen modules for the workout tracker."""

from .session import WorkoutActiveScreen
from .general import HomeScreen, WorkoutHistoryScreen

__all__ = [
    "HomeScreen",
    "WorkoutActiveScreen",
    "WorkoutHistoryScreen",
]
