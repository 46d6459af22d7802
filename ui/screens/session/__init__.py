"""Screens used during an active workout session."""

from .workout_active_screen import WorkoutActiveScreen

__all__ = ["WorkoutActiveScreen"]
