"""Persistance SQLite des exercices."""

from .db import ExerciseDB, ExerciseStore, RefreshableStore

__all__ = ["ExerciseDB", "ExerciseStore", "RefreshableStore"]
