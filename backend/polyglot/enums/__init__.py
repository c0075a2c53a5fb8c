"""
Centralized enum definitions for the application.

Usage:
    from polyglot.enums import ExerciseType, LessonState
"""

from polyglot.enums.content import ExerciseType, LessonState

__all__ = [
    "ExerciseType",
    "LessonState",
]
