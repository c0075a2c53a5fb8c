"""
Content Services

The content core for localized learning exercises.

Modules:
- translation_store: Versioned, append-only image texts per language
- exercise_validator: Per-variant exercise content checks
- lesson_ordering: Dense exercise ordering within lessons
- lesson_visibility: Publish state and the learner-facing lesson filter
- exercise_service: Exercise CRUD on top of validator and ordering
- lesson_service: Lesson CRUD

Usage:
    from polyglot.services.content import (
        TranslationStore,
        ExerciseValidator,
        LessonOrderingService,
        LessonVisibilityGate,
        ExerciseService,
        LessonService,
    )
"""

from polyglot.services.content.translation_store import TranslationStore
from polyglot.services.content.exercise_validator import ExerciseValidator
from polyglot.services.content.lesson_ordering import LessonOrderingService
from polyglot.services.content.lesson_visibility import LessonVisibilityGate
from polyglot.services.content.exercise_service import ExerciseService
from polyglot.services.content.lesson_service import LessonService

__all__ = [
    "TranslationStore",
    "ExerciseValidator",
    "LessonOrderingService",
    "LessonVisibilityGate",
    "ExerciseService",
    "LessonService",
]
