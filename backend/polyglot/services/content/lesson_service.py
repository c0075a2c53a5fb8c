"""
Lesson Service

Lesson CRUD for authors. Publishing is handled by the LessonVisibilityGate;
the generic update here writes `published` literally, so it can also move a
published lesson back to Draft.

Usage:
    from polyglot.services.content import LessonService

    service = LessonService(db_session)
    lesson = await service.create_lesson(LessonCreate(
        title="Basics", target_language="en", created_by=user_id
    ))
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.base import transactional
from polyglot.db.models_content import Exercise, Lesson
from polyglot.middleware.error_handling import NotFoundError
from polyglot.models.content import (
    ExerciseResponse,
    LessonCreate,
    LessonResponse,
    LessonUpdate,
    LessonWithExercises,
)

logger = logging.getLogger(__name__)


class LessonService:
    """Service for creating, reading, updating and deleting lessons."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_lesson(self, data: LessonCreate) -> LessonResponse:
        """Create a lesson in Draft state."""
        async with transactional(self.db):
            lesson = Lesson(
                title=data.title,
                target_language=data.target_language,
                created_by=data.created_by,
                published=False,
            )
            self.db.add(lesson)
            await self.db.flush()

            logger.info(f"Created lesson {lesson.id} ({lesson.target_language})")
            return LessonResponse.from_db_record(lesson)

    async def get_lesson(self, lesson_id: str) -> Optional[LessonWithExercises]:
        """Get a lesson with its exercises in order."""
        lesson = await self._find(lesson_id)
        if lesson is None:
            return None

        result = await self.db.execute(
            select(Exercise)
            .where(Exercise.lesson_id == lesson_id)
            .order_by(Exercise.order_index.asc())
        )
        exercises = [ExerciseResponse.from_db_record(e) for e in result.scalars().all()]

        return LessonWithExercises(
            **LessonResponse.from_db_record(lesson).model_dump(),
            exercises=exercises,
        )

    async def list_lessons(self) -> list[LessonResponse]:
        """List all lessons, drafts included, newest first."""
        result = await self.db.execute(select(Lesson).order_by(Lesson.created_at.desc()))
        return [LessonResponse.from_db_record(row) for row in result.scalars().all()]

    async def update_lesson(self, lesson_id: str, data: LessonUpdate) -> LessonResponse:
        """
        Update a lesson's title, target language or published flag.

        Raises:
            NotFoundError: If the lesson doesn't exist
        """
        async with transactional(self.db):
            lesson = await self._find(lesson_id, for_update=True)
            if lesson is None:
                raise NotFoundError("lesson", lesson_id)

            changes = data.model_dump(exclude_none=True)
            for field, value in changes.items():
                setattr(lesson, field, value)

            if changes:
                await self.db.flush()
                logger.info(f"Updated lesson {lesson_id}: {sorted(changes)}")

            return LessonResponse.from_db_record(lesson)

    async def delete_lesson(self, lesson_id: str) -> bool:
        """
        Delete a lesson and its exercises.

        Returns:
            True if deleted, False if the lesson didn't exist
        """
        async with transactional(self.db):
            lesson = await self._find(lesson_id, for_update=True)
            if lesson is None:
                return False

            await self.db.execute(delete(Exercise).where(Exercise.lesson_id == lesson_id))
            await self.db.delete(lesson)
            await self.db.flush()

            logger.info(f"Deleted lesson {lesson_id}")
            return True

    async def _find(self, lesson_id: str, for_update: bool = False) -> Optional[Lesson]:
        query = select(Lesson).where(Lesson.id == lesson_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
