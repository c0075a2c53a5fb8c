"""
Lesson Visibility Gate

Decides which lessons learners can see. A lesson is visible for a language
exactly when its target_language equals that language and it is published.

Lessons start as Draft (published=False) and become visible through
publish(). unpublish() takes a lesson back to Draft.

Usage:
    gate = LessonVisibilityGate(db_session)
    await gate.publish(lesson_id)
    lessons = await gate.get_visible_lessons("en")
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.base import transactional
from polyglot.db.models_content import Lesson
from polyglot.middleware.error_handling import NotFoundError
from polyglot.models.content import LessonResponse

logger = logging.getLogger(__name__)


class LessonVisibilityGate:
    """Publish state transitions and the learner-facing lesson filter."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def publish(self, lesson_id: str) -> LessonResponse:
        """
        Publish a lesson. Publishing a published lesson is a no-op.

        Raises:
            NotFoundError: If the lesson doesn't exist
        """
        return await self._set_published(lesson_id, True)

    async def unpublish(self, lesson_id: str) -> LessonResponse:
        """
        Return a lesson to Draft. Unpublishing a draft is a no-op.

        Raises:
            NotFoundError: If the lesson doesn't exist
        """
        return await self._set_published(lesson_id, False)

    async def get_visible_lessons(self, language_code: str) -> list[LessonResponse]:
        """
        Get the published lessons for a target language.

        Newest first; callers must not rely on the order.
        """
        result = await self.db.execute(
            select(Lesson)
            .where(
                Lesson.target_language == language_code,
                Lesson.published.is_(True),
            )
            .order_by(Lesson.created_at.desc())
        )
        return [LessonResponse.from_db_record(row) for row in result.scalars().all()]

    async def _set_published(self, lesson_id: str, published: bool) -> LessonResponse:
        async with transactional(self.db):
            result = await self.db.execute(
                select(Lesson).where(Lesson.id == lesson_id).with_for_update()
            )
            lesson = result.scalar_one_or_none()
            if lesson is None:
                raise NotFoundError("lesson", lesson_id)

            if lesson.published != published:
                lesson.published = published
                await self.db.flush()
                logger.info(
                    f"Lesson {lesson_id} {'published' if published else 'unpublished'}"
                )

            return LessonResponse.from_db_record(lesson)
