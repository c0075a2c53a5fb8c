"""
Exercise Service

Exercise CRUD on top of the ExerciseValidator and the LessonOrderingService.

- Content (type, image, metadata) is validated before create and before
  any update that changes it; invalid content is never written.
- Every position change goes through the ordering service, so a lesson's
  exercises stay at positions 0..N-1 after create, move and delete.

Usage:
    from polyglot.services.content import ExerciseService

    service = ExerciseService(db_session)
    exercise = await service.create_exercise(ExerciseCreate(
        lesson_id=lesson_id,
        image_id=image_id,
        exercise_type=ExerciseType.IMAGE_TEXT,
    ))
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.base import transactional
from polyglot.db.models_content import Exercise
from polyglot.enums.content import ExerciseType
from polyglot.middleware.error_handling import NotFoundError
from polyglot.models.content import ExerciseCreate, ExerciseResponse, ExerciseUpdate
from polyglot.services.content.exercise_validator import ExerciseValidator
from polyglot.services.content.lesson_ordering import LessonOrderingService
from polyglot.services.content.translation_store import TranslationStore
from polyglot.services.image_registry import ImageRegistry, SqlImageRegistry

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("exercise_type", "image_id", "metadata")


class ExerciseService:
    """
    Service for authoring exercises.

    Provides:
    - Create with validation and positional insert
    - Partial update with re-validation and moves
    - Idempotent delete that closes the ordering gap
    - Lookups by id and by lesson
    """

    def __init__(
        self,
        db: AsyncSession,
        images: ImageRegistry = None,
        validator: ExerciseValidator = None,
        ordering: LessonOrderingService = None,
    ):
        """
        Initialize the exercise service.

        Args:
            db: Async database session
            images: Image existence lookup (defaults to the images table)
            validator: Content validator (defaults to one built on db)
            ordering: Ordering service (defaults to one built on db)
        """
        self.db = db
        images = images or SqlImageRegistry(db)
        self.validator = validator or ExerciseValidator(
            TranslationStore(db, images), images
        )
        self.ordering = ordering or LessonOrderingService(db)

    async def create_exercise(self, data: ExerciseCreate) -> ExerciseResponse:
        """
        Create an exercise.

        Inserted at data.order_index (later exercises shift down by one),
        or appended when no position is given.

        Raises:
            NotFoundError: If the lesson or a referenced image doesn't exist
            ReferentialIntegrityError: If the image has no text
            ValidationError: If the type is unknown or the metadata is malformed
            OutOfBoundsError: If an index is out of range
        """
        async with transactional(self.db):
            await self.ordering.lock_lesson(data.lesson_id)

            metadata = await self.validator.validate(
                data.exercise_type, data.image_id, data.metadata
            )

            exercise = Exercise(
                lesson_id=data.lesson_id,
                image_id=data.image_id,
                exercise_type=ExerciseType(data.exercise_type).value,
                metadata_=metadata.model_dump(),
            )
            await self.ordering.insert(exercise, data.order_index)

            logger.info(
                f"Created {exercise.exercise_type} exercise {exercise.id} "
                f"at position {exercise.order_index} in lesson {exercise.lesson_id}"
            )
            return ExerciseResponse.from_db_record(exercise)

    async def get_exercise(self, exercise_id: str) -> Optional[ExerciseResponse]:
        """Get an exercise by ID."""
        exercise = await self._find(exercise_id)
        if exercise is None:
            return None
        return ExerciseResponse.from_db_record(exercise)

    async def list_exercises(self, lesson_id: str) -> list[ExerciseResponse]:
        """Get a lesson's exercises in order."""
        result = await self.db.execute(
            select(Exercise)
            .where(Exercise.lesson_id == lesson_id)
            .order_by(Exercise.order_index.asc())
        )
        return [ExerciseResponse.from_db_record(e) for e in result.scalars().all()]

    async def update_exercise(
        self, exercise_id: str, data: ExerciseUpdate
    ) -> ExerciseResponse:
        """
        Update an exercise.

        When the type, image or metadata changes, the merged content
        (new values over stored ones) is validated again. A new order_index
        moves the exercise within its lesson.

        Raises:
            NotFoundError: If the exercise or a referenced image doesn't exist
            ReferentialIntegrityError: If the image has no text
            ValidationError: If the merged type is unknown or its metadata is malformed
            OutOfBoundsError: If an index is out of range
        """
        async with transactional(self.db):
            exercise = await self._find(exercise_id)
            if exercise is None:
                raise NotFoundError("exercise", exercise_id)
            await self.ordering.lock_lesson(exercise.lesson_id)

            if any(getattr(data, name) is not None for name in CONTENT_FIELDS):
                exercise_type = (
                    data.exercise_type
                    if data.exercise_type is not None
                    else exercise.exercise_type
                )
                image_id = data.image_id if data.image_id is not None else exercise.image_id
                raw_metadata = (
                    data.metadata if data.metadata is not None else exercise.metadata_
                )

                metadata = await self.validator.validate(
                    exercise_type, image_id, raw_metadata
                )

                exercise.exercise_type = ExerciseType(exercise_type).value
                exercise.image_id = image_id
                exercise.metadata_ = metadata.model_dump()

            if data.order_index is not None and data.order_index != exercise.order_index:
                await self.ordering.move(exercise, data.order_index)

            await self.db.flush()

            logger.info(f"Updated exercise {exercise_id}")
            return ExerciseResponse.from_db_record(exercise)

    async def delete_exercise(self, exercise_id: str) -> bool:
        """
        Delete an exercise and renumber the rest of its lesson.

        Returns:
            True if deleted, False if the exercise didn't exist
        """
        async with transactional(self.db):
            exercise = await self._find(exercise_id)
            if exercise is None:
                return False

            lesson_id = exercise.lesson_id
            await self.ordering.lock_lesson(lesson_id)
            await self.db.delete(exercise)
            await self.db.flush()
            await self.ordering.close_gap(lesson_id)

            logger.info(f"Deleted exercise {exercise_id} from lesson {lesson_id}")
            return True

    async def _find(self, exercise_id: str) -> Optional[Exercise]:
        result = await self.db.execute(
            select(Exercise).where(Exercise.id == exercise_id)
        )
        return result.scalar_one_or_none()
