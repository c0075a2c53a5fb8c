"""
Lesson Ordering Service

Keeps the exercises of a lesson densely ordered: for a lesson with N
exercises the order_index values are exactly 0..N-1.

Reorder requests must name every exercise of the lesson exactly once.
Inserts, moves and deletes performed by the ExerciseService go through the
same rewrite path so the invariant also holds after single-exercise edits.

Rewrites are two-phase because (lesson_id, order_index) is unique in
storage: rows that change position first move to distinct negative
placeholders, then to their final positions. Both phases run inside the
caller's transaction, so readers never see an intermediate order.

Usage:
    service = LessonOrderingService(db_session)
    exercises = await service.reorder(lesson_id, ReorderExercises(
        exercise_ids=[b_id, a_id],
    ))
"""

import logging
from collections import Counter

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.base import transactional
from polyglot.db.models_content import Exercise, Lesson
from polyglot.middleware.error_handling import (
    InvalidOrderSetError,
    NotFoundError,
    OutOfBoundsError,
)
from polyglot.models.content import ExerciseResponse, ReorderExercises

logger = logging.getLogger(__name__)


class LessonOrderingService:
    """Maintains dense, unique exercise positions within lessons."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def reorder(
        self, lesson_id: str, data: ReorderExercises
    ) -> list[ExerciseResponse]:
        """
        Reorder all exercises of a lesson.

        Args:
            lesson_id: Lesson whose exercises are reordered
            data: Every exercise id of the lesson, in the new order

        Returns:
            The lesson's exercises in their new order

        Raises:
            NotFoundError: If the lesson doesn't exist
            InvalidOrderSetError: If the ids are not exactly a permutation
                of the lesson's exercise ids (nothing is written)
        """
        async with transactional(self.db):
            await self.lock_lesson(lesson_id)
            exercises = await self.load_for_update(lesson_id)

            by_id = {exercise.id: exercise for exercise in exercises}
            requested = Counter(data.exercise_ids)
            duplicates = sorted(i for i, count in requested.items() if count > 1)
            missing = sorted(set(by_id) - set(requested))
            extra = sorted(set(requested) - set(by_id))

            if duplicates or missing or extra:
                raise InvalidOrderSetError(
                    lesson_id, missing=missing, extra=extra, duplicates=duplicates
                )

            ordered = [by_id[exercise_id] for exercise_id in data.exercise_ids]
            await self.apply_order(ordered)

            logger.info(f"Reordered {len(ordered)} exercises in lesson {lesson_id}")
            return [ExerciseResponse.from_db_record(e) for e in ordered]

    # -------------------------------------------------------------------------
    # Single-exercise edits (run inside the caller's transaction)
    # -------------------------------------------------------------------------

    async def insert(self, exercise: Exercise, position: int = None) -> list[Exercise]:
        """
        Insert a new, not yet persisted exercise into its lesson.

        Exercises at or after position shift down by one. Appends when
        position is None.

        Raises:
            OutOfBoundsError: If position is outside 0..N
        """
        exercises = await self.load_for_update(exercise.lesson_id)
        if position is None:
            position = len(exercises)
        if not 0 <= position <= len(exercises):
            raise OutOfBoundsError(
                "order_index",
                f"order_index {position} is out of bounds for a lesson of {len(exercises)} exercises",
            )

        # Slot N is always free in a dense 0..N-1 lesson
        exercise.order_index = len(exercises)
        self.db.add(exercise)
        await self.db.flush()

        ordered = exercises[:position] + [exercise] + exercises[position:]
        await self.apply_order(ordered)
        return ordered

    async def move(self, exercise: Exercise, position: int) -> list[Exercise]:
        """
        Move an existing exercise to a new position in its lesson.

        Raises:
            OutOfBoundsError: If position is outside 0..N-1
        """
        exercises = await self.load_for_update(exercise.lesson_id)
        if not 0 <= position < len(exercises):
            raise OutOfBoundsError(
                "order_index",
                f"order_index {position} is out of bounds for a lesson of {len(exercises)} exercises",
            )

        ordered = [e for e in exercises if e.id != exercise.id]
        ordered.insert(position, exercise)
        await self.apply_order(ordered)
        return ordered

    async def close_gap(self, lesson_id: str) -> list[Exercise]:
        """Renumber a lesson's exercises to 0..N-1 after a removal."""
        exercises = await self.load_for_update(lesson_id)
        await self.apply_order(exercises)
        return exercises

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def load_for_update(self, lesson_id: str) -> list[Exercise]:
        """Load a lesson's exercises in order, locking the rows."""
        result = await self.db.execute(
            select(Exercise)
            .where(Exercise.lesson_id == lesson_id)
            .order_by(Exercise.order_index.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def apply_order(self, ordered: list[Exercise]) -> None:
        """Assign order_index = position for each exercise, two-phase."""
        changed = [
            (position, exercise)
            for position, exercise in enumerate(ordered)
            if exercise.order_index != position
        ]
        if not changed:
            return

        for position, exercise in changed:
            exercise.order_index = -(position + 1)
        await self.db.flush()

        for position, exercise in changed:
            exercise.order_index = position
        await self.db.flush()

    async def lock_lesson(self, lesson_id: str) -> Lesson:
        """
        Lock a lesson row for the rest of the transaction.

        Serializes concurrent position changes in one lesson, including
        inserts into a lesson that has no exercises yet.

        Raises:
            NotFoundError: If the lesson doesn't exist
        """
        result = await self.db.execute(
            select(Lesson).where(Lesson.id == lesson_id).with_for_update()
        )
        lesson = result.scalar_one_or_none()
        if lesson is None:
            raise NotFoundError("lesson", lesson_id)
        return lesson
