"""
Content API Models (Pydantic)

Request/response schemas for the content core:
- Versioned image texts (translations)
- Lessons
- Exercises and their per-variant metadata

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for validation.
    There is a corresponding SQLAlchemy file: polyglot/db/models_content.py

    Data flows: Request → Pydantic → Service → SQLAlchemy → Database

Exercise metadata is a tagged union: the exercise_type tag selects exactly
one metadata model from METADATA_MODELS. The models below only fix field
names and types; counting and range rules are enforced by the
ExerciseValidator so that every failure maps to a typed service error.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, Union, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from polyglot.config.settings import settings
from polyglot.enums.content import ExerciseType, LessonState
from polyglot.models.base import StrictRequest, StrictResponse

if TYPE_CHECKING:
    from polyglot.db.models_content import Exercise, ImageText, Lesson


# ISO 639-1 ("en") or locale ("en-US")
LANGUAGE_CODE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


def validate_language_code(value: str) -> str:
    """Check a language code's format and that it is supported."""
    if not LANGUAGE_CODE_PATTERN.match(value):
        raise ValueError(f"Invalid language code format: {value!r}")
    if not settings.is_language_supported(value):
        raise ValueError(f"Unsupported language code: {value!r}")
    return value


def validate_not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("Text must not be empty or contain only whitespace")
    return value


# ===========================================
# Translation (Image Text) Models
# ===========================================


class TranslationCreate(StrictRequest):
    """Request to add text to an image in one language."""

    image_id: str = Field(..., description="Image the text describes")
    language_code: str = Field(..., description="ISO 639-1 code or locale")
    text: str = Field(..., description="Text value")

    check_language = field_validator("language_code")(validate_language_code)
    check_text = field_validator("text")(validate_not_blank)


class TranslationUpdate(StrictRequest):
    """Request to append a new version of an existing text."""

    text: str = Field(..., description="New text value")

    check_text = field_validator("text")(validate_not_blank)


class TranslationResponse(StrictResponse):
    """One stored version of an image's text."""

    id: str
    image_id: str
    language_code: str
    text: str
    version: int = Field(..., ge=1)
    created_at: datetime

    @classmethod
    def from_db_record(cls, record: ImageText) -> TranslationResponse:
        return cls(
            id=record.id,
            image_id=record.image_id,
            language_code=record.language_code,
            text=record.text,
            version=record.version,
            created_at=record.created_at,
        )


# ===========================================
# Exercise Metadata Variants
# ===========================================


class ExerciseMetadataBase(BaseModel):
    """Shared config for metadata variants: no unknown keys, immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ImageTextMetadata(ExerciseMetadataBase):
    """image_text exercises carry no metadata."""


class MatchingPair(ExerciseMetadataBase):
    image_id: str
    text_id: str


class MatchingPairsMetadata(ExerciseMetadataBase):
    """Pairs of images and texts to match."""

    pairs: list[MatchingPair]


class FillInBlankMetadata(ExerciseMetadataBase):
    """
    A sentence with one blanked token.

    blank_index counts whitespace-separated tokens of sentence, from 0.
    """

    sentence: str
    blank_index: StrictInt
    correct_answer: str
    distractors: list[str]


class ListeningComprehensionMetadata(ExerciseMetadataBase):
    """An audio text and image options, one of which is correct."""

    audio_text_id: str
    image_options: list[str]
    correct_image_index: StrictInt


ExerciseMetadata = Union[
    ImageTextMetadata,
    MatchingPairsMetadata,
    FillInBlankMetadata,
    ListeningComprehensionMetadata,
]

METADATA_MODELS: dict[ExerciseType, type[ExerciseMetadataBase]] = {
    ExerciseType.IMAGE_TEXT: ImageTextMetadata,
    ExerciseType.MATCHING_PAIRS: MatchingPairsMetadata,
    ExerciseType.FILL_IN_BLANK: FillInBlankMetadata,
    ExerciseType.LISTENING_COMPREHENSION: ListeningComprehensionMetadata,
}


# ===========================================
# Exercise Models
# ===========================================


class ExerciseCreate(StrictRequest):
    """
    Request to create an exercise in a lesson.

    When order_index is omitted the exercise is appended; otherwise it is
    inserted at that position and later exercises shift down by one.

    exercise_type is resolved by the ExerciseValidator after the image checks,
    so an unknown tag fails there as a typed ValidationError.
    """

    lesson_id: str
    image_id: str
    exercise_type: Union[ExerciseType, str] = Field(..., description="Variant tag")
    order_index: Optional[int] = Field(None, ge=0, description="Target position")
    metadata: Optional[dict] = Field(None, description="Variant metadata")


class ExerciseUpdate(StrictRequest):
    """Partial update of an exercise. Omitted fields are left unchanged."""

    image_id: Optional[str] = None
    exercise_type: Optional[Union[ExerciseType, str]] = None
    order_index: Optional[int] = Field(None, ge=0)
    metadata: Optional[dict] = None


class ReorderExercises(StrictRequest):
    """New order of a lesson's exercises, first id gets position 0."""

    exercise_ids: list[str] = Field(..., min_length=1)


class ExerciseResponse(StrictResponse):
    """Exercise with its typed metadata."""

    id: str
    lesson_id: str
    image_id: str
    exercise_type: ExerciseType
    order_index: int
    metadata: ExerciseMetadata
    created_at: datetime

    @classmethod
    def from_db_record(cls, record: Exercise) -> ExerciseResponse:
        exercise_type = ExerciseType(record.exercise_type)
        metadata_model = METADATA_MODELS[exercise_type]
        return cls(
            id=record.id,
            lesson_id=record.lesson_id,
            image_id=record.image_id,
            exercise_type=exercise_type,
            order_index=record.order_index,
            metadata=metadata_model.model_validate(record.metadata_ or {}),
            created_at=record.created_at,
        )


# ===========================================
# Lesson Models
# ===========================================


class LessonCreate(StrictRequest):
    """Request to create a lesson. New lessons start as Draft."""

    title: str = Field(..., min_length=1, max_length=255)
    target_language: str
    created_by: str

    check_language = field_validator("target_language")(validate_language_code)


class LessonUpdate(StrictRequest):
    """
    Generic lesson update.

    published may be set to either value here, including True → False.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    target_language: Optional[str] = None
    published: Optional[bool] = None

    @field_validator("target_language")
    @classmethod
    def check_language(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validate_language_code(value)


class LessonResponse(StrictResponse):
    """Lesson with its visibility state."""

    id: str
    title: str
    target_language: str
    published: bool
    state: LessonState
    created_at: datetime
    updated_at: datetime
    created_by: str

    @classmethod
    def from_db_record(cls, record: Lesson) -> LessonResponse:
        return cls(
            id=record.id,
            title=record.title,
            target_language=record.target_language,
            published=record.published,
            state=LessonState.from_published(record.published),
            created_at=record.created_at,
            updated_at=record.updated_at,
            created_by=record.created_by,
        )


class LessonWithExercises(LessonResponse):
    """Lesson with its exercises in order_index order."""

    exercises: list[ExerciseResponse] = Field(default_factory=list)
