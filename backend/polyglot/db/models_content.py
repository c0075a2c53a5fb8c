"""
SQLAlchemy Database Models for Localized Learning Content

Tables:
- images: Image identities referenced by texts and exercises
- image_texts: Append-only, versioned per-language text for an image
- lessons: Lessons targeting one language, Draft or Published
- exercises: Ordered exercises within a lesson with variant metadata

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: polyglot/models/content.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database

Column types are kept portable (JSON, String UUID keys) so the same models
run against PostgreSQL in production and SQLite in tests.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


from sqlalchemy import (  # noqa: E402
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column  # noqa: E402

from polyglot.db.base import Base  # noqa: E402


class Image(Base):
    """
    Image identity.

    File bytes and storage paths belong to the image storage service;
    the content core only needs to know that an image exists.

    Attributes:
        id: UUID string primary key.
        filename: Original upload filename, informational only.
        created_at: Timestamp when the image was registered.
    """

    __tablename__ = "images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    filename: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class ImageText(Base):
    """
    One immutable version of an image's text in one language.

    Rows are never updated or deleted by the content services. For each
    (image_id, language_code) the version column runs 1..N in creation
    order and the row with the highest version is the latest text.

    Attributes:
        id: UUID string primary key.
        image_id: Image the text describes.
        language_code: ISO 639-1 code or locale (e.g. "en", "pt-BR").
        text: The text value for this version.
        version: Position in the key's history, starting at 1.
        created_at: Timestamp when this version was appended.
    """

    __tablename__ = "image_texts"
    __table_args__ = (
        UniqueConstraint(
            "image_id", "language_code", "version", name="uq_image_texts_key_version"
        ),
        Index("idx_image_texts_image_lang", "image_id", "language_code"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    image_id: Mapped[str] = mapped_column(
        ForeignKey("images.id", ondelete="CASCADE"), index=True
    )
    language_code: Mapped[str] = mapped_column(String(10), index=True)
    text: Mapped[str] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )


class Lesson(Base):
    """
    A lesson groups ordered exercises for one target language.

    Attributes:
        id: UUID string primary key.
        title: Lesson title shown in the catalog.
        target_language: Language the lesson teaches.
        published: Visibility flag; False (Draft) until published.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
        created_by: Id of the authoring user.
    """

    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255))
    target_language: Mapped[str] = mapped_column(String(10), index=True)
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )
    created_by: Mapped[str] = mapped_column(String(36), index=True)


class Exercise(Base):
    """
    An exercise at a fixed position inside a lesson.

    Within one lesson, order_index values are exactly 0..N-1. The shape
    of metadata depends on exercise_type and is checked by the
    ExerciseValidator before any row is written.

    Attributes:
        id: UUID string primary key.
        lesson_id: Owning lesson.
        image_id: Primary image of the exercise.
        exercise_type: One of the ExerciseType values.
        order_index: Zero-based position within the lesson.
        metadata_: Variant metadata document (column name "metadata").
        created_at: Creation timestamp.
    """

    __tablename__ = "exercises"
    __table_args__ = (
        UniqueConstraint("lesson_id", "order_index", name="uq_exercises_lesson_order"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    lesson_id: Mapped[str] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"), index=True
    )
    image_id: Mapped[str] = mapped_column(ForeignKey("images.id"), index=True)
    exercise_type: Mapped[str] = mapped_column(String(50))
    order_index: Mapped[int] = mapped_column(Integer)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
