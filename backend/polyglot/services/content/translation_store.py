"""
Translation Store

Append-only, versioned store of image texts keyed by (image_id, language_code).

Every write appends a new immutable row whose version is one more than the
highest existing version for the key (1 for a new key). Updating a text is
modelled as appending a version; rows are never modified or deleted here.

Usage:
    from polyglot.services.content import TranslationStore

    store = TranslationStore(db_session)

    v1 = await store.add_text(TranslationCreate(
        image_id=image_id, language_code="en", text="apple"
    ))
    v2 = await store.update_text(image_id, "en", TranslationUpdate(text="an apple"))

    latest = await store.get_latest(image_id, "en")   # v2
    history = await store.get_history(image_id, "en")  # [v1, v2]

Concurrency:
    Version assignment and insert run in one transaction that first locks
    the parent image row (SELECT ... FOR UPDATE), so writers on the same
    image serialize across processes. The unique constraint on
    (image_id, language_code, version) backs this up; a violation surfaces
    as ConflictError.
"""

import logging
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.base import transactional
from polyglot.db.models_content import Image, ImageText
from polyglot.middleware.error_handling import ConflictError, NotFoundError
from polyglot.models.content import (
    TranslationCreate,
    TranslationResponse,
    TranslationUpdate,
)
from polyglot.services.image_registry import ImageRegistry, SqlImageRegistry

logger = logging.getLogger(__name__)


class TranslationStore:
    """
    Versioned multilingual text store for images.

    Provides:
    - Appending text versions (add_text / update_text)
    - Latest, historic and per-version lookups
    - Language listing per image
    """

    def __init__(self, db: AsyncSession, images: ImageRegistry = None):
        """
        Initialize the translation store.

        Args:
            db: Async database session
            images: Image existence lookup (defaults to the images table)
        """
        self.db = db
        self.images = images or SqlImageRegistry(db)

    async def add_text(self, data: TranslationCreate) -> TranslationResponse:
        """
        Add text for an image in one language.

        Creates version 1 for a new key, or the next version if the key
        already has text.

        Raises:
            NotFoundError: If the image doesn't exist
            ConflictError: If a concurrent writer took the same version
        """
        async with transactional(self.db):
            if not await self.images.exists(data.image_id):
                raise NotFoundError("image", data.image_id)

            return await self._append_version(
                data.image_id, data.language_code, data.text
            )

    async def update_text(
        self,
        image_id: str,
        language_code: str,
        data: TranslationUpdate,
    ) -> TranslationResponse:
        """
        Update the text of an existing key by appending a new version.

        Raises:
            NotFoundError: If the image doesn't exist or the key has no text
            ConflictError: If a concurrent writer took the same version
        """
        async with transactional(self.db):
            if not await self.images.exists(image_id):
                raise NotFoundError("image", image_id)

            if await self._max_version(image_id, language_code) == 0:
                raise NotFoundError(
                    "translation",
                    f"{image_id}/{language_code}",
                    message=f"No text found for image {image_id} in language {language_code}",
                )

            return await self._append_version(image_id, language_code, data.text)

    async def get_latest(
        self, image_id: str, language_code: str
    ) -> Optional[TranslationResponse]:
        """Get the highest-version text for a key, or None."""
        result = await self.db.execute(
            select(ImageText)
            .where(
                ImageText.image_id == image_id,
                ImageText.language_code == language_code,
            )
            .order_by(ImageText.version.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return TranslationResponse.from_db_record(row) if row else None

    async def get_version(
        self, image_id: str, language_code: str, version: int
    ) -> Optional[TranslationResponse]:
        """Get one specific version of a key, or None."""
        result = await self.db.execute(
            select(ImageText).where(
                ImageText.image_id == image_id,
                ImageText.language_code == language_code,
                ImageText.version == version,
            )
        )
        row = result.scalar_one_or_none()
        return TranslationResponse.from_db_record(row) if row else None

    async def get_history(
        self, image_id: str, language_code: str
    ) -> list[TranslationResponse]:
        """Get every version of a key, oldest first."""
        result = await self.db.execute(
            select(ImageText)
            .where(
                ImageText.image_id == image_id,
                ImageText.language_code == language_code,
            )
            .order_by(ImageText.version.asc())
        )
        return [TranslationResponse.from_db_record(row) for row in result.scalars().all()]

    async def get_languages(self, image_id: str) -> set[str]:
        """Get the languages that have at least one text for the image."""
        result = await self.db.execute(
            select(ImageText.language_code)
            .where(ImageText.image_id == image_id)
            .distinct()
        )
        return set(result.scalars().all())

    async def get_all_latest(self, image_id: str) -> list[TranslationResponse]:
        """Get the latest text of each language for the image, by language code."""
        latest = (
            select(
                ImageText.language_code,
                func.max(ImageText.version).label("version"),
            )
            .where(ImageText.image_id == image_id)
            .group_by(ImageText.language_code)
            .subquery()
        )
        result = await self.db.execute(
            select(ImageText)
            .join(
                latest,
                and_(
                    ImageText.language_code == latest.c.language_code,
                    ImageText.version == latest.c.version,
                ),
            )
            .where(ImageText.image_id == image_id)
            .order_by(ImageText.language_code)
        )
        return [TranslationResponse.from_db_record(row) for row in result.scalars().all()]

    async def has_any_text(self, image_id: str) -> bool:
        """Check whether the image has text in any language."""
        result = await self.db.execute(
            select(ImageText.id).where(ImageText.image_id == image_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _max_version(self, image_id: str, language_code: str) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(ImageText.version), 0)).where(
                ImageText.image_id == image_id,
                ImageText.language_code == language_code,
            )
        )
        return result.scalar_one()

    async def _append_version(
        self, image_id: str, language_code: str, text: str
    ) -> TranslationResponse:
        """Lock the image row, compute the next version and insert it."""
        # Serializes version assignment for all keys of this image
        await self.db.execute(
            select(Image.id).where(Image.id == image_id).with_for_update()
        )

        next_version = await self._max_version(image_id, language_code) + 1
        row = ImageText(
            image_id=image_id,
            language_code=language_code,
            text=text,
            version=next_version,
        )
        self.db.add(row)

        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Version {next_version} of {image_id}/{language_code} was taken by a concurrent write",
                details={
                    "image_id": image_id,
                    "language_code": language_code,
                    "version": next_version,
                },
            ) from e

        logger.info(
            f"Added text version {next_version} for image {image_id} ({language_code})"
        )
        return TranslationResponse.from_db_record(row)
