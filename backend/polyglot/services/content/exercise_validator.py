"""
Exercise Validator

Checks exercise content before it is written. Runs before every exercise
create and before any update that changes the exercise type, image or
metadata.

Checks run in a fixed order and stop at the first failure:

1. Referential base check (all variants)
   - the exercise image exists
   - the image has text in at least one language
2. Variant shape check, dispatched on the exercise type
   - image_text: metadata is absent or an empty object
   - matching_pairs: at least 2 pairs, every pair image exists
   - fill_in_blank: non-empty sentence, blank_index inside the sentence's
     whitespace tokens, non-empty answer, at least 2 non-empty distractors
   - listening_comprehension: at least 2 image options that all exist,
     correct_image_index inside the options

On success the metadata comes back as its typed variant model.

Known gap:
    matching_pairs text_id and listening_comprehension audio_text_id are not
    checked against stored texts. Which language they must exist in is not
    known at this layer.

Usage:
    validator = ExerciseValidator(translations, images)
    metadata = await validator.validate(
        ExerciseType.FILL_IN_BLANK,
        image_id,
        {"sentence": "I eat an apple", "blank_index": 3, ...},
    )
"""

from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from polyglot.enums.content import ExerciseType
from polyglot.middleware.error_handling import (
    NotFoundError,
    OutOfBoundsError,
    ReferentialIntegrityError,
    ValidationError,
)
from polyglot.models.content import (
    ExerciseMetadata,
    ExerciseMetadataBase,
    FillInBlankMetadata,
    ImageTextMetadata,
    ListeningComprehensionMetadata,
    MatchingPairsMetadata,
)
from polyglot.services.content.translation_store import TranslationStore
from polyglot.services.image_registry import ImageRegistry

MIN_PAIRS = 2
MIN_DISTRACTORS = 2
MIN_IMAGE_OPTIONS = 2

VariantCheck = Callable[[Optional[dict]], Awaitable[ExerciseMetadata]]


class ExerciseValidator:
    """
    Validates exercise type, image and metadata together.

    Performs reads only. Every ExerciseType must have a variant check;
    construction fails otherwise.
    """

    def __init__(self, translations: TranslationStore, images: ImageRegistry):
        self.translations = translations
        self.images = images
        self._variant_checks: dict[ExerciseType, VariantCheck] = {
            ExerciseType.IMAGE_TEXT: self._check_image_text,
            ExerciseType.MATCHING_PAIRS: self._check_matching_pairs,
            ExerciseType.FILL_IN_BLANK: self._check_fill_in_blank,
            ExerciseType.LISTENING_COMPREHENSION: self._check_listening_comprehension,
        }
        unhandled = set(ExerciseType) - set(self._variant_checks)
        if unhandled:
            raise RuntimeError(
                f"No metadata check for exercise types: {sorted(t.value for t in unhandled)}"
            )

    async def validate(
        self,
        exercise_type: Union[ExerciseType, str],
        image_id: str,
        metadata: Optional[dict],
    ) -> ExerciseMetadata:
        """
        Validate exercise content.

        Args:
            exercise_type: Variant tag
            image_id: Primary image of the exercise
            metadata: Raw metadata document (None allowed for image_text)

        Returns:
            The metadata parsed into its variant model

        Raises:
            NotFoundError: A referenced image doesn't exist
            ReferentialIntegrityError: The exercise image has no text
            ValidationError: Unknown type or malformed metadata
            OutOfBoundsError: blank_index / correct_image_index out of range
        """
        if not await self.images.exists(image_id):
            raise NotFoundError("image", image_id)

        if not await self.translations.has_any_text(image_id):
            raise ReferentialIntegrityError("image", image_id, "no associated text")

        try:
            tag = ExerciseType(exercise_type)
        except ValueError:
            raise ValidationError("exercise_type", "unknown exercise type") from None

        return await self._variant_checks[tag](metadata)

    # -------------------------------------------------------------------------
    # Variant checks
    # -------------------------------------------------------------------------

    async def _check_image_text(self, metadata: Optional[dict]) -> ImageTextMetadata:
        if metadata is None:
            return ImageTextMetadata()
        return _parse(ImageTextMetadata, metadata, ExerciseType.IMAGE_TEXT)

    async def _check_matching_pairs(
        self, metadata: Optional[dict]
    ) -> MatchingPairsMetadata:
        parsed = _parse(MatchingPairsMetadata, metadata, ExerciseType.MATCHING_PAIRS)

        if len(parsed.pairs) < MIN_PAIRS:
            raise ValidationError("pairs", f"minimum {MIN_PAIRS} required")

        for pair in parsed.pairs:
            await self._require_image(pair.image_id)

        return parsed

    async def _check_fill_in_blank(
        self, metadata: Optional[dict]
    ) -> FillInBlankMetadata:
        parsed = _parse(FillInBlankMetadata, metadata, ExerciseType.FILL_IN_BLANK)

        if not parsed.sentence.strip():
            raise ValidationError("sentence", "must not be empty")

        token_count = len(parsed.sentence.split())
        if not 0 <= parsed.blank_index < token_count:
            raise OutOfBoundsError(
                "blank_index",
                f"blank_index {parsed.blank_index} is out of bounds for a sentence of {token_count} tokens",
            )

        if not parsed.correct_answer.strip():
            raise ValidationError("correct_answer", "must not be empty")

        if len(parsed.distractors) < MIN_DISTRACTORS:
            raise ValidationError("distractors", f"minimum {MIN_DISTRACTORS} required")
        if any(not d.strip() for d in parsed.distractors):
            raise ValidationError("distractors", "entries must not be empty")

        return parsed

    async def _check_listening_comprehension(
        self, metadata: Optional[dict]
    ) -> ListeningComprehensionMetadata:
        parsed = _parse(
            ListeningComprehensionMetadata,
            metadata,
            ExerciseType.LISTENING_COMPREHENSION,
        )

        if not parsed.audio_text_id.strip():
            raise ValidationError("audio_text_id", "must not be empty")

        if len(parsed.image_options) < MIN_IMAGE_OPTIONS:
            raise ValidationError("image_options", f"minimum {MIN_IMAGE_OPTIONS} required")

        for option_id in parsed.image_options:
            await self._require_image(option_id)

        if not 0 <= parsed.correct_image_index < len(parsed.image_options):
            raise OutOfBoundsError(
                "correct_image_index",
                f"correct_image_index {parsed.correct_image_index} is out of bounds for {len(parsed.image_options)} options",
            )

        return parsed

    async def _require_image(self, image_id: str) -> None:
        if not await self.images.exists(image_id):
            raise NotFoundError("image", image_id)


def _parse(
    model: type[ExerciseMetadataBase],
    metadata: Any,
    exercise_type: ExerciseType,
) -> Any:
    """Parse raw metadata into a variant model, mapping the first error."""
    if metadata is None:
        raise ValidationError("metadata", f"required for {exercise_type.value} exercises")
    if not isinstance(metadata, dict):
        raise ValidationError("metadata", "must be an object")

    try:
        return model.model_validate(metadata)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "metadata"
        raise ValidationError(field, first["msg"]) from None
