"""
Content Enums

Defines the exercise variant tags and the lesson publish states.
"""

from enum import Enum


class ExerciseType(str, Enum):
    """
    Exercise variants. Each tag fixes the shape of the exercise metadata.

    - IMAGE_TEXT: Show an image with its text (no metadata)
    - MATCHING_PAIRS: Match images to texts
    - FILL_IN_BLANK: Choose the missing word of a sentence
    - LISTENING_COMPREHENSION: Hear a text, pick the matching image
    """

    IMAGE_TEXT = "image_text"
    MATCHING_PAIRS = "matching_pairs"
    FILL_IN_BLANK = "fill_in_blank"
    LISTENING_COMPREHENSION = "listening_comprehension"


class LessonState(str, Enum):
    """
    Observable visibility states of a lesson.

    Stored as the boolean `published` column:
    - DRAFT: published is False (initial state)
    - PUBLISHED: published is True
    """

    DRAFT = "draft"
    PUBLISHED = "published"

    @classmethod
    def from_published(cls, published: bool) -> "LessonState":
        return cls.PUBLISHED if published else cls.DRAFT
