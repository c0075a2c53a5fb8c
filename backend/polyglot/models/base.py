"""
Strict Base Models for Request/Response Validation

MOTIVATION:
    Mismatched field names between callers and the content services are a
    common source of bugs. By enforcing strict validation:
    - Unknown fields are rejected (extra="forbid")
    - Type mismatches fail fast with clear error messages

Architecture:
    Request → StrictRequest (extra="forbid") → Service
    DB Model → StrictResponse (extra="ignore") → Caller
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for request bodies with strict validation.

    Features:
        - extra="forbid": Unknown fields raise a validation error
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
        - from_attributes=True: Allows ORM model conversion

    Example:
        >>> class LessonCreate(StrictRequest):
        ...     title: str
        >>>
        >>> LessonCreate(title="Basics")  # OK
        >>> LessonCreate(titel="Basics")  # Raises ValidationError
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        validate_default=True,  # Validate defaults
        str_strip_whitespace=True,  # Clean string inputs
        from_attributes=True,  # Enable ORM conversion
    )


class StrictResponse(BaseModel):
    """
    Base model for response bodies.

    More lenient than StrictRequest: extra attributes coming from the
    database row are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",  # Allow extra fields in responses
        validate_default=True,  # Validate defaults
        from_attributes=True,  # Enable ORM conversion
    )
