"""
Unit tests for TranslationStore.

Tests versioned, append-only image text storage against an in-memory
database.
"""

from unittest.mock import AsyncMock, patch

import pytest

from polyglot.middleware.error_handling import ConflictError, NotFoundError
from polyglot.models.content import TranslationCreate, TranslationUpdate
from polyglot.services.content import TranslationStore


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store(db_session):
    """Create a TranslationStore on the test session."""
    return TranslationStore(db_session)


def create(image_id: str, language_code: str, text: str) -> TranslationCreate:
    return TranslationCreate(image_id=image_id, language_code=language_code, text=text)


# =============================================================================
# add_text Tests
# =============================================================================


class TestAddText:
    """Tests for appending text versions."""

    @pytest.mark.asyncio
    async def test_first_text_gets_version_one(self, store, make_image):
        image = await make_image()

        translation = await store.add_text(create(image.id, "en", "apple"))

        assert translation.version == 1
        assert translation.image_id == image.id
        assert translation.language_code == "en"
        assert translation.text == "apple"

    @pytest.mark.asyncio
    async def test_versions_increase_in_call_order(self, store, make_image):
        image = await make_image()
        texts = ["apple", "an apple", "the apple", "apples"]

        versions = [
            (await store.add_text(create(image.id, "en", text))).version for text in texts
        ]

        assert versions == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_versions_are_per_language(self, store, make_image):
        image = await make_image()

        await store.add_text(create(image.id, "en", "apple"))
        await store.add_text(create(image.id, "en", "an apple"))
        spanish = await store.add_text(create(image.id, "es", "manzana"))

        assert spanish.version == 1

    @pytest.mark.asyncio
    async def test_versions_are_per_image(self, store, make_image):
        first = await make_image()
        second = await make_image()

        await store.add_text(create(first.id, "en", "apple"))
        other = await store.add_text(create(second.id, "en", "pear"))

        assert other.version == 1

    @pytest.mark.asyncio
    async def test_missing_image_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.add_text(create("no-such-image", "en", "apple"))

        assert exc_info.value.entity_kind == "image"
        assert exc_info.value.entity_id == "no-such-image"

    @pytest.mark.asyncio
    async def test_earlier_versions_never_change(self, store, make_image):
        image = await make_image()
        first = await store.add_text(create(image.id, "en", "apple"))

        await store.add_text(create(image.id, "en", "an apple"))
        await store.add_text(create(image.id, "en", "the apple"))

        stored_first = await store.get_version(image.id, "en", 1)
        assert stored_first.id == first.id
        assert stored_first.text == "apple"

    @pytest.mark.asyncio
    async def test_version_collision_raises_conflict_and_writes_nothing(
        self, store, make_image
    ):
        """A version taken by another writer surfaces as ConflictError."""
        image = await make_image()
        image_id = image.id
        await store.add_text(create(image_id, "en", "apple"))

        with patch.object(store, "_max_version", AsyncMock(return_value=0)):
            with pytest.raises(ConflictError):
                await store.add_text(create(image_id, "en", "an apple"))

        # Rollback expires loaded rows; use the captured id
        history = await store.get_history(image_id, "en")
        assert [t.text for t in history] == ["apple"]


# =============================================================================
# update_text Tests
# =============================================================================


class TestUpdateText:
    """Tests for updating text, which appends a version."""

    @pytest.mark.asyncio
    async def test_update_appends_new_version(self, store, make_image):
        image = await make_image()
        await store.add_text(create(image.id, "en", "apple"))

        updated = await store.update_text(image.id, "en", TranslationUpdate(text="an apple"))

        assert updated.version == 2
        history = await store.get_history(image.id, "en")
        assert [(t.version, t.text) for t in history] == [(1, "apple"), (2, "an apple")]

    @pytest.mark.asyncio
    async def test_update_without_existing_text_raises(self, store, make_image):
        image = await make_image()

        with pytest.raises(NotFoundError) as exc_info:
            await store.update_text(image.id, "en", TranslationUpdate(text="apple"))

        assert exc_info.value.entity_kind == "translation"

    @pytest.mark.asyncio
    async def test_update_of_other_language_raises(self, store, make_image):
        image = await make_image()
        await store.add_text(create(image.id, "en", "apple"))

        with pytest.raises(NotFoundError):
            await store.update_text(image.id, "fr", TranslationUpdate(text="pomme"))

    @pytest.mark.asyncio
    async def test_update_of_missing_image_raises(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.update_text("no-such-image", "en", TranslationUpdate(text="apple"))

        assert exc_info.value.entity_kind == "image"


# =============================================================================
# Lookup Tests
# =============================================================================


class TestLookups:
    """Tests for latest, history, version and language lookups."""

    @pytest.mark.asyncio
    async def test_get_latest_returns_max_version(self, store, make_image):
        image = await make_image()
        for text in ["one", "two", "three"]:
            await store.add_text(create(image.id, "en", text))

        latest = await store.get_latest(image.id, "en")

        assert latest.version == 3
        assert latest.text == "three"

    @pytest.mark.asyncio
    async def test_get_latest_absent_key_returns_none(self, store, make_image):
        image = await make_image()
        assert await store.get_latest(image.id, "en") is None

    @pytest.mark.asyncio
    async def test_history_is_ascending_and_restartable(self, store, make_image):
        image = await make_image()
        for text in ["one", "two", "three"]:
            await store.add_text(create(image.id, "en", text))

        first = await store.get_history(image.id, "en")
        second = await store.get_history(image.id, "en")

        assert [t.version for t in first] == [1, 2, 3]
        assert first == second

    @pytest.mark.asyncio
    async def test_history_of_absent_key_is_empty(self, store, make_image):
        image = await make_image()
        assert await store.get_history(image.id, "de") == []

    @pytest.mark.asyncio
    async def test_get_version_absent_returns_none(self, store, make_image):
        image = await make_image()
        await store.add_text(create(image.id, "en", "apple"))

        assert await store.get_version(image.id, "en", 2) is None

    @pytest.mark.asyncio
    async def test_get_languages(self, store, make_image):
        image = await make_image()
        await store.add_text(create(image.id, "en", "apple"))
        await store.add_text(create(image.id, "en", "an apple"))
        await store.add_text(create(image.id, "es", "manzana"))

        assert await store.get_languages(image.id) == {"en", "es"}

    @pytest.mark.asyncio
    async def test_get_all_latest_one_per_language(self, store, make_image):
        image = await make_image()
        await store.add_text(create(image.id, "es", "manzana"))
        await store.add_text(create(image.id, "en", "apple"))
        await store.add_text(create(image.id, "en", "an apple"))

        latest = await store.get_all_latest(image.id)

        assert [(t.language_code, t.version, t.text) for t in latest] == [
            ("en", 2, "an apple"),
            ("es", 1, "manzana"),
        ]

    @pytest.mark.asyncio
    async def test_get_all_latest_ignores_other_images(self, store, make_image):
        image = await make_image()
        other = await make_image()
        await store.add_text(create(image.id, "en", "apple"))
        await store.add_text(create(other.id, "en", "pear"))
        await store.add_text(create(other.id, "en", "a pear"))

        latest = await store.get_all_latest(image.id)

        assert [t.text for t in latest] == ["apple"]

    @pytest.mark.asyncio
    async def test_has_any_text(self, store, make_image):
        bare = await make_image()
        labelled = await make_image(texts={"fr": "pomme"})

        assert await store.has_any_text(bare.id) is False
        assert await store.has_any_text(labelled.id) is True
