"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests:
environment setup, an in-memory database and small content factories.
"""

import os
import sys
from pathlib import Path
from typing import Any, AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from polyglot.db.base import Base  # noqa: E402
from polyglot.db.models_content import Image, ImageText, Lesson  # noqa: E402


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Overrides values from .env files so tests run with predictable
    configuration.
    """
    original_env = os.environ.copy()

    test_env = {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "DEBUG": "true",
    }
    os.environ.update(test_env)

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """Sample YAML configuration matching config/default.yaml."""
    return {
        "app": {"name": "Test Polyglot"},
        "database": {
            "pool_size": 3,
            "max_overflow": 5,
            "pool_timeout": 10,
        },
    }


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with all content tables.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Database session for a single test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def mock_db_session() -> MagicMock:
    """Create a mock database session for unit testing."""
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.flush = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    return mock


# ============================================================================
# Content Factories
# ============================================================================


@pytest.fixture
def make_image(db_session):
    """Factory that registers an image, optionally with texts."""

    async def _make(texts: dict[str, str] = None, filename: str = "image.png") -> Image:
        image = Image(filename=filename)
        db_session.add(image)
        await db_session.flush()
        for language_code, text in (texts or {}).items():
            db_session.add(
                ImageText(
                    image_id=image.id,
                    language_code=language_code,
                    text=text,
                    version=1,
                )
            )
        await db_session.commit()
        return image

    return _make


@pytest.fixture
def make_lesson(db_session):
    """Factory that creates a lesson row directly."""

    async def _make(
        title: str = "Basics",
        target_language: str = "en",
        published: bool = False,
        created_by: str = "00000000-0000-0000-0000-000000000001",
    ) -> Lesson:
        lesson = Lesson(
            title=title,
            target_language=target_language,
            published=published,
            created_by=created_by,
        )
        db_session.add(lesson)
        await db_session.commit()
        return lesson

    return _make
