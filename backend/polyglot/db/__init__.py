"""Database package."""

from polyglot.db.base import (
    engine,
    async_session_maker,
    Base,
    get_db,
    init_db,
    transactional,
)

__all__ = [
    "engine",
    "async_session_maker",
    "Base",
    "get_db",
    "init_db",
    "transactional",
]
