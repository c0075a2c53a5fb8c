"""
Image Registry

Existence lookups for image identifiers. The content core never touches
image bytes; it only asks whether an id denotes a registered image.

Usage:
    from polyglot.services.image_registry import SqlImageRegistry

    registry = SqlImageRegistry(db)
    if await registry.exists(image_id):
        ...
"""

from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polyglot.db.models_content import Image


class ImageRegistry(Protocol):
    """Capability consumed by the content services."""

    async def exists(self, image_id: str) -> bool: ...

    async def find(self, image_id: str) -> Optional[Image]: ...


class SqlImageRegistry:
    """ImageRegistry backed by the images table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, image_id: str) -> bool:
        result = await self.db.execute(select(Image.id).where(Image.id == image_id))
        return result.scalar_one_or_none() is not None

    async def find(self, image_id: str) -> Optional[Image]:
        result = await self.db.execute(select(Image).where(Image.id == image_id))
        return result.scalar_one_or_none()

    async def register(self, filename: Optional[str] = None) -> Image:
        """
        Register a new image identity.

        Upload handling lives in the image storage service; this only
        creates the row other entities reference. Flushes but does not
        commit, so the caller owns the transaction.
        """
        image = Image(filename=filename)
        self.db.add(image)
        await self.db.flush()
        return image
