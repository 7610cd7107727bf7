"""Artwork Repository - artist artwork documents."""

from typing import Any

from storefront.db import Collections
from storefront.services.models import ArtworkRecord

from .base import BaseRepository


class ArtworkRepository(BaseRepository):
    """Artwork document operations."""

    collection = Collections.ARTWORKS

    async def get(self, artwork_id: str) -> ArtworkRecord | None:
        data = await self.store.get_document(self.collection, artwork_id)
        if data is None:
            return None
        return ArtworkRecord(**{**data, "id": artwork_id})

    async def save(self, record: ArtworkRecord) -> None:
        await self.store.set_document(self.collection, record.id, record.to_document())

    async def update(self, artwork_id: str, fields: dict[str, Any]) -> None:
        await self.store.update_fields(self.collection, artwork_id, fields)

    async def delete(self, artwork_id: str) -> None:
        await self.store.delete_document(self.collection, artwork_id)

    async def list_by_owner(self, owner_id: str) -> list[ArtworkRecord]:
        documents = await self.store.query_where(self.collection, "owner_id", owner_id)
        return [ArtworkRecord(**document) for document in documents]

    async def list_published(self) -> list[ArtworkRecord]:
        documents = await self.store.query_where(self.collection, "is_published", True)
        return [ArtworkRecord(**document) for document in documents]
