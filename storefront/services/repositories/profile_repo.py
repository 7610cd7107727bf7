"""Profile Repository - per-user profile documents.

All methods use async/await against the DocumentStore. Cart, favourites and
purchases are stored as whole lists: every write replaces the full list.
"""

from typing import Any

from storefront.db import Collections
from storefront.logging import get_logger
from storefront.services.models import FavoriteEntry, Purchase, UserProfile

from .base import BaseRepository

logger = get_logger(__name__)


class ProfileRepository(BaseRepository):
    """User profile document operations."""

    collection = Collections.USERS

    async def get_profile(self, user_id: str) -> UserProfile | None:
        data = await self.store.get_document(self.collection, user_id)
        if data is None:
            return None
        return UserProfile(**{**data, "id": user_id})

    async def create_profile(self, user_id: str, fields: dict[str, Any]) -> UserProfile:
        await self.store.set_document(self.collection, user_id, fields)
        return UserProfile(**{**fields, "id": user_id})

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        await self.store.update_fields(self.collection, user_id, fields)

    async def list_profile_documents(self) -> list[dict[str, Any]]:
        """Raw profile documents (with ``id``), unvalidated so that one bad
        profile cannot hide the others from a scan."""
        return await self.store.list_documents(self.collection)

    # ==================== CART ====================

    async def get_cart(self, user_id: str) -> list[dict[str, Any]]:
        profile = await self.get_profile(user_id)
        return list(profile.cart) if profile else []

    async def save_cart(self, user_id: str, cart: list[dict[str, Any]]) -> None:
        await self.store.update_fields(self.collection, user_id, {"cart": cart})

    # ==================== FAVORITES ====================

    async def get_favorites(self, user_id: str) -> list[FavoriteEntry]:
        profile = await self.get_profile(user_id)
        return profile.favorite_entries if profile else []

    async def save_favorites(self, user_id: str, favorites: list[FavoriteEntry]) -> None:
        await self.store.update_fields(
            self.collection,
            user_id,
            {"favorites": [entry.to_document() for entry in favorites]},
        )

    # ==================== PURCHASES ====================

    async def append_purchase(self, user_id: str, purchase: Purchase) -> None:
        profile = await self.get_profile(user_id)
        purchases = list(profile.purchases) if profile else []
        purchases.append(purchase.model_dump(mode="json"))
        await self.store.update_fields(self.collection, user_id, {"purchases": purchases})
