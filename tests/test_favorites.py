"""
Tests for favourites
"""

from decimal import Decimal

import pytest

from storefront.db import Collections
from storefront.errors import FavoritesPersistFailure, NotAuthenticated
from storefront.services.models import FavoriteEntry


class TestFavoriteEntry:
    """Tests for the stored favourite snapshot."""

    def test_from_raw_legacy_keys(self):
        entry = FavoriteEntry.from_raw(
            {"id": "art-3", "title": "", "imageUrl": "https://x/3.jpg", "artist": None, "addedAt": "2024-01-01"}
        )

        assert entry.artwork_id == "art-3"
        assert entry.title == "Untitled"
        assert entry.artist_name == "Unknown Artist"
        assert entry.image_ref == "https://x/3.jpg"
        assert entry.added_at == "2024-01-01"

    def test_from_raw_without_id(self):
        assert FavoriteEntry.from_raw({"title": "orphan"}) is None


class TestToggleFavorite:
    """Tests for FavoritesService.toggle_favorite."""

    @pytest.mark.asyncio
    async def test_toggle_twice(self, storefront, document_store, sample_artwork):
        await storefront.sign_in("bob@example.com", "secret")

        assert await storefront.favorites.toggle_favorite(sample_artwork) is True
        assert storefront.favorites.is_favorited("art-1")
        stored = document_store.peek(Collections.USERS, "user-bob")["favorites"]
        assert stored[0]["artwork_id"] == "art-1"
        assert stored[0]["price"] == "1200.00"

        assert await storefront.favorites.toggle_favorite(sample_artwork) is False
        assert not storefront.favorites.is_favorited("art-1")
        assert document_store.peek(Collections.USERS, "user-bob")["favorites"] == []

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, storefront, sample_artwork):
        await storefront.continue_as_guest()

        with pytest.raises(NotAuthenticated):
            await storefront.favorites.toggle_favorite(sample_artwork)

        assert storefront.favorites.is_favorited("art-1") is False

    @pytest.mark.asyncio
    async def test_persist_failure_leaves_cache(self, storefront, document_store, sample_artwork):
        await storefront.sign_in("bob@example.com", "secret")
        document_store.fail_writes = True

        with pytest.raises(FavoritesPersistFailure):
            await storefront.favorites.toggle_favorite(sample_artwork)

        assert storefront.favorites.favorites == []

    @pytest.mark.asyncio
    async def test_reads_stored_list_before_write(self, storefront, document_store, sample_artwork, other_artwork):
        await storefront.sign_in("bob@example.com", "secret")
        # Added from another device after this session loaded
        document_store.seed(
            Collections.USERS,
            "user-bob",
            {"favorites": [{"artwork_id": "art-2", "title": "Night Forest"}]},
        )

        await storefront.favorites.toggle_favorite(sample_artwork)

        ids = [entry.artwork_id for entry in storefront.favorites.favorites]
        assert ids == ["art-2", "art-1"]

    @pytest.mark.asyncio
    async def test_loaded_on_sign_in_and_dropped_on_sign_out(self, storefront, document_store):
        document_store.seed(
            Collections.USERS,
            "user-bob",
            {"favorites": [{"artwork_id": "art-7", "title": "Kept", "price": "10"}]},
        )

        await storefront.sign_in("bob@example.com", "secret")
        assert storefront.favorites.is_favorited("art-7")
        assert storefront.favorites.favorites[0].price == Decimal("10.00")

        await storefront.sign_out()
        assert storefront.favorites.favorites == []


class TestListFavorites:
    """Tests for FavoritesService.list_favorites."""

    @pytest.mark.asyncio
    async def test_refresh_overlays_live_record(self, storefront, document_store, sample_artwork):
        document_store.seed(Collections.ARTWORKS, "art-1", {**sample_artwork, "title": "Renamed", "price": 1500})
        document_store.seed(
            Collections.USERS,
            "user-bob",
            {
                "favorites": [
                    {"artwork_id": "art-1", "title": "Sunset Over Water"},
                    {"artwork_id": "gone", "title": "Deleted work"},
                ]
            },
        )
        await storefront.sign_in("bob@example.com", "secret")

        cached = await storefront.favorites.list_favorites()
        refreshed = await storefront.favorites.list_favorites(refresh=True)

        assert cached[0].title == "Sunset Over Water"
        assert refreshed[0].title == "Renamed"
        assert refreshed[0].artist_name == "Ada Artist"
        assert refreshed[0].price == Decimal("1500.00")
        assert refreshed[1].title == "Deleted work"

    @pytest.mark.asyncio
    async def test_empty_for_guest(self, storefront):
        await storefront.continue_as_guest()

        assert await storefront.favorites.list_favorites(refresh=True) == []
