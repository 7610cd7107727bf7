"""
Tests for the artwork publication workflow and fan-out
"""

import base64

import pytest

from storefront.db import Collections
from storefront.errors import ArtworkAccessDenied, ArtworkNotFound, NotAuthenticated, PublishRejected
from storefront.services.domains import FanOutService, ScanFavoritesIndex
from storefront.services.domains.artworks import MAX_DOCUMENT_BYTES, normalize_artwork_patch
from storefront.services.domains.fanout import apply_to_cart, apply_to_favorites
from storefront.services.repositories import ProfileRepository


def _favorite(artwork_id: str, title: str) -> dict:
    return {"artwork_id": artwork_id, "title": title, "image_ref": "", "artist_name": "Ada Artist", "price": "10.00"}


def _cart_line(artwork_id: str, title: str, quantity: int = 1) -> dict:
    return {"artwork_id": artwork_id, "title": title, "price": "10.00", "quantity": quantity}


@pytest.fixture
def artist_profile(document_store):
    document_store.seed(
        Collections.USERS,
        "artist-1",
        {
            "email": "ada@example.com",
            "first_name": "Ada",
            "last_name": "Artist",
            "is_artist": True,
            "location": "Lisbon",
            "artworks": [],
        },
    )


class TestDrafts:
    """Tests for drafts."""

    @pytest.mark.asyncio
    async def test_save_draft(self, storefront, document_store, artist_profile):
        await storefront.sign_in("ada@example.com", "secret")

        record = await storefront.artworks.save_draft(
            {"title": "Harbour", "price": "450", "size": {"width": "60", "height": 90}, "tags": "sea, boats"}
        )

        assert record.owner_id == "artist-1"
        assert record.is_published is False
        assert record.dimensions.width == 60
        assert record.tags == ["sea", "boats"]
        assert document_store.peek(Collections.ARTWORKS, record.id)["title"] == "Harbour"
        assert document_store.peek(Collections.USERS, "artist-1")["artworks"] == [record.id]

        own = await storefront.artworks.list_own_artworks()
        assert [artwork.id for artwork in own] == [record.id]

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, storefront):
        with pytest.raises(NotAuthenticated):
            await storefront.artworks.save_draft({"title": "Nope"})

    def test_normalize_patch(self):
        fields = normalize_artwork_patch(
            {"image": {"regular": "https://x/r.jpg", "small": "https://x/s.jpg"}, "price": None, "owner_id": "hijack"}
        )

        assert fields == {"image_ref": "https://x/r.jpg", "thumbnail_ref": "https://x/s.jpg"}


class TestPublish:
    """Tests for publishing."""

    @pytest.mark.asyncio
    async def test_publish_builds_public_snapshot(self, storefront, document_store, artist_profile):
        await storefront.sign_in("ada@example.com", "secret")
        draft = await storefront.artworks.save_draft(
            {"title": "", "price": "-3", "tags": "oil,  canvas", "image": "https://cdn.example.com/h.jpg"}
        )

        published = await storefront.artworks.publish(draft.id)

        assert published.is_published is True
        assert published.published_at is not None
        assert published.title == "Untitled"
        assert str(published.price) == "0.00"
        assert published.tags == ["oil", "canvas"]
        assert published.artist.name == "Ada Artist"
        assert published.artist.location == "Lisbon"
        stored = document_store.peek(Collections.ARTWORKS, draft.id)
        assert stored["is_published"] is True
        assert stored["thumbnail_ref"] == "https://cdn.example.com/h.jpg"

    @pytest.mark.asyncio
    async def test_publish_is_one_way(self, storefront, artist_profile):
        await storefront.sign_in("ada@example.com", "secret")
        draft = await storefront.artworks.save_draft({"title": "Once"})
        await storefront.artworks.publish(draft.id)

        with pytest.raises(PublishRejected):
            await storefront.artworks.publish(draft.id)

    @pytest.mark.asyncio
    async def test_oversized_snapshot_rejected(self, storefront, document_store, artist_profile):
        await storefront.sign_in("ada@example.com", "secret")
        payload = base64.b64encode(b"\0" * (MAX_DOCUMENT_BYTES + 10)).decode()
        draft = await storefront.artworks.save_draft(
            {"title": "Huge", "image": f"data:image/png;base64,{payload}"}
        )

        with pytest.raises(PublishRejected):
            await storefront.artworks.publish(draft.id)

        assert document_store.peek(Collections.ARTWORKS, draft.id)["is_published"] is False

    @pytest.mark.asyncio
    async def test_missing_artwork(self, storefront, artist_profile):
        await storefront.sign_in("ada@example.com", "secret")

        with pytest.raises(ArtworkNotFound):
            await storefront.artworks.publish("does-not-exist")

    @pytest.mark.asyncio
    async def test_other_artists_artwork(self, storefront, document_store, sample_artwork):
        document_store.seed(Collections.ARTWORKS, "art-1", sample_artwork)
        await storefront.sign_in("bob@example.com", "secret")

        with pytest.raises(ArtworkAccessDenied):
            await storefront.artworks.update("art-1", {"title": "Mine now"})


class TestFanOut:
    """Tests for edit/delete propagation into favourites and carts."""

    @pytest.fixture
    def referencing_users(self, document_store, sample_artwork):
        document_store.seed(Collections.ARTWORKS, "art-1", sample_artwork)
        document_store.seed(
            Collections.USERS,
            "fan-1",
            {"favorites": [_favorite("art-1", "Sunset Over Water"), _favorite("art-2", "Night Forest")]},
        )
        document_store.seed(
            Collections.USERS,
            "fan-2",
            {"favorites": [_favorite("art-2", "Night Forest")], "cart": [_cart_line("art-1", "Sunset Over Water", 2)]},
        )
        document_store.seed(Collections.USERS, "fan-3", {"favorites": [_favorite("art-2", "Night Forest")]})

    @pytest.mark.asyncio
    async def test_title_change_reaches_only_matching_entries(
        self, storefront, document_store, artist_profile, referencing_users
    ):
        await storefront.sign_in("ada@example.com", "secret")

        change = await storefront.artworks.update("art-1", {"title": "Sunrise", "description": None})

        assert change.changed_fields == {"title": "Sunrise"}
        assert sorted(change.fan_out.updated) == ["fan-1", "fan-2"]
        assert change.fan_out.ok
        fan_1 = document_store.peek(Collections.USERS, "fan-1")["favorites"]
        assert [entry["title"] for entry in fan_1] == ["Sunrise", "Night Forest"]
        fan_2 = document_store.peek(Collections.USERS, "fan-2")
        assert fan_2["cart"][0]["title"] == "Sunrise"
        assert fan_2["cart"][0]["quantity"] == 2
        assert fan_2["favorites"][0]["title"] == "Night Forest"
        assert document_store.peek(Collections.ARTWORKS, "art-1")["title"] == "Sunrise"

    @pytest.mark.asyncio
    async def test_non_display_edit_skips_fan_out(
        self, storefront, document_store, artist_profile, referencing_users
    ):
        await storefront.sign_in("ada@example.com", "secret")
        writes_before = document_store.write_count

        change = await storefront.artworks.update("art-1", {"description": "New words"})

        assert change.changed_fields == {}
        assert change.fan_out.updated == []
        assert document_store.write_count == writes_before + 1

    @pytest.mark.asyncio
    async def test_partial_failure_reported(self, storefront, document_store, artist_profile, referencing_users):
        await storefront.sign_in("ada@example.com", "secret")
        document_store.fail_write_ids.add("fan-1")

        change = await storefront.artworks.update("art-1", {"price": 1500})

        assert change.fan_out.updated == ["fan-2"]
        assert "fan-1" in change.fan_out.failed
        assert document_store.peek(Collections.USERS, "fan-2")["cart"][0]["price"] == "1500.00"

    @pytest.mark.asyncio
    async def test_delete_removes_copies(self, storefront, document_store, artist_profile, referencing_users):
        document_store.seed(
            Collections.USERS,
            "artist-1",
            {**document_store.peek(Collections.USERS, "artist-1"), "artworks": ["art-1"]},
        )
        await storefront.sign_in("ada@example.com", "secret")

        report = await storefront.artworks.delete("art-1")

        assert sorted(report.updated) == ["fan-1", "fan-2"]
        assert document_store.peek(Collections.ARTWORKS, "art-1") is None
        assert [e["artwork_id"] for e in document_store.peek(Collections.USERS, "fan-1")["favorites"]] == ["art-2"]
        assert document_store.peek(Collections.USERS, "fan-2")["cart"] == []
        assert document_store.peek(Collections.USERS, "artist-1")["artworks"] == []

    @pytest.mark.asyncio
    async def test_index_failure_reported(self, document_store):
        document_store.fail_reads = True
        fanout = FanOutService(ProfileRepository(document_store))

        report = await fanout.propagate_removal("art-1")

        assert report.updated == []
        assert set(report.failed) == {"index:favorites", "index:cart"}

    @pytest.mark.asyncio
    async def test_corrupt_profile_does_not_stop_fan_out(self, document_store, referencing_users):
        document_store.seed(
            Collections.USERS,
            "broken-1",
            {"is_artist": "sometimes", "favorites": [_favorite("art-1", "Sunset Over Water")]},
        )
        document_store.seed(Collections.USERS, "broken-2", {"is_artist": "sometimes", "cart": "not a list"})
        fanout = FanOutService(ProfileRepository(document_store))

        report = await fanout.propagate_update("art-1", {"title": "Sunrise"})

        assert sorted(report.updated) == ["fan-1", "fan-2"]
        assert set(report.failed) == {"broken-1"}
        assert document_store.peek(Collections.USERS, "fan-1")["favorites"][0]["title"] == "Sunrise"

    @pytest.mark.asyncio
    async def test_scan_index(self, document_store, referencing_users):
        index = ScanFavoritesIndex(ProfileRepository(document_store), "cart")

        assert await index.find_referencing("art-1") == ["fan-2"]

    def test_apply_helpers(self):
        favorites = [_favorite("a", "A"), {"id": "b", "title": "B"}]
        cart = [_cart_line("b", "B")]

        assert apply_to_favorites(favorites, "b", {"title": "B2"})[1]["title"] == "B2"
        assert apply_to_favorites(favorites, "b", None) == [favorites[0]]
        assert apply_to_cart(cart, "b", {"artist_name": "New"})[0]["artist_ref"] == "New"
