"""
Tests for artwork snapshot normalization
"""

import base64
from decimal import Decimal

import pytest

from storefront.errors import MalformedRecord
from storefront.logging import mask_email_for_logging, sanitize_id_for_logging
from storefront.services.images import ImageRef, data_uri_size, normalize_image_ref
from storefront.services.models import ArtworkRecord
from storefront.services.sanitize import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    coerce_int,
    coerce_text,
    drop_undefined,
    normalize_tags,
    sanitize_artwork_snapshot,
)


class TestSanitizeArtworkSnapshot:
    """Tests for sanitize_artwork_snapshot."""

    def test_catalog_shape(self, unsplash_photo):
        snapshot = sanitize_artwork_snapshot(unsplash_photo)

        assert snapshot.artwork_id == "Dwu85P9SOIk"
        assert snapshot.title == "Abstract blue painting on white wall"
        assert snapshot.artist_name == "Jane Painter"
        assert snapshot.image.regular == "https://images.unsplash.com/photo-1?w=1080"
        assert snapshot.image.small == "https://images.unsplash.com/photo-1?w=400"
        assert snapshot.tags == ("art", "abstract")

    def test_published_shape(self, sample_artwork):
        snapshot = sanitize_artwork_snapshot(sample_artwork)

        assert snapshot.title == "Sunset Over Water"
        assert snapshot.artist_name == "Ada Artist"
        assert snapshot.artist_id == "artist-1"
        assert snapshot.price == Decimal("1200.00")
        assert snapshot.image.small == "https://cdn.example.com/sunset-small.jpg"
        assert (snapshot.width, snapshot.height) == (80, 120)
        assert snapshot.tags == ("landscape", "sea")

    def test_defaults_for_missing_fields(self):
        snapshot = sanitize_artwork_snapshot({"id": "x", "price": "not a price", "title": "undefined"})

        assert snapshot.title == DEFAULT_TITLE
        assert snapshot.artist_name == DEFAULT_ARTIST
        assert snapshot.price == Decimal("0")
        assert snapshot.image.is_empty
        assert snapshot.tags == ()

    def test_oversized_price_defaults_to_zero(self):
        snapshot = sanitize_artwork_snapshot({"id": "x", "price": "1e30"})

        assert snapshot.price == Decimal("0")

    def test_legacy_size_and_image_keys(self):
        snapshot = sanitize_artwork_snapshot(
            {
                "id": "legacy",
                "imageUrl": "https://cdn.example.com/a.png",
                "size": {"width": "120cm", "height": 90.6},
            }
        )

        assert snapshot.image.regular == "https://cdn.example.com/a.png"
        assert (snapshot.width, snapshot.height) == (120, 90)

    def test_accepts_pydantic_model(self):
        record = ArtworkRecord(id="m-1", owner_id="artist-1", title="Model", price=10)

        snapshot = sanitize_artwork_snapshot(record)

        assert snapshot.artwork_id == "m-1"
        assert snapshot.artist_id == "artist-1"

    def test_missing_id_raises(self):
        with pytest.raises(MalformedRecord):
            sanitize_artwork_snapshot({"title": "No id"})

    def test_non_mapping_raises(self):
        with pytest.raises(MalformedRecord):
            sanitize_artwork_snapshot(["not", "a", "record"])

    def test_display_fields(self, other_artwork):
        fields = sanitize_artwork_snapshot(other_artwork).display_fields()

        assert fields == {
            "title": "Night Forest",
            "image_ref": "https://cdn.example.com/forest.jpg",
            "artist_name": "Bo Brush",
            "price": "800.00",
        }


class TestCoercion:
    """Tests for field coercion helpers."""

    def test_coerce_text_markers(self):
        assert coerce_text("  hello ") == "hello"
        assert coerce_text("null", "fallback") == "fallback"
        assert coerce_text(["a"], "fallback") == "fallback"

    @pytest.mark.parametrize(
        "value,expected",
        [("120", 120), ("120cm", 120), (99.9, 99), (True, 0), (None, 0), ("abc", 0)],
    )
    def test_coerce_int(self, value, expected):
        assert coerce_int(value) == expected

    def test_normalize_tags(self):
        assert normalize_tags("oil, canvas, ,oil") == ("oil", "canvas")
        assert normalize_tags(["a", "", None, "b"]) == ("a", "b")
        assert normalize_tags(42) == ()

    def test_drop_undefined(self):
        assert drop_undefined({"title": "T", "price": None, "tags": []}) == {"title": "T", "tags": []}


class TestImages:
    """Tests for image reference normalization."""

    def test_data_uri(self):
        payload = base64.b64encode(b"\x89PNG fake image bytes").decode()
        uri = f"data:image/png;base64,{payload}"

        assert data_uri_size(uri) == len(b"\x89PNG fake image bytes")
        assert normalize_image_ref(uri) == ImageRef(regular=uri, small=uri)

    def test_invalid_values(self):
        assert normalize_image_ref("javascript:alert(1)").is_empty
        assert normalize_image_ref(None).is_empty
        assert normalize_image_ref("data:image/png;base64,!!!").is_empty

    def test_urls_mapping_fallbacks(self):
        image = normalize_image_ref({"full": "https://x/full.jpg", "thumb": "https://x/t.jpg"})

        assert image.regular == "https://x/full.jpg"
        assert image.small == "https://x/t.jpg"


class TestLogSanitizers:
    """Tests for log line sanitizers."""

    def test_id_truncated_and_escaped(self):
        assert sanitize_id_for_logging("user-bob-123456") == "user-bob"
        assert sanitize_id_for_logging("a\nb") == "a\\x0ab"
        assert sanitize_id_for_logging(None) == "N/A"

    def test_email_masked(self):
        assert mask_email_for_logging("ada@example.com") == "a***@example.com"
        assert mask_email_for_logging("not-an-email") == "n***"
        assert mask_email_for_logging("") == "N/A"
