"""
Artwork snapshot sanitizer.

Artwork records come in several shapes: catalog records (``alt_description``,
``urls``, ``user.name``), published artist works (``title``, ``image_ref``,
``artist``), and older revisions where tags are a comma-joined string and
prices are strings. Every write boundary (cart add, favourite, publish,
fan-out) runs the raw record through ``sanitize_artwork_snapshot`` so that
denormalized copies always have the same shape.

Default rules:
    title   -> "Untitled"
    artist  -> "Unknown Artist"
    price   -> Decimal("0") (negative or unparsable)
    sizes   -> 0
    tags    -> []
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from storefront.errors import MalformedRecord
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.images import ImageRef, normalize_image_ref
from storefront.services.money import to_price

logger = get_logger(__name__)

DEFAULT_TITLE = "Untitled"
DEFAULT_ARTIST = "Unknown Artist"

# Values older clients stored instead of leaving a field empty
_BLANK_MARKERS = {"", "undefined", "null", "none", "undefined undefined"}

_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)")


@dataclass(frozen=True)
class ArtworkSnapshot:
    """Normalized display snapshot of an artwork."""

    artwork_id: str
    title: str = DEFAULT_TITLE
    image: ImageRef = field(default_factory=ImageRef)
    artist_name: str = DEFAULT_ARTIST
    artist_id: str | None = None
    price: Decimal = Decimal("0")
    width: int = 0
    height: int = 0
    tags: tuple[str, ...] = ()
    description: str = ""
    created_at: str | None = None

    def display_fields(self) -> dict:
        """Fields copied into favourites entries and cart lines."""
        return {
            "title": self.title,
            "image_ref": self.image.regular,
            "artist_name": self.artist_name,
            "price": str(self.price),
        }


def coerce_text(value: Any, fallback: str = "") -> str:
    """Return a stripped string, or fallback for empty/placeholder values."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return fallback
    text = str(value).strip()
    if text.lower() in _BLANK_MARKERS:
        return fallback
    return text


def coerce_int(value: Any, default: int = 0) -> int:
    """Parse an integer leniently ("120", 120.7, "120cm" -> 120)."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError, ArithmeticError):
            return default
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        return int(match.group(1)) if match else default
    return default


def normalize_tags(value: Any) -> tuple[str, ...]:
    """
    Normalize tags into a tuple of unique non-empty strings.

    Accepts a comma-joined string, a list of strings, or a list of
    ``{"title": ...}`` objects (catalog shape).
    """
    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        raw_items = list(value)
    else:
        return ()

    tags: list[str] = []
    for item in raw_items:
        if isinstance(item, dict):
            item = item.get("title")
        tag = coerce_text(item)
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _capitalize_sentence(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def _pick_title(raw: Mapping[str, Any]) -> str:
    title = coerce_text(raw.get("title"))
    if title:
        return title
    # Catalog descriptions are lowercase sentences
    alt = coerce_text(raw.get("alt_description"))
    if alt:
        return _capitalize_sentence(alt)
    return DEFAULT_TITLE


def _pick_artist(raw: Mapping[str, Any]) -> tuple[str, str | None]:
    artist_id = coerce_text(raw.get("owner_id") or raw.get("artist_id") or raw.get("artistId")) or None

    name = coerce_text(raw.get("artist_name"))
    if not name:
        artist = raw.get("artist")
        if isinstance(artist, dict):
            name = coerce_text(artist.get("name"))
            artist_id = artist_id or coerce_text(artist.get("id")) or None
        else:
            name = coerce_text(artist)
    if not name:
        user = raw.get("user")
        if isinstance(user, dict):
            name = coerce_text(user.get("name"))
            artist_id = artist_id or coerce_text(user.get("id")) or None
    return name or DEFAULT_ARTIST, artist_id


def _pick_image(raw: Mapping[str, Any]) -> ImageRef:
    for key in ("image_ref", "imageUrl", "image_url", "urls", "image_urls"):
        candidate = raw.get(key)
        if candidate:
            image = normalize_image_ref(candidate)
            if not image.is_empty:
                thumbnail = normalize_image_ref(raw.get("thumbnail_ref"))
                if not thumbnail.is_empty:
                    return ImageRef(regular=image.regular, small=thumbnail.regular)
                return image
    return ImageRef()


def _pick_size(raw: Mapping[str, Any]) -> tuple[int, int]:
    size = raw.get("dimensions") or raw.get("size") or {}
    if not isinstance(size, dict):
        return 0, 0
    width = max(coerce_int(size.get("width")), 0)
    height = max(coerce_int(size.get("height")), 0)
    return width, height


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    raise MalformedRecord("Artwork record must be a mapping")


def sanitize_artwork_snapshot(raw: Any) -> ArtworkSnapshot:
    """
    Map a raw artwork record of any known shape to an ArtworkSnapshot.

    Never raises for bad display fields. Only a record without an id is
    rejected, since it cannot be keyed in a cart or favourites list.

    Raises:
        MalformedRecord: If the record has no usable id.
    """
    data = _as_mapping(raw)
    artwork_id = coerce_text(data.get("id") or data.get("artwork_id"))
    if not artwork_id:
        raise MalformedRecord("Artwork record has no id")

    artist_name, artist_id = _pick_artist(data)
    width, height = _pick_size(data)
    created_at = data.get("created_at") or data.get("createdAt")
    if isinstance(created_at, datetime):
        created_at = created_at.isoformat()

    snapshot = ArtworkSnapshot(
        artwork_id=artwork_id,
        title=_pick_title(data),
        image=_pick_image(data),
        artist_name=artist_name,
        artist_id=artist_id,
        price=to_price(data.get("price")),
        width=width,
        height=height,
        tags=normalize_tags(data.get("tags")),
        description=coerce_text(data.get("description")),
        created_at=coerce_text(created_at) or None,
    )

    if snapshot.title == DEFAULT_TITLE or snapshot.artist_name == DEFAULT_ARTIST:
        logger.debug(
            "Artwork %s snapshot used display defaults",
            sanitize_id_for_logging(artwork_id),
        )
    return snapshot


def drop_undefined(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so partial updates never blank a field."""
    return {key: value for key, value in patch.items() if value is not None}
