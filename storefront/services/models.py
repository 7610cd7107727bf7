"""Document Models - Pydantic models for profile and artwork documents."""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.services.money import to_price
from storefront.services.sanitize import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    ArtworkSnapshot,
    coerce_int,
    coerce_text,
    normalize_tags,
)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class FavoriteEntry(BaseModel):
    """Denormalized favourite snapshot stored in the user's profile."""
    model_config = ConfigDict(extra="ignore")

    artwork_id: str
    title: str = DEFAULT_TITLE
    image_ref: str = ""
    artist_name: str = DEFAULT_ARTIST
    price: Decimal = Decimal("0")
    added_at: str = Field(default_factory=utc_now_iso)

    @field_validator("price", mode="before")
    @classmethod
    def convert_price(cls, v):
        return to_price(v)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v):
        return coerce_text(v, DEFAULT_TITLE)

    @field_validator("artist_name", mode="before")
    @classmethod
    def default_artist(cls, v):
        return coerce_text(v, DEFAULT_ARTIST)

    @field_validator("image_ref", mode="before")
    @classmethod
    def default_image(cls, v):
        return coerce_text(v)

    @classmethod
    def from_snapshot(cls, snapshot: ArtworkSnapshot) -> "FavoriteEntry":
        return cls(artwork_id=snapshot.artwork_id, **snapshot.display_fields())

    @classmethod
    def from_raw(cls, data: dict) -> Optional["FavoriteEntry"]:
        """Build from a stored dict; older documents keyed entries by ``id``."""
        if not isinstance(data, dict):
            return None
        artwork_id = coerce_text(data.get("artwork_id") or data.get("id"))
        if not artwork_id:
            return None
        return cls(
            artwork_id=artwork_id,
            title=data.get("title"),
            image_ref=data.get("image_ref") or data.get("imageUrl"),
            artist_name=data.get("artist_name") or data.get("artist"),
            price=data.get("price"),
            added_at=coerce_text(data.get("added_at") or data.get("addedAt")) or utc_now_iso(),
        )

    def to_document(self) -> dict:
        return {
            "artwork_id": self.artwork_id,
            "title": self.title,
            "image_ref": self.image_ref,
            "artist_name": self.artist_name,
            "price": str(self.price),
            "added_at": self.added_at,
        }


class Dimensions(BaseModel):
    """Artwork size in centimetres."""
    width: int = 0
    height: int = 0

    @field_validator("width", "height", mode="before")
    @classmethod
    def convert_size(cls, v):
        return max(coerce_int(v), 0)


class ArtistInfo(BaseModel):
    """Artist display fields flattened into a published artwork."""
    name: str = DEFAULT_ARTIST
    location: str = ""
    photo: str = ""


class ArtworkRecord(BaseModel):
    """Artwork document owned by an artist."""
    model_config = ConfigDict(extra="ignore")

    id: str
    owner_id: str
    title: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    dimensions: Dimensions = Field(default_factory=Dimensions)
    tags: list[str] = []
    image_ref: str = ""
    thumbnail_ref: str = ""
    is_published: bool = False
    published_at: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    artist: Optional[ArtistInfo] = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price(cls, v):
        return to_price(v)

    @field_validator("tags", mode="before")
    @classmethod
    def convert_tags(cls, v):
        return list(normalize_tags(v))

    @field_validator("dimensions", mode="before")
    @classmethod
    def convert_dimensions(cls, v):
        return v if isinstance(v, (dict, Dimensions)) else {}

    def to_document(self) -> dict:
        data = self.model_dump(mode="json")
        data.pop("id", None)
        return data


class ShippingDetails(BaseModel):
    """Shipping information collected at checkout."""
    first_name: str
    last_name: str
    email: str
    address: str
    city: str
    postal_code: str
    country: str


class Purchase(BaseModel):
    """Completed (simulated) purchase stored in the profile."""
    model_config = ConfigDict(extra="ignore")

    order_number: int
    items: list[dict[str, Any]] = []
    total: Decimal = Decimal("0")
    purchased_at: str = Field(default_factory=utc_now_iso)
    shipping: Optional[ShippingDetails] = None

    @field_validator("total", mode="before")
    @classmethod
    def convert_total(cls, v):
        return to_price(v)


class UserProfile(BaseModel):
    """Per-user profile document (collection ``users``)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    first_name: Any = None  # older documents stored lists/objects here
    last_name: Any = None
    is_artist: bool = False
    created_at: Optional[str] = None
    location: str = ""
    profile_photo: str = ""
    bio: str = ""
    cart: list[dict[str, Any]] = []
    favorites: list[dict[str, Any]] = []
    purchases: list[dict[str, Any]] = []
    artworks: Optional[list[str]] = None
    sales: Optional[list[dict[str, Any]]] = None

    @field_validator("cart", "favorites", "purchases", mode="before")
    @classmethod
    def only_dict_entries(cls, v):
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, dict)]

    @field_validator("location", "profile_photo", "bio", mode="before")
    @classmethod
    def text_or_empty(cls, v):
        return coerce_text(v)

    @property
    def favorite_entries(self) -> list[FavoriteEntry]:
        entries = (FavoriteEntry.from_raw(raw) for raw in self.favorites)
        return [entry for entry in entries if entry is not None]


class CatalogArtwork(BaseModel):
    """Stock artwork from the external image catalog."""
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = DEFAULT_TITLE
    image_urls: dict[str, str] = {}
    artist: str = DEFAULT_ARTIST
    tags: list[str] = []
    created_at: Optional[str] = None
    price: Decimal = Decimal("0")
    dimensions: Dimensions = Field(default_factory=Dimensions)
