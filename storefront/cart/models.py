"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Union

from storefront.errors import MalformedRecord
from storefront.services.money import multiply, round_money, to_price
from storefront.services.sanitize import (
    DEFAULT_ARTIST,
    DEFAULT_TITLE,
    ArtworkSnapshot,
    coerce_int,
    coerce_text,
)


@dataclass
class CartLine:
    """Single artwork in the cart. Lines are replaced, never edited in place."""
    artwork_id: str
    title: str
    price: Decimal
    quantity: int = 1
    image_ref: str = ""
    artist_ref: str = DEFAULT_ARTIST
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()
        self.price = to_price(self.price)
        self.quantity = max(coerce_int(self.quantity, 1), 1)

    @property
    def line_total(self) -> Decimal:
        return round_money(multiply(self.price, self.quantity))

    def with_quantity(self, quantity: int) -> "CartLine":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "artwork_id": self.artwork_id,
            "title": self.title,
            "price": str(self.price),
            "quantity": self.quantity,
            "image_ref": self.image_ref,
            "artist_ref": self.artist_ref,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CartLine":
        """Create from a stored dict; older carts keyed lines by ``id``."""
        if not isinstance(data, dict):
            raise MalformedRecord("Cart line must be an object")
        artwork_id = coerce_text(data.get("artwork_id") or data.get("id"))
        if not artwork_id:
            raise MalformedRecord("Cart line has no artwork id")
        return cls(
            artwork_id=artwork_id,
            title=coerce_text(data.get("title"), DEFAULT_TITLE),
            price=data.get("price"),
            quantity=data.get("quantity", 1),
            image_ref=coerce_text(data.get("image_ref") or data.get("imageUrl")),
            artist_ref=coerce_text(data.get("artist_ref") or data.get("artist"), DEFAULT_ARTIST),
            added_at=coerce_text(data.get("added_at") or data.get("addedAt")),
        )

    @classmethod
    def from_snapshot(cls, snapshot: ArtworkSnapshot, price: Any = None) -> "CartLine":
        return cls(
            artwork_id=snapshot.artwork_id,
            title=snapshot.title,
            price=snapshot.price if price is None else price,
            image_ref=snapshot.image.regular,
            artist_ref=snapshot.artist_name,
        )


def _line_quantity(value: Any) -> int:
    # Missing quantity means a single item; anything unparsable counts as none
    if value is None:
        return 1
    return max(coerce_int(value, 0), 0)


def calculate_total(lines: Iterable[Union[CartLine, dict]]) -> Decimal:
    """
    Sum ``price * quantity`` over cart lines.

    Accepts CartLine objects or raw stored dicts. Unparsable prices count as
    zero so a single bad line never breaks the total.
    """
    total = Decimal("0")
    for line in lines:
        if isinstance(line, CartLine):
            total += line.line_total
        elif isinstance(line, dict):
            total += multiply(to_price(line.get("price")), _line_quantity(line.get("quantity")))
    return round_money(total)
