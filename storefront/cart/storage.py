"""
Cart persistence.

Guest carts live in the device-local cache as a JSON array under
``CacheKeys.GUEST_CART``. Authenticated carts live in the user's profile
document. Both are written as whole lists.
"""
import json
from typing import Any, Iterable

from storefront.db import CacheKeys
from storefront.errors import MalformedRecord
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.local_cache import LocalCache
from storefront.services.repositories import ProfileRepository

from .merge import dedupe_lines
from .models import CartLine

logger = get_logger(__name__)


def decode_lines(raw_lines: Iterable[Any]) -> list[CartLine]:
    """Decode stored cart entries, skipping unusable ones."""
    lines: list[CartLine] = []
    for raw in raw_lines:
        try:
            lines.append(CartLine.from_dict(raw))
        except MalformedRecord as e:
            logger.warning("Skipping stored cart line: %s", e.message)
    return dedupe_lines(lines)


def encode_lines(lines: Iterable[CartLine]) -> list[dict]:
    return [line.to_dict() for line in lines]


def decode_guest_payload(payload: str) -> list[CartLine]:
    """
    Parse the local cache payload.

    Raises:
        MalformedRecord: If the payload is not a JSON array.
    """
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedRecord("Guest cart is not valid JSON") from e
    if not isinstance(data, list):
        raise MalformedRecord("Guest cart is not a list")
    return decode_lines(data)


class CartStorage:
    """Reads and writes carts for guest and authenticated sessions."""

    def __init__(self, cache: LocalCache, profiles: ProfileRepository):
        self.cache = cache
        self.profiles = profiles

    # ==================== GUEST (LOCAL CACHE) ====================

    def load_guest_cart(self) -> list[CartLine]:
        """Load the guest cart; corrupt payloads are discarded."""
        payload = self.cache.get(CacheKeys.GUEST_CART)
        if not payload:
            return []
        try:
            return decode_guest_payload(payload)
        except MalformedRecord as e:
            logger.warning("Discarding corrupt guest cart: %s", e.message)
            self.cache.remove(CacheKeys.GUEST_CART)
            return []

    def save_guest_cart(self, lines: Iterable[CartLine]) -> None:
        self.cache.set(CacheKeys.GUEST_CART, json.dumps(encode_lines(lines)))

    def clear_guest_cart(self) -> None:
        self.cache.remove(CacheKeys.GUEST_CART)

    # ==================== AUTHENTICATED (PROFILE) ====================

    async def load_remote_cart(self, user_id: str) -> list[CartLine]:
        raw_lines = await self.profiles.get_cart(user_id)
        return decode_lines(raw_lines)

    async def save_remote_cart(self, user_id: str, lines: Iterable[CartLine]) -> None:
        encoded = encode_lines(lines)
        await self.profiles.save_cart(user_id, encoded)
        logger.debug(
            "Saved cart for %s (%d lines)", sanitize_id_for_logging(user_id), len(encoded)
        )
