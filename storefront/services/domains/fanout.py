"""Fan-out of artwork changes into denormalized copies.

Favourites entries and cart lines carry a snapshot of the artwork's display
fields. When an artist edits or deletes an artwork, every profile that
references it is rewritten. Each profile is handled independently: a
failure on one user is reported and does not stop the others.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.repositories import ProfileRepository

logger = get_logger(__name__)

# Snapshot display field -> cart line key
CART_FIELD_MAP = {
    "title": "title",
    "image_ref": "image_ref",
    "artist_name": "artist_ref",
    "price": "price",
}


def _entry_artwork_id(entry: Any) -> str | None:
    if not isinstance(entry, dict):
        return None
    return entry.get("artwork_id") or entry.get("id")


class FavoritesIndex(ABC):
    """Finds profiles whose ``field`` list references an artwork."""

    field: str

    @abstractmethod
    async def find_referencing(self, artwork_id: str) -> list[str]:
        ...


class ScanFavoritesIndex(FavoritesIndex):
    """Index that scans every profile document.

    Fine for small user bases; swap for a maintained reverse index when
    profile counts grow.
    """

    def __init__(self, profiles: ProfileRepository, field: str = "favorites") -> None:
        self.profiles = profiles
        self.field = field

    async def find_referencing(self, artwork_id: str) -> list[str]:
        user_ids = []
        for document in await self.profiles.list_profile_documents():
            entries = document.get(self.field)
            if not isinstance(entries, list):
                continue
            if any(_entry_artwork_id(entry) == artwork_id for entry in entries):
                user_ids.append(document["id"])
        return user_ids


@dataclass
class FanOutReport:
    """Outcome of one fan-out run."""

    artwork_id: str
    updated: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def apply_to_favorites(
    entries: list[dict[str, Any]], artwork_id: str, changes: dict[str, Any] | None
) -> list[dict[str, Any]]:
    """Rewrite or drop (``changes is None``) the favourites entries for an artwork."""
    result = []
    for entry in entries:
        if _entry_artwork_id(entry) != artwork_id:
            result.append(entry)
        elif changes is not None:
            result.append({**entry, **changes})
    return result


def apply_to_cart(
    lines: list[dict[str, Any]], artwork_id: str, changes: dict[str, Any] | None
) -> list[dict[str, Any]]:
    """Rewrite or drop (``changes is None``) the cart lines for an artwork."""
    mapped = None
    if changes is not None:
        mapped = {CART_FIELD_MAP[key]: value for key, value in changes.items() if key in CART_FIELD_MAP}
    result = []
    for line in lines:
        if _entry_artwork_id(line) != artwork_id:
            result.append(line)
        elif mapped is not None:
            result.append({**line, **mapped})
    return result


class FanOutService:
    """Propagates artwork edits and deletions to profiles that reference them."""

    def __init__(
        self,
        profiles: ProfileRepository,
        indexes: list[FavoritesIndex] | None = None,
    ) -> None:
        self.profiles = profiles
        self.indexes = indexes if indexes is not None else [
            ScanFavoritesIndex(profiles, "favorites"),
            ScanFavoritesIndex(profiles, "cart"),
        ]

    async def propagate_update(self, artwork_id: str, changes: dict[str, Any]) -> FanOutReport:
        """Copy changed display fields into every referencing favourite and cart line."""
        return await self._run(artwork_id, changes)

    async def propagate_removal(self, artwork_id: str) -> FanOutReport:
        """Drop the artwork from every referencing favourites list and cart."""
        return await self._run(artwork_id, None)

    async def _referencing_users(self, artwork_id: str, report: FanOutReport) -> list[str]:
        user_ids: list[str] = []
        for index in self.indexes:
            try:
                found = await index.find_referencing(artwork_id)
            except Exception as e:
                logger.error("Reference lookup on %s failed: %s", index.field, type(e).__name__)
                report.failed[f"index:{index.field}"] = type(e).__name__
                continue
            user_ids.extend(uid for uid in found if uid not in user_ids)
        return user_ids

    async def _run(self, artwork_id: str, changes: dict[str, Any] | None) -> FanOutReport:
        report = FanOutReport(artwork_id=artwork_id)
        for user_id in await self._referencing_users(artwork_id, report):
            try:
                if await self._rewrite_profile(user_id, artwork_id, changes):
                    report.updated.append(user_id)
            except Exception as e:
                logger.warning(
                    "Fan-out of %s to %s failed: %s",
                    sanitize_id_for_logging(artwork_id),
                    sanitize_id_for_logging(user_id),
                    type(e).__name__,
                )
                report.failed[user_id] = type(e).__name__

        logger.info(
            "Fan-out %s for %s: %d updated, %d failed",
            "removal" if changes is None else "update",
            sanitize_id_for_logging(artwork_id),
            len(report.updated),
            len(report.failed),
        )
        return report

    async def _rewrite_profile(
        self, user_id: str, artwork_id: str, changes: dict[str, Any] | None
    ) -> bool:
        profile = await self.profiles.get_profile(user_id)
        if profile is None:
            return False

        fields: dict[str, Any] = {}
        favorites = apply_to_favorites(profile.favorites, artwork_id, changes)
        if favorites != profile.favorites:
            fields["favorites"] = favorites
        cart = apply_to_cart(profile.cart, artwork_id, changes)
        if cart != profile.cart:
            fields["cart"] = cart

        if not fields:
            return False
        await self.profiles.update_profile(user_id, fields)
        return True
