"""Favorites Domain Service.

Favourites are denormalized snapshots stored in the user's profile. Only
authenticated users have favourites; guests are asked to sign in.
"""

import asyncio
from typing import Any, Optional

from storefront.auth.identity import Identity
from storefront.auth.session import SessionListener, SessionStore
from storefront.errors import ERROR_FAVORITES_SIGN_IN, FavoritesPersistFailure
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import FavoriteEntry, UserProfile
from storefront.services.repositories import ArtworkRepository, ProfileRepository
from storefront.services.sanitize import sanitize_artwork_snapshot

logger = get_logger(__name__)


def _dedupe(entries: list[FavoriteEntry]) -> list[FavoriteEntry]:
    seen: set[str] = set()
    result = []
    for entry in entries:
        if entry.artwork_id not in seen:
            seen.add(entry.artwork_id)
            result.append(entry)
    return result


class FavoritesService(SessionListener):
    """Favourites domain service.

    Toggle reads the stored list before writing, so a stale session copy
    never overwrites favourites saved from another device.
    """

    def __init__(
        self,
        session: SessionStore,
        profiles: ProfileRepository,
        artworks: Optional[ArtworkRepository] = None,
    ) -> None:
        self.session = session
        self.profiles = profiles
        self.artworks = artworks

    @property
    def favorites(self) -> list[FavoriteEntry]:
        return list(self.session.favorites)

    def is_favorited(self, artwork_id: str) -> bool:
        if not self.session.identity.is_authenticated:
            return False
        return any(entry.artwork_id == artwork_id for entry in self.session.favorites)

    async def toggle_favorite(self, artwork: Any) -> bool:
        """Add or remove an artwork from favourites.

        Returns:
            True if the artwork is now a favourite, False if it was removed.

        Raises:
            NotAuthenticated: If the session is not signed in.
            FavoritesPersistFailure: If the stored list cannot be read or written.
        """
        user_id = self.session.require_user_id(ERROR_FAVORITES_SIGN_IN)
        snapshot = sanitize_artwork_snapshot(artwork)
        epoch = self.session.epoch

        try:
            current = _dedupe(await self.profiles.get_favorites(user_id))
            already_favorite = any(e.artwork_id == snapshot.artwork_id for e in current)
            if already_favorite:
                updated = [e for e in current if e.artwork_id != snapshot.artwork_id]
            else:
                updated = [*current, FavoriteEntry.from_snapshot(snapshot)]
            await self.profiles.save_favorites(user_id, updated)
        except Exception as e:
            logger.error(
                "Failed to toggle favourite %s: %s",
                sanitize_id_for_logging(snapshot.artwork_id),
                type(e).__name__,
            )
            raise FavoritesPersistFailure() from e

        if self.session.is_current(epoch):
            self.session.favorites = updated
            if self.session.profile is not None:
                self.session.profile = self.session.profile.model_copy(
                    update={"favorites": [entry.to_document() for entry in updated]}
                )
        else:
            logger.warning("Session changed during favourite toggle; result not applied")

        return not already_favorite

    async def list_favorites(self, refresh: bool = False) -> list[FavoriteEntry]:
        """Current favourites, optionally refreshed from the live artwork records."""
        if not self.session.identity.is_authenticated:
            return []
        entries = self.favorites
        if not refresh or self.artworks is None or not entries:
            return entries
        return list(await asyncio.gather(*(self._refresh_entry(entry) for entry in entries)))

    async def _refresh_entry(self, entry: FavoriteEntry) -> FavoriteEntry:
        try:
            record = await self.artworks.get(entry.artwork_id)
        except Exception as e:
            logger.warning(
                "Could not refresh favourite %s: %s",
                sanitize_id_for_logging(entry.artwork_id),
                type(e).__name__,
            )
            return entry
        if record is None:
            return entry
        snapshot = sanitize_artwork_snapshot(record)
        return entry.model_copy(
            update={
                "title": snapshot.title,
                "image_ref": snapshot.image.regular or entry.image_ref,
                "artist_name": snapshot.artist_name,
                "price": snapshot.price,
            }
        )

    # ==================== SESSION HOOKS ====================

    async def on_authenticated(self, identity: Identity, profile: Optional[UserProfile]) -> None:
        if profile is not None:
            self.session.favorites = profile.favorite_entries
            return
        epoch = self.session.epoch
        entries = await self.profiles.get_favorites(identity.user_id)
        if self.session.is_current(epoch):
            self.session.favorites = entries

    async def on_signed_out(self, previous: Identity) -> None:
        self.session.favorites = []
