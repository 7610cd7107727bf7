"""Profile Domain Service.

Creates and updates user profile documents. Cart, favourites, purchases
and the artwork list are owned by their own services and cannot be
changed through ``update_profile``.
"""

from typing import Any

from storefront.auth.identity import Identity
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import UserProfile, utc_now_iso
from storefront.services.repositories import ProfileRepository
from storefront.services.sanitize import coerce_text, drop_undefined

logger = get_logger(__name__)

NO_NAME_SET = "No name set"

# Fields written only by their owning services
PROTECTED_FIELDS = frozenset({"id", "email", "cart", "favorites", "purchases", "artworks", "sales"})


def new_profile_fields(
    email: str | None,
    first_name: str | None = None,
    last_name: str | None = None,
    is_artist: bool = False,
) -> dict[str, Any]:
    """Initial profile document for a new account."""
    return {
        "email": email,
        "first_name": first_name or "",
        "last_name": last_name or "",
        "is_artist": is_artist,
        "created_at": utc_now_iso(),
        "cart": [],
        "favorites": [],
        "purchases": [],
        "artworks": [] if is_artist else None,
        "sales": [] if is_artist else None,
    }


def display_name(profile: UserProfile | None) -> str:
    """Full name for display; tolerates older documents with odd name shapes."""
    if profile is None:
        return NO_NAME_SET
    first_name = profile.first_name
    last_name = profile.last_name
    if isinstance(first_name, list):
        first_name = first_name[0] if first_name else ""
    if isinstance(last_name, dict):
        first_name = last_name.get("first_name") or last_name.get("firstName") or first_name
        last_name = last_name.get("last_name") or last_name.get("lastName")
    first = coerce_text(first_name)
    last = coerce_text(last_name)
    if not first and not last:
        return NO_NAME_SET
    return f"{first} {last}".strip()


def can_buy_art(identity: Identity) -> bool:
    return identity.is_authenticated


def is_artist(profile: UserProfile | None) -> bool:
    return bool(profile and profile.is_artist)


class ProfileService:
    """Profile domain service."""

    def __init__(self, repo: ProfileRepository) -> None:
        self.repo = repo

    async def get_profile(self, user_id: str) -> UserProfile | None:
        return await self.repo.get_profile(user_id)

    async def ensure_profile(self, user_id: str, email: str | None = None) -> UserProfile:
        """Load the profile, creating a minimal one if the account has none."""
        profile = await self.repo.get_profile(user_id)
        if profile is not None:
            return profile
        logger.info("Creating missing profile for %s", sanitize_id_for_logging(user_id))
        return await self.repo.create_profile(user_id, new_profile_fields(email))

    async def complete_sign_up(
        self,
        user_id: str,
        first_name: str,
        last_name: str,
        is_artist: bool = False,
    ) -> UserProfile:
        """Fill in the sign-up form fields on a freshly created profile."""
        fields: dict[str, Any] = {
            "first_name": coerce_text(first_name),
            "last_name": coerce_text(last_name),
            "is_artist": is_artist,
        }
        if is_artist:
            fields["artworks"] = []
            fields["sales"] = []
        await self.repo.update_profile(user_id, fields)
        profile = await self.repo.get_profile(user_id)
        return profile or UserProfile(id=user_id, **fields)

    async def update_profile(self, user_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """Write the defined, editable fields of ``patch``. Returns what was written."""
        fields = {
            key: value
            for key, value in drop_undefined(patch).items()
            if key not in PROTECTED_FIELDS
        }
        if not fields:
            return {}
        await self.repo.update_profile(user_id, fields)
        return fields

    async def become_artist(self, user_id: str) -> UserProfile:
        profile = await self.ensure_profile(user_id)
        if profile.is_artist:
            return profile
        fields = {
            "is_artist": True,
            "artworks": profile.artworks or [],
            "sales": profile.sales or [],
        }
        await self.repo.update_profile(user_id, fields)
        return profile.model_copy(update=fields)
