"""Artwork Domain Service.

Artist-side lifecycle of an artwork:

    save_draft -> update* -> publish (one-way) -> delete

Edits and deletions fan out to every favourites entry and cart line that
holds a copy of the artwork, whether or not it was published.
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any

from storefront.auth.session import SessionStore
from storefront.errors import (
    ERROR_ARTIST_SIGN_IN,
    ERROR_DOCUMENT_TOO_LARGE,
    ArtworkAccessDenied,
    ArtworkNotFound,
    PublishRejected,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.images import normalize_image_ref
from storefront.services.models import ArtistInfo, ArtworkRecord, Dimensions, utc_now_iso
from storefront.services.repositories import ArtworkRepository, ProfileRepository
from storefront.services.sanitize import (
    DEFAULT_ARTIST,
    coerce_text,
    drop_undefined,
    sanitize_artwork_snapshot,
)

from .fanout import FanOutReport, FanOutService
from .profiles import NO_NAME_SET, display_name

logger = get_logger(__name__)

# Serialized size limit for a published artwork document
MAX_DOCUMENT_BYTES = 1_000_000

# Fields an artist may edit through update()
EDITABLE_FIELDS = frozenset({"title", "description", "price", "dimensions", "tags", "image_ref", "thumbnail_ref"})


def document_size(document: dict[str, Any]) -> int:
    return len(json.dumps(document, default=str).encode("utf-8"))


def normalize_artwork_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize an artist's form data into ArtworkRecord fields.

    Accepts the form aliases ``image`` (URL, data URI or urls mapping) and
    ``size`` for ``dimensions``. ``None`` values are dropped.
    """
    data = drop_undefined(patch)
    fields: dict[str, Any] = {}

    image_field = data.pop("image", None)
    image_ref_field = data.pop("image_ref", None)
    image_source = image_field or image_ref_field
    if image_source is not None:
        image = normalize_image_ref(image_source)
        if not image.is_empty:
            fields["image_ref"] = image.regular
            fields["thumbnail_ref"] = image.small

    size = data.pop("size", None)
    if size is not None and "dimensions" not in data:
        data["dimensions"] = size

    for key, value in data.items():
        if key in EDITABLE_FIELDS and key not in fields:
            fields[key] = value
    return fields


@dataclass
class ArtworkChange:
    """Result of an edit: the stored record and the fan-out outcome."""

    record: ArtworkRecord
    fan_out: FanOutReport
    changed_fields: dict[str, Any] = field(default_factory=dict)


class ArtworkService:
    """Artwork domain service for the signed-in artist."""

    def __init__(
        self,
        session: SessionStore,
        artworks: ArtworkRepository,
        profiles: ProfileRepository,
        fanout: FanOutService,
    ) -> None:
        self.session = session
        self.artworks = artworks
        self.profiles = profiles
        self.fanout = fanout

    def _artist_id(self) -> str:
        return self.session.require_user_id(ERROR_ARTIST_SIGN_IN)

    async def _get_owned(self, artwork_id: str) -> ArtworkRecord:
        owner_id = self._artist_id()
        record = await self.artworks.get(artwork_id)
        if record is None:
            raise ArtworkNotFound(artwork_id)
        if record.owner_id != owner_id:
            logger.warning(
                "User %s tried to modify artwork %s",
                sanitize_id_for_logging(owner_id),
                sanitize_id_for_logging(artwork_id),
            )
            raise ArtworkAccessDenied()
        return record

    async def save_draft(self, data: dict[str, Any]) -> ArtworkRecord:
        """Create an unpublished artwork owned by the current artist."""
        owner_id = self._artist_id()
        fields = normalize_artwork_patch(data)
        record = ArtworkRecord(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            created_at=coerce_text(data.get("created_at")) or utc_now_iso(),
            **fields,
        )
        await self.artworks.save(record)

        try:
            profile = await self.profiles.get_profile(owner_id)
            artwork_ids = list(profile.artworks or []) if profile else []
            artwork_ids.append(record.id)
            await self.profiles.update_profile(owner_id, {"artworks": artwork_ids})
        except Exception as e:
            # Own artworks are listed by owner query, the profile list is secondary
            logger.warning(
                "Artwork %s saved but profile list not updated: %s",
                sanitize_id_for_logging(record.id),
                type(e).__name__,
            )

        logger.info("Saved draft %s", sanitize_id_for_logging(record.id))
        return record

    async def list_own_artworks(self) -> list[ArtworkRecord]:
        return await self.artworks.list_by_owner(self._artist_id())

    async def publish(self, artwork_id: str) -> ArtworkRecord:
        """
        Publish an artwork to the public gallery.

        Raises:
            PublishRejected: If already published or the snapshot is too large.
        """
        record = await self._get_owned(artwork_id)
        if record.is_published:
            raise PublishRejected()

        profile = await self.profiles.get_profile(record.owner_id)
        name = display_name(profile)
        artist = ArtistInfo(
            name=DEFAULT_ARTIST if name == NO_NAME_SET else name,
            location=profile.location if profile else "",
            photo=profile.profile_photo if profile else "",
        )

        snapshot = sanitize_artwork_snapshot(record)
        published = record.model_copy(
            update={
                "title": snapshot.title,
                "price": snapshot.price,
                "dimensions": Dimensions(width=snapshot.width, height=snapshot.height),
                "tags": list(snapshot.tags),
                "image_ref": snapshot.image.regular,
                "thumbnail_ref": snapshot.image.small,
                "is_published": True,
                "published_at": utc_now_iso(),
                "artist": artist,
            }
        )

        size = document_size(published.to_document())
        if size > MAX_DOCUMENT_BYTES:
            logger.warning(
                "Artwork %s too large to publish (%d bytes)", sanitize_id_for_logging(artwork_id), size
            )
            raise PublishRejected(ERROR_DOCUMENT_TOO_LARGE)

        await self.artworks.save(published)
        logger.info("Published artwork %s", sanitize_id_for_logging(artwork_id))
        return published

    async def update(self, artwork_id: str, patch: dict[str, Any]) -> ArtworkChange:
        """Edit an artwork, then fan changed display fields out to every copy."""
        record = await self._get_owned(artwork_id)
        fields = normalize_artwork_patch(patch)
        if not fields:
            return ArtworkChange(record=record, fan_out=FanOutReport(artwork_id=artwork_id))

        updated = ArtworkRecord(**{**record.model_dump(), **fields})
        stored = updated.model_dump(mode="json")
        await self.artworks.update(artwork_id, {key: stored[key] for key in fields})

        before = sanitize_artwork_snapshot(record).display_fields()
        after = sanitize_artwork_snapshot(updated).display_fields()
        changed = {key: value for key, value in after.items() if before.get(key) != value}

        if changed:
            report = await self.fanout.propagate_update(artwork_id, changed)
        else:
            report = FanOutReport(artwork_id=artwork_id)
        return ArtworkChange(record=updated, fan_out=report, changed_fields=changed)

    async def delete(self, artwork_id: str) -> FanOutReport:
        """Delete an artwork and remove it from every favourites list and cart."""
        record = await self._get_owned(artwork_id)
        await self.artworks.delete(artwork_id)

        try:
            profile = await self.profiles.get_profile(record.owner_id)
            if profile is not None and profile.artworks and artwork_id in profile.artworks:
                remaining = [item for item in profile.artworks if item != artwork_id]
                await self.profiles.update_profile(record.owner_id, {"artworks": remaining})
        except Exception as e:
            logger.warning(
                "Artwork %s deleted but owner list not updated: %s",
                sanitize_id_for_logging(artwork_id),
                type(e).__name__,
            )

        report = await self.fanout.propagate_removal(artwork_id)
        logger.info("Deleted artwork %s", sanitize_id_for_logging(artwork_id))
        return report
