"""Gallery Domain Service.

The public gallery shows published artist works alongside a page of
catalog artworks. Either half may be unavailable; the other is still shown.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from storefront.errors import CatalogUnavailable
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import ArtworkRecord, CatalogArtwork
from storefront.services.repositories import ArtworkRepository

from .catalog import DEFAULT_PER_PAGE, ArtworkImageSource

logger = get_logger(__name__)

GalleryArtwork = Union[ArtworkRecord, CatalogArtwork]


@dataclass
class GalleryPage:
    """One page of the public gallery."""

    published: list[ArtworkRecord] = field(default_factory=list)
    catalog: list[CatalogArtwork] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def artworks(self) -> list[GalleryArtwork]:
        return [*self.published, *self.catalog]


class GalleryService:
    """Gallery domain service."""

    def __init__(self, artworks: ArtworkRepository, catalog: ArtworkImageSource) -> None:
        self.artworks = artworks
        self.catalog = catalog

    async def list_gallery(self, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> GalleryPage:
        result = GalleryPage()

        # Artist works are shown once, on the first page
        if page <= 1:
            try:
                published = await self.artworks.list_published()
                result.published = sorted(
                    published, key=lambda record: record.published_at or "", reverse=True
                )
            except Exception as e:
                logger.error("Failed to list published artworks: %s", type(e).__name__, exc_info=True)
                result.errors.append(type(e).__name__)

        try:
            result.catalog = await self.catalog.search(page=page, per_page=per_page)
        except CatalogUnavailable as e:
            logger.warning("Catalog unavailable: %s", e.message)
            result.errors.append(e.message)

        return result

    async def resolve_artwork(self, artwork_id: str) -> GalleryArtwork:
        """
        Find an artwork by id: published artist works first, then the catalog.

        Raises:
            ArtworkNotFound: If neither source has it.
            CatalogUnavailable: If it is not an artist work and the catalog is down.
        """
        record: Optional[ArtworkRecord] = None
        try:
            record = await self.artworks.get(artwork_id)
        except Exception as e:
            logger.warning(
                "Artwork store lookup of %s failed: %s",
                sanitize_id_for_logging(artwork_id),
                type(e).__name__,
            )
        if record is not None and record.is_published:
            return record

        return await self.catalog.get_artwork(artwork_id)
