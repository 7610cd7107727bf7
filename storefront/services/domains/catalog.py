"""Catalog Domain Service - stock artworks from the Unsplash API.

Catalog photos have no price or size, so both are simulated. They are
seeded from the photo id, so the same artwork always shows the same price
and size on the gallery page, the detail page and in the cart.
"""

import os
import random
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.errors import ArtworkNotFound, CatalogUnavailable
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import CatalogArtwork, Dimensions
from storefront.services.sanitize import sanitize_artwork_snapshot

logger = get_logger(__name__)

UNSPLASH_ACCESS_KEY = os.environ.get("UNSPLASH_ACCESS_KEY", "")
UNSPLASH_API_URL = "https://api.unsplash.com"

DEFAULT_QUERY = (
    "contemporary modern fine art painting exhibition gallery "
    "-photo -artist -camera -supplies -brushes -pencil -crayons"
)
DEFAULT_PER_PAGE = 30

# Simulated listing ranges (upper bounds exclusive)
PRICE_RANGE = (500, 3500)
WIDTH_RANGE = (50, 150)
HEIGHT_RANGE = (70, 200)


def simulated_listing(artwork_id: str) -> tuple[Decimal, Dimensions]:
    """Deterministic price and size for a catalog artwork."""
    rng = random.Random(artwork_id)
    width = rng.randrange(*WIDTH_RANGE)
    height = rng.randrange(*HEIGHT_RANGE)
    price = Decimal(rng.randrange(*PRICE_RANGE))
    return price, Dimensions(width=width, height=height)


def to_catalog_artwork(raw: dict[str, Any]) -> CatalogArtwork:
    """Map an Unsplash photo record to a CatalogArtwork."""
    snapshot = sanitize_artwork_snapshot(raw)
    price, dimensions = simulated_listing(snapshot.artwork_id)
    return CatalogArtwork(
        id=snapshot.artwork_id,
        title=snapshot.title,
        image_urls=snapshot.image.to_dict(),
        artist=snapshot.artist_name,
        tags=list(snapshot.tags),
        created_at=snapshot.created_at,
        price=price,
        dimensions=dimensions,
    )


class ArtworkImageSource(ABC):
    """Read-only source of catalog artworks."""

    @abstractmethod
    async def search(self, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> list[CatalogArtwork]:
        ...

    @abstractmethod
    async def get_artwork(self, artwork_id: str) -> CatalogArtwork:
        ...


class UnsplashCatalog(ArtworkImageSource):
    """
    Unsplash search API client.

    Usage:
        catalog = UnsplashCatalog()
        artworks = await catalog.search(page=2)
    """

    def __init__(
        self,
        access_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        query: str = DEFAULT_QUERY,
        base_url: str = UNSPLASH_API_URL,
    ):
        self.access_key = access_key if access_key is not None else UNSPLASH_ACCESS_KEY
        self.client = client
        self.query = query
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Client-ID {self.access_key}",
            "Accept-Version": "v1",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self.client is not None:
            return await self.client.get(url, params=params, headers=self._headers())
        async with httpx.AsyncClient(timeout=10.0) as client:
            return await client.get(url, params=params, headers=self._headers())

    async def _request(self, path: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        if not self.access_key:
            raise CatalogUnavailable("UNSPLASH_ACCESS_KEY is not configured")
        try:
            return await self._get(path, params)
        except httpx.HTTPError as e:
            logger.error("Catalog request %s failed: %s", path, type(e).__name__)
            raise CatalogUnavailable() from e

    async def search(self, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> list[CatalogArtwork]:
        """Fetch one page of catalog artworks."""
        response = await self._request(
            "/search/photos",
            {
                "query": self.query,
                "page": max(page, 1),
                "per_page": per_page,
                "orientation": "landscape",
            },
        )
        if response.is_error:
            logger.error("Catalog search returned %d", response.status_code)
            raise CatalogUnavailable()

        artworks = []
        for raw in response.json().get("results", []):
            try:
                artworks.append(to_catalog_artwork(raw))
            except Exception as e:
                logger.warning("Skipping catalog record: %s", type(e).__name__)
        return artworks

    async def get_artwork(self, artwork_id: str) -> CatalogArtwork:
        """Fetch a single catalog artwork by id."""
        response = await self._request(f"/photos/{artwork_id}")
        if response.status_code == 404:
            raise ArtworkNotFound(artwork_id)
        if response.is_error:
            logger.error(
                "Catalog lookup of %s returned %d",
                sanitize_id_for_logging(artwork_id),
                response.status_code,
            )
            raise CatalogUnavailable()
        return to_catalog_artwork(response.json())
