"""
Storefront wiring.

``build_storefront`` assembles every service around one SessionStore from
explicit adapters (tests pass in-memory ones). ``create_storefront`` does
the same with the Supabase, Upstash and Unsplash adapters from environment
configuration.
"""

from dataclasses import dataclass
from typing import Optional

from storefront.auth import IdentityProvider, SessionManager, SessionStore, SupabaseIdentityProvider
from storefront.cart import CartEngine, CartStorage, MergePolicy
from storefront.db import get_cache_redis, get_supabase
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.domains import (
    ArtworkImageSource,
    ArtworkService,
    CheckoutService,
    FanOutService,
    FavoritesService,
    GalleryService,
    ProfileService,
    UnsplashCatalog,
)
from storefront.services.local_cache import LocalCache, RedisLocalCache
from storefront.services.payments import FakePaymentGateway, PaymentGateway
from storefront.services.repositories import (
    ArtworkRepository,
    DocumentStore,
    ProfileRepository,
    SupabaseDocumentStore,
)

logger = get_logger(__name__)


@dataclass
class Storefront:
    """All services for one device session."""

    session: SessionStore
    sessions: SessionManager
    profiles: ProfileService
    cart: CartEngine
    favorites: FavoritesService
    artworks: ArtworkService
    gallery: GalleryService
    checkout: CheckoutService

    async def continue_as_guest(self):
        return await self.sessions.continue_as_guest()

    async def sign_in(self, email: str, password: str):
        return await self.sessions.sign_in(email, password)

    async def sign_out(self) -> None:
        await self.sessions.sign_out()


def build_storefront(
    store: DocumentStore,
    cache: LocalCache,
    provider: IdentityProvider,
    catalog: ArtworkImageSource,
    gateway: Optional[PaymentGateway] = None,
    merge_policy: Optional[MergePolicy] = None,
    fanout: Optional[FanOutService] = None,
) -> Storefront:
    session = SessionStore()
    profile_repo = ProfileRepository(store)
    artwork_repo = ArtworkRepository(store)

    profiles = ProfileService(profile_repo)
    cart = CartEngine(session, CartStorage(cache, profile_repo), merge_policy)
    favorites = FavoritesService(session, profile_repo, artwork_repo)
    artworks = ArtworkService(
        session, artwork_repo, profile_repo, fanout or FanOutService(profile_repo)
    )
    gallery = GalleryService(artwork_repo, catalog)
    checkout = CheckoutService(session, cart, profile_repo, gateway or FakePaymentGateway())

    sessions = SessionManager(provider, profiles, session, [cart, favorites])
    sessions.start()

    return Storefront(
        session=session,
        sessions=sessions,
        profiles=profiles,
        cart=cart,
        favorites=favorites,
        artworks=artworks,
        gallery=gallery,
        checkout=checkout,
    )


async def create_storefront(device_id: str) -> Storefront:
    """Build a storefront on the configured Supabase/Upstash/Unsplash backends."""
    client = await get_supabase()
    storefront = build_storefront(
        store=SupabaseDocumentStore(client),
        cache=RedisLocalCache(get_cache_redis(), device_id),
        provider=SupabaseIdentityProvider(client),
        catalog=UnsplashCatalog(),
    )
    logger.info("Storefront ready for device %s", sanitize_id_for_logging(device_id))
    return storefront
