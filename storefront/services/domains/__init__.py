"""Domain services wrapping repositories."""
from .profiles import ProfileService, can_buy_art, display_name, is_artist
from .favorites import FavoritesService
from .fanout import FanOutReport, FanOutService, FavoritesIndex, ScanFavoritesIndex
from .artworks import ArtworkChange, ArtworkService
from .catalog import ArtworkImageSource, UnsplashCatalog
from .gallery import GalleryPage, GalleryService
from .checkout import CheckoutService

__all__ = [
    "ProfileService",
    "can_buy_art",
    "display_name",
    "is_artist",
    "FavoritesService",
    "FanOutReport",
    "FanOutService",
    "FavoritesIndex",
    "ScanFavoritesIndex",
    "ArtworkChange",
    "ArtworkService",
    "ArtworkImageSource",
    "UnsplashCatalog",
    "GalleryPage",
    "GalleryService",
    "CheckoutService",
]
