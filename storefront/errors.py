"""
Storefront Errors

User-safe message constants and the domain exception hierarchy.
Messages are shown in transient notifications, so they never carry
internal details; the underlying cause is chained with ``raise ... from``.
"""

# Session errors
ERROR_NOT_AUTHENTICATED = "Please sign in to continue"
ERROR_FAVORITES_SIGN_IN = "Please sign in to save favourites"
ERROR_PURCHASE_SIGN_IN = "Please sign in to complete your purchase"
ERROR_ARTIST_SIGN_IN = "Please sign in as an artist to manage artworks"

# Cart / favourites errors
ERROR_CART_PERSIST = "Could not save your cart, please try again"
ERROR_CART_MERGE = "Could not merge your guest cart, please try again"
ERROR_CART_LOADING = "Your cart is still loading, please try again"
ERROR_FAVORITES_PERSIST = "Could not update your favourites, please try again"

# Artwork errors
ERROR_ARTWORK_NOT_FOUND = "Artwork not found"
ERROR_ARTWORK_ACCESS_DENIED = "Artwork does not belong to this artist"
ERROR_ALREADY_PUBLISHED = "Artwork is already published in the gallery"
ERROR_DOCUMENT_TOO_LARGE = "Document size too large even after compression"

# Checkout errors
ERROR_EMPTY_CART = "Your cart is empty"
ERROR_PAYMENT_FAILED = "Payment failed"
ERROR_PURCHASE_PERSIST = "Failed to complete purchase"

# Store errors
ERROR_REMOTE_STORE = "Remote store unavailable"
ERROR_CATALOG_UNAVAILABLE = "Artwork catalog is unavailable right now"


class StorefrontError(Exception):
    """Base error with a user-safe message."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticated(StorefrontError):
    """Operation requires a signed-in identity."""

    default_message = ERROR_NOT_AUTHENTICATED


class CartPersistFailure(StorefrontError):
    """Cart write failed; in-memory cart kept its previous state."""

    default_message = ERROR_CART_PERSIST


class CartMergeFailure(CartPersistFailure):
    """Guest cart merge failed before commit; safe to retry."""

    default_message = ERROR_CART_MERGE


class FavoritesPersistFailure(StorefrontError):
    """Favourites write failed; session cache kept its previous state."""

    default_message = ERROR_FAVORITES_PERSIST


class ArtworkNotFound(StorefrontError):
    """Artwork is missing from the publication store and the catalog."""

    default_message = ERROR_ARTWORK_NOT_FOUND

    def __init__(self, artwork_id: str, message: str | None = None) -> None:
        super().__init__(message)
        self.artwork_id = artwork_id


class ArtworkAccessDenied(StorefrontError):
    """Artwork belongs to another artist."""

    default_message = ERROR_ARTWORK_ACCESS_DENIED


class PublishRejected(StorefrontError):
    """Artwork cannot be published (already published or oversized)."""

    default_message = ERROR_ALREADY_PUBLISHED


class CheckoutFailure(StorefrontError):
    """Payment or purchase recording failed; cart left untouched."""

    default_message = ERROR_PURCHASE_PERSIST


class MalformedRecord(StorefrontError):
    """Stored data could not be decoded into a record."""

    default_message = "Malformed record"


class RemoteStoreError(StorefrontError):
    """Document store backend failure."""

    default_message = ERROR_REMOTE_STORE


class CatalogUnavailable(StorefrontError):
    """External image catalog could not be reached."""

    default_message = ERROR_CATALOG_UNAVAILABLE
