"""Art marketplace storefront: session identity, cart and favourites engines."""

__version__ = "0.1.0"
