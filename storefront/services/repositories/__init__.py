"""
Repository Pattern for Document Operations

Provides clean separation of concerns:
- DocumentStore: remote document store interface
- SupabaseDocumentStore: Supabase (PostgREST + jsonb) implementation
- ProfileRepository: user profiles, carts, favourites, purchases
- ArtworkRepository: artist artworks
"""
from .base import BaseRepository, DocumentStore
from .document_repo import SupabaseDocumentStore
from .profile_repo import ProfileRepository
from .artwork_repo import ArtworkRepository

__all__ = [
    "BaseRepository",
    "DocumentStore",
    "SupabaseDocumentStore",
    "ProfileRepository",
    "ArtworkRepository",
]
