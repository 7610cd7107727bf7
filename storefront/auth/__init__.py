"""Identity and session management."""
from .identity import Identity, IdentityKind
from .provider import IdentityProvider, SupabaseIdentityProvider
from .session import SessionListener, SessionManager, SessionStore, TransitionOutcome

__all__ = [
    "Identity",
    "IdentityKind",
    "IdentityProvider",
    "SupabaseIdentityProvider",
    "SessionListener",
    "SessionManager",
    "SessionStore",
    "TransitionOutcome",
]
