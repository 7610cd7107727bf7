"""Identity provider adapters.

The core treats the provider as an opaque event source plus sign-in and
sign-out calls. Credential checks, tokens and refresh are the provider's
business.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from supabase._async.client import AsyncClient

from storefront.errors import NotAuthenticated
from storefront.logging import get_logger, mask_email_for_logging, sanitize_id_for_logging

from .identity import Identity

logger = get_logger(__name__)

IdentityListener = Callable[[Identity | None], Awaitable[object]]

ERROR_INVALID_CREDENTIALS = "Invalid email or password"
ERROR_SIGN_UP_FAILED = "Could not create account"


class IdentityProvider(ABC):
    """Emits ``Identity | None`` to subscribers on every auth change."""

    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, identity: Identity | None) -> None:
        for listener in list(self._listeners):
            await listener(identity)

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...


class SupabaseIdentityProvider(IdentityProvider):
    """Supabase Auth (GoTrue) email/password provider."""

    def __init__(self, client: AsyncClient) -> None:
        super().__init__()
        self.client = client

    async def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            logger.warning("Sign-in failed for %s: %s", mask_email_for_logging(email), type(e).__name__)
            raise NotAuthenticated(ERROR_INVALID_CREDENTIALS) from e

        if response.user is None:
            raise NotAuthenticated(ERROR_INVALID_CREDENTIALS)

        identity = Identity.authenticated(response.user.id, response.user.email)
        logger.info("Signed in user %s", sanitize_id_for_logging(identity.user_id))
        await self._emit(identity)
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        try:
            response = await self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.warning("Sign-up failed for %s: %s", mask_email_for_logging(email), type(e).__name__)
            raise NotAuthenticated(ERROR_SIGN_UP_FAILED) from e

        if response.user is None:
            raise NotAuthenticated(ERROR_SIGN_UP_FAILED)

        identity = Identity.authenticated(response.user.id, response.user.email)
        logger.info("Signed up user %s", sanitize_id_for_logging(identity.user_id))
        await self._emit(identity)
        return identity

    async def sign_out(self) -> None:
        await self.client.auth.sign_out()
        await self._emit(None)
