"""
Session state and identity transitions.

``SessionStore`` is the single in-memory view of the current session:
identity, loaded profile, cart lines and favourites. ``SessionManager``
subscribes to the identity provider and turns every identity change into
exactly one transition, dispatched to registered listeners (cart engine,
favourites engine).

Transition rules:
    Anonymous/Guest -> Authenticated   load profile, on_authenticated
    Authenticated -> Anonymous/Guest   on_signed_out
    Anonymous -> Guest                 on_guest
    Guest -> Anonymous                 state reset only
    Authenticated(A) -> Authenticated(B)  sign-out of A, then sign-in of B
    X -> X                              ignored

Every transition advances ``SessionStore.epoch``. Async operations record
the epoch they started under and skip their in-memory commit when it has
moved on, so a response for the previous identity never lands in the new
session.

A sign-in also clears ``SessionStore.cart_loaded``; the cart engine sets it
again once the account cart has been read, and refuses edits until then.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from storefront.errors import NotAuthenticated
from storefront.logging import get_logger, sanitize_id_for_logging

from .identity import Identity
from .provider import IdentityProvider

if TYPE_CHECKING:
    from storefront.cart.models import CartLine
    from storefront.services.domains.profiles import ProfileService
    from storefront.services.models import FavoriteEntry, UserProfile

logger = get_logger(__name__)


class SessionStore:
    """Mutable in-memory session state."""

    def __init__(self) -> None:
        self.identity: Identity = Identity.anonymous()
        self.epoch: int = 0
        self.profile: Optional["UserProfile"] = None
        self.cart: list["CartLine"] = []
        # False from sign-in until the account cart has been read
        self.cart_loaded: bool = True
        self.favorites: list["FavoriteEntry"] = []

    def advance(self, identity: Identity) -> int:
        """Switch identity and start a new epoch."""
        self.identity = identity
        self.epoch += 1
        return self.epoch

    def is_current(self, epoch: int) -> bool:
        return self.epoch == epoch

    def require_user_id(self, message: str | None = None) -> str:
        """Return the signed-in user id or raise NotAuthenticated."""
        if not self.identity.is_authenticated:
            raise NotAuthenticated(message)
        return self.identity.user_id


class SessionListener:
    """Base for components reacting to identity transitions. Hooks are no-ops."""

    async def on_authenticated(self, identity: Identity, profile: Optional["UserProfile"]) -> None:
        pass

    async def on_signed_out(self, previous: Identity) -> None:
        pass

    async def on_guest(self, identity: Identity) -> None:
        pass


@dataclass
class TransitionOutcome:
    """Result of handling one identity change."""

    previous: Identity
    current: Identity
    changed: bool = True
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SessionManager:
    """
    Drives identity transitions for one session.

    Usage:
        manager = SessionManager(provider, profile_service, session, [cart, favorites])
        manager.start()
        await manager.sign_in("a@b.c", "secret")
    """

    def __init__(
        self,
        provider: IdentityProvider,
        profiles: "ProfileService",
        session: SessionStore,
        listeners: Iterable[SessionListener] = (),
    ) -> None:
        self.provider = provider
        self.profiles = profiles
        self.session = session
        self.listeners: list[SessionListener] = list(listeners)
        self.last_outcome: TransitionOutcome | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> None:
        """Subscribe to the identity provider."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.subscribe(self.handle_identity_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def current_identity(self) -> Identity:
        return self.session.identity

    # ==================== PROVIDER CALLS ====================

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self.provider.sign_in(email, password)

    async def sign_up(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        is_artist: bool = False,
    ) -> Identity:
        """Create an account, then fill in the profile fields the form collected."""
        identity = await self.provider.sign_up(email, password)
        profile = await self.profiles.complete_sign_up(
            identity.user_id, first_name, last_name, is_artist
        )
        if self.session.identity == identity:
            self.session.profile = profile
        return identity

    async def sign_out(self) -> None:
        await self.provider.sign_out()

    async def continue_as_guest(self) -> TransitionOutcome:
        """Start a guest session without talking to the provider."""
        return await self.handle_identity_change(Identity.guest())

    # ==================== TRANSITIONS ====================

    async def handle_identity_change(self, identity: Identity | None) -> TransitionOutcome:
        """
        Apply one identity change from the provider.

        ``None`` means nobody is signed in. Listener failures are logged and
        collected in the outcome; they never abort the transition.
        """
        current = identity or Identity.anonymous()
        previous = self.session.identity

        if current == previous:
            logger.debug("Ignoring duplicate identity event (%s)", current.kind.value)
            outcome = TransitionOutcome(previous, current, changed=False)
            self.last_outcome = outcome
            return outcome

        outcome = TransitionOutcome(previous, current)

        if previous.is_authenticated:
            await self._sign_out_transition(previous, current, outcome)
            if current.is_authenticated:
                # A -> B: finish A's sign-out under its own epoch first
                await self._sign_in_transition(current, outcome)
        elif current.is_authenticated:
            await self._sign_in_transition(current, outcome)
        elif current.is_guest:
            self.session.advance(current)
            self._reset_state()
            await self._dispatch("on_guest", outcome, current)
        else:
            self.session.advance(current)
            self._reset_state()

        logger.info(
            "Session transition %s -> %s (%d errors)",
            previous.kind.value,
            current.kind.value,
            len(outcome.errors),
        )
        self.last_outcome = outcome
        return outcome

    async def _sign_out_transition(
        self, previous: Identity, current: Identity, outcome: TransitionOutcome
    ) -> None:
        target = Identity.anonymous() if current.is_authenticated else current
        self.session.advance(target)
        self._reset_state()
        await self._dispatch("on_signed_out", outcome, previous)

    async def _sign_in_transition(self, identity: Identity, outcome: TransitionOutcome) -> None:
        epoch = self.session.advance(identity)
        self._reset_state(cart_loaded=False)

        profile = None
        try:
            profile = await self.profiles.ensure_profile(identity.user_id, identity.email)
        except Exception as e:
            logger.error(
                "Failed to load profile for %s: %s",
                sanitize_id_for_logging(identity.user_id),
                type(e).__name__,
            )
            outcome.errors.append(e)

        if not self.session.is_current(epoch):
            logger.warning("Identity changed while loading profile; dropping stale sign-in")
            return

        self.session.profile = profile
        await self._dispatch("on_authenticated", outcome, identity, profile)

    def _reset_state(self, cart_loaded: bool = True) -> None:
        self.session.profile = None
        self.session.cart = []
        self.session.cart_loaded = cart_loaded
        self.session.favorites = []

    async def _dispatch(self, hook: str, outcome: TransitionOutcome, *args: Any) -> None:
        for listener in self.listeners:
            try:
                await getattr(listener, hook)(*args)
            except Exception as e:
                logger.error(
                    "%s.%s failed: %s",
                    type(listener).__name__,
                    hook,
                    e,
                    exc_info=True,
                )
                outcome.errors.append(e)
