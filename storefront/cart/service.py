"""Cart engine: one cart API for guest and authenticated sessions."""
from decimal import Decimal
from typing import Any, Optional

from storefront.auth.identity import Identity
from storefront.auth.session import SessionListener, SessionStore
from storefront.errors import ERROR_CART_LOADING, CartMergeFailure, CartPersistFailure, NotAuthenticated
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import UserProfile
from storefront.services.sanitize import coerce_int, sanitize_artwork_snapshot

from .merge import MergePolicy, get_merge_policy, merge_carts
from .models import CartLine, calculate_total
from .storage import CartStorage, decode_lines

logger = get_logger(__name__)


class CartEngine(SessionListener):
    """
    Manages the current session's cart.

    Features:
    - Guest carts persist to the device-local cache
    - Authenticated carts persist to the profile document
    - Guest cart merges into the account cart on sign-in
    - Every write persists first and commits to memory only on success
    """

    def __init__(
        self,
        session: SessionStore,
        storage: CartStorage,
        merge_policy: Optional[MergePolicy] = None,
    ):
        self.session = session
        self.storage = storage
        self.merge_policy = merge_policy or get_merge_policy()
        # Epoch whose account cart could not be read during sign-in
        self._load_failed_epoch: Optional[int] = None

    @property
    def lines(self) -> list[CartLine]:
        return list(self.session.cart)

    def _find(self, artwork_id: str) -> Optional[CartLine]:
        return next((line for line in self.session.cart if line.artwork_id == artwork_id), None)

    async def _persist(self, identity: Identity, lines: list[CartLine]) -> None:
        if identity.is_authenticated:
            await self.storage.save_remote_cart(identity.user_id, lines)
        else:
            self.storage.save_guest_cart(lines)

    async def _ensure_loaded(self) -> None:
        """
        Refuse to edit an account cart that has not been read yet.

        While sign-in is still loading the cart, edits fail with
        CartPersistFailure. If the load already failed, it is retried here.
        """
        if self.session.cart_loaded or not self.session.identity.is_authenticated:
            return
        epoch = self.session.epoch
        if self._load_failed_epoch != epoch:
            raise CartPersistFailure(ERROR_CART_LOADING)

        user_id = self.session.identity.user_id
        try:
            lines = await self.storage.load_remote_cart(user_id)
        except Exception as e:
            logger.error(
                "Cart reload failed for %s: %s", sanitize_id_for_logging(user_id), type(e).__name__
            )
            raise CartPersistFailure(ERROR_CART_LOADING) from e
        if not self.session.is_current(epoch):
            raise CartPersistFailure(ERROR_CART_LOADING)
        self.session.cart = lines
        self.session.cart_loaded = True
        self._load_failed_epoch = None

    async def _apply(self, lines: list[CartLine], action: str) -> list[CartLine]:
        """Persist the new line list, then commit it if the session is unchanged."""
        if not self.session.cart_loaded:
            raise CartPersistFailure(ERROR_CART_LOADING)
        identity = self.session.identity
        epoch = self.session.epoch
        try:
            await self._persist(identity, lines)
        except Exception as e:
            logger.error("Cart %s failed to persist: %s", action, type(e).__name__)
            raise CartPersistFailure() from e

        if not self.session.is_current(epoch):
            logger.warning("Session changed during cart %s; result not applied", action)
            return self.lines

        self.session.cart = lines
        return self.lines

    # ==================== OPERATIONS ====================

    async def add_to_cart(self, artwork: Any, price_override: Any = None) -> list[CartLine]:
        """
        Add one unit of an artwork; an existing line gets its quantity bumped.

        ``price_override`` sets the price of a new line, e.g. the listing
        price shown on the page the artwork was added from.
        """
        snapshot = sanitize_artwork_snapshot(artwork)
        await self._ensure_loaded()
        existing = self._find(snapshot.artwork_id)
        if existing:
            lines = [
                line.with_quantity(line.quantity + 1) if line.artwork_id == snapshot.artwork_id else line
                for line in self.session.cart
            ]
        else:
            lines = [*self.session.cart, CartLine.from_snapshot(snapshot, price_override)]
        return await self._apply(lines, "add")

    async def update_quantity(self, artwork_id: str, quantity: Any) -> list[CartLine]:
        """Set a line's quantity. Anything below 1 removes the line."""
        new_quantity = coerce_int(quantity, 0)
        if new_quantity < 1:
            return await self.remove_from_cart(artwork_id)
        await self._ensure_loaded()
        if self._find(artwork_id) is None:
            logger.debug("update_quantity: %s not in cart", sanitize_id_for_logging(artwork_id))
            return self.lines
        lines = [
            line.with_quantity(new_quantity) if line.artwork_id == artwork_id else line
            for line in self.session.cart
        ]
        return await self._apply(lines, "update")

    async def remove_from_cart(self, artwork_id: str) -> list[CartLine]:
        await self._ensure_loaded()
        lines = [line for line in self.session.cart if line.artwork_id != artwork_id]
        return await self._apply(lines, "remove")

    async def clear_cart(self) -> list[CartLine]:
        await self._ensure_loaded()
        return await self._apply([], "clear")

    def calculate_total(self) -> Decimal:
        return calculate_total(self.session.cart)

    def item_count(self) -> int:
        return sum(line.quantity for line in self.session.cart)

    def restore_guest_cart(self) -> list[CartLine]:
        """Load the device's guest cart into the session."""
        self.session.cart = self.storage.load_guest_cart()
        return self.lines

    async def merge_guest_cart(self) -> list[CartLine]:
        """
        Merge the device's guest cart into the signed-in user's cart.

        The guest cart is cleared only after the merged cart is saved, so a
        failed merge can be retried without losing items.

        Raises:
            NotAuthenticated: If nobody is signed in.
            CartMergeFailure: If reading or writing the account cart fails.
        """
        identity = self.session.identity
        if not identity.is_authenticated:
            raise NotAuthenticated()

        guest_lines = self.storage.load_guest_cart()
        if not guest_lines:
            return self.lines

        epoch = self.session.epoch
        try:
            remote_lines = await self.storage.load_remote_cart(identity.user_id)
            merged = merge_carts(remote_lines, guest_lines, self.merge_policy)
            await self.storage.save_remote_cart(identity.user_id, merged)
        except Exception as e:
            logger.error(
                "Guest cart merge failed for %s: %s",
                sanitize_id_for_logging(identity.user_id),
                type(e).__name__,
            )
            raise CartMergeFailure() from e

        if not self.session.is_current(epoch):
            logger.warning("Session changed during guest cart merge; result not applied")
            return self.lines

        self.session.cart = merged
        try:
            self.storage.clear_guest_cart()
        except Exception as e:
            # Merge is idempotent, a leftover guest cart is re-merged next time
            logger.warning("Could not clear guest cart after merge: %s", type(e).__name__)

        logger.info(
            "Merged %d guest lines for %s (%s)",
            len(guest_lines),
            sanitize_id_for_logging(identity.user_id),
            self.merge_policy.value,
        )
        return self.lines

    # ==================== SESSION HOOKS ====================

    async def on_authenticated(self, identity: Identity, profile: Optional[UserProfile]) -> None:
        epoch = self.session.epoch
        if profile is not None:
            lines = decode_lines(profile.cart)
        else:
            try:
                lines = await self.storage.load_remote_cart(identity.user_id)
            except Exception:
                self._load_failed_epoch = epoch
                raise
        if not self.session.is_current(epoch):
            return

        self.session.cart = lines
        try:
            await self.merge_guest_cart()
        finally:
            if self.session.is_current(epoch):
                self.session.cart_loaded = True

    async def on_signed_out(self, previous: Identity) -> None:
        self.session.cart = []
        try:
            self.storage.clear_guest_cart()
        except Exception as e:
            logger.warning("Could not clear local cart on sign-out: %s", type(e).__name__)

    async def on_guest(self, identity: Identity) -> None:
        self.restore_guest_cart()
