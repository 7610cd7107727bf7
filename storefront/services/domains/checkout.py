"""Checkout Domain Service."""

import secrets

from storefront.auth.session import SessionStore
from storefront.cart.service import CartEngine
from storefront.errors import (
    ERROR_EMPTY_CART,
    ERROR_PAYMENT_FAILED,
    ERROR_PURCHASE_PERSIST,
    ERROR_PURCHASE_SIGN_IN,
    CartPersistFailure,
    CheckoutFailure,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.models import Purchase, ShippingDetails
from storefront.services.payments import PaymentGateway
from storefront.services.repositories import ProfileRepository

logger = get_logger(__name__)


def generate_order_number() -> int:
    return 100000 + secrets.randbelow(900000)


class CheckoutService:
    """Turns the current cart into a recorded purchase."""

    def __init__(
        self,
        session: SessionStore,
        cart: CartEngine,
        profiles: ProfileRepository,
        gateway: PaymentGateway,
    ) -> None:
        self.session = session
        self.cart = cart
        self.profiles = profiles
        self.gateway = gateway

    async def place_order(self, shipping: ShippingDetails) -> Purchase:
        """Charge the cart total and record the purchase.

        The cart is cleared only after the purchase is stored.

        Raises:
            NotAuthenticated: If the session is not signed in.
            CheckoutFailure: Empty cart, declined payment or purchase write failure.
        """
        user_id = self.session.require_user_id(ERROR_PURCHASE_SIGN_IN)
        lines = self.cart.lines
        if not lines:
            raise CheckoutFailure(ERROR_EMPTY_CART)

        total = self.cart.calculate_total()
        try:
            payment = await self.gateway.charge(total, description=f"{len(lines)} artworks")
        except Exception as e:
            logger.error(
                "Payment gateway error for %s: %s", sanitize_id_for_logging(user_id), type(e).__name__
            )
            raise CheckoutFailure(ERROR_PAYMENT_FAILED) from e
        if not payment.approved:
            raise CheckoutFailure(ERROR_PAYMENT_FAILED)

        purchase = Purchase(
            order_number=generate_order_number(),
            items=[line.to_dict() for line in lines],
            total=total,
            shipping=shipping,
        )
        try:
            await self.profiles.append_purchase(user_id, purchase)
        except Exception as e:
            logger.error(
                "Payment %s taken but purchase not stored for %s: %s",
                payment.reference,
                sanitize_id_for_logging(user_id),
                type(e).__name__,
            )
            raise CheckoutFailure(ERROR_PURCHASE_PERSIST) from e

        try:
            await self.cart.clear_cart()
        except CartPersistFailure:
            logger.error(
                "Order %d stored but cart not cleared for %s",
                purchase.order_number,
                sanitize_id_for_logging(user_id),
                exc_info=True,
            )

        logger.info(
            "Order %d placed by %s", purchase.order_number, sanitize_id_for_logging(user_id)
        )
        return purchase
