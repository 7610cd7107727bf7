"""Payment gateway.

Only a simulated gateway exists: it waits ``PAYMENT_SIMULATION_DELAY``
seconds and approves the charge. No money moves.
"""

import asyncio
import os
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from storefront.logging import get_logger
from storefront.services.money import format_money, to_price

logger = get_logger(__name__)

PAYMENT_SIMULATION_DELAY = float(os.environ.get("PAYMENT_SIMULATION_DELAY", "2.0"))


@dataclass
class PaymentResult:
    approved: bool
    amount: Decimal
    reference: str = ""


class PaymentGateway(ABC):
    @abstractmethod
    async def charge(self, amount: Decimal, description: str = "") -> PaymentResult:
        ...


class FakePaymentGateway(PaymentGateway):
    """Simulated card payment that always succeeds unless told to decline."""

    def __init__(self, delay: Optional[float] = None, decline: bool = False):
        self.delay = PAYMENT_SIMULATION_DELAY if delay is None else delay
        self.decline = decline

    async def charge(self, amount: Decimal, description: str = "") -> PaymentResult:
        amount = to_price(amount)
        await asyncio.sleep(self.delay)
        if self.decline:
            logger.info("Simulated payment of %s declined", format_money(amount))
            return PaymentResult(approved=False, amount=amount)
        reference = f"sim_{secrets.token_hex(8)}"
        logger.info("Simulated payment of %s approved (%s)", format_money(amount), reference)
        return PaymentResult(approved=True, amount=amount, reference=reference)
