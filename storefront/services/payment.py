# storefront/services/payment.py
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentAuthorization:
    approved: bool
    reference: str | None = None
    reason: str | None = None


class PaymentAuthorizer(Protocol):
    """
    Gateway seam used by checkout. A real gateway client implements the
    same call without any change to the order flow.
    """

    async def authorize(
        self,
        method: str,
        details: dict[str, str],
        amount: float,
    ) -> PaymentAuthorization: ...


class SimulatedPaymentAuthorizer:
    """
    Stand-in gateway: waits `delay_seconds` and approves every payment.

    Cash on delivery gets no reference since nothing is collected up front.
    """

    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds

    async def authorize(
        self,
        method: str,
        details: dict[str, str],
        amount: float,
    ) -> PaymentAuthorization:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if method == "cod":
            return PaymentAuthorization(approved=True)

        reference = f"SIM-{uuid.uuid4().hex[:12].upper()}"
        logger.info("Simulated %s payment of %.2f approved (%s)", method, amount, reference)
        return PaymentAuthorization(approved=True, reference=reference)
