# storefront/services/order_service.py
import logging
import secrets
import time
from datetime import datetime, timezone

from storefront.core.errors import (
    AuthenticationRequiredError,
    EmptyCartError,
    OrderPersistenceError,
    PaymentDeclinedError,
    StoreUnavailableError,
)
from storefront.repositories.document_store import RemoteDocumentStore
from storefront.schemas.order import CheckoutRequest, CheckoutResult, OrderRead
from storefront.services import pricing
from storefront.services.cart_store import CartStore
from storefront.services.payment import PaymentAuthorizer

logger = logging.getLogger(__name__)


def generate_order_id() -> str:
    """
    Millisecond timestamp plus a random suffix, e.g. 'ORD1718000000000a1b2c3'.
    """
    return f"ORD{int(time.time() * 1000)}{secrets.token_hex(3)}"


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - turn the active cart plus a validated checkout form into an Order
      - authorize payment through the pluggable PaymentAuthorizer
      - persist the order, then clear the cart (never the other way round)
      - list a shopper's order history
    """

    def __init__(
        self,
        remote_store: RemoteDocumentStore,
        payment_authorizer: PaymentAuthorizer,
    ):
        self.remote_store = remote_store
        self.payment_authorizer = payment_authorizer

    async def place_order(
        self,
        cart: CartStore,
        user_id: str | None,
        payload: CheckoutRequest,
    ) -> CheckoutResult:
        """
        Convert the cart into an Order.

        Steps:
          1. Require a signed-in user and a non-empty cart.
          2. Price the cart.
          3. Authorize payment; a decline leaves the cart untouched.
          4. Snapshot items and amounts into a new Order ('processing').
          5. Persist the Order.
          6. Only after 5 succeeds: clear the account cart. If the session
             switched identity meanwhile, the active cart belongs to
             someone else and the stored account cart is emptied instead.

        The address/payment payload is already validated by pydantic.
        """
        if user_id is None or cart.owner != user_id:
            raise AuthenticationRequiredError()

        items = cart.items
        if not items:
            raise EmptyCartError()

        breakdown = pricing.calculate(items)

        authorization = await self.payment_authorizer.authorize(
            payload.payment.method,
            payload.payment.masked(),
            breakdown.total,
        )
        if not authorization.approved:
            logger.info(
                "Payment declined for %s (%s)", user_id, authorization.reason or "no reason"
            )
            raise PaymentDeclinedError()

        order = OrderRead(
            order_id=generate_order_id(),
            user_id=user_id,
            items=items,
            subtotal=breakdown.subtotal,
            tax=breakdown.tax,
            shipping=breakdown.shipping,
            total=breakdown.total,
            status="processing",
            address=payload.address,
            payment_method=payload.payment.method,
            payment_reference=authorization.reference,
            created_at=datetime.now(timezone.utc),
        )

        try:
            await self.remote_store.save_order(order)
        except Exception as exc:
            logger.exception("Error saving order %s for %s", order.order_id, user_id)
            raise OrderPersistenceError() from exc

        await self._clear_account_cart(cart, user_id)
        logger.info(
            "Order %s placed by %s: %d line(s), total %.2f",
            order.order_id,
            user_id,
            len(order.items),
            order.total,
        )
        return CheckoutResult(order_id=order.order_id, total=round(order.total, 2))

    async def _clear_account_cart(self, cart: CartStore, user_id: str) -> None:
        if cart.owner == user_id and cart.can_persist():
            cart.clear_cart()
            return

        logger.info("Cart for %s is no longer active; clearing the stored copy", user_id)
        try:
            await self.remote_store.save_cart(user_id, [])
        except Exception:
            # Order is already saved
            logger.exception("Error clearing cart for %s after checkout", user_id)

    async def list_orders(self, user_id: str) -> list[OrderRead]:
        """
        Order history for a user, newest first.
        """
        try:
            return await self.remote_store.get_orders_by_user(user_id)
        except Exception as exc:
            logger.exception("Error fetching orders for %s", user_id)
            raise StoreUnavailableError() from exc
