# storefront/routers/orders.py
from fastapi import APIRouter, Depends, status

from storefront.core.auth import require_identity
from storefront.dependencies import get_order_service, get_storefront_session
from storefront.schemas.order import CheckoutRequest, CheckoutResult, OrderRead
from storefront.services.identity import Identity
from storefront.services.order_service import OrderService
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(tags=["Orders"])


@router.post(
    "/checkout",
    response_model=CheckoutResult,
    status_code=status.HTTP_201_CREATED,
)
async def checkout(
    payload: CheckoutRequest,
    session: StorefrontSession = Depends(get_storefront_session),
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order from the active cart.

    Auth:
      - Signed-in shoppers only (guests get 401).

    The cart is cleared only after the order has been saved; on any
    failure it is left as it was so the shopper can retry.
    """
    result = await service.place_order(session.cart, session.identity.user_id, payload)
    await session.cart.flush()
    return result


@router.get("/orders/me", response_model=list[OrderRead])
async def list_my_orders(
    identity: Identity = Depends(require_identity),
    service: OrderService = Depends(get_order_service),
):
    """
    List the authenticated shopper's orders, newest first.
    """
    return await service.list_orders(identity.user_id)
