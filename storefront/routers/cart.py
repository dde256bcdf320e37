# storefront/routers/cart.py
from fastapi import APIRouter, Depends

from storefront.dependencies import get_product_service, get_storefront_session
from storefront.schemas.cart import CartItemCreate, CartItemUpdate, CartRead
from storefront.services import pricing
from storefront.services.product_service import ProductService
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(prefix="/cart", tags=["Cart"])


async def _cart_read(session: StorefrontSession) -> CartRead:
    """
    Wait for pending saves, then describe the active cart.
    """
    cart = session.cart
    await cart.flush()
    items = cart.items
    return CartRead(
        identity=cart.owner,
        items=items,
        total_items=cart.total_items,
        total_price=round(cart.total_price, 2),
        pricing=pricing.calculate(items).rounded(),
    )


@router.get("", response_model=CartRead)
async def get_my_cart(
    session: StorefrontSession = Depends(get_storefront_session),
):
    """
    Get the active cart.

    - Guests get the cart saved for their device.
    - Signed-in shoppers get their account cart (the guest cart is
      left untouched, not merged).
    """
    return await _cart_read(session)


@router.post("/items", response_model=CartRead)
async def add_to_cart(
    payload: CartItemCreate,
    session: StorefrontSession = Depends(get_storefront_session),
    products: ProductService = Depends(get_product_service),
):
    """
    Add a product size to the cart.

    Name, unit price and image are copied from the product now and
    stay locked in the cart until checkout.
    """
    item = await products.line_item_for(payload.product_id, payload.size, payload.quantity)
    session.cart.add_to_cart(item)
    return await _cart_read(session)


@router.patch("/items/{product_id}/{size}", response_model=CartRead)
async def update_cart_item(
    product_id: str,
    size: str,
    payload: CartItemUpdate,
    session: StorefrontSession = Depends(get_storefront_session),
):
    """
    Set the quantity of a cart line. Zero or less removes it.
    """
    session.cart.update_quantity(product_id, size, payload.quantity)
    return await _cart_read(session)


@router.delete("/items/{product_id}/{size}", response_model=CartRead)
async def remove_cart_item(
    product_id: str,
    size: str,
    session: StorefrontSession = Depends(get_storefront_session),
):
    """
    Remove a cart line. Removing a line that is not there is not an error.
    """
    session.cart.remove_from_cart(product_id, size)
    return await _cart_read(session)


@router.delete("", response_model=CartRead)
async def clear_cart(
    session: StorefrontSession = Depends(get_storefront_session),
):
    """
    Clear the entire cart.
    """
    session.cart.clear_cart()
    return await _cart_read(session)
