# storefront/dependencies.py
from fastapi import Depends, Request, Response

from storefront.core.auth import get_current_identity
from storefront.core.config import get_settings
from storefront.services.identity import Identity
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.services.storefront_session import SessionRegistry, StorefrontSession


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_product_service(request: Request) -> ProductService:
    return request.app.state.product_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


async def get_storefront_session(
    request: Request,
    response: Response,
    identity: Identity | None = Depends(get_current_identity),
    registry: SessionRegistry = Depends(get_registry),
) -> StorefrontSession:
    """
    Resolve the device session from its cookie (issuing one if needed),
    push the request's identity into it and wait for the matching cart.

    Flow:
      1. Read the session cookie; mint a new id if missing/invalid.
      2. Look up (or create) the StorefrontSession.
      3. observe(identity): guest <-> account switches reload the cart.
    """
    cookie_name = get_settings().SESSION_COOKIE_NAME
    session_id = request.cookies.get(cookie_name)
    if not registry.is_valid_session_id(session_id):
        session_id = registry.new_session_id()
        response.set_cookie(
            cookie_name,
            session_id,
            httponly=True,
            samesite="lax",
            max_age=60 * 60 * 24 * 30,
        )

    session = registry.get_or_create(session_id)
    await session.observe(identity)
    return session
