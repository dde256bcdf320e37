# storefront/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storefront.core.config import get_settings
from storefront.core.errors import StorefrontError
from storefront.database import create_db_and_tables, engine

# Import models so SQLModel metadata is populated before create_all()
from storefront.models import cart as _cart_models  # noqa: F401
from storefront.models import order as _order_models  # noqa: F401
from storefront.models import product as _product_models  # noqa: F401

from storefront.repositories.document_store import SqlDocumentStore
from storefront.services.order_service import OrderService
from storefront.services.payment import SimulatedPaymentAuthorizer
from storefront.services.product_service import ProductService
from storefront.services.storefront_session import SessionRegistry

# Routers
from storefront.routers.auth import router as auth_router
from storefront.routers.products import router as products_router
from storefront.routers.cart import router as cart_router
from storefront.routers.orders import router as orders_router
from storefront.routers.admin_products import router as admin_products_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - Cancel in-flight cart loads of every open storefront session.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield
    app.state.sessions.close_all()


async def storefront_error_handler(request: Request, exc: StorefrontError):
    """
    Domain errors carry a shopper-safe message; never leak internals.
    """
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def fallback_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again."},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME or "Pickle Storefront API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Core services, built once per app and handed out through dependencies
    remote_store = SqlDocumentStore(engine)
    app.state.sessions = SessionRegistry(remote_store, settings.GUEST_CART_DIR)
    app.state.product_service = ProductService(remote_store)
    app.state.order_service = OrderService(
        remote_store,
        SimulatedPaymentAuthorizer(settings.PAYMENT_DELAY_SECONDS),
    )

    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(Exception, fallback_handler)

    # --- CORS configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API prefix, e.g. /api
    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(products_router, prefix=settings.API_PREFIX)
    app.include_router(cart_router, prefix=settings.API_PREFIX)
    app.include_router(orders_router, prefix=settings.API_PREFIX)
    app.include_router(admin_products_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "pickle-storefront"}

    return app


app = create_app()
