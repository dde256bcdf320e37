# storefront/services/product_service.py
import logging
import re

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from storefront.core.errors import StoreUnavailableError
from storefront.core.storage_utils import generate_object_path, upload_to_storage
from storefront.models.product import ProductRecord
from storefront.repositories.document_store import RemoteDocumentStore
from storefront.schemas.cart import LineItem
from storefront.schemas.product import (
    BuyNowSection,
    DetailsSection,
    DisplayExtras,
    DisplayExtrasIn,
    FreshnessSection,
    MainCategory,
    ProductRead,
    ProductSize,
    ProductWrite,
)

logger = logging.getLogger(__name__)


# --- Image config ---

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB per image

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

DEFAULT_PRODUCT_IMAGE = "/PNG_LOGO.png"

SNACK_CATEGORIES = {"Murukku", "Mixture", "Chegodilu", "Chakli"}

# --- Display extras fallbacks ---

DEFAULT_FRESHNESS_TITLE = "Naturally Preserved"
DEFAULT_FRESHNESS_DESCRIPTION = "Preserved with traditional methods"
DEFAULT_BUY_NOW_PRICE = "₹220"
DEFAULT_BUY_NOW_UNIT = "per 250g"
DEFAULT_PROCESSING_PARAMS = ["Sun Cured", "Stone Ground", "Oil Preserved"]
DEFAULT_DELIVERY_PROMISE = "Carefully packed and shipped across India."
DEFAULT_RETURN_POLICY = "Authentic taste guaranteed."


def main_category(category: str) -> MainCategory:
    """
    Group a fine-grained category into a storefront shelf.
    """
    lowered = category.lower()
    if "pickle" in lowered:
        return "Pickles"
    if "podi" in lowered:
        return "Podis"
    if category in SNACK_CATEGORIES:
        return "Snacks"
    return "Pickles"


def resolve_extras(
    raw: DisplayExtrasIn,
    *,
    name: str,
    long_description: str,
    sizes: list[ProductSize],
) -> DisplayExtras:
    """
    Fill every optional display section once, so nothing downstream has
    to know the fallbacks.
    """
    details = raw.details
    freshness = raw.freshness
    buy_now = raw.buy_now
    first_size = sizes[0] if sizes else None

    return DisplayExtras(
        stats=list(raw.stats or []),
        details=DetailsSection(
            title=(details and details.title) or "Heritage in a Jar",
            description=(details and details.description) or long_description,
            image_alt=(details and details.image_alt) or name,
        ),
        freshness=FreshnessSection(
            title=(freshness and freshness.title) or DEFAULT_FRESHNESS_TITLE,
            description=(freshness and freshness.description)
            or DEFAULT_FRESHNESS_DESCRIPTION,
        ),
        buy_now=BuyNowSection(
            price=(buy_now and buy_now.price)
            or (f"₹{first_size.price:g}" if first_size else DEFAULT_BUY_NOW_PRICE),
            unit=(buy_now and buy_now.unit)
            or (f"per {first_size.label}" if first_size else DEFAULT_BUY_NOW_UNIT),
            processing_params=list(
                (buy_now and buy_now.processing_params) or DEFAULT_PROCESSING_PARAMS
            ),
            delivery_promise=(buy_now and buy_now.delivery_promise)
            or DEFAULT_DELIVERY_PROMISE,
            return_policy=(buy_now and buy_now.return_policy) or DEFAULT_RETURN_POLICY,
        ),
    )


def to_read(record: ProductRecord) -> ProductRead:
    sizes = [ProductSize.model_validate(s) for s in record.sizes or []]
    raw_extras = DisplayExtrasIn.model_validate(record.extras or {})
    image = record.image or DEFAULT_PRODUCT_IMAGE
    return ProductRead(
        id=record.id,
        name=record.name,
        sub_name=record.sub_name or "",
        description=record.description or "",
        long_description=record.long_description or "",
        image=image,
        images=list(record.images or []) or [image],
        sizes=sizes,
        in_stock=record.in_stock,
        category=record.category,
        main_category=main_category(record.category),
        spice_level=record.spice_level,
        features=list(record.features or []),
        ingredients=list(record.ingredients or []),
        extras=resolve_extras(
            raw_extras,
            name=record.name,
            long_description=record.long_description or "",
            sizes=sizes,
        ),
    )


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - read products with display extras resolved
      - turn a (product, size) choice into a price-locked LineItem
      - admin create/replace/delete and image upload
    """

    def __init__(self, remote_store: RemoteDocumentStore):
        self.remote_store = remote_store

    # ----- Helpers -----

    @staticmethod
    def _slugify(raw: str) -> str:
        """
        Basic slugification:
          - lowercase
          - non-alphanumeric -> '-'
          - collapse multiple '-'
          - strip leading/trailing '-'
        """
        value = raw.strip().lower()
        value = re.sub(r"[^a-z0-9]+", "-", value)
        value = re.sub(r"-+", "-", value)
        value = value.strip("-")
        return value or "product"

    @staticmethod
    def _validate_and_get_ext(content_type: str, file_bytes: bytes) -> str:
        if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Unsupported image type. Allowed: JPEG, PNG, WEBP.",
            )

        if len(file_bytes) > MAX_IMAGE_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Image too large (max 5MB).",
            )

        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]

    # ----- Catalog -----

    async def list_products(self, category: MainCategory | None = None) -> list[ProductRead]:
        try:
            records = await self.remote_store.get_products()
        except Exception as exc:
            logger.exception("Error fetching products")
            raise StoreUnavailableError() from exc

        products = [to_read(r) for r in records]
        if category is not None:
            products = [p for p in products if p.main_category == category]
        return products

    async def get_product(self, product_id: str) -> ProductRead:
        try:
            record = await self.remote_store.get_product(product_id)
        except Exception as exc:
            logger.exception("Error fetching product %s", product_id)
            raise StoreUnavailableError() from exc

        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return to_read(record)

    async def line_item_for(self, product_id: str, size: str, quantity: int) -> LineItem:
        """
        Build a cart line from the product's current size price.

        The price is copied here and stays locked in the cart.
        """
        product = await self.get_product(product_id)
        if not product.in_stock:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Product is out of stock",
            )

        variant = product.size(size)
        if variant is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Size '{size}' not available for this product",
            )

        return LineItem(
            product_id=product.id,
            name=product.name,
            price=variant.price,
            quantity=quantity,
            size=variant.label,
            image=product.image,
        )

    # ----- Admin -----

    async def save_product(self, payload: ProductWrite) -> ProductRead:
        """
        Create or replace a product.

        - If id is omitted => slugify the name.
        - Image defaults to the brand logo; the gallery defaults to [image].
        """
        product_id = payload.id or self._slugify(payload.name)
        image = payload.image or DEFAULT_PRODUCT_IMAGE

        record = ProductRecord(
            id=product_id,
            name=payload.name,
            sub_name=payload.sub_name,
            description=payload.description,
            long_description=payload.long_description,
            image=image,
            images=payload.images or [image],
            sizes=[s.model_dump() for s in payload.sizes],
            in_stock=payload.in_stock,
            category=payload.category,
            spice_level=payload.spice_level,
            features=[f.strip() for f in payload.features if f.strip()],
            ingredients=[i.strip() for i in payload.ingredients if i.strip()],
            extras=payload.extras.model_dump(exclude_none=True),
        )
        saved = await self.remote_store.save_product(record)
        logger.info("Saved product %s", saved.id)
        return to_read(saved)

    async def delete_product(self, product_id: str) -> None:
        deleted = await self.remote_store.delete_product(product_id)
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        logger.info("Deleted product %s", product_id)

    async def upload_image(
        self,
        filename: str,
        content_type: str,
        file_bytes: bytes,
    ) -> str:
        """
        Upload a product image to Supabase Storage and return its public URL.
        """
        ext = self._validate_and_get_ext(content_type, file_bytes)
        stem = filename.rsplit(".", 1)[0] if filename else "image"
        path = generate_object_path(f"{stem}.{ext}")
        return await run_in_threadpool(upload_to_storage, path, file_bytes, content_type)
