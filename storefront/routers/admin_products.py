# storefront/routers/admin_products.py
import json
import logging

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from pydantic import ValidationError

from storefront.core.auth import AdminPrincipal, require_admin
from storefront.dependencies import get_product_service
from storefront.schemas.product import ImageUploadRead, ProductRead, ProductWrite
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/products", tags=["Admin"])


@router.get("", response_model=list[ProductRead])
async def list_products_admin(
    admin: AdminPrincipal = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """
    List every product (admin only).
    """
    return await service.list_products()


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
async def save_product(
    request: Request,
    admin: AdminPrincipal = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """
    Create or replace a product (admin only).

    A malformed body answers 400 (not 422), matching what the admin
    editor expects.
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be JSON",
        )

    if not isinstance(body, dict) or not body.get("name"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )

    try:
        payload = ProductWrite.model_validate(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.errors(include_url=False, include_context=False),
        )

    logger.info("Admin (%s) saving product %s", admin.email or admin.method, payload.id or payload.name)
    return await service.save_product(payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_product(
    product_id: str,
    admin: AdminPrincipal = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """
    Delete a product (admin only).
    """
    await service.delete_product(product_id)
    return None


@router.post(
    "/images",
    response_model=ImageUploadRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a product image",
)
async def upload_product_image(
    file: UploadFile = File(...),
    admin: AdminPrincipal = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
):
    """
    Upload an image to Supabase Storage and return its public URL.

    - Accepts JPEG, PNG, WEBP up to 5MB.
    - Use the URL as `image` / `images` when saving the product.
    """
    if not file.content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing content-type for uploaded file",
        )

    file_bytes = await file.read()
    url = await service.upload_image(file.filename or "image", file.content_type, file_bytes)
    return ImageUploadRead(url=url)
