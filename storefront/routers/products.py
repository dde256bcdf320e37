# storefront/routers/products.py
from fastapi import APIRouter, Depends

from storefront.dependencies import get_product_service
from storefront.schemas.product import MainCategory, ProductRead
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductRead])
async def list_products(
    category: MainCategory | None = None,
    service: ProductService = Depends(get_product_service),
):
    """
    List products.

    - Public endpoint.
    - `category` filters by shelf: Pickles, Podis or Snacks.
    """
    return await service.list_products(category)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    """
    Get a single product by id.

    - Public endpoint.
    """
    return await service.get_product(product_id)
