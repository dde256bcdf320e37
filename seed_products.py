# seed_products.py

import asyncio
import json
from pathlib import Path

from storefront.database import create_db_and_tables, engine
from storefront.repositories.document_store import SqlDocumentStore
from storefront.schemas.product import ProductWrite
from storefront.services.product_service import ProductService

CATALOG = Path(__file__).parent / "storefront" / "data" / "products.json"


async def seed(path: Path = CATALOG) -> int:
    """
    Load the bundled catalog into the products table.
    Existing products with the same id are overwritten.
    """
    create_db_and_tables()
    service = ProductService(SqlDocumentStore(engine))

    raw = json.loads(path.read_text(encoding="utf-8"))
    for entry in raw:
        product = await service.save_product(ProductWrite.model_validate(entry))
        print(f"Seeded {product.id} ({product.name})")
    return len(raw)


def main():
    count = asyncio.run(seed())
    print(f"Done: {count} product(s).")


if __name__ == "__main__":
    main()
