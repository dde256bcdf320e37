# storefront/repositories/product_repo.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from storefront.models.product import ProductRecord


class ProductRepository:
    """
    Data access layer for the product catalog.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: str) -> ProductRecord | None:
        return session.get(ProductRecord, product_id)

    def list_all(self, session: Session) -> list[ProductRecord]:
        stmt = select(ProductRecord).order_by(ProductRecord.created_at)
        return session.exec(stmt).all()

    def upsert(self, session: Session, product: ProductRecord) -> ProductRecord:
        """
        Insert the product, or overwrite every field of an existing row
        with the same id (keeping its created_at).
        """
        existing = self.get_by_id(session, product.id)
        if existing is not None:
            data = product.model_dump(exclude={"id", "created_at", "updated_at"})
            for field, value in data.items():
                setattr(existing, field, value)
            existing.updated_at = datetime.now(timezone.utc)
            product = existing
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product_id: str) -> bool:
        product = self.get_by_id(session, product_id)
        if product is None:
            return False
        session.delete(product)
        session.commit()
        return True
