# storefront/repositories/cart_repo.py
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session

from storefront.models.cart import CartRecord


class CartRepository:
    """
    Data access layer for account carts.

    - One document per user; saves replace the whole item list.
    - No FastAPI, no business logic.
    """

    def get(self, session: Session, user_id: str) -> CartRecord | None:
        return session.get(CartRecord, user_id)

    def list_items(self, session: Session, user_id: str) -> list[dict[str, Any]]:
        record = self.get(session, user_id)
        if record is None:
            return []
        return list(record.items or [])

    def replace_items(
        self,
        session: Session,
        user_id: str,
        items: list[dict[str, Any]],
    ) -> CartRecord:
        record = self.get(session, user_id)
        if record is None:
            record = CartRecord(user_id=user_id, items=items)
        else:
            record.items = items
            record.updated_at = datetime.now(timezone.utc)
        session.add(record)
        session.commit()
        session.refresh(record)
        return record
