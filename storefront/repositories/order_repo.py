# storefront/repositories/order_repo.py
from sqlmodel import Session, select

from storefront.models.order import OrderRecord


class OrderRepository:
    """
    Data access layer for orders.

    Orders are insert-only from the storefront's point of view.
    """

    def list_for_user(
        self,
        session: Session,
        user_id: str,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRecord]:
        stmt = (
            select(OrderRecord)
            .where(OrderRecord.user_id == user_id)
            .order_by(OrderRecord.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def get_by_id(self, session: Session, order_id: str) -> OrderRecord | None:
        return session.get(OrderRecord, order_id)

    def create(self, session: Session, order: OrderRecord) -> OrderRecord:
        session.add(order)
        session.commit()
        session.refresh(order)
        return order
