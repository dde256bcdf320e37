# storefront/repositories/document_store.py
from typing import Any, Callable, Protocol, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.engine import Engine
from sqlmodel import Session

from storefront.models.order import OrderRecord
from storefront.models.product import ProductRecord
from storefront.repositories.cart_repo import CartRepository
from storefront.repositories.order_repo import OrderRepository
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.cart import LineItem
from storefront.schemas.order import OrderRead

T = TypeVar("T")


class RemoteDocumentStore(Protocol):
    """
    Per-account durable storage used by the cart/checkout core.

    Every call may raise; callers decide whether a failure is logged
    (cart writes) or surfaced (checkout).
    """

    async def save_cart(self, user_id: str, items: list[LineItem]) -> None: ...

    async def load_cart(self, user_id: str) -> list[LineItem]: ...

    async def save_order(self, order: OrderRead) -> None: ...

    async def get_orders_by_user(self, user_id: str) -> list[OrderRead]: ...

    async def get_products(self) -> list[ProductRecord]: ...

    async def get_product(self, product_id: str) -> ProductRecord | None: ...

    async def save_product(self, product: ProductRecord) -> ProductRecord: ...

    async def delete_product(self, product_id: str) -> bool: ...


def _order_to_record(order: OrderRead) -> OrderRecord:
    data = order.model_dump(mode="json")
    data["created_at"] = order.created_at
    return OrderRecord(**data)


def _record_to_order(record: OrderRecord) -> OrderRead:
    return OrderRead.model_validate(record.model_dump())


class SqlDocumentStore:
    """
    RemoteDocumentStore backed by the Supabase Postgres database.

    The repositories are synchronous SQLModel code, so each call opens
    its own Session and runs in the threadpool to keep the event loop free.
    """

    def __init__(
        self,
        engine: Engine,
        cart_repo: CartRepository | None = None,
        order_repo: OrderRepository | None = None,
        product_repo: ProductRepository | None = None,
    ):
        self.engine = engine
        self.cart_repo = cart_repo or CartRepository()
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()

    def _in_session(self, fn: Callable[..., T], *args: Any) -> T:
        with Session(self.engine) as session:
            return fn(session, *args)

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        return await run_in_threadpool(self._in_session, fn, *args)

    # ---- Carts ----

    async def save_cart(self, user_id: str, items: list[LineItem]) -> None:
        payload = [item.model_dump(mode="json") for item in items]
        await self._run(self.cart_repo.replace_items, user_id, payload)

    async def load_cart(self, user_id: str) -> list[LineItem]:
        raw = await self._run(self.cart_repo.list_items, user_id)
        return [LineItem.model_validate(it) for it in raw]

    # ---- Orders ----

    async def save_order(self, order: OrderRead) -> None:
        await self._run(self.order_repo.create, _order_to_record(order))

    async def get_orders_by_user(self, user_id: str) -> list[OrderRead]:
        records = await self._run(self.order_repo.list_for_user, user_id)
        return [_record_to_order(r) for r in records]

    # ---- Products ----

    async def get_products(self) -> list[ProductRecord]:
        return await self._run(self.product_repo.list_all)

    async def get_product(self, product_id: str) -> ProductRecord | None:
        return await self._run(self.product_repo.get_by_id, product_id)

    async def save_product(self, product: ProductRecord) -> ProductRecord:
        return await self._run(self.product_repo.upsert, product)

    async def delete_product(self, product_id: str) -> bool:
        return await self._run(self.product_repo.delete, product_id)
