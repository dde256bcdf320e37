# storefront/services/cart_store.py
import asyncio
import logging

from fastapi.concurrency import run_in_threadpool

from storefront.repositories.document_store import RemoteDocumentStore
from storefront.repositories.local_store import GUEST_CART_KEY, LocalCartStore
from storefront.schemas.cart import LineItem
from storefront.services.identity import IdentityProvider

logger = logging.getLogger(__name__)


class CartStore:
    """
    The active cart of one storefront session.

    Responsibilities:
      - in-memory line items, unique by (product_id, size)
      - add / remove / set-quantity / clear
      - persist the full cart after every mutation to the store that
        belongs to its owner: the device-local store for the guest cart,
        the remote document store for an account cart

    Writes are only issued while the loaded cart belongs to the current
    identity. The owner is captured when the write is scheduled, so a
    snapshot can never land under another identity's key. Writes are
    applied one at a time, in mutation order.

    Mutations must happen on the running event loop; persistence runs in
    background tasks (see flush()).
    """

    def __init__(
        self,
        identity: IdentityProvider,
        local_store: LocalCartStore,
        remote_store: RemoteDocumentStore,
    ):
        self.identity = identity
        self.local_store = local_store
        self.remote_store = remote_store

        self._items: list[LineItem] = []
        self._owner: str | None = None
        self._loaded = False
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    # ---- derived values ----

    @property
    def items(self) -> list[LineItem]:
        return [item.model_copy() for item in self._items]

    @property
    def owner(self) -> str | None:
        """User id the in-memory cart was loaded for (None = guest)."""
        return self._owner

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def total_price(self) -> float:
        return sum((item.price * item.quantity for item in self._items), 0.0)

    def __len__(self) -> int:
        return len(self._items)

    # ---- mutations ----

    def _index_of(self, product_id: str, size: str) -> int | None:
        for idx, item in enumerate(self._items):
            if item.product_id == product_id and item.size == size:
                return idx
        return None

    def add_to_cart(self, item: LineItem) -> None:
        """
        Add a line, or bump the quantity of the line with the same
        (product_id, size).
        """
        idx = self._index_of(item.product_id, item.size)
        if idx is None:
            self._items.append(item.model_copy())
        else:
            existing = self._items[idx]
            self._items[idx] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
        self._persist()

    def remove_from_cart(self, product_id: str, size: str) -> None:
        idx = self._index_of(product_id, size)
        if idx is None:
            return
        del self._items[idx]
        self._persist()

    def update_quantity(self, product_id: str, size: str, quantity: int) -> None:
        """
        Set the absolute quantity of a line; zero or less removes it.
        """
        if quantity <= 0:
            self.remove_from_cart(product_id, size)
            return

        idx = self._index_of(product_id, size)
        if idx is None:
            return
        self._items[idx] = self._items[idx].model_copy(update={"quantity": quantity})
        self._persist()

    def clear_cart(self) -> None:
        self._items = []
        self._persist()

    # ---- loading (driven by the session transition handler) ----

    def detach(self) -> None:
        """
        Mark the in-memory cart as not belonging to anyone while a new
        identity's cart is being fetched. Mutations stay visible but are
        not persisted.
        """
        self._loaded = False

    def replace(self, items: list[LineItem], owner: str | None) -> None:
        """
        Swap in a freshly fetched cart for `owner`. Never persisted.
        """
        self._items = [item.model_copy() for item in items]
        self._owner = owner
        self._loaded = True

    # ---- persistence ----

    def can_persist(self) -> bool:
        return self._loaded and self._owner == self.identity.user_id

    def _persist(self) -> None:
        if not self.can_persist():
            logger.debug(
                "Skipping cart save (loaded=%s owner=%s current=%s)",
                self._loaded,
                self._owner,
                self.identity.user_id,
            )
            return

        snapshot = self.items
        task = asyncio.get_running_loop().create_task(
            self._write(self._owner, snapshot)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, owner: str | None, snapshot: list[LineItem]) -> None:
        async with self._write_lock:
            try:
                if owner is None:
                    await run_in_threadpool(
                        self.local_store.save, GUEST_CART_KEY, snapshot
                    )
                else:
                    await self.remote_store.save_cart(owner, snapshot)
            except Exception:
                # The in-memory cart stays as the shopper left it.
                logger.exception("Error saving cart for %s", owner or "guest")

    async def flush(self) -> None:
        """
        Wait until every scheduled cart write has finished.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
