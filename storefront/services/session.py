# storefront/services/session.py
import asyncio
import enum
import logging

from fastapi.concurrency import run_in_threadpool

from storefront.repositories.document_store import RemoteDocumentStore
from storefront.repositories.local_store import GUEST_CART_KEY, LocalCartStore
from storefront.schemas.cart import LineItem
from storefront.services.cart_store import CartStore
from storefront.services.identity import Identity, IdentityProvider

logger = logging.getLogger(__name__)


class LoadState(str, enum.Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


class SessionTransitionHandler:
    """
    Decides which cart is authoritative whenever the identity changes.

    State machine:

        UNLOADED / LOADED(x) --identity change--> LOADING --fetch done--> LOADED(y)

    Every identity change bumps `generation` and starts a fetch for the
    new identity:
      - guest -> device-local store (GUEST_CART_KEY)
      - user  -> remote per-account cart

    A fetch result is applied only if its generation is still the
    current one, so late answers for a superseded identity are dropped
    no matter when they arrive. Applying replaces the cart wholesale;
    the guest cart is never merged into an account cart.

    A failed fetch leaves the cart empty. Saves stay disabled for that
    identity until the next transition so the empty cart cannot
    overwrite the stored one.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        cart: CartStore,
        local_store: LocalCartStore,
        remote_store: RemoteDocumentStore,
    ):
        self.identity = identity
        self.cart = cart
        self.local_store = local_store
        self.remote_store = remote_store

        self.state = LoadState.UNLOADED
        self.generation = 0
        self._load_task: asyncio.Task | None = None
        self._unsubscribe = identity.subscribe(self.on_identity_change)

    @property
    def loaded_identity(self) -> str | None:
        return self.cart.owner if self.state is LoadState.LOADED else None

    def start(self) -> None:
        """
        Initial load for whatever identity is current at startup.
        """
        self.on_identity_change(self.identity.current)

    def close(self) -> None:
        self._unsubscribe()
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()

    def on_identity_change(self, identity: Identity | None) -> None:
        self.generation += 1
        generation = self.generation
        user_id = identity.user_id if identity is not None else None

        if self._load_task is not None and not self._load_task.done():
            logger.info("Cancelling cart load superseded by %s", user_id or "guest")
            self._load_task.cancel()

        self.state = LoadState.LOADING
        self.cart.detach()
        self._load_task = asyncio.get_running_loop().create_task(
            self._load(generation, user_id)
        )

    async def _fetch(self, user_id: str | None) -> list[LineItem]:
        if user_id is None:
            saved = await run_in_threadpool(self.local_store.load, GUEST_CART_KEY)
            return saved or []
        return await self.remote_store.load_cart(user_id)

    async def _load(self, generation: int, user_id: str | None) -> None:
        failed = False
        try:
            items = await self._fetch(user_id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error loading cart for %s", user_id or "guest")
            items, failed = [], True

        if generation != self.generation:
            logger.info(
                "Discarding stale cart load for %s (generation %s, current %s)",
                user_id or "guest",
                generation,
                self.generation,
            )
            return

        self.cart.replace(items, owner=user_id)
        if failed:
            self.cart.detach()
        self.state = LoadState.LOADED
        logger.info("Loaded cart for %s with %d item(s)", user_id or "guest", len(items))

    async def wait_loaded(self) -> None:
        """
        Wait for the load started by the latest identity change.
        """
        while self.state is not LoadState.LOADED:
            task = self._load_task
            if task is None:
                return
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                # Superseded while waiting; loop and wait for the newer load
                if task is self._load_task:
                    raise
