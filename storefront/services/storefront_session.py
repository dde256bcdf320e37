# storefront/services/storefront_session.py
import logging
import uuid
from pathlib import Path
from typing import Callable

from storefront.repositories.document_store import RemoteDocumentStore
from storefront.repositories.local_store import JsonFileCartStore, LocalCartStore
from storefront.services.cart_store import CartStore
from storefront.services.identity import Identity, IdentityProvider
from storefront.services.session import SessionTransitionHandler

logger = logging.getLogger(__name__)


class StorefrontSession:
    """
    Everything one shopper's device needs: its identity, its active cart,
    and the handler that swaps carts when the identity changes.

    Built explicitly and handed to whoever needs it, instead of living in
    module-level globals.
    """

    def __init__(
        self,
        session_id: str,
        local_store: LocalCartStore,
        remote_store: RemoteDocumentStore,
    ):
        self.session_id = session_id
        self.identity = IdentityProvider()
        self.cart = CartStore(self.identity, local_store, remote_store)
        self.transitions = SessionTransitionHandler(
            self.identity, self.cart, local_store, remote_store
        )
        self._started = False

    async def observe(self, identity: Identity | None) -> None:
        """
        Push the identity seen on the current request and wait until the
        cart for it is loaded.
        """
        changed = self.identity.set_identity(identity)
        if not self._started:
            self._started = True
            # First observation: prior identity is unknown, always load
            if not changed:
                self.transitions.start()
        await self.transitions.wait_loaded()

    def close(self) -> None:
        self.transitions.close()


class SessionRegistry:
    """
    In-process map of device session id -> StorefrontSession.

    Guest carts are saved under `guest_cart_dir/<session id>.json`.
    """

    def __init__(
        self,
        remote_store: RemoteDocumentStore,
        guest_cart_dir: str | Path,
        local_store_factory: Callable[[str], LocalCartStore] | None = None,
    ):
        self.remote_store = remote_store
        self.guest_cart_dir = Path(guest_cart_dir)
        self._local_store_factory = local_store_factory or self._json_store
        self._sessions: dict[str, StorefrontSession] = {}

    def _json_store(self, session_id: str) -> LocalCartStore:
        return JsonFileCartStore(self.guest_cart_dir / f"{session_id}.json")

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    @staticmethod
    def is_valid_session_id(session_id: str | None) -> bool:
        if not session_id:
            return False
        try:
            return uuid.UUID(hex=session_id).hex == session_id
        except ValueError:
            return False

    def get_or_create(self, session_id: str) -> StorefrontSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = StorefrontSession(
                session_id,
                self._local_store_factory(session_id),
                self.remote_store,
            )
            self._sessions[session_id] = session
            logger.info("Created storefront session %s", session_id)
        return session

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
