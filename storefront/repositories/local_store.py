# storefront/repositories/local_store.py
import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from storefront.schemas.cart import LineItem

logger = logging.getLogger(__name__)

# Fixed key the guest cart is saved under in a device's local store
GUEST_CART_KEY = "guestCart"

_items_adapter = TypeAdapter(list[LineItem])


class LocalCartStore(Protocol):
    """
    Device-local key/value storage for the guest cart.
    """

    def save(self, key: str, items: list[LineItem]) -> None: ...

    def load(self, key: str) -> list[LineItem] | None: ...


class InMemoryCartStore:
    """
    Local store that lives only as long as the process.
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    def save(self, key: str, items: list[LineItem]) -> None:
        self._data[key] = _items_adapter.dump_json(items).decode()

    def load(self, key: str) -> list[LineItem] | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return _items_adapter.validate_json(raw)


class JsonFileCartStore:
    """
    Local store persisted as one JSON object per device session:

        {"guestCart": [{"product_id": "avakai", ...}, ...]}

    Writes go to a temp file first and are moved into place, so a crash
    mid-write never leaves a truncated cart behind.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable local cart file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, key: str, items: list[LineItem]) -> None:
        data = self._read_all()
        data[key] = _items_adapter.dump_python(items, mode="json")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def load(self, key: str) -> list[LineItem] | None:
        raw = self._read_all().get(key)
        if raw is None:
            return None
        try:
            return _items_adapter.validate_python(raw)
        except ValidationError:
            logger.warning("Discarding malformed %s in %s", key, self.path)
            return None
