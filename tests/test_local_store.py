from fakes import line
from storefront.repositories.local_store import GUEST_CART_KEY, JsonFileCartStore


def test_guest_cart_survives_a_new_store_instance(tmp_path):
    path = tmp_path / "device.json"
    JsonFileCartStore(path).save(GUEST_CART_KEY, [line("avakai", "250g", quantity=3)])

    loaded = JsonFileCartStore(path).load(GUEST_CART_KEY)

    assert [(i.product_id, i.size, i.quantity) for i in loaded] == [("avakai", "250g", 3)]
    assert not path.with_suffix(".tmp").exists()


def test_missing_file_loads_nothing(tmp_path):
    assert JsonFileCartStore(tmp_path / "absent.json").load(GUEST_CART_KEY) is None


def test_unreadable_file_is_ignored(tmp_path):
    path = tmp_path / "device.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileCartStore(path)

    assert store.load(GUEST_CART_KEY) is None

    store.save(GUEST_CART_KEY, [line("tomato", "1kg", price=720)])
    assert store.load(GUEST_CART_KEY)[0].product_id == "tomato"


def test_malformed_cart_is_discarded(tmp_path):
    path = tmp_path / "device.json"
    path.write_text('{"guestCart": [{"product_id": "avakai"}]}', encoding="utf-8")

    assert JsonFileCartStore(path).load(GUEST_CART_KEY) is None
