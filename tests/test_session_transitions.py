import asyncio

from fakes import line
from storefront.repositories.local_store import GUEST_CART_KEY
from storefront.services.identity import Identity
from storefront.services.session import LoadState
from storefront.services.storefront_session import StorefrontSession

U1 = Identity(user_id="u1", email="u1@example.test")
U2 = Identity(user_id="u2", email="u2@example.test")


def keys(items):
    return [(i.product_id, i.size, i.quantity) for i in items]


async def test_login_replaces_guest_cart_and_logout_restores_it(
    local_store, remote_store
):
    local_store.save(GUEST_CART_KEY, [line("avakai", "250g")])
    remote_store.carts["u1"] = [line("gongura", "500g", price=460)]
    session = StorefrontSession("device-1", local_store, remote_store)

    await session.observe(None)
    assert keys(session.cart.items) == [("avakai", "250g", 1)]

    await session.observe(U1)
    assert keys(session.cart.items) == [("gongura", "500g", 1)]
    assert session.cart.owner == "u1"

    await session.observe(None)
    assert keys(session.cart.items) == [("avakai", "250g", 1)]

    # Loading never writes anything back
    await session.cart.flush()
    assert remote_store.cart_writes == []
    session.close()


async def test_guest_session_without_saved_cart_starts_empty(local_store, remote_store):
    session = StorefrontSession("device-1", local_store, remote_store)

    await session.observe(None)

    assert session.cart.items == []
    assert session.transitions.state is LoadState.LOADED
    assert session.transitions.loaded_identity is None
    session.close()


async def test_same_identity_does_not_reload(storefront_session, remote_store):
    await storefront_session.observe(U1)
    generation = storefront_session.transitions.generation
    storefront_session.cart.add_to_cart(line("avakai", "250g"))

    await storefront_session.observe(Identity(user_id="u1", display_name="Ravi"))

    assert storefront_session.transitions.generation == generation
    assert keys(storefront_session.cart.items) == [("avakai", "250g", 1)]


async def test_mutations_while_loading_are_not_persisted(storefront_session, remote_store):
    remote_store.carts["u1"] = [line("tomato", "1kg", price=720)]
    gate = remote_store.hold_load("u1")

    storefront_session.identity.set_identity(U1)
    assert storefront_session.transitions.state is LoadState.LOADING

    storefront_session.cart.add_to_cart(line("avakai", "250g"))
    await storefront_session.cart.flush()
    assert remote_store.cart_writes == []

    gate.set()
    await storefront_session.transitions.wait_loaded()

    # The fetched cart wins over whatever was in memory during the switch
    assert keys(storefront_session.cart.items) == [("tomato", "1kg", 1)]
    assert remote_store.cart_writes == []


async def test_rapid_switches_never_cross_contaminate(local_store, remote_store):
    local_store.save(GUEST_CART_KEY, [line("avakai", "250g")])
    remote_store.carts["u1"] = [line("gongura", "500g", price=460)]
    remote_store.carts["u2"] = [line("tomato", "1kg", price=720, quantity=2)]
    session = StorefrontSession("device-1", local_store, remote_store)
    await session.observe(None)

    # u1's fetch is slow and cannot be aborted
    u1_gate = remote_store.hold_load("u1", uncancellable=True)
    u2_gate = remote_store.hold_load("u2")

    session.identity.set_identity(U1)
    await asyncio.sleep(0)  # let u1's fetch get in flight
    session.cart.add_to_cart(line("podi", "100g", price=150))
    session.identity.set_identity(None)
    session.identity.set_identity(U2)

    u2_gate.set()
    await session.transitions.wait_loaded()
    assert keys(session.cart.items) == [("tomato", "1kg", 2)]

    # u1's answer finally arrives and must be thrown away
    u1_gate.set()
    for _ in range(5):
        await asyncio.sleep(0)

    assert session.cart.owner == "u2"
    assert keys(session.cart.items) == [("tomato", "1kg", 2)]

    session.cart.add_to_cart(line("tomato", "1kg", price=720))
    await session.cart.flush()

    assert [user_id for user_id, _ in remote_store.cart_writes] == ["u2"]
    assert keys(remote_store.carts["u2"]) == [("tomato", "1kg", 3)]
    assert keys(remote_store.carts["u1"]) == [("gongura", "500g", 1)]
    assert keys(local_store.load(GUEST_CART_KEY)) == [("avakai", "250g", 1)]
    session.close()


async def test_failed_load_leaves_empty_cart_that_is_never_saved(
    storefront_session, remote_store
):
    remote_store.carts["u1"] = [line("gongura", "500g", price=460)]
    remote_store.failing_loads.add("u1")

    await storefront_session.observe(U1)
    assert storefront_session.cart.items == []

    storefront_session.cart.add_to_cart(line("avakai", "250g"))
    await storefront_session.cart.flush()

    assert remote_store.cart_writes == []
    assert keys(remote_store.carts["u1"]) == [("gongura", "500g", 1)]


async def test_next_transition_recovers_after_failed_load(storefront_session, remote_store):
    remote_store.failing_loads.add("u1")
    await storefront_session.observe(U1)

    remote_store.failing_loads.clear()
    await storefront_session.observe(None)
    await storefront_session.observe(U1)

    storefront_session.cart.add_to_cart(line("avakai", "250g"))
    await storefront_session.cart.flush()
    assert [user_id for user_id, _ in remote_store.cart_writes] == ["u1"]
