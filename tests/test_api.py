import pytest
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

from conftest import make_token
from storefront.database import create_db_and_tables, engine
from storefront.main import create_app
from storefront.repositories.document_store import SqlDocumentStore
from storefront.schemas.product import ProductWrite
from storefront.services.storefront_session import SessionRegistry

ADDRESS = {
    "name": "Lakshmi Rao",
    "phone": "9876543210",
    "street": "12 Temple Street",
    "city": "Vijayawada",
    "state": "Andhra Pradesh",
    "pincode": "520001",
}

CATALOG = [
    {
        "id": "avakai",
        "name": "Andhra Avakai",
        "category": "Mango Pickle",
        "long_description": "Raw mango cured in mustard and sesame oil.",
        "sizes": [
            {"label": "250g", "price": 220, "weight": "250 g"},
            {"label": "500g", "price": 420, "weight": "500 g"},
        ],
    },
    {
        "id": "gongura",
        "name": "Gongura Pickle",
        "category": "Gongura Pickle",
        "sizes": [{"label": "500g", "price": 460, "weight": "500 g"}],
    },
    {
        "id": "kandi-podi",
        "name": "Kandi Podi",
        "category": "Kandi Podi",
        "sizes": [{"label": "100g", "price": 150, "weight": "100 g"}],
    },
]

ADMIN_HEADERS = {"x-admin-password": "let-me-in"}


def bearer(user_id, email=None):
    return {"Authorization": f"Bearer {make_token(user_id, email)}"}


@pytest.fixture
async def app(tmp_path):
    create_db_and_tables()
    application = create_app()
    application.state.sessions = SessionRegistry(
        SqlDocumentStore(engine), tmp_path / "guest-carts"
    )
    for product in CATALOG:
        await application.state.product_service.save_product(
            ProductWrite.model_validate(product)
        )
    yield application
    application.state.sessions.close_all()
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


async def add(client, product_id, size, quantity=1, headers=None):
    return await client.post(
        "/api/cart/items",
        json={"product_id": product_id, "size": size, "quantity": quantity},
        headers=headers,
    )


def lines(cart):
    return [(i["product_id"], i["size"], i["quantity"]) for i in cart["items"]]


async def test_health(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "pickle-storefront"}


async def test_products_are_listed_with_resolved_extras(client):
    response = await client.get("/api/products")
    assert response.status_code == 200
    products = {p["id"]: p for p in response.json()}
    assert set(products) == {"avakai", "gongura", "kandi-podi"}

    extras = products["avakai"]["extras"]
    assert extras["details"]["description"] == "Raw mango cured in mustard and sesame oil."
    assert extras["buy_now"]["price"] == "₹220"

    podis = await client.get("/api/products", params={"category": "Podis"})
    assert [p["id"] for p in podis.json()] == ["kandi-podi"]

    unknown = await client.get("/api/products/brinjal")
    assert unknown.status_code == 404


async def test_guest_cart_merges_lines_and_issues_session_cookie(client):
    first = await add(client, "avakai", "250g", 2)
    assert first.status_code == 200
    assert "storefront_session" in first.cookies

    second = await add(client, "avakai", "250g", 1)
    cart = second.json()

    assert cart["identity"] is None
    assert lines(cart) == [("avakai", "250g", 3)]
    assert cart["total_price"] == pytest.approx(660)
    assert cart["pricing"]["shipping"] == 0


async def test_unknown_size_is_rejected(client):
    response = await add(client, "avakai", "5kg")

    assert response.status_code == 404
    assert (await client.get("/api/cart")).json()["items"] == []


async def test_quantity_update_and_removal(client):
    await add(client, "avakai", "250g", 2)
    await add(client, "kandi-podi", "100g")

    updated = await client.patch("/api/cart/items/avakai/250g", json={"quantity": 5})
    assert lines(updated.json()) == [("avakai", "250g", 5), ("kandi-podi", "100g", 1)]

    zeroed = await client.patch("/api/cart/items/avakai/250g", json={"quantity": 0})
    assert lines(zeroed.json()) == [("kandi-podi", "100g", 1)]

    removed = await client.delete("/api/cart/items/kandi-podi/100g")
    assert removed.json()["items"] == []


async def test_login_swaps_carts_without_merging(client):
    await add(client, "avakai", "250g", 2)
    u1 = bearer("u1")

    account = await client.get("/api/cart", headers=u1)
    assert account.json()["identity"] == "u1"
    assert account.json()["items"] == []

    await add(client, "gongura", "500g", headers=u1)

    guest = await client.get("/api/cart")
    assert guest.json()["identity"] is None
    assert lines(guest.json()) == [("avakai", "250g", 2)]

    again = await client.get("/api/cart", headers=u1)
    assert lines(again.json()) == [("gongura", "500g", 1)]


async def test_account_cart_follows_user_across_devices(app, client):
    u1 = bearer("u1")
    await add(client, "gongura", "500g", 2, headers=u1)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as other_device:
        cart = (await other_device.get("/api/cart", headers=u1)).json()

    assert lines(cart) == [("gongura", "500g", 2)]


async def test_checkout_places_order_and_empties_cart(client):
    u1 = bearer("u1")
    await add(client, "avakai", "250g", 2, headers=u1)
    await add(client, "gongura", "500g", headers=u1)

    response = await client.post("/api/checkout", json={"address": ADDRESS}, headers=u1)

    assert response.status_code == 201
    result = response.json()
    assert result["order_id"].startswith("ORD")
    assert result["total"] == pytest.approx(945.00)

    assert (await client.get("/api/cart", headers=u1)).json()["items"] == []

    orders = (await client.get("/api/orders/me", headers=u1)).json()
    assert [o["order_id"] for o in orders] == [result["order_id"]]
    assert orders[0]["status"] == "processing"
    assert orders[0]["tax"] == pytest.approx(45)
    assert lines(orders[0]) == [("avakai", "250g", 2), ("gongura", "500g", 1)]


async def test_guest_checkout_requires_login(client):
    await add(client, "avakai", "250g")

    response = await client.post("/api/checkout", json={"address": ADDRESS})

    assert response.status_code == 401
    assert len((await client.get("/api/cart")).json()["items"]) == 1


async def test_empty_cart_checkout_is_rejected(client):
    response = await client.post(
        "/api/checkout", json={"address": ADDRESS}, headers=bearer("u1")
    )

    assert response.status_code == 400


async def test_invalid_address_keeps_cart(client):
    u1 = bearer("u1")
    await add(client, "avakai", "250g", headers=u1)

    response = await client.post(
        "/api/checkout",
        json={"address": {**ADDRESS, "phone": "12345"}},
        headers=u1,
    )

    assert response.status_code == 422
    assert len((await client.get("/api/cart", headers=u1)).json()["items"]) == 1


async def test_failed_order_save_keeps_cart(app, client, monkeypatch):
    async def unavailable(order):
        raise ConnectionError("database went away")

    monkeypatch.setattr(app.state.order_service.remote_store, "save_order", unavailable)
    u1 = bearer("u1")
    await add(client, "avakai", "250g", 2, headers=u1)

    response = await client.post("/api/checkout", json={"address": ADDRESS}, headers=u1)

    assert response.status_code == 503
    assert lines((await client.get("/api/cart", headers=u1)).json()) == [
        ("avakai", "250g", 2)
    ]
    assert (await client.get("/api/orders/me", headers=u1)).json() == []


async def test_order_history_requires_login(client):
    assert (await client.get("/api/orders/me")).status_code == 401


async def test_admin_requires_credentials(client):
    assert (await client.get("/api/admin/products")).status_code == 401

    wrong = await client.get("/api/admin/products", headers={"x-admin-password": "nope"})
    assert wrong.status_code == 401

    shopper = await client.get("/api/admin/products", headers=bearer("u1"))
    assert shopper.status_code == 403

    owner = await client.get(
        "/api/admin/products", headers=bearer("admin-1", "owner@pickles.test")
    )
    assert owner.status_code == 200


async def test_admin_product_lifecycle(client):
    missing = await client.post(
        "/api/admin/products",
        json={"sizes": [{"label": "250g", "price": 240}]},
        headers=ADMIN_HEADERS,
    )
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Missing required fields"

    no_sizes = await client.post(
        "/api/admin/products",
        json={"name": "Lemon Pickle", "sizes": []},
        headers=ADMIN_HEADERS,
    )
    assert no_sizes.status_code == 400

    created = await client.post(
        "/api/admin/products",
        json={
            "name": "Lemon Pickle",
            "category": "Lemon Pickle",
            "sizes": [{"label": "250g", "price": 240}],
        },
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    assert created.json()["id"] == "lemon-pickle"
    assert created.json()["main_category"] == "Pickles"

    listed = await client.get("/api/admin/products", headers=ADMIN_HEADERS)
    assert "lemon-pickle" in [p["id"] for p in listed.json()]

    deleted = await client.delete("/api/admin/products/lemon-pickle", headers=ADMIN_HEADERS)
    assert deleted.status_code == 204

    gone = await client.delete("/api/admin/products/lemon-pickle", headers=ADMIN_HEADERS)
    assert gone.status_code == 404


async def test_admin_image_upload(client, monkeypatch):
    uploads = []

    def fake_upload(path, file_bytes, content_type):
        uploads.append((path, file_bytes, content_type))
        return f"https://cdn.test/products/{path}"

    monkeypatch.setattr(
        "storefront.services.product_service.upload_to_storage", fake_upload
    )

    response = await client.post(
        "/api/admin/products/images",
        files={"file": ("avakai jar.png", b"\x89PNG...", "image/png")},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 201
    path, data, content_type = uploads[0]
    assert path.startswith("images/") and path.endswith("_avakai-jar.png")
    assert (data, content_type) == (b"\x89PNG...", "image/png")
    assert response.json()["url"] == f"https://cdn.test/products/{path}"

    rejected = await client.post(
        "/api/admin/products/images",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=ADMIN_HEADERS,
    )
    assert rejected.status_code == 400


async def test_admin_product_id_is_optional_but_name_is_not(client):
    sizes = [{"label": "250g", "price": 240}]

    without_name = await client.post(
        "/api/admin/products",
        json={"id": "lemon", "sizes": sizes},
        headers=ADMIN_HEADERS,
    )
    assert without_name.status_code == 400
    assert without_name.json()["detail"] == "Missing required fields"

    slugged = await client.post(
        "/api/admin/products",
        json={"name": "  Spicy Lemon & Chilli ", "sizes": sizes},
        headers=ADMIN_HEADERS,
    )
    assert slugged.status_code == 201
    assert slugged.json()["id"] == "spicy-lemon-chilli"

    explicit = await client.post(
        "/api/admin/products",
        json={"id": "lemon", "name": "Lemon Pickle", "sizes": sizes},
        headers=ADMIN_HEADERS,
    )
    assert explicit.status_code == 201
    assert explicit.json()["id"] == "lemon"
