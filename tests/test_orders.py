import re
from decimal import Decimal
import pytest
from httpx import AsyncClient
from asgi_lifespan import LifespanManager
from httpx import ASGITransport
from storefront.main import app
from tests.factories import create_product, url_prefix, variant_stock


@pytest.fixture
async def ac_client(reset_db):
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


async def add_line(ac_client, headers, variant_id, quantity):
    resp = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": variant_id, "quantity": quantity},
                                headers=headers)
    assert resp.status_code in (200, 201), resp.text
    return resp


@pytest.mark.asyncio
async def test_place_order_decrements_stock_and_empties_cart(ac_client, customer):
    prod = await create_product("Desk Lamp", variants=[{"sku": "LAMP-1", "price": Decimal("25.00"), "stock_quantity": 5}],
                                images=["https://cdn.example.com/lamp.jpg"])
    variant_id = prod["variants"]["LAMP-1"]
    await add_line(ac_client, customer["headers"], variant_id, 2)

    resp = await ac_client.post(f"{url_prefix}/orders", json={"phone": "555-0100", "shipping_address": "1 Main St"},
                                headers=customer["headers"])
    assert resp.status_code == 201, resp.text

    order = resp.json()["data"]
    assert re.fullmatch(r"ORD-\d{8}-[0-9A-F]{8}", order["order_number"])
    assert order["status"] == "pending"
    assert order["payment_method"] == "cash"
    assert order["subtotal"] == 50.0
    assert order["shipping_cost"] == 15.0
    assert order["tax"] == 4.0
    assert order["total_amount"] == 69.0
    assert len(order["items"]) == 1
    item = order["items"][0]
    assert item["product_name"] == "Desk Lamp"
    assert item["product_image"] == "https://cdn.example.com/lamp.jpg"
    assert item["quantity"] == 2
    assert item["unit_price"] == 25.0
    assert item["total_price"] == 50.0

    assert await variant_stock(variant_id) == 3

    cart = (await ac_client.get(f"{url_prefix}/cart", headers=customer["headers"])).json()["data"]
    assert cart["items"] == []
    assert cart["id"] is not None


@pytest.mark.asyncio
async def test_free_shipping_above_threshold(ac_client, customer):
    prod = await create_product("Chair", variants=[{"sku": "CHR-1", "price": Decimal("75.00"), "stock_quantity": 10}])
    await add_line(ac_client, customer["headers"], prod["variants"]["CHR-1"], 2)

    resp = await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])
    assert resp.status_code == 201, resp.text
    order = resp.json()["data"]
    assert order["subtotal"] == 150.0
    assert order["shipping_cost"] == 0.0
    assert order["tax"] == 12.0
    assert order["total_amount"] == 162.0


@pytest.mark.asyncio
async def test_insufficient_stock_rolls_everything_back(ac_client, customer):
    prod_a = await create_product("Pen", variants=[{"sku": "PEN-1", "price": Decimal("2.00"), "stock_quantity": 50}])
    prod_b = await create_product("Notebook", variants=[{"sku": "NBK-1", "price": Decimal("6.00"), "stock_quantity": 1}])
    pen, notebook = prod_a["variants"]["PEN-1"], prod_b["variants"]["NBK-1"]

    await add_line(ac_client, customer["headers"], pen, 3)
    await add_line(ac_client, customer["headers"], notebook, 2)

    resp = await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])
    assert resp.status_code == 409, resp.text
    body = resp.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == "INSUFFICIENT_STOCK"
    details = body["error"]["details"]
    assert details["product"] == "Notebook"
    assert details["sku"] == "NBK-1"
    assert details["available"] == 1
    assert details["requested"] == 2
    assert details["message"] == "Insufficient stock for Notebook (NBK-1). Available: 1"

    # nothing moved: stock , cart lines and order history are untouched
    assert await variant_stock(pen) == 50
    assert await variant_stock(notebook) == 1
    cart = (await ac_client.get(f"{url_prefix}/cart", headers=customer["headers"])).json()["data"]
    assert {(i["product_variant_id"], i["quantity"]) for i in cart["items"]} == {(pen, 3), (notebook, 2)}
    orders = (await ac_client.get(f"{url_prefix}/orders", headers=customer["headers"])).json()["data"]
    assert orders["total"] == 0

    # retrying without changes fails the same way
    retry = await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])
    assert retry.status_code == 409
    assert retry.json()["error"]["details"] == details


@pytest.mark.asyncio
async def test_empty_cart_is_rejected(ac_client, customer):
    resp = await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])
    assert resp.status_code == 400, resp.text
    assert resp.json()["error"]["code"] == "EMPTY_CART"


@pytest.mark.asyncio
async def test_order_requires_authentication(ac_client, reset_db):
    resp = await ac_client.post(f"{url_prefix}/orders", json={})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_guest_cart_is_reowned_at_checkout(ac_client, customer):
    prod = await create_product("Mug", variants=[{"sku": "MUG-1", "price": Decimal("12.00"), "stock_quantity": 4}])
    variant_id = prod["variants"]["MUG-1"]

    guest = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": variant_id, "quantity": 1})
    assert guest.status_code == 201, guest.text
    token = guest.headers["X-Cart-Session"]

    # the customer touches their own (empty) cart first so a user cart row already exists
    own = await ac_client.get(f"{url_prefix}/cart", headers=customer["headers"])
    assert own.json()["data"]["items"] == []

    headers = {**customer["headers"], "X-Cart-Session": token}
    resp = await ac_client.post(f"{url_prefix}/orders", json={"location": "2 Side St"}, headers=headers)
    assert resp.status_code == 201, resp.text
    order = resp.json()["data"]
    assert order["shipping_address"] == "2 Side St"
    assert order["subtotal"] == 12.0
    assert await variant_stock(variant_id) == 3

    # the guest token no longer owns a cart with lines
    guest_view = await ac_client.get(f"{url_prefix}/cart", headers={"X-Cart-Session": token})
    assert guest_view.json()["data"]["items"] == []


@pytest.mark.asyncio
async def test_orders_are_scoped_to_their_owner(ac_client, customer, customer2):
    prod = await create_product("Cable", variants=[{"sku": "CBL-1", "price": Decimal("9.00"), "stock_quantity": 10}])
    await add_line(ac_client, customer["headers"], prod["variants"]["CBL-1"], 1)
    order = (await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])).json()["data"]

    mine = await ac_client.get(f"{url_prefix}/orders/{order['id']}", headers=customer["headers"])
    assert mine.status_code == 200
    assert mine.json()["data"]["order_number"] == order["order_number"]

    theirs = await ac_client.get(f"{url_prefix}/orders/{order['id']}", headers=customer2["headers"])
    assert theirs.status_code == 404
    assert theirs.json()["error"]["code"] == "NOT_FOUND"

    listing = (await ac_client.get(f"{url_prefix}/orders", headers=customer2["headers"])).json()["data"]
    assert listing["items"] == []


@pytest.mark.asyncio
async def test_admin_status_transitions(ac_client, customer, admin):
    prod = await create_product("Plant", variants=[{"sku": "PLT-1", "price": Decimal("18.00"), "stock_quantity": 3}])
    await add_line(ac_client, customer["headers"], prod["variants"]["PLT-1"], 1)
    order = (await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])).json()["data"]
    status_url = f"{url_prefix}/admin/orders/{order['id']}/status"

    forbidden = await ac_client.put(status_url, json={"status": "confirmed"}, headers=customer["headers"])
    assert forbidden.status_code == 403

    unknown = await ac_client.put(status_url, json={"status": "teleported"}, headers=admin["headers"])
    assert unknown.status_code == 422
    assert unknown.json()["error"]["code"] == "UNPROCESSABLE_ENTITY"

    skip = await ac_client.put(status_url, json={"status": "delivered"}, headers=admin["headers"])
    assert skip.status_code == 409
    assert skip.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    for step in ("confirmed", "confirmed", "processing", "shipped", "delivered"):
        resp = await ac_client.put(status_url, json={"status": step}, headers=admin["headers"])
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["status"] == step

    terminal = await ac_client.put(status_url, json={"status": "cancelled"}, headers=admin["headers"])
    assert terminal.status_code == 409

    listing = (await ac_client.get(f"{url_prefix}/admin/orders", params={"status": "delivered"},
                                   headers=admin["headers"])).json()["data"]
    assert [o["id"] for o in listing["items"]] == [order["id"]]

    detail = await ac_client.get(f"{url_prefix}/admin/orders/{order['id']}", headers=admin["headers"])
    assert detail.json()["data"]["user_id"] == customer["id"]


@pytest.mark.asyncio
async def test_order_items_keep_their_snapshot(ac_client, customer, admin):
    prod = await create_product("Kettle", variants=[{"sku": "KTL-1", "price": Decimal("40.00"), "stock_quantity": 5}])
    await add_line(ac_client, customer["headers"], prod["variants"]["KTL-1"], 1)
    order = (await ac_client.post(f"{url_prefix}/orders", json={}, headers=customer["headers"])).json()["data"]

    await ac_client.patch(f"{url_prefix}/admin/products/{prod['id']}", json={"name": "Kettle Pro"}, headers=admin["headers"])
    await ac_client.patch(f"{url_prefix}/admin/products/variants/{prod['variants']['KTL-1']}", json={"price": "55.00"},
                          headers=admin["headers"])

    again = (await ac_client.get(f"{url_prefix}/orders/{order['id']}", headers=customer["headers"])).json()["data"]
    assert again["items"][0]["product_name"] == "Kettle"
    assert again["items"][0]["unit_price"] == 40.0
    assert again["total_amount"] == order["total_amount"]
