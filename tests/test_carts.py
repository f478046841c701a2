from datetime import timedelta
from decimal import Decimal
import pytest
from httpx import AsyncClient
from asgi_lifespan import LifespanManager
from httpx import ASGITransport
from sqlalchemy import select
from storefront.common.utils import now
from storefront.db.connection import async_session
from storefront.main import app
from storefront.schema.full_schema import Cart
from tests.factories import create_product, url_prefix


@pytest.fixture
async def ac_client(reset_db):
    async with LifespanManager(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


async def guest_add(ac_client, token, variant_id, quantity):
    headers = {"X-Cart-Session": token} if token else {}
    resp = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": variant_id, "quantity": quantity},
                                headers=headers)
    assert resp.status_code in (200, 201), resp.text
    return resp


@pytest.mark.asyncio
async def test_guest_without_token_gets_one(ac_client, reset_db):
    resp = await ac_client.get(f"{url_prefix}/cart")
    assert resp.status_code == 200, resp.text

    token = resp.headers.get("X-Cart-Session")
    assert token
    assert "CartSessionId" in resp.headers.get("set-cookie", "")
    assert resp.json()["data"]["items"] == []

    again = await ac_client.get(f"{url_prefix}/cart", headers={"X-Cart-Session": token})
    assert again.json()["data"]["id"] == resp.json()["data"]["id"]
    assert "X-Cart-Session" not in again.headers


@pytest.mark.asyncio
async def test_add_same_variant_twice_sums_quantity(ac_client, customer):
    prod = await create_product("Lamp", variants=[{"sku": "LMP-1", "price": Decimal("20.00"), "stock_quantity": 8}])
    body = {"product_variant_id": prod["variants"]["LMP-1"], "quantity": 1}

    first = await ac_client.post(f"{url_prefix}/cart/items", json=body, headers=customer["headers"])
    assert first.status_code == 201
    second = await ac_client.post(f"{url_prefix}/cart/items", json={**body, "quantity": 2}, headers=customer["headers"])
    assert second.status_code == 200
    assert second.json()["data"]["created"] is False

    cart = second.json()["data"]["cart"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["item_count"] == 3
    assert cart["summary"]["subtotal"] == 60.0


@pytest.mark.asyncio
async def test_product_id_resolves_to_cheapest_active_variant(ac_client, customer):
    prod = await create_product("Tee", variants=[
        {"sku": "TEE-L", "price": Decimal("18.00"), "stock_quantity": 5},
        {"sku": "TEE-S", "price": Decimal("15.00"), "stock_quantity": 5},
        {"sku": "TEE-XS", "price": Decimal("9.00"), "stock_quantity": 5, "is_active": False},
    ])

    resp = await ac_client.post(f"{url_prefix}/cart/items", json={"product_id": prod["id"], "quantity": 1},
                                headers=customer["headers"])
    assert resp.status_code == 201, resp.text
    line = resp.json()["data"]["cart"]["items"][0]
    assert line["product_variant_id"] == prod["variants"]["TEE-S"]
    assert line["price"] == 15.0


@pytest.mark.asyncio
async def test_unknown_product_is_not_found(ac_client, customer):
    resp = await ac_client.post(f"{url_prefix}/cart/items", json={"product_id": 999, "quantity": 1},
                                headers=customer["headers"])
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_add_requires_a_target_and_positive_quantity(ac_client, customer):
    missing = await ac_client.post(f"{url_prefix}/cart/items", json={"quantity": 1}, headers=customer["headers"])
    assert missing.status_code == 422
    zero = await ac_client.post(f"{url_prefix}/cart/items", json={"product_id": 1, "quantity": 0},
                                headers=customer["headers"])
    assert zero.status_code == 422


@pytest.mark.asyncio
async def test_price_snapshot_uses_active_discount(ac_client, customer):
    prod = await create_product("Bag", variants=[{
        "sku": "BAG-1", "price": Decimal("50.00"), "stock_quantity": 5, "discount_price": Decimal("35.00"),
        "discount_start": now() - timedelta(days=1), "discount_end": now() + timedelta(days=1),
    }])

    resp = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": prod["variants"]["BAG-1"], "quantity": 2},
                                headers=customer["headers"])
    line = resp.json()["data"]["cart"]["items"][0]
    assert line["price"] == 35.0
    assert line["line_total"] == 70.0


@pytest.mark.asyncio
async def test_update_quantity_and_remove(ac_client, customer):
    prod = await create_product("Frame", variants=[{"sku": "FRM-1", "price": Decimal("11.00"), "stock_quantity": 9}])
    added = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": prod["variants"]["FRM-1"], "quantity": 1},
                                 headers=customer["headers"])
    item_id = added.json()["data"]["item_id"]

    updated = await ac_client.put(f"{url_prefix}/cart/items/{item_id}", json={"quantity": 4}, headers=customer["headers"])
    assert updated.status_code == 200
    assert updated.json()["data"]["items"][0]["quantity"] == 4

    removed = await ac_client.put(f"{url_prefix}/cart/items/{item_id}", json={"quantity": 0}, headers=customer["headers"])
    assert removed.status_code == 200
    assert removed.json()["data"]["items"] == []

    gone = await ac_client.delete(f"{url_prefix}/cart/items/{item_id}", headers=customer["headers"])
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_clear_cart_keeps_the_cart(ac_client, customer):
    prod = await create_product("Vase", variants=[{"sku": "VAS-1", "price": Decimal("30.00"), "stock_quantity": 3}])
    added = await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": prod["variants"]["VAS-1"], "quantity": 1},
                                 headers=customer["headers"])
    cart_id = added.json()["data"]["cart"]["id"]

    cleared = await ac_client.delete(f"{url_prefix}/cart", headers=customer["headers"])
    assert cleared.status_code == 200
    assert cleared.json()["data"]["id"] == cart_id
    assert cleared.json()["data"]["items"] == []
    assert cleared.json()["data"]["summary"]["total_amount"] == 0


@pytest.mark.asyncio
async def test_merge_sums_matching_lines_and_deletes_guest_cart(ac_client, customer):
    prod_a = await create_product("Alpha", variants=[{"sku": "ALP-1", "price": Decimal("10.00"), "stock_quantity": 20}])
    prod_b = await create_product("Beta", variants=[{"sku": "BET-1", "price": Decimal("4.00"), "stock_quantity": 20}])
    a, b = prod_a["variants"]["ALP-1"], prod_b["variants"]["BET-1"]

    await ac_client.post(f"{url_prefix}/cart/items", json={"product_variant_id": a, "quantity": 2}, headers=customer["headers"])

    guest = await guest_add(ac_client, None, a, 1)
    token = guest.headers["X-Cart-Session"]
    await guest_add(ac_client, token, b, 5)

    merged = await ac_client.post(f"{url_prefix}/cart/merge", headers={**customer["headers"], "X-Cart-Session": token})
    assert merged.status_code == 200, merged.text
    data = merged.json()["data"]
    assert data["merged"] is True
    assert {(i["product_variant_id"], i["quantity"]) for i in data["cart"]["items"]} == {(a, 3), (b, 5)}

    async with async_session() as session:
        res = await session.execute(select(Cart).where(Cart.session_token == token))
        assert res.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_merge_with_empty_guest_cart_is_a_no_op(ac_client, customer):
    resp = await ac_client.post(f"{url_prefix}/cart/merge", headers={**customer["headers"], "X-Cart-Session": "nothing-here"})
    assert resp.status_code == 200
    assert resp.json()["data"]["merged"] is False


@pytest.mark.asyncio
async def test_merge_needs_login_and_token(ac_client, customer):
    anonymous = await ac_client.post(f"{url_prefix}/cart/merge", headers={"X-Cart-Session": "abc"})
    assert anonymous.status_code == 401

    no_token = await ac_client.post(f"{url_prefix}/cart/merge", headers=customer["headers"])
    assert no_token.status_code == 400
