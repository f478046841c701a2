from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from storefront.cart.constants import logger
from storefront.cart.models import CartOwner, GuestOwner, RegisteredOwner
from storefront.common.custom_exceptions import NotFoundError
from storefront.common.utils import now
from storefront.orders.utils import compute_order_totals, to_money
from storefront.products.repository import primary_image_url
from storefront.products.utils import stock_status, variant_pricing
from storefront.schema.full_schema import Cart, CartItem, Product, ProductVariant


def owner_clause(owner: CartOwner):
    if isinstance(owner, RegisteredOwner):
        return Cart.user_id == owner.user_id
    return Cart.session_token == owner.session_token


def cart_load_options():
    return selectinload(Cart.items).selectinload(CartItem.variant).selectinload(ProductVariant.product).selectinload(Product.images)


def variant_load_options():
    return selectinload(ProductVariant.product).selectinload(Product.images)


async def find_cart(session, owner: CartOwner, for_update: bool = False) -> Optional[Cart]:
    stmt = select(Cart).options(cart_load_options()).where(owner_clause(owner))
    if for_update:
        # lines are loaded after the row lock is held , so they are the committed ones
        stmt = stmt.with_for_update(of=Cart).execution_options(populate_existing=True)
    res = await session.execute(stmt)
    return res.scalar_one_or_none()


async def get_or_create_cart(session, owner: CartOwner) -> Cart:
    cart = await find_cart(session, owner)
    if cart is not None:
        return cart

    if isinstance(owner, RegisteredOwner):
        cart = Cart(user_id=owner.user_id)
    else:
        cart = Cart(session_token=owner.session_token)
    cart.items = []

    try:
        async with session.begin_nested():
            session.add(cart)
    except IntegrityError:
        # lost the race to a concurrent first access , use the winner's row
        logger.info("cart.create.race_lost", extra={"owner": type(owner).__name__})
        cart = await find_cart(session, owner)

    return cart


async def resolve_variant(session, product_variant_id: Optional[int] = None, product_id: Optional[int] = None) -> ProductVariant:
    stmt = (
        select(ProductVariant)
        .join(Product, Product.id == ProductVariant.product_id)
        .options(variant_load_options())
        .where(ProductVariant.is_active.is_(True), Product.is_active.is_(True))
    )

    if product_variant_id is not None:
        stmt = stmt.where(ProductVariant.id == product_variant_id)
    else:
        # a bare product id resolves to its cheapest active variant
        stmt = stmt.where(ProductVariant.product_id == product_id).order_by(ProductVariant.price, ProductVariant.id).limit(1)

    variant = (await session.execute(stmt)).scalars().first()
    if variant is None:
        logger.warning("cart.variant.not_found", extra={"variant_id": product_variant_id, "product_id": product_id})
        raise NotFoundError("Product not found or unavailable")
    return variant


def find_line(cart: Cart, item_id: int) -> CartItem:
    for item in cart.items:
        if item.id == item_id:
            return item
    raise NotFoundError("Cart item not found")


async def add_item(session, owner: CartOwner, variant: ProductVariant, quantity: int):
    cart = await get_or_create_cart(session, owner)

    for item in cart.items:
        if item.product_variant_id == variant.id:
            item.quantity += quantity
            cart.updated_at = now()
            await session.flush()
            return cart, item, False

    # snapshot is the price the shopper saw , discount included
    item = CartItem(product_variant_id=variant.id, quantity=quantity, price=variant_pricing(variant).final_price)
    item.variant = variant
    cart.items.append(item)
    cart.updated_at = now()
    await session.flush()
    return cart, item, True


async def update_item_quantity(session, owner: CartOwner, item_id: int, quantity: int):
    cart = await find_cart(session, owner)
    if cart is None:
        raise NotFoundError("Cart item not found")

    item = find_line(cart, item_id)
    if quantity <= 0:
        cart.items.remove(item)
    else:
        item.quantity = quantity
    cart.updated_at = now()
    await session.flush()
    return cart


async def remove_item(session, owner: CartOwner, item_id: int):
    cart = await find_cart(session, owner)
    if cart is None:
        raise NotFoundError("Cart item not found")

    cart.items.remove(find_line(cart, item_id))
    cart.updated_at = now()
    await session.flush()
    return cart


async def clear_cart(session, owner: CartOwner):
    cart = await find_cart(session, owner)
    if cart is None:
        return None

    cart.items.clear()
    cart.updated_at = now()
    await session.flush()
    return cart


async def merge_guest_cart(session, user_id: int, session_token: str):
    guest_cart = await find_cart(session, GuestOwner(session_token))
    if guest_cart is None or not guest_cart.items:
        return None

    user_cart = await get_or_create_cart(session, RegisteredOwner(user_id))
    lines = {item.product_variant_id: item for item in user_cart.items}

    guest_lines = len(guest_cart.items)
    moved = 0
    for guest_item in guest_cart.items:
        existing = lines.get(guest_item.product_variant_id)
        if existing is not None:
            existing.quantity += guest_item.quantity
            continue

        item = CartItem(product_variant_id=guest_item.product_variant_id,
                        quantity=guest_item.quantity, price=guest_item.price)
        item.variant = guest_item.variant
        user_cart.items.append(item)
        lines[item.product_variant_id] = item
        moved += 1

    # guest lines go with the guest cart through the cascade
    await session.delete(guest_cart)
    user_cart.updated_at = now()
    await session.flush()

    logger.info("cart.merge.applied", extra={"guest_lines": guest_lines, "moved": moved})
    return user_cart


def serialize_cart(cart: Optional[Cart]) -> dict:
    if cart is None:
        return {"id": None, "items": [], "item_count": 0, "summary": cart_summary([])}

    items = []
    for item in sorted(cart.items, key=lambda i: i.id or 0):
        variant = item.variant
        product = variant.product
        items.append({
            "id": item.id,
            "product_variant_id": item.product_variant_id,
            "product_id": product.id,
            "product_name": product.name,
            "sku": variant.sku,
            "image_url": primary_image_url(product),
            "quantity": item.quantity,
            "price": item.price,
            "line_total": item.price * item.quantity,
            "stock_status": stock_status(variant.stock_quantity, product.min_stock),
        })

    return {
        "id": cart.id,
        "items": items,
        "item_count": sum(i["quantity"] for i in items),
        "summary": cart_summary(items),
    }


def cart_summary(items) -> dict:
    # what the order would cost if placed now , an empty cart costs nothing
    totals = compute_order_totals([(i["price"], i["quantity"]) for i in items])
    if not items:
        totals["shipping_cost"] = to_money(0)
        totals["total_amount"] = totals["subtotal"] + totals["tax"]
    return totals
