from typing import Optional
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value
from storefront.cart.models import GuestOwner, RegisteredOwner
from storefront.cart.repository import find_cart
from storefront.common.custom_exceptions import InsufficientStockError, InvalidStatusTransitionError, NotFoundError
from storefront.common.utils import now
from storefront.orders.constants import logger
from storefront.orders.utils import can_transition
from storefront.schema.full_schema import Cart, Orders, OrderStatus, ProductVariant


async def locate_checkout_cart(session, actor_id: int, session_token: Optional[str]) -> Optional[Cart]:
    """
    The actor's own cart wins when it has lines. Otherwise a non empty guest cart
    behind `session_token` is taken over by the actor: any empty cart the actor
    already owns is dropped first so the one-cart-per-user rule holds.
    """
    cart = await find_cart(session, RegisteredOwner(actor_id), for_update=True)
    if cart is not None and cart.items:
        return cart

    if not session_token:
        return cart

    guest_cart = await find_cart(session, GuestOwner(session_token), for_update=True)
    if guest_cart is None or not guest_cart.items:
        return cart

    if cart is not None:
        await session.delete(cart)
        await session.flush()

    guest_cart.user_id = actor_id
    guest_cart.session_token = None
    guest_cart.updated_at = now()
    await session.flush()

    logger.info("order.cart.reowned", extra={"cart_id": guest_cart.id, "user_id": actor_id})
    return guest_cart


async def lock_variants(session, variant_ids) -> dict:
    # fixed lock order across concurrent checkouts , reads the live stock under the lock
    stmt = (
        select(ProductVariant.id, ProductVariant.stock_quantity)
        .where(ProductVariant.id.in_(variant_ids))
        .order_by(ProductVariant.id)
        .with_for_update()
    )
    res = await session.execute(stmt)
    return {row.id: row.stock_quantity for row in res.all()}


def insufficient_stock(item, available: int) -> InsufficientStockError:
    variant = item.variant
    return InsufficientStockError(variant.product.name, variant.sku, available, item.quantity)


async def reserve_stock(session, items):
    locked = await lock_variants(session, sorted({it.product_variant_id for it in items}))

    for item in sorted(items, key=lambda it: it.product_variant_id):
        available = locked.get(item.product_variant_id, 0)
        if item.quantity > available:
            logger.warning(
                "order.place.insufficient_stock",
                extra={"variant_id": item.product_variant_id, "available": available, "requested": item.quantity},
            )
            raise insufficient_stock(item, available)

    for item in sorted(items, key=lambda it: it.product_variant_id):
        res = await session.execute(
            update(ProductVariant)
            .where(ProductVariant.id == item.product_variant_id, ProductVariant.stock_quantity >= item.quantity)
            .values(stock_quantity=ProductVariant.stock_quantity - item.quantity)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            logger.warning("order.place.stock_guard_failed", extra={"variant_id": item.product_variant_id})
            raise insufficient_stock(item, locked[item.product_variant_id])
        set_committed_value(item.variant, "stock_quantity", locked[item.product_variant_id] - item.quantity)


def serialize_order(order: Orders) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "payment_method": order.payment_method,
        "phone": order.phone,
        "shipping_address": order.shipping_address,
        "subtotal": order.subtotal,
        "shipping_cost": order.shipping_cost,
        "tax": order.tax,
        "total_amount": order.total_amount,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [
            {
                "id": it.id,
                "product_variant_id": it.product_variant_id,
                "product_name": it.product_name,
                "product_image": it.product_image,
                "quantity": it.quantity,
                "unit_price": it.unit_price,
                "total_price": it.total_price,
            }
            for it in order.items
        ],
    }


async def fetch_orders(session, user_id: Optional[int] = None, status_name: Optional[str] = None):
    stmt = select(Orders).options(selectinload(Orders.items)).order_by(Orders.created_at.desc(), Orders.id.desc())
    if user_id is not None:
        stmt = stmt.where(Orders.user_id == user_id)
    if status_name is not None:
        stmt = stmt.where(Orders.status == status_name)

    res = await session.execute(stmt)
    return [serialize_order(o) for o in res.scalars().all()]


async def fetch_order(session, order_id: int, user_id: Optional[int] = None, for_update: bool = False) -> Orders:
    stmt = select(Orders).options(selectinload(Orders.items)).where(Orders.id == order_id)
    if user_id is not None:
        # someone else's order looks exactly like a missing one
        stmt = stmt.where(Orders.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update()

    order = (await session.execute(stmt)).scalar_one_or_none()
    if order is None:
        logger.warning("order.not_found", extra={"order_id": order_id})
        raise NotFoundError("Order not found")
    return order


async def change_order_status(session, order_id: int, requested: OrderStatus) -> Orders:
    order = await fetch_order(session, order_id, for_update=True)
    current = OrderStatus(order.status)

    if current == requested:
        return order

    if not can_transition(current, requested):
        raise InvalidStatusTransitionError(current.value, requested.value)

    order.status = requested.value
    order.updated_at = now()
    await session.flush()
    return order
