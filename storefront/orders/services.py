from typing import Optional
from storefront.common.custom_exceptions import EmptyCartError
from storefront.db.transaction import unit_of_work
from storefront.orders.constants import DEFAULT_PAYMENT_METHOD, logger
from storefront.orders.repository import (change_order_status, locate_checkout_cart, reserve_stock,
                                          serialize_order)
from storefront.orders.utils import compute_order_totals, generate_order_number
from storefront.products.repository import primary_image_url
from storefront.schema.full_schema import OrderItem, Orders, OrderStatus


def build_order_items(cart_items):
    order_items = []
    for item in cart_items:
        product = item.variant.product
        order_items.append(OrderItem(
            product_variant_id=item.product_variant_id,
            product_name=product.name,
            product_image=primary_image_url(product),
            unit_price=item.price,
            quantity=item.quantity,
            total_price=item.price * item.quantity,
        ))
    return order_items


async def place_order(session, actor_id: int, session_token: Optional[str], details) -> dict:
    """
    Turns the actor's cart into an order in one transaction: stock of every line is
    checked under row locks and decremented , the order header and its frozen line
    copies are written and the cart is emptied. Any failure rolls all of it back.
    """
    async with unit_of_work(session, "order.place"):
        cart = await locate_checkout_cart(session, actor_id, session_token)
        if cart is None or not cart.items:
            logger.info("order.place.empty_cart", extra={"user_id": actor_id})
            raise EmptyCartError()

        lines = sorted(cart.items, key=lambda it: it.id)
        await reserve_stock(session, lines)

        totals = compute_order_totals((it.price, it.quantity) for it in lines)
        order = Orders(
            order_number=generate_order_number(),
            user_id=actor_id,
            status=OrderStatus.PENDING.value,
            payment_method=details.payment_method or DEFAULT_PAYMENT_METHOD,
            phone=details.phone or "",
            shipping_address=details.shipping_address or "",
            **totals,
        )
        order.items = build_order_items(lines)
        session.add(order)

        # the cart row stays , only its lines go
        cart.items.clear()
        await session.flush()

        logger.info(
            "order.place.success",
            extra={"order_number": order.order_number, "user_id": actor_id, "lines": len(lines), "total": str(order.total_amount)},
        )
        return serialize_order(order)


async def update_order_status(session, order_id: int, requested: OrderStatus, admin_pid) -> dict:
    async with unit_of_work(session, "order.status_update"):
        order = await change_order_status(session, order_id, requested)
        logger.info("order.status.updated", extra={"order_id": order_id, "status": order.status, "user": admin_pid})
        return serialize_order(order)
