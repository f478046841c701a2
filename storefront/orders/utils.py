import secrets
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple
from storefront.common.utils import now
from storefront.orders.constants import (ALLOWED_TRANSITIONS, CENT, FREE_SHIPPING_THRESHOLD, ORDER_NUMBER_PREFIX,
                                         SHIPPING_FEE, TAX_RATE)
from storefront.schema.full_schema import OrderStatus


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_order_totals(lines: Iterable[Tuple[Decimal, int]]) -> dict:
    """
    `lines` are (unit_price, quantity) pairs. Shipping is free strictly above the
    threshold , tax is a flat rate on the subtotal rounded half up to cents.
    """
    subtotal = to_money(sum((Decimal(price) * qty for price, qty in lines), Decimal("0")))
    shipping = Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else to_money(SHIPPING_FEE)
    tax = to_money(subtotal * TAX_RATE)

    return {
        "subtotal": subtotal,
        "shipping_cost": shipping,
        "tax": tax,
        "total_amount": subtotal + shipping + tax,
    }


def generate_order_number(at: Optional[datetime] = None) -> str:
    at = at or now()
    return f"{ORDER_NUMBER_PREFIX}-{at:%Y%m%d}-{secrets.token_hex(4).upper()}"


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    if current == requested:
        return True
    return requested in ALLOWED_TRANSITIONS.get(current, set())
