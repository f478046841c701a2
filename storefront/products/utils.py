from datetime import datetime
from decimal import Decimal
from typing import NamedTuple, Optional
from storefront.common.utils import as_utc, now
from storefront.products.constants import DEFAULT_MIN_STOCK, IN_STOCK, LOW_STOCK, OUT_OF_STOCK


def stock_status(stock_quantity: int, min_stock: Optional[int] = None) -> str:
    threshold = DEFAULT_MIN_STOCK if min_stock is None else min_stock
    if stock_quantity <= 0:
        return OUT_OF_STOCK
    if stock_quantity <= threshold:
        return LOW_STOCK
    return IN_STOCK


class DiscountResolution(NamedTuple):
    is_on_sale: bool
    final_price: Decimal


def resolve_discount(base_price: Decimal, discount_price: Optional[Decimal] = None,
                     start: Optional[datetime] = None, end: Optional[datetime] = None,
                     at: Optional[datetime] = None) -> DiscountResolution:
    """
    A variant is on sale when it has a discount price below its base price and `at`
    (default: now) falls inside the optional [start, end] window. A missing bound
    leaves that side of the window open.
    """
    at = as_utc(at) or now()
    start, end = as_utc(start), as_utc(end)

    on_sale = (
        discount_price is not None
        and discount_price < base_price
        and (start is None or start <= at)
        and (end is None or end >= at)
    )
    return DiscountResolution(on_sale, discount_price if on_sale else base_price)


def variant_pricing(variant, at: Optional[datetime] = None) -> DiscountResolution:
    return resolve_discount(variant.price, variant.discount_price,
                            variant.discount_start, variant.discount_end, at=at)
