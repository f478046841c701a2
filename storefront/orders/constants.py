from decimal import Decimal
from storefront.common.logging_setup import get_logger
from storefront.schema.full_schema import OrderStatus

logger = get_logger("storefront.orders")

FREE_SHIPPING_THRESHOLD = Decimal("100")
SHIPPING_FEE = Decimal("15")
TAX_RATE = Decimal("0.08")
CENT = Decimal("0.01")

ORDER_NUMBER_PREFIX = "ORD"
DEFAULT_PAYMENT_METHOD = "cash"

# delivered and cancelled are terminal
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}
