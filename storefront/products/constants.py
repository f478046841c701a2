from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.products")

DEFAULT_MIN_STOCK = 10

OUT_OF_STOCK = "out-of-stock"
LOW_STOCK = "low-stock"
IN_STOCK = "in-stock"

STOCK_STATUSES = (OUT_OF_STOCK, LOW_STOCK, IN_STOCK)

MAX_PAGE_SIZE = 100
