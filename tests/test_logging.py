import logging
from storefront.common.logging_setup import get_logger


def test_reserved_extra_keys_are_prefixed(caplog):
    logger = get_logger("storefront.tests")
    with caplog.at_level(logging.INFO, logger="storefront.tests"):
        logger.info("cart.add_item.success", extra={"created": True, "name": "lamp", "cart_id": 7})

    record = caplog.records[-1]
    assert record.getMessage() == "cart.add_item.success"
    assert record.extra_created is True
    assert record.extra_name == "lamp"
    assert record.cart_id == 7
    assert record.name == "storefront.tests"
