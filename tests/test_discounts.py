from datetime import datetime, timedelta, timezone
from decimal import Decimal
from storefront.products.utils import resolve_discount

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_no_discount_price_means_base_price():
    res = resolve_discount(Decimal("50.00"), None, at=NOW)
    assert res.is_on_sale is False
    assert res.final_price == Decimal("50.00")


def test_open_window_discount_applies():
    res = resolve_discount(Decimal("50.00"), Decimal("40.00"), at=NOW)
    assert res == (True, Decimal("40.00"))


def test_discount_inside_window():
    res = resolve_discount(Decimal("50.00"), Decimal("40.00"),
                           start=NOW - timedelta(days=1), end=NOW + timedelta(days=1), at=NOW)
    assert res.is_on_sale is True
    assert res.final_price == Decimal("40.00")


def test_expired_discount_is_ignored():
    res = resolve_discount(Decimal("50.00"), Decimal("40.00"), end=NOW - timedelta(seconds=1), at=NOW)
    assert res == (False, Decimal("50.00"))


def test_future_discount_is_ignored():
    res = resolve_discount(Decimal("50.00"), Decimal("40.00"), start=NOW + timedelta(hours=1), at=NOW)
    assert res == (False, Decimal("50.00"))


def test_discount_not_below_base_is_not_a_sale():
    assert resolve_discount(Decimal("50.00"), Decimal("50.00"), at=NOW).is_on_sale is False
    assert resolve_discount(Decimal("50.00"), Decimal("55.00"), at=NOW).final_price == Decimal("50.00")


def test_window_bounds_are_inclusive():
    assert resolve_discount(Decimal("50.00"), Decimal("45.00"), start=NOW, end=NOW, at=NOW).is_on_sale is True


def test_naive_datetimes_read_as_utc():
    naive_end = (NOW + timedelta(minutes=5)).replace(tzinfo=None)
    assert resolve_discount(Decimal("50.00"), Decimal("45.00"), end=naive_end, at=NOW).is_on_sale is True


def test_discount_without_window_and_expired_yesterday():
    assert resolve_discount(Decimal("100"), Decimal("80"), at=NOW) == (True, Decimal("80"))
    yesterday = NOW - timedelta(days=1)
    assert resolve_discount(Decimal("100"), Decimal("80"), end=yesterday, at=NOW) == (False, Decimal("100"))
