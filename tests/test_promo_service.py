import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from movequote.models.promo import PromoCode, PromoDiscount, PromoInput
from movequote.services.promo_service import (
    apply_promo_discount,
    check_promo_input,
    format_promo_label,
    normalize_promo_input,
    validate_promo,
)

NOW = datetime(2030, 4, 1, 12, 0, tzinfo=timezone.utc)


def lookup_for(*records):
    by_code = {r.code: r for r in records}

    async def lookup(code):
        return by_code.get(code)

    return lookup


def check(code, *records):
    return asyncio.run(validate_promo(code, lookup_for(*records), now=NOW))


def test_valid_code_is_normalized_before_lookup():
    lookup = AsyncMock(return_value=PromoCode(code="SAVE10", discount_value=10))
    result = asyncio.run(validate_promo("  save10 ", lookup, now=NOW))

    lookup.assert_awaited_once_with("SAVE10")
    assert result.valid is True
    assert result.promo == PromoDiscount(code="SAVE10", discount_type="percent", discount_value=10)
    assert result.reason is None


def test_blank_code_never_hits_storage():
    lookup = AsyncMock()
    result = asyncio.run(validate_promo("   ", lookup, now=NOW))
    assert result.reason == "missing_code"
    lookup.assert_not_called()


def test_unknown_code():
    assert check("NOPE").reason == "not_found"


def test_inactive_code():
    result = check("MOVE10", PromoCode(code="MOVE10", discount_value=10, is_active=False))
    assert result.valid is False
    assert result.reason == "inactive"


def test_inactive_wins_over_expired():
    record = PromoCode(code="OLD", is_active=False, ends_at=NOW - timedelta(days=1))
    assert check("OLD", record).reason == "inactive"


def test_not_started():
    record = PromoCode(code="SOON", starts_at=NOW + timedelta(days=1))
    assert check("SOON", record).reason == "not_started"


def test_expired_wins_over_maxed_out():
    record = PromoCode(code="DONE", ends_at=NOW - timedelta(hours=1), max_uses=5, uses_count=5)
    assert check("DONE", record).reason == "expired"


def test_maxed_out():
    record = PromoCode(code="POPULAR", max_uses=3, uses_count=3)
    assert check("POPULAR", record).reason == "maxed_out"


def test_naive_window_is_read_as_utc():
    record = PromoCode(code="WINDOW", starts_at=datetime(2030, 3, 1), ends_at=datetime(2030, 5, 1))
    assert check("WINDOW", record).valid is True


def test_lookup_failure_is_a_server_error():
    lookup = AsyncMock(side_effect=RuntimeError("connection refused"))
    result = asyncio.run(validate_promo("SAVE10", lookup, now=NOW))
    assert result.valid is False
    assert result.reason == "server_error"


@pytest.mark.parametrize("discount_type,value", [("percent", 10), ("percent", 100), ("fixed", 25), ("fixed", 900)])
def test_discount_is_monotonic_and_non_negative(discount_type, value):
    promo = PromoDiscount(code="X", discount_type=discount_type, discount_value=value)
    totals = [0, 10, 99.5, 455, 575, 2000]
    discounted = [apply_promo_discount(t, promo) for t in totals]

    assert all(d >= 0 for d in discounted)
    assert discounted == sorted(discounted)
    assert all(d <= t for d, t in zip(discounted, totals))


def test_out_of_range_discounts_are_clamped():
    assert apply_promo_discount(200, PromoDiscount(code="X", discount_type="percent", discount_value=150)) == 0
    assert apply_promo_discount(200, PromoDiscount(code="X", discount_type="percent", discount_value=-5)) == 200
    assert apply_promo_discount(200, PromoDiscount(code="X", discount_type="fixed", discount_value=-5)) == 200
    assert apply_promo_discount(float("inf"), PromoDiscount(code="X", discount_type="fixed", discount_value=5)) == 0


def test_promo_labels():
    assert format_promo_label(PromoDiscount(code="A", discount_type="percent", discount_value=10)) == "10% off"
    assert format_promo_label(PromoDiscount(code="B", discount_type="fixed", discount_value=25)) == "$25 off"


def test_operator_input_is_normalized():
    promo = normalize_promo_input(PromoInput(code=" spring ", discount_type="bogus", discount_value=12.9))
    assert (promo.code, promo.discount_type, promo.discount_value) == ("SPRING", "percent", 12)
    assert check_promo_input(promo) is None


def test_operator_input_rejects_bad_values():
    assert check_promo_input(PromoInput(code="BIG", discount_type="percent", discount_value=101))
    assert check_promo_input(PromoInput(code="ZERO", discount_type="fixed", discount_value=0))
