"""
Promo codes: validating a customer's code against storage, applying a
discount to a total and checking codes an operator saves.

Storage is reached only through an injected ``PromoLookup`` coroutine.
"""
import math
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from movequote.core.logger import get_logger
from movequote.models.promo import PromoCode, PromoDiscount, PromoInput, PromoValidation
from movequote.services.summary import format_currency

logger = get_logger(__name__)

PromoLookup = Callable[[str], Awaitable[Optional[PromoCode]]]


def normalize_code(code: Optional[str]) -> str:
    return str(code or "").strip().upper()


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def validate_promo(code: str, lookup: PromoLookup, now: Optional[datetime] = None) -> PromoValidation:
    """
    Decide whether a promo code can be applied right now.

    Checks run in a fixed order and the first failing one is reported:
    not_found, inactive, not_started, expired, maxed_out.
    A failing lookup is reported as server_error rather than not_found.
    """
    normalized = normalize_code(code)
    if not normalized:
        return PromoValidation(valid=False, reason="missing_code")

    try:
        record = await lookup(normalized)
    except Exception as e:
        logger.error(f"Promo lookup failed for {normalized}: {e}")
        return PromoValidation(valid=False, reason="server_error")

    if record is None:
        return PromoValidation(valid=False, reason="not_found")

    now = _aware(now) or datetime.now(timezone.utc)
    starts_at = _aware(record.starts_at)
    ends_at = _aware(record.ends_at)

    if not record.is_active:
        return PromoValidation(valid=False, reason="inactive")
    if starts_at and now < starts_at:
        return PromoValidation(valid=False, reason="not_started")
    if ends_at and now > ends_at:
        return PromoValidation(valid=False, reason="expired")
    if record.max_uses is not None and record.uses_count >= record.max_uses:
        return PromoValidation(valid=False, reason="maxed_out")

    return PromoValidation(
        valid=True,
        promo=PromoDiscount(
            code=record.code,
            discount_type=record.discount_type,
            discount_value=record.discount_value,
        ),
    )


def apply_promo_discount(total: float, promo: PromoDiscount) -> float:
    safe_total = total if math.isfinite(total) else 0.0
    value = promo.discount_value if math.isfinite(promo.discount_value) else 0.0

    if promo.discount_type == "percent":
        percent = min(100.0, max(0.0, value))
        return max(0.0, safe_total * (1 - percent / 100))

    return max(0.0, safe_total - max(0.0, value))


def format_promo_label(promo: PromoDiscount) -> str:
    if promo.discount_type == "percent":
        return f"{promo.discount_value:g}% off"
    return f"{format_currency(promo.discount_value)} off"


def normalize_promo_input(promo: PromoInput) -> PromoInput:
    """Clean an operator-supplied promo before it is saved."""
    value = promo.discount_value if math.isfinite(promo.discount_value) else 0
    return PromoInput(
        code=normalize_code(promo.code),
        discount_type="fixed" if promo.discount_type == "fixed" else "percent",
        discount_value=math.floor(value),
    )


def check_promo_input(promo: PromoInput) -> Optional[str]:
    """Return an error message when a normalized promo is not saveable."""
    if promo.discount_type == "percent":
        if promo.discount_value < 1 or promo.discount_value > 100:
            return f"Invalid percent discount for {promo.code}"
    elif promo.discount_value < 1:
        return f"Invalid fixed discount for {promo.code}"
    return None
