"""Slot pricing.

Prices scale linearly with the requested duration relative to the court's
slot duration: a 90 minute booking on a court priced at 25 per 60 minute slot
costs 37.50.
"""
import logging
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import InvalidConfiguration
from app.models.court import Court
from app.schemas.pricing import AdvancedPricing, BasicPricing, Pricing, pricing_adapter

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENTS = Decimal("0.01")


def court_pricing(court: Court) -> Optional[Pricing]:
    """
    Parse the court's pricing column into a pricing variant.

    Raises:
        InvalidConfiguration: If the stored pricing does not match either variant
    """
    if not court.pricing:
        return None
    try:
        return pricing_adapter.validate_python(court.pricing)
    except PydanticValidationError as e:
        raise InvalidConfiguration(
            f"Invalid pricing for court {court.id}: {e}",
            details={"court_id": court.id},
        ) from e


def _match_tier_price(pricing: AdvancedPricing, hour: int) -> Optional[Decimal]:
    enabled = pricing.enabled_tiers
    if not enabled:
        return None

    for tier in enabled:
        if tier.start_hour <= hour < tier.end_hour:
            return tier.price

    # Facility open later than any tier: keep the latest tier's price
    latest = max(enabled, key=lambda tier: tier.end_hour)
    if hour >= latest.end_hour:
        return latest.price

    return enabled[0].price


def base_price(
    pricing: Optional[Pricing],
    time_of_day: time,
    fallback_price: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """Price of one base-duration slot starting at ``time_of_day``, or None."""
    matched = None
    if isinstance(pricing, AdvancedPricing):
        matched = _match_tier_price(pricing, time_of_day.hour)
        if matched is None:
            matched = pricing.basic_price
    elif isinstance(pricing, BasicPricing):
        matched = pricing.basic_price
    elif pricing is not None:
        raise InvalidConfiguration(f"Unknown pricing variant {type(pricing).__name__}")

    if matched is None and fallback_price is not None:
        matched = Decimal(str(fallback_price))
    return matched


def resolve_price(
    pricing: Optional[Pricing],
    time_of_day: time,
    duration_minutes: int,
    base_duration_minutes: int,
    fallback_price: Optional[Decimal] = None,
) -> Decimal:
    """
    Resolve the price of a window.

    Args:
        pricing: Court pricing variant, or None
        time_of_day: Start of the window
        duration_minutes: Requested duration
        base_duration_minutes: Duration the configured price refers to
        fallback_price: Facility rate used when the court defines no price

    Returns:
        Non-negative price rounded to cents; zero when nothing is configured
    """
    if base_duration_minutes is None or base_duration_minutes <= 0:
        raise InvalidConfiguration(
            f"Base duration must be positive, got {base_duration_minutes}"
        )

    matched = base_price(pricing, time_of_day, fallback_price)
    if matched is None or duration_minutes <= 0:
        return ZERO

    price = matched * Decimal(duration_minutes) / Decimal(base_duration_minutes)
    return max(price, ZERO).quantize(CENTS, rounding=ROUND_HALF_UP)


def _fallback_price(court: Court) -> Optional[Decimal]:
    return court.facility.fallback_price if court.facility else None


def warn_if_unpriced(court: Court) -> bool:
    """Log a warning when bookings on this court would be free. Returns True if so."""
    if court_pricing(court) is None and _fallback_price(court) is None:
        logger.warning(
            f"Court {court.id} has no pricing and no facility fallback rate; pricing at 0"
        )
        return True
    return False


def resolve_court_price(court: Court, starts_at: datetime, duration_minutes: int) -> Decimal:
    """Resolve the price of a window on a court."""
    pricing = court_pricing(court)
    fallback = _fallback_price(court)
    return resolve_price(
        pricing,
        starts_at.time(),
        duration_minutes,
        court.slot_duration_minutes,
        fallback,
    )
