"""Price breakdown extraction, drift check and ticketing deadline policy."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel

from sky_booking_core.schemas import FeeItem, FlightOffer, PriceBreakdown, TaxItem

_TAX_FEE_TYPE = "TAX"

# (hours until departure below which the rule applies, hours to ticket)
_TICKETING_RULES: tuple[tuple[float, int], ...] = (
    (72, 2),
    (168, 24),
)
_DEFAULT_TICKETING_HOURS = 72


class PriceConfirmation(BaseModel):
    """Outcome of re-pricing a cached offer."""

    is_valid: bool
    original_price: PriceBreakdown
    current_price: PriceBreakdown | None = None
    price_difference: float | None = None
    expires_at: datetime


def extract_price_breakdown(offer: FlightOffer) -> PriceBreakdown:
    """Itemise an offer's provider price into taxes, fees and totals."""
    price = offer.price
    return PriceBreakdown(
        base_fare=float(price.base or price.total),
        taxes=[
            TaxItem(code=fee.type, description=fee.type, amount=float(fee.amount))
            for fee in price.fees
            if fee.type == _TAX_FEE_TYPE
        ],
        fees=[
            FeeItem(type=fee.type, description=fee.type, amount=float(fee.amount))
            for fee in price.fees
            if fee.type != _TAX_FEE_TYPE
        ],
        discount=0,
        grand_total=float(price.grand_total),
        currency=price.currency,
    )


def within_tolerance(original: float, current: float, tolerance: float) -> bool:
    """True when *current* differs from *original* by at most ``tolerance * original``."""
    return abs(current - original) <= original * tolerance


def as_utc(value: datetime) -> datetime:
    """Treat naive provider timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def calculate_ticketing_deadline(
    offer: FlightOffer, now: datetime | None = None
) -> datetime:
    """Deadline to issue tickets, from hours remaining until first departure.

    More than 7 days out: 72h. Between 3 and 7 days: 24h. Under 3 days: 2h.
    """
    now = now or datetime.now(tz=UTC)
    hours_until_departure = (as_utc(offer.departure_at) - now).total_seconds() / 3600

    deadline_hours = _DEFAULT_TICKETING_HOURS
    for threshold, hours in _TICKETING_RULES:
        if hours_until_departure < threshold:
            deadline_hours = hours
            break
    return now + timedelta(hours=deadline_hours)
