"""Cache key builders for consistent namespacing."""

from __future__ import annotations


def flight_offer_key(offer_id: str) -> str:
    """Build cache key for a surfaced flight offer."""
    return f"flight-offer:{offer_id}"


def price_lock_key(offer_id: str) -> str:
    """Build cache key for the price lock on an offer."""
    return f"price-lock:{offer_id}"


def booking_key(booking_id: str) -> str:
    """Build cache key for a stored booking."""
    return f"booking:{booking_id}"


def user_bookings_key(user_id: str) -> str:
    """Build cache key for a user's booking-id index."""
    return f"user-bookings:{user_id}"
