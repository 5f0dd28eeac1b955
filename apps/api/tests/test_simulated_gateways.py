"""Tests for the in-process gateways wired into the default app."""

from __future__ import annotations

import re

from sky_booking_api.gateways import (
    LoggingMetricsSink,
    LoggingNotificationSender,
    SimulatedPaymentGateway,
    SimulatedProviderGateway,
    generate_pnr,
)
from sky_booking_api.services.booking_service import FlightBookingService
from sky_booking_core.schemas import BookingStatus, FlightOffer

PNR_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


def test_generate_pnr_format():
    for _ in range(50):
        assert PNR_PATTERN.match(generate_pnr())


async def test_simulated_provider_echoes_price(make_offer_payload):
    offer = FlightOffer.model_validate(make_offer_payload(grand_total="640.00"))

    repriced = await SimulatedProviderGateway().confirm_price([offer])

    assert repriced == [offer]
    assert repriced[0] is not offer


async def test_booking_through_simulated_gateways(
    store, booking_settings, clock, cache_offer, make_request
):
    service = FlightBookingService(
        store=store,
        provider=SimulatedProviderGateway(),
        payments=SimulatedPaymentGateway(),
        notifier=LoggingNotificationSender(),
        metrics=LoggingMetricsSink(),
        settings=booking_settings,
        clock=clock,
    )
    cache_offer()

    booking = (await service.create_booking("user-1", make_request())).value
    cancelled = (
        await service.cancel_booking(
            "user-1", {"booking_id": booking.booking_id, "reason": "test"}
        )
    ).value

    assert PNR_PATTERN.match(booking.pnr)
    assert booking.status == BookingStatus.CONFIRMED
    assert cancelled.status == BookingStatus.CANCELLED
