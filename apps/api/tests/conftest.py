"""Shared fixtures and fakes for booking saga tests."""

from __future__ import annotations

import fnmatch
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from sky_booking_api.cache.cache_keys import flight_offer_key
from sky_booking_api.cache.redis_client import KeyValueStore
from sky_booking_api.config import BookingSettings
from sky_booking_api.gateways import (
    EmailMessage,
    MetricsSink,
    NotificationSender,
    PaymentAuthorization,
    PaymentGateway,
    ProviderBooking,
    ProviderBookingGateway,
    Refund,
)
from sky_booking_api.services.booking_service import FlightBookingService
from sky_booking_core.schemas import (
    BookingRequest,
    FlightOffer,
    PaymentInfo,
    PriceBreakdown,
)


class InMemoryStore(KeyValueStore):
    """Dict-backed store that remembers the TTL of every write."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.failing_prefixes: set[str] = set()

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if any(key.startswith(prefix) for prefix in self.failing_prefixes):
            msg = f"write refused for {key}"
            raise ConnectionError(msg)
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    def booking_keys(self) -> list[str]:
        return [key for key in self.data if key.startswith("booking:")]


class FakeProvider(ProviderBookingGateway):
    """Provider that re-prices to ``repriced_total`` and records every call."""

    def __init__(self) -> None:
        self.repriced_total: str | None = None
        self.confirm_failures = 0
        self.fail_create = False
        self.fail_cancel = False
        self.confirm_calls = 0
        self.created: list[str] = []
        self.cancelled: list[str] = []
        self._counter = 0

    async def confirm_price(self, offers: list[FlightOffer]) -> list[FlightOffer]:
        self.confirm_calls += 1
        if self.confirm_failures > 0:
            self.confirm_failures -= 1
            msg = "provider unavailable"
            raise TimeoutError(msg)
        if self.repriced_total is None:
            return offers
        return [
            offer.model_copy(
                update={
                    "price": offer.price.model_copy(
                        update={
                            "grand_total": self.repriced_total,
                            "total": self.repriced_total,
                        }
                    )
                }
            )
            for offer in offers
        ]

    async def create_booking(
        self, offer: FlightOffer, request: BookingRequest
    ) -> ProviderBooking:
        if self.fail_create:
            msg = "no seats"
            raise RuntimeError(msg)
        self._counter += 1
        pnr = f"PNR{self._counter:03d}"
        self.created.append(pnr)
        return ProviderBooking(pnr=pnr, provider_booking_id=f"prov-{self._counter}")

    async def cancel_booking(self, pnr: str) -> None:
        self.cancelled.append(pnr)
        if self.fail_cancel:
            msg = "provider cancel failed"
            raise RuntimeError(msg)


class FakePayments(PaymentGateway):
    def __init__(self) -> None:
        self.fail_authorize = False
        self.fail_refund = False
        self.authorized: list[float] = []
        self.refunded: list[str] = []

    async def authorize(
        self, payment_info: PaymentInfo, price: PriceBreakdown
    ) -> PaymentAuthorization:
        if self.fail_authorize:
            msg = "card declined"
            raise RuntimeError(msg)
        self.authorized.append(price.grand_total)
        return PaymentAuthorization(payment_intent_id=f"pi_{len(self.authorized)}")

    async def refund(self, booking_id: str, price: PriceBreakdown) -> Refund:
        self.refunded.append(booking_id)
        if self.fail_refund:
            msg = "refund rejected"
            raise RuntimeError(msg)
        return Refund(refund_id=f"refund_{booking_id[:8]}")


class FakeNotifier(NotificationSender):
    def __init__(self) -> None:
        self.fail = False
        self.sent: list[EmailMessage] = []

    async def send_email(self, message: EmailMessage) -> None:
        if self.fail:
            msg = "smtp down"
            raise ConnectionError(msg)
        self.sent.append(message)


class FakeMetrics(MetricsSink):
    def __init__(self) -> None:
        self.counters: list[tuple[str, dict[str, str]]] = []

    def increment_counter(self, name: str, tags: dict[str, str] | None = None) -> None:
        self.counters.append((name, tags or {}))


class FrozenClock:
    def __init__(self) -> None:
        self.now = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def payments() -> FakePayments:
    return FakePayments()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def metrics() -> FakeMetrics:
    return FakeMetrics()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def booking_settings() -> BookingSettings:
    return BookingSettings(price_confirm_retries=0, price_confirm_retry_delay=0)


@pytest.fixture
def service(
    store: InMemoryStore,
    provider: FakeProvider,
    payments: FakePayments,
    notifier: FakeNotifier,
    metrics: FakeMetrics,
    booking_settings: BookingSettings,
    clock: FrozenClock,
) -> FlightBookingService:
    return FlightBookingService(
        store=store,
        provider=provider,
        payments=payments,
        notifier=notifier,
        metrics=metrics,
        settings=booking_settings,
        clock=clock,
    )


@pytest.fixture
def make_offer_payload(clock: FrozenClock):
    """Factory fixture for camelCase offer payloads as the provider returns them."""

    def _make(
        offer_id: str = "OFF-1",
        *,
        grand_total: str = "1000.00",
        currency: str = "CAD",
        departs_in: timedelta = timedelta(days=30),
        travelers: int = 1,
        round_trip: bool = False,
    ) -> dict[str, Any]:
        departure = (clock.now + departs_in).replace(tzinfo=None)
        outbound = {
            "duration": "PT7H",
            "segments": [
                {
                    "id": "1",
                    "departure": {"iataCode": "YVR", "at": departure.isoformat()},
                    "arrival": {
                        "iataCode": "NRT",
                        "at": (departure + timedelta(hours=10)).isoformat(),
                    },
                    "carrierCode": "AC",
                    "number": "3",
                    "numberOfStops": 0,
                }
            ],
        }
        itineraries = [outbound]
        if round_trip:
            back = departure + timedelta(days=7)
            itineraries.append(
                {
                    "segments": [
                        {
                            "id": "2",
                            "departure": {"iataCode": "NRT", "at": back.isoformat()},
                            "arrival": {
                                "iataCode": "YVR",
                                "at": (back + timedelta(hours=9)).isoformat(),
                            },
                            "carrierCode": "AC",
                            "number": "4",
                        }
                    ]
                }
            )
        return {
            "id": offer_id,
            "source": "GDS",
            "oneWay": not round_trip,
            "numberOfBookableSeats": 9,
            "itineraries": itineraries,
            "price": {
                "currency": currency,
                "total": grand_total,
                "base": "800.00",
                "fees": [
                    {"amount": "150.00", "type": "TAX"},
                    {"amount": "50.00", "type": "SUPPLIER"},
                ],
                "grandTotal": grand_total,
            },
            "validatingAirlineCodes": ["AC"],
            "travelerPricings": [
                {"travelerId": str(i + 1), "travelerType": "ADULT"}
                for i in range(travelers)
            ],
        }

    return _make


@pytest.fixture
def cache_offer(store: InMemoryStore, make_offer_payload):
    """Put an offer into the store the way search does, and return it."""

    def _cache(offer_id: str = "OFF-1", **kwargs: Any) -> FlightOffer:
        offer = FlightOffer.model_validate(make_offer_payload(offer_id, **kwargs))
        store.data[flight_offer_key(offer_id)] = offer.to_json()
        return offer

    return _cache


def passenger_payload(first_name: str = "Jane", email: str | None = None) -> dict[str, Any]:
    passenger: dict[str, Any] = {
        "type": "ADULT",
        "title": "MS",
        "firstName": first_name,
        "lastName": "Doe",
        "dateOfBirth": "1990-05-17",
        "gender": "FEMALE",
        "document": {
            "documentType": "PASSPORT",
            "documentNumber": "X1234567",
            "issuingCountry": "ca",
            "expiryDate": "2031-01-01",
            "nationality": "ca",
        },
    }
    if email is not None:
        passenger["email"] = email
    return passenger


@pytest.fixture
def make_request():
    """Factory fixture for booking request payloads."""

    def _make(
        offer_id: str = "OFF-1",
        *,
        passengers: list[dict[str, Any]] | None = None,
        email: str = "jane.doe@skybooking.io",
    ) -> dict[str, Any]:
        return {
            "offerId": offer_id,
            "passengers": passengers if passengers is not None else [passenger_payload()],
            "contactInfo": {"email": email, "phone": "+16045550123"},
            "paymentInfo": {
                "method": "CREDIT_CARD",
                "cardToken": "tok_visa",
                "billingAddress": {
                    "line1": "1 Main St",
                    "city": "Vancouver",
                    "postalCode": "V6B 1A1",
                    "country": "ca",
                },
            },
            "agreeToTerms": True,
        }

    return _make
