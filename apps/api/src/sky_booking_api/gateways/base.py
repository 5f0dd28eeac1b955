"""Abstract contracts for the booking saga's external collaborators."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from pydantic import BaseModel

from sky_booking_core.schemas import EmailPriority

if TYPE_CHECKING:
    from sky_booking_core.schemas import (
        BookingRequest,
        FlightOffer,
        PaymentInfo,
        PriceBreakdown,
    )


class ProviderBooking(BaseModel):
    """Reservation created with the flight provider."""

    pnr: str
    provider_booking_id: str


class PaymentAuthorization(BaseModel):
    payment_intent_id: str
    status: str = "authorized"


class Refund(BaseModel):
    refund_id: str


class EmailMessage(BaseModel):
    """Outgoing e-mail, already rendered."""

    to: str
    subject: str
    html: str
    priority: EmailPriority = EmailPriority.NORMAL


class ProviderBookingGateway(abc.ABC):
    """Flight provider operations the saga depends on."""

    @abc.abstractmethod
    async def confirm_price(self, offers: list[FlightOffer]) -> list[FlightOffer]:
        """Re-price *offers* and return them with current prices."""

    @abc.abstractmethod
    async def create_booking(
        self, offer: FlightOffer, request: BookingRequest
    ) -> ProviderBooking:
        """Reserve *offer* for the passengers in *request*."""

    @abc.abstractmethod
    async def cancel_booking(self, pnr: str) -> None:
        """Cancel the reservation identified by *pnr*."""


class PaymentGateway(abc.ABC):
    """Payment processor operations the saga depends on."""

    @abc.abstractmethod
    async def authorize(
        self, payment_info: PaymentInfo, price: PriceBreakdown
    ) -> PaymentAuthorization:
        """Authorize ``price.grand_total`` against *payment_info*."""

    @abc.abstractmethod
    async def refund(self, booking_id: str, price: PriceBreakdown) -> Refund:
        """Refund ``price.grand_total`` for *booking_id*."""


class NotificationSender(abc.ABC):
    @abc.abstractmethod
    async def send_email(self, message: EmailMessage) -> None:
        """Deliver *message*."""


class MetricsSink(abc.ABC):
    @abc.abstractmethod
    def increment_counter(self, name: str, tags: dict[str, str] | None = None) -> None:
        """Increment counter *name*."""
