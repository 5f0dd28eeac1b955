"""In-process gateway implementations used until real integrations exist.

The provider gateway generates its own record locator. A real integration
must take the PNR from the provider response instead.
"""

from __future__ import annotations

import logging
import random
import string
import uuid
from typing import TYPE_CHECKING

from .base import (
    MetricsSink,
    NotificationSender,
    PaymentAuthorization,
    PaymentGateway,
    ProviderBooking,
    ProviderBookingGateway,
    Refund,
)

if TYPE_CHECKING:
    from sky_booking_core.schemas import (
        BookingRequest,
        FlightOffer,
        PaymentInfo,
        PriceBreakdown,
    )

    from .base import EmailMessage

logger = logging.getLogger(__name__)

_PNR_ALPHABET = string.ascii_uppercase + string.digits
_PNR_LENGTH = 6


def generate_pnr() -> str:
    """Return a random 6-character record locator (no collision check)."""
    return "".join(random.choices(_PNR_ALPHABET, k=_PNR_LENGTH))


class SimulatedProviderGateway(ProviderBookingGateway):
    """Provider stand-in: prices are echoed back unchanged."""

    async def confirm_price(self, offers: list[FlightOffer]) -> list[FlightOffer]:
        return [offer.model_copy(deep=True) for offer in offers]

    async def create_booking(
        self, offer: FlightOffer, request: BookingRequest
    ) -> ProviderBooking:
        booking = ProviderBooking(
            pnr=generate_pnr(),
            provider_booking_id=f"PROVIDER-{uuid.uuid4()}",
        )
        logger.info(
            "Created provider booking (simulated): pnr=%s offer=%s passengers=%d",
            booking.pnr,
            offer.id,
            len(request.passengers),
        )
        return booking

    async def cancel_booking(self, pnr: str) -> None:
        logger.info("Cancelled provider booking (simulated): pnr=%s", pnr)


class SimulatedPaymentGateway(PaymentGateway):
    async def authorize(
        self, payment_info: PaymentInfo, price: PriceBreakdown
    ) -> PaymentAuthorization:
        auth = PaymentAuthorization(payment_intent_id=f"pi_{uuid.uuid4()}")
        logger.info(
            "Payment authorized (simulated): %s %.2f %s via %s",
            auth.payment_intent_id,
            price.grand_total,
            price.currency,
            payment_info.method,
        )
        return auth

    async def refund(self, booking_id: str, price: PriceBreakdown) -> Refund:
        refund = Refund(refund_id=f"refund_{uuid.uuid4()}")
        logger.info(
            "Refund processed (simulated): booking=%s refund=%s %.2f %s",
            booking_id,
            refund.refund_id,
            price.grand_total,
            price.currency,
        )
        return refund


class LoggingNotificationSender(NotificationSender):
    """Writes outgoing e-mail to the log instead of delivering it."""

    async def send_email(self, message: EmailMessage) -> None:
        logger.info(
            "E-mail to %s [%s]: %s", message.to, message.priority, message.subject
        )


class LoggingMetricsSink(MetricsSink):
    def increment_counter(self, name: str, tags: dict[str, str] | None = None) -> None:
        logger.debug("metric %s +1 %s", name, tags or {})
