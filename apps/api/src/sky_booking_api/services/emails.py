"""Confirmation and cancellation e-mail rendering."""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

from sky_booking_core.schemas import EmailPriority, PaymentStatus

from ..gateways import EmailMessage

if TYPE_CHECKING:
    from sky_booking_core.schemas import BookingConfirmation

_BOX = 'style="background: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;"'
_REFUND_BOX = (
    'style="background: #e8f5e9; padding: 15px; border-radius: 8px; margin: 20px 0;"'
)


def _money(booking: BookingConfirmation) -> str:
    price = booking.price_breakdown
    return f"{escape(price.currency)} {price.grand_total:.2f}"


def render_confirmation(booking: BookingConfirmation) -> EmailMessage:
    """Build the booking confirmation e-mail."""
    offer = booking.flight_offer
    first = offer.first_segment
    last = offer.last_outbound_segment
    passengers = "".join(
        f"<p>{escape(p.title)} {escape(p.first_name)} {escape(p.last_name)}</p>"
        for p in booking.passengers
    )

    html = f"""
<h2>Your Flight Booking is Confirmed!</h2>
<h3>Booking Reference: {escape(booking.pnr)}</h3>
<div {_BOX}>
  <h4>Flight Details</h4>
  <p><strong>Route:</strong> {escape(first.departure.iata_code)} &rarr; {escape(last.arrival.iata_code)}</p>
  <p><strong>Departure:</strong> {first.departure.at:%Y-%m-%d %H:%M}</p>
  <p><strong>Airline:</strong> {escape(first.carrier_code)}</p>
  <p><strong>Flight Number:</strong> {escape(first.flight_number)}</p>
</div>
<div {_BOX}>
  <h4>Passengers</h4>
  {passengers}
</div>
<div {_BOX}>
  <h4>Price Summary</h4>
  <p><strong>Total:</strong> {_money(booking)}</p>
</div>
<p><strong>Important:</strong> Please arrive at the airport at least 2 hours before
departure for domestic flights and 3 hours for international flights.</p>
<p>If you need to make changes or cancel your booking, please visit our website
or contact our support team.</p>
"""
    return EmailMessage(
        to=str(booking.contact_info.email),
        subject=f"Booking Confirmation - {booking.pnr}",
        html=html,
        priority=EmailPriority.HIGH,
    )


def render_cancellation(booking: BookingConfirmation, reason: str) -> EmailMessage:
    """Build the cancellation e-mail, with refund details when refunded."""
    refund = ""
    if booking.payment_status == PaymentStatus.REFUNDED:
        refund = f"""
<div {_REFUND_BOX}>
  <h4>Refund Information</h4>
  <p>Your refund has been initiated and should be reflected in your account
  within 5-10 business days.</p>
  <p><strong>Refund Amount:</strong> {_money(booking)}</p>
</div>"""

    html = f"""
<h2>Booking Cancellation Confirmation</h2>
<p>Your booking has been successfully cancelled.</p>
<h3>Cancellation Details</h3>
<p><strong>Booking Reference:</strong> {escape(booking.pnr)}</p>
<p><strong>Cancellation Reason:</strong> {escape(reason)}</p>
<p><strong>Status:</strong> {escape(booking.status)}</p>
{refund}
<p>If you have any questions about this cancellation, please contact our support team.</p>
"""
    return EmailMessage(
        to=str(booking.contact_info.email),
        subject=f"Booking Cancellation - {booking.pnr}",
        html=html,
        priority=EmailPriority.HIGH,
    )
