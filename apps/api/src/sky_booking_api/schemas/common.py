"""Shared response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error payload."""

    detail: str
    code: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class CancelBookingBody(BaseModel):
    """Body of ``POST /bookings/{id}/cancel``; the id comes from the path."""

    reason: str = Field(min_length=1, max_length=500)
    request_refund: bool = Field(default=True, alias="requestRefund")

    model_config = ConfigDict(populate_by_name=True)


class ResendConfirmationResponse(BaseModel):
    booking_id: str = Field(serialization_alias="bookingId")
    email: str
    message: str = "Booking confirmation email has been resent"
