"""Booking endpoints - thin adapters over :class:`FlightBookingService`."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from sky_booking_core.schemas import (
    BookingConfirmation,
    BookingListItem,
    BookingStatus,
    BookingStatusSummary,
    Invoice,
)

from ..dependencies import get_booking_service, require_user_id
from ..schemas.common import CancelBookingBody, ResendConfirmationResponse
from ..services.booking_service import FlightBookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])

ServiceDep = Annotated[FlightBookingService, Depends(get_booking_service)]
UserId = Annotated[str, Depends(require_user_id)]


@router.post(
    "",
    response_model=BookingConfirmation,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: Annotated[dict[str, Any], Body()],
    user_id: UserId,
    service: ServiceDep,
) -> BookingConfirmation:
    """Run the booking saga for the authenticated user."""
    result = await service.create_booking(user_id, payload)
    return result.unwrap()


@router.get("", response_model=list[BookingListItem])
async def list_bookings(
    user_id: UserId,
    service: ServiceDep,
    booking_status: Annotated[BookingStatus | None, Query(alias="status")] = None,
    from_date: Annotated[datetime | None, Query(alias="fromDate")] = None,
    to_date: Annotated[datetime | None, Query(alias="toDate")] = None,
    pnr: Annotated[str | None, Query()] = None,
    passenger_email: Annotated[str | None, Query(alias="passengerEmail")] = None,
    limit: Annotated[int | None, Query()] = None,
    offset: Annotated[int, Query()] = 0,
) -> list[BookingListItem]:
    filters = {
        "status": booking_status,
        "from_date": from_date,
        "to_date": to_date,
        "pnr": pnr,
        "passenger_email": passenger_email,
        "limit": limit,
        "offset": offset,
    }
    result = await service.get_user_bookings(user_id, filters)
    return result.unwrap()


@router.get("/{booking_id}", response_model=BookingConfirmation)
async def get_booking(
    booking_id: str, user_id: UserId, service: ServiceDep
) -> BookingConfirmation:
    result = await service.get_booking(user_id, booking_id)
    return result.unwrap()


@router.post("/{booking_id}/cancel", response_model=BookingConfirmation)
async def cancel_booking(
    booking_id: str,
    body: CancelBookingBody,
    user_id: UserId,
    service: ServiceDep,
) -> BookingConfirmation:
    result = await service.cancel_booking(
        user_id,
        {
            "booking_id": booking_id,
            "reason": body.reason,
            "request_refund": body.request_refund,
        },
    )
    return result.unwrap()


@router.get("/{booking_id}/status", response_model=BookingStatusSummary)
async def get_booking_status(
    booking_id: str, user_id: UserId, service: ServiceDep
) -> BookingStatusSummary:
    result = await service.get_booking_status(user_id, booking_id)
    return result.unwrap()


@router.post(
    "/{booking_id}/resend-confirmation", response_model=ResendConfirmationResponse
)
async def resend_confirmation(
    booking_id: str, user_id: UserId, service: ServiceDep
) -> ResendConfirmationResponse:
    result = await service.resend_confirmation(user_id, booking_id)
    return ResendConfirmationResponse(booking_id=booking_id, email=result.unwrap())


@router.get("/{booking_id}/invoice", response_model=Invoice)
async def get_invoice(
    booking_id: str, user_id: UserId, service: ServiceDep
) -> Invoice:
    result = await service.get_invoice(user_id, booking_id)
    return result.unwrap()
