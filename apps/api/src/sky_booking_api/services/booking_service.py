"""Flight booking saga - price confirmation, provider booking, payment, persistence.

``create_booking`` runs its steps strictly in order:

1. validate the request
2. resolve the cached offer
3. re-confirm price with the provider (10% tolerance by default)
4. write the advisory price lock
5. create the provider booking
6. authorize payment, cancelling the provider booking if that fails
7. persist the booking and append it to the owner's index (commit point)
8. send the confirmation e-mail (best-effort)
9. record the ``bookings.created`` metric (best-effort)

Every public method returns a :class:`BookingResult`; no exception escapes.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from sky_booking_core.schemas import (
    BookingCancellation,
    BookingConfirmation,
    BookingError,
    BookingListItem,
    BookingRecord,
    BookingRequest,
    BookingResult,
    BookingSearchFilters,
    BookingStatus,
    BookingStatusSummary,
    ErrorKind,
    FlightOffer,
    Invoice,
    InvoiceLine,
    InvoiceParty,
    PaymentStatus,
    PriceLock,
)

from ..cache.cache_keys import (
    booking_key,
    flight_offer_key,
    price_lock_key,
    user_bookings_key,
)
from ..config import BookingSettings
from ..config import settings as default_settings
from ..retry import async_retry
from .emails import render_cancellation, render_confirmation
from .pricing import (
    PriceConfirmation,
    as_utc,
    calculate_ticketing_deadline,
    extract_price_breakdown,
    within_tolerance,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from sky_booking_core.schemas import PriceBreakdown

    from ..cache.redis_client import KeyValueStore
    from ..gateways import (
        EmailMessage,
        MetricsSink,
        NotificationSender,
        PaymentAuthorization,
        PaymentGateway,
        ProviderBooking,
        ProviderBookingGateway,
    )

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")

# Window reported back when the provider could not confirm a price.
_FAILED_CONFIRMATION_WINDOW = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class FlightBookingService:
    """Orchestrates the booking saga over injected collaborators.

    Holds no shared mutable state: everything shared lives in *store*, and
    each call runs its awaits sequentially.
    """

    def __init__(
        self,
        store: KeyValueStore,
        provider: ProviderBookingGateway,
        payments: PaymentGateway,
        notifier: NotificationSender,
        metrics: MetricsSink,
        *,
        settings: BookingSettings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._provider = provider
        self._payments = payments
        self._notifier = notifier
        self._metrics = metrics
        self._settings = settings or default_settings
        self._clock = clock

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def create_booking(
        self, user_id: str, request: BookingRequest | Mapping[str, Any]
    ) -> BookingResult[BookingConfirmation]:
        """Run the full booking saga for *user_id*."""
        return await self._guard(
            self._create_booking(user_id, request), "Booking creation failed"
        )

    async def get_booking(
        self, user_id: str, booking_id: str
    ) -> BookingResult[BookingConfirmation]:
        """Return a booking owned by *user_id*."""
        return await self._guard(
            self._get_booking(user_id, booking_id), "Failed to retrieve booking"
        )

    async def get_user_bookings(
        self,
        user_id: str,
        filters: BookingSearchFilters | Mapping[str, Any] | None = None,
    ) -> BookingResult[list[BookingListItem]]:
        """List *user_id*'s bookings, newest first, filtered and paginated."""
        return await self._guard(
            self._get_user_bookings(user_id, filters), "Failed to retrieve bookings"
        )

    async def cancel_booking(
        self,
        user_id: str,
        cancellation: BookingCancellation | Mapping[str, Any],
    ) -> BookingResult[BookingConfirmation]:
        """Cancel a booking, optionally refunding it."""
        return await self._guard(
            self._cancel_booking(user_id, cancellation), "Booking cancellation failed"
        )

    async def get_booking_status(
        self, user_id: str, booking_id: str
    ) -> BookingResult[BookingStatusSummary]:
        return await self._guard(
            self._get_booking_status(user_id, booking_id),
            "Failed to retrieve booking status",
        )

    async def resend_confirmation(
        self, user_id: str, booking_id: str
    ) -> BookingResult[str]:
        """Re-send the confirmation e-mail; the value is the recipient address."""
        return await self._guard(
            self._resend_confirmation(user_id, booking_id),
            "Failed to resend confirmation",
        )

    async def get_invoice(
        self, user_id: str, booking_id: str
    ) -> BookingResult[Invoice]:
        return await self._guard(
            self._get_invoice(user_id, booking_id), "Failed to generate invoice"
        )

    # ------------------------------------------------------------------
    # Saga
    # ------------------------------------------------------------------

    async def _create_booking(
        self, user_id: str, payload: BookingRequest | Mapping[str, Any]
    ) -> BookingConfirmation:
        request = _validate(BookingRequest, payload)
        logger.info(
            "Creating flight booking: user=%s offer=%s passengers=%d",
            user_id,
            request.offer_id,
            len(request.passengers),
        )

        offer = await self._load_offer(request.offer_id)
        _check_passenger_assumptions(offer, request)

        confirmation = await self._confirm_price(offer, len(request.passengers))
        if not confirmation.is_valid or confirmation.current_price is None:
            raise BookingError(
                ErrorKind.CONFLICT,
                "Flight price or availability has changed",
                _conflict_details(confirmation),
            )
        price = confirmation.current_price

        await self._lock_price(request.offer_id, price, confirmation.expires_at)
        if self._clock() >= confirmation.expires_at:
            raise BookingError(
                ErrorKind.CONFLICT,
                "Price lock expired",
                _conflict_details(confirmation),
            )

        provider_booking = await self._create_provider_booking(offer, request)
        authorization = await self._authorize_payment(request, price, provider_booking)

        now = self._clock()
        record = BookingRecord(
            booking_id=str(uuid.uuid4()),
            pnr=provider_booking.pnr,
            status=BookingStatus.CONFIRMED,
            flight_offer=offer,
            passengers=request.passengers,
            contact_info=request.contact_info,
            price_breakdown=price,
            payment_status=PaymentStatus.AUTHORIZED,
            created_at=now,
            ticketing_deadline=calculate_ticketing_deadline(offer, now),
            user_id=user_id,
            offer_id=request.offer_id,
            payment_intent_id=authorization.payment_intent_id,
            metadata={"provider_booking_id": provider_booking.provider_booking_id},
        )
        await self._commit(record, provider_booking)

        await self._send_email(render_confirmation(record), "booking confirmation")
        self._record_metric(
            "bookings.created",
            {"origin": offer.origin, "destination": offer.destination},
        )

        logger.info(
            "Booking created: booking=%s pnr=%s user=%s",
            record.booking_id,
            record.pnr,
            user_id,
        )
        return record.to_confirmation()

    async def _load_offer(self, offer_id: str) -> FlightOffer:
        raw = await self._store.get(flight_offer_key(offer_id))
        if raw is None:
            raise BookingError(ErrorKind.NOT_FOUND, "Flight offer not found or expired")
        try:
            return FlightOffer.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Unreadable cached offer %s: %s", offer_id, exc)
            raise BookingError(
                ErrorKind.SERVICE_ERROR, "Invalid flight offer data"
            ) from exc

    async def _confirm_price(
        self, offer: FlightOffer, passenger_count: int
    ) -> PriceConfirmation:
        """Re-price *offer*. Any provider failure yields an invalid confirmation."""
        original = extract_price_breakdown(offer)
        now = self._clock()
        confirm = async_retry(
            max_retries=self._settings.price_confirm_retries,
            base_delay=self._settings.price_confirm_retry_delay,
        )(self._provider.confirm_price)

        try:
            repriced = await confirm([offer])
            if not repriced:
                msg = "provider returned no offers"
                raise LookupError(msg)
            current = extract_price_breakdown(repriced[0])
        except Exception as exc:
            logger.warning(
                "Price confirmation failed: offer=%s passengers=%d: %s",
                offer.id,
                passenger_count,
                exc,
            )
            return PriceConfirmation(
                is_valid=False,
                original_price=original,
                expires_at=now + _FAILED_CONFIRMATION_WINDOW,
            )

        difference = current.grand_total - original.grand_total
        is_valid = current.currency == original.currency and within_tolerance(
            original.grand_total, current.grand_total, self._settings.price_tolerance
        )
        logger.info(
            "Price confirmed: offer=%s original=%.2f current=%.2f %s valid=%s",
            offer.id,
            original.grand_total,
            current.grand_total,
            current.currency,
            is_valid,
        )
        return PriceConfirmation(
            is_valid=is_valid,
            original_price=original,
            current_price=current,
            price_difference=difference,
            expires_at=now + timedelta(seconds=self._settings.price_lock_seconds),
        )

    async def _lock_price(
        self, offer_id: str, price: PriceBreakdown, expires_at: datetime
    ) -> None:
        lock = PriceLock(
            offer_id=offer_id,
            price=price,
            locked_at=self._clock(),
            expires_at=expires_at,
        )
        try:
            await self._store.set(
                price_lock_key(offer_id),
                lock.to_json(),
                self._settings.price_lock_seconds,
            )
        except Exception as exc:
            logger.warning("Failed to lock price for offer %s: %s", offer_id, exc)

    async def _create_provider_booking(
        self, offer: FlightOffer, request: BookingRequest
    ) -> ProviderBooking:
        try:
            return await self._provider.create_booking(offer, request)
        except Exception as exc:
            logger.error("Provider booking failed for offer %s: %s", offer.id, exc)
            raise BookingError(
                ErrorKind.SERVICE_ERROR, "Failed to create booking with airline"
            ) from exc

    async def _authorize_payment(
        self,
        request: BookingRequest,
        price: PriceBreakdown,
        provider_booking: ProviderBooking,
    ) -> PaymentAuthorization:
        try:
            return await self._payments.authorize(request.payment_info, price)
        except Exception as exc:
            logger.warning(
                "Payment authorization failed for pnr %s, cancelling provider booking: %s",
                provider_booking.pnr,
                exc,
            )
            await self._cancel_provider_booking(provider_booking.pnr)
            raise BookingError(
                ErrorKind.PAYMENT_ERROR, "Payment processing failed"
            ) from exc

    async def _commit(
        self, record: BookingRecord, provider_booking: ProviderBooking
    ) -> None:
        """Persist the booking and index it. Undo provider booking and payment on failure."""
        saved = False
        try:
            await self._save_record(record)
            saved = True
            await self._append_to_index(record.user_id, record.booking_id)
        except Exception as exc:
            logger.exception("Failed to persist booking %s", record.booking_id)
            await self._cancel_provider_booking(provider_booking.pnr)
            refund_id = await self._refund(record.booking_id, record.price_breakdown)
            if saved:
                await self._void_record(record, refund_id)
            raise BookingError(
                ErrorKind.SERVICE_ERROR, "Booking creation failed"
            ) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _get_booking(self, user_id: str, booking_id: str) -> BookingConfirmation:
        record = await self._load_owned_record(user_id, booking_id)
        return record.to_confirmation()

    async def _get_user_bookings(
        self,
        user_id: str,
        payload: BookingSearchFilters | Mapping[str, Any] | None,
    ) -> list[BookingListItem]:
        if payload is None:
            filters = BookingSearchFilters()
        else:
            filters = _validate(BookingSearchFilters, payload)
        limit = filters.limit or self._settings.default_page_size

        items: list[BookingListItem] = []
        for booking_id in await self._read_index(user_id) or []:
            record = await self._load_record(booking_id, strict=False)
            if record is None or record.user_id != user_id:
                continue
            if _matches(record, filters):
                items.append(_to_list_item(record))

        items.sort(key=lambda item: as_utc(item.created_at), reverse=True)
        return items[filters.offset : filters.offset + limit]

    async def _get_booking_status(
        self, user_id: str, booking_id: str
    ) -> BookingStatusSummary:
        record = await self._load_owned_record(user_id, booking_id)
        return BookingStatusSummary(
            booking_id=record.booking_id,
            pnr=record.pnr,
            status=record.status,
            payment_status=record.payment_status,
            ticketing_deadline=record.ticketing_deadline,
        )

    async def _resend_confirmation(self, user_id: str, booking_id: str) -> str:
        record = await self._load_owned_record(user_id, booking_id)
        await self._send_email(render_confirmation(record), "booking confirmation")
        return str(record.contact_info.email)

    async def _get_invoice(self, user_id: str, booking_id: str) -> Invoice:
        record = await self._load_owned_record(user_id, booking_id)
        price = record.price_breakdown
        lead = record.passengers[0]
        quantity = len(record.passengers)
        return Invoice(
            invoice_number=f"INV-{record.booking_id[:8].upper()}",
            booking_reference=record.pnr,
            issue_date=record.created_at,
            due_date=record.ticketing_deadline,
            status="PAID" if record.payment_status == PaymentStatus.CAPTURED else "PENDING",
            bill_to=InvoiceParty(
                name=lead.full_name,
                email=str(record.contact_info.email),
                phone=record.contact_info.phone,
            ),
            items=[
                InvoiceLine(
                    description=f"Flight Booking - {record.pnr}",
                    quantity=quantity,
                    unit_price=price.grand_total / quantity,
                    total=price.grand_total,
                )
            ],
            subtotal=price.base_fare,
            taxes=price.taxes,
            fees=price.fees,
            discount=price.discount,
            total=price.grand_total,
            currency=price.currency,
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    async def _cancel_booking(
        self, user_id: str, payload: BookingCancellation | Mapping[str, Any]
    ) -> BookingConfirmation:
        cancellation = _validate(BookingCancellation, payload)
        logger.info(
            "Cancelling booking: booking=%s user=%s refund=%s",
            cancellation.booking_id,
            user_id,
            cancellation.request_refund,
        )

        record = await self._load_owned_record(user_id, cancellation.booking_id)
        if (
            record.status == BookingStatus.CANCELLED
            or record.payment_status == PaymentStatus.REFUNDED
        ):
            raise BookingError(ErrorKind.VALIDATION, "Booking is already cancelled")

        await self._cancel_provider_booking(record.pnr)

        metadata = dict(record.metadata)
        if cancellation.request_refund:
            refund_id = await self._refund(record.booking_id, record.price_breakdown)
            if refund_id is not None:
                metadata["refund_id"] = refund_id
        metadata["cancellation_reason"] = cancellation.reason
        metadata["cancelled_at"] = self._clock().isoformat()

        updated = record.model_copy(
            update={
                "status": BookingStatus.CANCELLED,
                "payment_status": (
                    PaymentStatus.REFUNDED
                    if cancellation.request_refund
                    else PaymentStatus.CAPTURED
                ),
                "metadata": metadata,
            }
        )
        await self._save_record(updated)
        confirmation = updated.to_confirmation()

        await self._send_email(
            render_cancellation(confirmation, cancellation.reason),
            "cancellation confirmation",
        )
        self._record_metric(
            "bookings.cancelled",
            {"refund_requested": str(cancellation.request_refund).lower()},
        )
        logger.info("Booking cancelled: booking=%s", record.booking_id)
        return confirmation

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _load_record(
        self, booking_id: str, *, strict: bool = True
    ) -> BookingRecord | None:
        """Load a stored booking. With ``strict=False`` unreadable data yields None."""
        raw = await self._store.get(booking_key(booking_id))
        if raw is None:
            if strict:
                raise BookingError(ErrorKind.NOT_FOUND, "Booking not found")
            return None
        try:
            return BookingRecord.model_validate_json(raw)
        except ValidationError as exc:
            if not strict:
                logger.warning("Skipping unreadable booking %s: %s", booking_id, exc)
                return None
            logger.error("Unreadable booking %s: %s", booking_id, exc)
            raise BookingError(ErrorKind.SERVICE_ERROR, "Invalid booking data") from exc

    async def _load_owned_record(self, user_id: str, booking_id: str) -> BookingRecord:
        # Existence is checked before ownership.
        record = await self._load_record(booking_id)
        assert record is not None
        if record.user_id != user_id:
            raise BookingError(ErrorKind.FORBIDDEN, "Access denied")
        return record

    async def _save_record(self, record: BookingRecord) -> None:
        await self._store.set(
            booking_key(record.booking_id),
            record.to_json(),
            self._settings.booking_ttl_seconds,
        )

    async def _void_record(self, record: BookingRecord, refund_id: str | None) -> None:
        """Mark a saved but rolled-back booking as cancelled (best-effort)."""
        metadata = {
            **record.metadata,
            "cancellation_reason": "Booking could not be completed",
            "cancelled_at": self._clock().isoformat(),
        }
        if refund_id is not None:
            metadata["refund_id"] = refund_id
        voided = record.model_copy(
            update={
                "status": BookingStatus.CANCELLED,
                "payment_status": (
                    PaymentStatus.REFUNDED
                    if refund_id is not None
                    else record.payment_status
                ),
                "metadata": metadata,
            }
        )
        try:
            await self._save_record(voided)
        except Exception as exc:
            logger.error(
                "Failed to void rolled-back booking %s: %s", record.booking_id, exc
            )

    async def _read_index(self, user_id: str) -> list[str] | None:
        """Booking ids in the user's index, or None when the index is unreadable."""
        raw = await self._store.get(user_bookings_key(user_id))
        if raw is None:
            return []
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError:
            ids = None
        if not isinstance(ids, list):
            logger.error("Corrupt booking index for user %s", user_id)
            return None
        return list(dict.fromkeys(str(i) for i in ids))

    async def _append_to_index(self, user_id: str, booking_id: str) -> None:
        ids = await self._read_index(user_id)
        if ids is None:
            # Never overwrite an index we could not read.
            logger.error(
                "Booking %s not added to unreadable index of user %s",
                booking_id,
                user_id,
            )
            return
        ids.append(booking_id)
        await self._store.set(
            user_bookings_key(user_id),
            json.dumps(ids),
            self._settings.booking_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Best-effort side effects
    # ------------------------------------------------------------------

    async def _cancel_provider_booking(self, pnr: str) -> None:
        try:
            await self._provider.cancel_booking(pnr)
        except Exception as exc:
            logger.warning("Provider cancellation failed for pnr %s: %s", pnr, exc)

    async def _refund(self, booking_id: str, price: PriceBreakdown) -> str | None:
        try:
            refund = await self._payments.refund(booking_id, price)
        except Exception as exc:
            logger.warning("Refund failed for booking %s: %s", booking_id, exc)
            return None
        return refund.refund_id

    async def _send_email(self, message: EmailMessage, kind: str) -> None:
        try:
            await self._notifier.send_email(message)
        except Exception as exc:
            logger.warning("Failed to send %s to %s: %s", kind, message.to, exc)

    def _record_metric(self, name: str, tags: dict[str, str]) -> None:
        try:
            self._metrics.increment_counter(name, tags)
        except Exception as exc:
            logger.warning("Failed to record metric %s: %s", name, exc)

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    @staticmethod
    async def _guard(operation: Awaitable[T], failure_message: str) -> BookingResult[T]:
        try:
            return BookingResult.ok(await operation)
        except BookingError as exc:
            logger.info("%s: %s (%s)", failure_message, exc.message, exc.kind)
            return BookingResult.fail(exc)
        except Exception:
            logger.exception(failure_message)
            return BookingResult.fail(
                BookingError(ErrorKind.SERVICE_ERROR, failure_message)
            )


def _validate(model: type[M], payload: M | Mapping[str, Any]) -> M:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise BookingError(
            ErrorKind.VALIDATION,
            f"Invalid {model.__name__}",
            {"errors": json.loads(exc.json(include_url=False))},
        ) from exc


def _check_passenger_assumptions(offer: FlightOffer, request: BookingRequest) -> None:
    count = len(request.passengers)
    if offer.traveler_pricings and len(offer.traveler_pricings) != count:
        raise BookingError(
            ErrorKind.VALIDATION,
            "Passenger count does not match the flight offer",
            {"expected": len(offer.traveler_pricings), "received": count},
        )
    if count > offer.number_of_bookable_seats:
        raise BookingError(
            ErrorKind.VALIDATION,
            "Not enough bookable seats for all passengers",
            {"available": offer.number_of_bookable_seats, "received": count},
        )


def _conflict_details(confirmation: PriceConfirmation) -> dict[str, Any]:
    current = confirmation.current_price
    return {
        "original_price": confirmation.original_price.grand_total,
        "current_price": current.grand_total if current is not None else None,
        "currency": (current or confirmation.original_price).currency,
        "price_difference": confirmation.price_difference,
        "expires_at": confirmation.expires_at.isoformat(),
    }


def _matches(record: BookingRecord, filters: BookingSearchFilters) -> bool:
    created = as_utc(record.created_at)
    if filters.status is not None and record.status != filters.status:
        return False
    if filters.from_date is not None and created < as_utc(filters.from_date):
        return False
    if filters.to_date is not None and created > as_utc(filters.to_date):
        return False
    if filters.pnr is not None and record.pnr != filters.pnr:
        return False
    if filters.passenger_email is not None:
        wanted = str(filters.passenger_email).lower()
        emails = {str(record.contact_info.email).lower()}
        emails.update(str(p.email).lower() for p in record.passengers if p.email)
        if wanted not in emails:
            return False
    return True


def _to_list_item(record: BookingRecord) -> BookingListItem:
    offer = record.flight_offer
    return BookingListItem(
        booking_id=record.booking_id,
        pnr=record.pnr,
        status=record.status,
        origin=offer.origin,
        destination=offer.destination,
        departure_date=offer.departure_at,
        return_date=offer.return_at,
        passenger_count=len(record.passengers),
        total_price=record.price_breakdown.grand_total,
        currency=record.price_breakdown.currency,
        created_at=record.created_at,
    )
