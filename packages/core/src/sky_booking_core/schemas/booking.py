"""Booking request, confirmation and listing DTOs."""

from __future__ import annotations

from datetime import date, datetime  # noqa: TC003
from typing import Annotated, Any

from pydantic import EmailStr, Field, StringConstraints, field_validator

from .base import CamelModel
from .enums import (
    BookingStatus,
    DocumentType,
    Gender,
    PassengerType,
    PaymentMethod,
    PaymentStatus,
    SeatPreference,
    Title,
)
from .offer import FlightOffer  # noqa: TC001

_NAME_PATTERN = r"^[A-Za-z\s\-']+$"
_PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"

CountryCode = Annotated[str, StringConstraints(min_length=2, max_length=2, to_upper=True)]


class PassengerDocument(CamelModel):
    """Travel document presented for a passenger."""

    document_type: DocumentType
    document_number: str = Field(min_length=5, max_length=50)
    issuing_country: CountryCode
    expiry_date: date
    nationality: CountryCode


class Passenger(CamelModel):
    """Traveller with legal name and document information."""

    id: str | None = None
    type: PassengerType = PassengerType.ADULT
    title: Title
    first_name: str = Field(min_length=1, max_length=50, pattern=_NAME_PATTERN)
    middle_name: str | None = Field(default=None, max_length=50, pattern=_NAME_PATTERN)
    last_name: str = Field(min_length=1, max_length=50, pattern=_NAME_PATTERN)
    date_of_birth: date
    gender: Gender
    document: PassengerDocument
    email: EmailStr | None = None
    phone: str | None = Field(default=None, pattern=_PHONE_PATTERN)
    special_requests: list[str] = Field(default_factory=list)
    meal_preference: str | None = None
    seat_preference: SeatPreference | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class EmergencyContact(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str = Field(pattern=_PHONE_PATTERN)
    relationship: str = Field(min_length=1, max_length=50)


class ContactInfo(CamelModel):
    """Who receives booking correspondence."""

    email: EmailStr
    phone: str = Field(pattern=_PHONE_PATTERN)
    emergency_contact: EmergencyContact | None = None


class BillingAddress(CamelModel):
    line1: str = Field(min_length=1, max_length=100)
    line2: str | None = Field(default=None, max_length=100)
    city: str = Field(min_length=1, max_length=50)
    state: str | None = Field(default=None, max_length=50)
    postal_code: str = Field(min_length=1, max_length=20)
    country: CountryCode


class PaymentInfo(CamelModel):
    """Payment instrument reference. Card data is tokenised upstream."""

    method: PaymentMethod
    card_token: str | None = None
    billing_address: BillingAddress


class BookingRequest(CamelModel):
    """Validated input for creating a booking."""

    offer_id: str = Field(min_length=1)
    passengers: list[Passenger] = Field(min_length=1, max_length=9)
    contact_info: ContactInfo
    payment_info: PaymentInfo
    agree_to_terms: bool
    subscribe_to_updates: bool = False

    @field_validator("agree_to_terms")
    @classmethod
    def _terms_accepted(cls, value: bool) -> bool:
        if not value:
            msg = "You must agree to the terms and conditions"
            raise ValueError(msg)
        return value


class TaxItem(CamelModel):
    code: str
    description: str
    amount: float


class FeeItem(CamelModel):
    type: str
    description: str
    amount: float


class PriceBreakdown(CamelModel):
    """Itemised price derived from a provider price object."""

    base_fare: float = Field(gt=0)
    taxes: list[TaxItem] = Field(default_factory=list)
    fees: list[FeeItem] = Field(default_factory=list)
    discount: float = Field(default=0, ge=0)
    grand_total: float = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)


class PriceLock(CamelModel):
    """Price snapshot pinned to an offer for a short window."""

    offer_id: str
    price: PriceBreakdown
    locked_at: datetime
    expires_at: datetime


class BookingConfirmation(CamelModel):
    """Public view of a booking."""

    booking_id: str
    pnr: str
    status: BookingStatus
    flight_offer: FlightOffer
    passengers: list[Passenger]
    contact_info: ContactInfo
    price_breakdown: PriceBreakdown
    payment_status: PaymentStatus
    created_at: datetime
    ticketing_deadline: datetime | None = None


class BookingRecord(BookingConfirmation):
    """Stored variant of a booking, including owner and payment references."""

    user_id: str
    offer_id: str
    payment_intent_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_confirmation(self) -> BookingConfirmation:
        """Strip internal-only fields."""
        return BookingConfirmation.model_validate(
            self.model_dump(
                exclude={"user_id", "offer_id", "payment_intent_id", "metadata"}
            )
        )


class BookingListItem(CamelModel):
    """Row in a user's booking history."""

    booking_id: str
    pnr: str
    status: BookingStatus
    origin: str
    destination: str
    departure_date: datetime
    return_date: datetime | None = None
    passenger_count: int = Field(gt=0)
    total_price: float
    currency: str
    created_at: datetime


class BookingSearchFilters(CamelModel):
    """Optional filters and pagination for listing bookings."""

    status: BookingStatus | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    pnr: str | None = None
    passenger_email: EmailStr | None = None
    limit: int | None = Field(default=None, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class BookingCancellation(CamelModel):
    """Request to cancel an existing booking."""

    booking_id: str
    reason: str = Field(min_length=1, max_length=500)
    request_refund: bool = True


class BookingStatusSummary(CamelModel):
    booking_id: str
    pnr: str
    status: BookingStatus
    payment_status: PaymentStatus
    ticketing_deadline: datetime | None = None


class InvoiceParty(CamelModel):
    name: str
    email: str
    phone: str


class InvoiceLine(CamelModel):
    description: str
    quantity: int
    unit_price: float
    total: float


class Invoice(CamelModel):
    """Structured receipt for a booking."""

    invoice_number: str
    booking_reference: str
    issue_date: datetime
    due_date: datetime | None = None
    status: str
    bill_to: InvoiceParty
    items: list[InvoiceLine]
    subtotal: float
    taxes: list[TaxItem]
    fees: list[FeeItem]
    discount: float
    total: float
    currency: str
