"""Core schemas for Sky Booking."""

from .booking import (
    BillingAddress,
    BookingCancellation,
    BookingConfirmation,
    BookingListItem,
    BookingRecord,
    BookingRequest,
    BookingSearchFilters,
    BookingStatusSummary,
    ContactInfo,
    EmergencyContact,
    FeeItem,
    Invoice,
    InvoiceLine,
    InvoiceParty,
    Passenger,
    PassengerDocument,
    PaymentInfo,
    PriceBreakdown,
    PriceLock,
    TaxItem,
)
from .enums import (
    BookingStatus,
    DocumentType,
    EmailPriority,
    ErrorKind,
    Gender,
    PassengerType,
    PaymentMethod,
    PaymentStatus,
    SeatPreference,
    Title,
)
from .offer import (
    FlightOffer,
    FlightSegment,
    Itinerary,
    OfferFee,
    OfferPrice,
    SegmentEndpoint,
    TravelerPricing,
)
from .result import BookingError, BookingResult, ErrorDetail

__all__ = [
    "BillingAddress",
    "BookingCancellation",
    "BookingConfirmation",
    "BookingError",
    "BookingListItem",
    "BookingRecord",
    "BookingRequest",
    "BookingResult",
    "BookingSearchFilters",
    "BookingStatus",
    "BookingStatusSummary",
    "ContactInfo",
    "DocumentType",
    "EmailPriority",
    "EmergencyContact",
    "ErrorDetail",
    "ErrorKind",
    "FeeItem",
    "FlightOffer",
    "FlightSegment",
    "Gender",
    "Invoice",
    "InvoiceLine",
    "InvoiceParty",
    "Itinerary",
    "OfferFee",
    "OfferPrice",
    "Passenger",
    "PassengerDocument",
    "PassengerType",
    "PaymentInfo",
    "PaymentMethod",
    "PaymentStatus",
    "PriceBreakdown",
    "PriceLock",
    "SeatPreference",
    "SegmentEndpoint",
    "TaxItem",
    "Title",
    "TravelerPricing",
]
