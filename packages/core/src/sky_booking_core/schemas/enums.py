"""Pydantic-compatible enums for booking schemas (transport-independent)."""

from enum import StrEnum


class BookingStatus(StrEnum):
    """Lifecycle state of a booking."""

    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(StrEnum):
    """State of the payment attached to a booking."""

    AUTHORIZED = "AUTHORIZED"
    CAPTURED = "CAPTURED"
    REFUNDED = "REFUNDED"


class PassengerType(StrEnum):
    ADULT = "ADULT"
    CHILD = "CHILD"
    INFANT = "INFANT"


class DocumentType(StrEnum):
    PASSPORT = "PASSPORT"
    ID_CARD = "ID_CARD"
    DRIVER_LICENSE = "DRIVER_LICENSE"


class Gender(StrEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Title(StrEnum):
    MR = "MR"
    MS = "MS"
    MRS = "MRS"
    MISS = "MISS"
    DR = "DR"


class SeatPreference(StrEnum):
    WINDOW = "WINDOW"
    AISLE = "AISLE"
    MIDDLE = "MIDDLE"
    ANY = "ANY"


class PaymentMethod(StrEnum):
    """Payment instrument family."""

    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    PAYPAL = "PAYPAL"
    BANK_TRANSFER = "BANK_TRANSFER"


class EmailPriority(StrEnum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class ErrorKind(StrEnum):
    """Typed failure categories returned by booking operations."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    PAYMENT_ERROR = "PAYMENT_ERROR"
    SERVICE_ERROR = "SERVICE_ERROR"
