"""Result envelope returned by every public booking operation."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from .enums import ErrorKind

T = TypeVar("T")

_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.PAYMENT_ERROR: 402,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SERVICE_ERROR: 500,
}


class BookingError(Exception):
    """Typed failure raised inside the saga and converted at its boundary."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    def to_detail(self) -> ErrorDetail:
        return ErrorDetail(kind=self.kind, message=self.message, details=self.details)


class ErrorDetail(BaseModel):
    """Serializable description of a failed operation."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]


class BookingResult(BaseModel, Generic[T]):
    """Either a value (``success=True``) or an :class:`ErrorDetail`."""

    success: bool = True
    value: T | None = None
    error: ErrorDetail | None = None

    @classmethod
    def ok(cls, value: T) -> BookingResult[T]:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: BookingError | ErrorDetail) -> BookingResult[T]:
        if isinstance(error, BookingError):
            error = error.to_detail()
        return cls(success=False, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if not self.success or self.error is not None:
            assert self.error is not None
            raise BookingError(self.error.kind, self.error.message, self.error.details)
        return self.value  # type: ignore[return-value]
