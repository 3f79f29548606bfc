from __future__ import annotations

from typing import Any


class BookingError(RuntimeError):
    """Base class for errors raised by the scheduling core."""

    error_code = "BOOKING_ERROR"


class ConfigurationError(BookingError):
    """Raised when studio configuration (e.g. a weekly schedule) is malformed."""

    error_code = "CONFIGURATION_ERROR"


class InvalidInput(BookingError):
    """Raised for malformed dates, slot tokens, statuses or transitions."""

    error_code = "INVALID_INPUT"


class NotFound(BookingError):
    """Raised when a booking, trainer or class is missing or not owned by the caller."""

    error_code = "NOT_FOUND"


class StorageUnavailable(BookingError):
    """Raised when the storage backend fails (timeouts, lost connections)."""

    error_code = "STORAGE_UNAVAILABLE"


class DuplicateBooking(BookingError):
    """Raised when an active booking already holds the (user, trainer, booked time) triple."""

    error_code = "DUPLICATE_BOOKING"

    def __init__(self, message: str = "Booking already exists", existing: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.existing = dict(existing or {})
