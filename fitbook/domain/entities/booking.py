from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum

from fitbook.domain.entities.schedule import TimeRange


class BookingStatus(str, Enum):
    BOOKED = "booked"
    CANCELLED = "cancelled"
    FINISHED = "finished"

    @property
    def is_terminal(self) -> bool:
        return self is not BookingStatus.BOOKED


class BookingFilter(str, Enum):
    UPCOMING = "upcoming"
    HISTORY = "history"
    ALL = "all"


@dataclass(frozen=True)
class CandidateSlot:
    day: date
    time_range: TimeRange


@dataclass(frozen=True)
class Booking:
    user_id: str
    trainer_id: int
    class_id: int
    price: int
    booked_time: datetime  # absolute, UTC
    created_at: datetime
    status: BookingStatus = BookingStatus.BOOKED
    name: str | None = None
    email: str | None = None
    id: int | None = None
    # Filled by listings
    trainer_name: str | None = None
    class_name: str | None = None

    def with_id(self, booking_id: int) -> "Booking":
        return replace(self, id=booking_id)

    def effective_status(self, now: datetime) -> BookingStatus:
        """Past bookings still marked booked read as finished."""
        if self.status is BookingStatus.BOOKED and self.booked_time < now:
            return BookingStatus.FINISHED
        return self.status


@dataclass(frozen=True)
class BookingQuery:
    """Filter passed to the repository when listing bookings."""

    kind: BookingFilter = BookingFilter.ALL
    now: datetime | None = None
    user_id: str | None = None  # None lists every user (admin)
