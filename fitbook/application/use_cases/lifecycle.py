from __future__ import annotations

from datetime import datetime

from fitbook.application.exceptions import InvalidInput
from fitbook.domain.entities.booking import Booking, BookingStatus

# booked is the only state with outgoing transitions
TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.BOOKED: frozenset({BookingStatus.CANCELLED, BookingStatus.FINISHED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.FINISHED: frozenset(),
}


def is_noop(current: BookingStatus, target: BookingStatus) -> bool:
    return current is target


def check_transition(booking: Booking, target: BookingStatus, now: datetime, is_admin: bool = False) -> None:
    """Raise InvalidInput unless booking may move to target.

    A target equal to the current status is accepted (repeated requests
    succeed). Cancellation has no time gate. Users may only finish a
    booking once its booked time has passed; admins may finish any time.
    """
    if is_noop(booking.status, target):
        return
    if target not in TRANSITIONS[booking.status]:
        raise InvalidInput(f"invalid transition: {booking.status.value} -> {target.value}")
    if target is BookingStatus.FINISHED and not is_admin and booking.booked_time > now:
        raise InvalidInput("booking has not started yet")
