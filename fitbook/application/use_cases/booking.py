from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from fitbook.application.exceptions import DuplicateBooking, InvalidInput, NotFound
from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.application.use_cases.availability import DEFAULT_WINDOW_DAYS, booking_window, slots_on, within_window
from fitbook.application.use_cases.lifecycle import check_transition
from fitbook.application.utils.time_parser import extract_slot_start, parse_status, to_booked_instant
from fitbook.domain.entities.booking import Booking, BookingFilter, BookingQuery, BookingStatus, CandidateSlot
from fitbook.domain.entities.trainer import Trainer


@dataclass(frozen=True)
class BookingRequest:
    user_id: str
    trainer_id: int
    class_id: int
    day: date
    time_slot: str  # e.g. "09:00–11:00"; only the start is significant
    price: int | None = None
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class StatusChange:
    booking_id: int
    previous: BookingStatus
    status: BookingStatus
    rows_affected: int


class BookingUseCase:
    def __init__(
        self,
        repository: BookingRepositoryPort,
        timezone: ZoneInfo,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> None:
        self._repository = repository
        self._timezone = timezone
        self._window_days = window_days
        self._logger = logging.getLogger(__name__)

    def has_active_conflict(self, user_id: str, trainer_id: int, booked_time: datetime) -> bool:
        return self._repository.find_active_booking(user_id, trainer_id, booked_time) is not None

    def resolve_slot(self, trainer: Trainer, day: date, time_slot: str) -> CandidateSlot:
        """Match a free-form slot string to the range the trainer offers on that day, by start time."""
        start = extract_slot_start(time_slot)
        for time_range in slots_on(trainer.schedule, day):
            if time_range.start == start:
                return CandidateSlot(day=day, time_range=time_range)
        raise InvalidInput(f"{trainer.name} has no session starting {start:%H:%M} on {day.isoformat()}")

    def create_booking(self, request: BookingRequest, now: datetime | None = None) -> Booking:
        now = now or _utcnow()
        today = now.astimezone(self._timezone).date()

        trainer = self._repository.get_trainer(request.trainer_id)
        if trainer is None:
            raise NotFound(f"trainer {request.trainer_id} not found")
        fitness_class = self._repository.get_class(request.class_id)
        if fitness_class is None:
            raise NotFound(f"class {request.class_id} not found")

        if not within_window(request.day, today, self._window_days):
            first, last = booking_window(today, self._window_days)
            raise InvalidInput(f"date must be between {first.isoformat()} and {last.isoformat()}")

        slot = self.resolve_slot(trainer, request.day, request.time_slot)
        booked_time = to_booked_instant(slot.day, slot.time_range.start, self._timezone)
        existing = self._repository.find_active_booking(request.user_id, trainer.id, booked_time)
        if existing is not None:
            raise DuplicateBooking(existing=self._describe(existing))

        price = request.price if request.price else fitness_class.price
        if price < 0:
            raise InvalidInput("price must not be negative")

        booking = Booking(
            user_id=request.user_id,
            trainer_id=trainer.id,
            class_id=fitness_class.id,
            price=price,
            booked_time=booked_time,
            created_at=now,
            name=request.name,
            email=request.email,
        )
        try:
            booking_id = self._repository.insert_booking(booking)
        except DuplicateBooking as e:
            # Lost a race with a concurrent insert; report it like a pre-check hit.
            winner = self._repository.find_active_booking(request.user_id, trainer.id, booked_time)
            raise DuplicateBooking(existing=self._describe(winner) if winner else e.existing) from e

        self._logger.info(
            "Booking created",
            extra={"booking_id": booking_id, "trainer_id": trainer.id, "user_id": request.user_id},
        )
        return booking.with_id(booking_id)

    def change_status(
        self,
        booking_id: int,
        user_id: str | None,
        target: str | BookingStatus,
        is_admin: bool = False,
        now: datetime | None = None,
    ) -> StatusChange:
        status = target if isinstance(target, BookingStatus) else parse_status(target)
        owner = None if is_admin else user_id
        if owner is None and not is_admin:
            raise NotFound(f"booking {booking_id} not found")

        booking = self._repository.get_booking(booking_id, owner)
        if booking is None:
            raise NotFound(f"booking {booking_id} not found")

        now = now or _utcnow()
        check_transition(booking, status, now, is_admin=is_admin)

        rows = self._repository.update_booking_status(booking_id, owner, status, expected_status=booking.status)
        if not rows:
            # The status moved after the read; judge the request against the stored row.
            current = self._repository.get_booking(booking_id, owner)
            if current is None:
                raise NotFound(f"booking {booking_id} not found")
            self._logger.warning(
                "Concurrent status change",
                extra={"booking_id": booking_id, "user_id": user_id, "status": current.status.value},
            )
            check_transition(current, status, now, is_admin=is_admin)
            rows = self._repository.update_booking_status(booking_id, owner, status, expected_status=current.status)
            if not rows:
                raise InvalidInput(f"booking {booking_id} was changed concurrently, retry the request")
            booking = current

        self._logger.info(
            "Booking status updated",
            extra={"booking_id": booking_id, "user_id": user_id, "status": status.value},
        )
        return StatusChange(booking_id=booking_id, previous=booking.status, status=status, rows_affected=rows)

    def cancel(self, booking_id: int, user_id: str | None, is_admin: bool = False) -> StatusChange:
        return self.change_status(booking_id, user_id, BookingStatus.CANCELLED, is_admin=is_admin)

    def list_user_bookings(
        self,
        user_id: str,
        kind: BookingFilter = BookingFilter.ALL,
        now: datetime | None = None,
    ) -> list[Booking]:
        return self._repository.list_bookings(BookingQuery(kind=kind, now=now or _utcnow(), user_id=user_id))

    def list_all_bookings(self, kind: BookingFilter = BookingFilter.ALL, now: datetime | None = None) -> list[Booking]:
        return self._repository.list_bookings(BookingQuery(kind=kind, now=now or _utcnow()))

    def _describe(self, booking: Booking) -> dict[str, Any]:
        trainer = self._repository.get_trainer(booking.trainer_id)
        fitness_class = self._repository.get_class(booking.class_id)
        local = booking.booked_time.astimezone(self._timezone)
        return {
            "id": booking.id,
            "booked_time": booking.booked_time.isoformat(),
            "date": local.date().isoformat(),
            "time": local.strftime("%H:%M"),
            "trainer": trainer.name if trainer else None,
            "class": fitness_class.name if fitness_class else None,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
