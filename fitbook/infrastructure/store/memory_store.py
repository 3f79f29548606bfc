from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone

from fitbook.application.exceptions import DuplicateBooking
from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.domain.entities.booking import Booking, BookingFilter, BookingQuery, BookingStatus
from fitbook.domain.entities.trainer import FitnessClass, Trainer


class MemoryBookingRepository(BookingRepositoryPort):
    def __init__(self) -> None:
        self._trainers: dict[int, Trainer] = {}
        self._classes: dict[int, FitnessClass] = {}
        self._bookings: dict[int, Booking] = {}
        self._next_id = 1
        # Reentrant: insert_booking runs the active-slot lookup while holding it.
        self._lock = threading.RLock()

    def seed(self, classes: list[FitnessClass], trainers: list[Trainer]) -> None:
        by_name = {c.name: c.id for c in classes}
        with self._lock:
            for fitness_class in classes:
                self._classes[fitness_class.id] = fitness_class
            for trainer in trainers:
                if trainer.class_id is None:
                    trainer = replace(trainer, class_id=by_name.get(trainer.class_name))
                self._trainers[trainer.id] = trainer

    def get_trainer(self, trainer_id: int) -> Trainer | None:
        with self._lock:
            return self._trainers.get(trainer_id)

    def list_trainers(self) -> list[Trainer]:
        with self._lock:
            trainers = list(self._trainers.values())
        return sorted(trainers, key=lambda t: t.name)

    def get_class(self, class_id: int) -> FitnessClass | None:
        with self._lock:
            return self._classes.get(class_id)

    def find_active_booking(self, user_id: str, trainer_id: int, booked_time: datetime) -> Booking | None:
        with self._lock:
            for booking in self._bookings.values():
                if (
                    booking.status is BookingStatus.BOOKED
                    and booking.user_id == user_id
                    and booking.trainer_id == trainer_id
                    and booking.booked_time == booked_time
                ):
                    return booking
        return None

    def insert_booking(self, booking: Booking) -> int:
        with self._lock:
            if booking.status is BookingStatus.BOOKED:
                existing = self.find_active_booking(booking.user_id, booking.trainer_id, booking.booked_time)
                if existing is not None:
                    raise DuplicateBooking(existing={"id": existing.id, "booked_time": existing.booked_time.isoformat()})
            booking_id = self._next_id
            self._next_id += 1
            self._bookings[booking_id] = booking.with_id(booking_id)
            return booking_id

    def get_booking(self, booking_id: int, user_id: str | None = None) -> Booking | None:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or (user_id is not None and booking.user_id != user_id):
                return None
            return self._decorate(booking)

    def update_booking_status(
        self,
        booking_id: int,
        user_id: str | None,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> int:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None or (user_id is not None and booking.user_id != user_id):
                return 0
            if expected_status is not None and booking.status is not expected_status:
                return 0
            self._bookings[booking_id] = replace(booking, status=new_status)
            return 1

    def list_bookings(self, query: BookingQuery) -> list[Booking]:
        now = query.now or datetime.now(timezone.utc)
        with self._lock:
            rows = [
                b
                for b in self._bookings.values()
                if (query.user_id is None or b.user_id == query.user_id) and _matches(b, query.kind, now)
            ]
            rows.sort(key=lambda b: (b.booked_time, b.id or 0), reverse=True)
            return [self._decorate(b) for b in rows]

    def _decorate(self, booking: Booking) -> Booking:
        trainer = self._trainers.get(booking.trainer_id)
        fitness_class = self._classes.get(booking.class_id)
        return replace(
            booking,
            trainer_name=trainer.name if trainer else None,
            class_name=fitness_class.name if fitness_class else None,
        )


def _matches(booking: Booking, kind: BookingFilter, now: datetime) -> bool:
    if kind is BookingFilter.UPCOMING:
        return booking.status is BookingStatus.BOOKED and booking.booked_time >= now
    if kind is BookingFilter.HISTORY:
        return booking.status is not BookingStatus.BOOKED or booking.booked_time < now
    return True
