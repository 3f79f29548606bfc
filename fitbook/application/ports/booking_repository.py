from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from fitbook.application.exceptions import NotFound
from fitbook.domain.entities.booking import Booking, BookingQuery, BookingStatus
from fitbook.domain.entities.schedule import WeeklySchedule
from fitbook.domain.entities.trainer import FitnessClass, Trainer


class BookingRepositoryPort(ABC):
    def find_trainer_schedule(self, trainer_id: int) -> WeeklySchedule:
        """Return the trainer's weekly schedule. Raises NotFound for unknown trainers."""
        trainer = self.get_trainer(trainer_id)
        if trainer is None:
            raise NotFound(f"trainer {trainer_id} not found")
        return trainer.schedule

    @abstractmethod
    def get_trainer(self, trainer_id: int) -> Trainer | None:
        raise NotImplementedError

    @abstractmethod
    def list_trainers(self) -> list[Trainer]:
        raise NotImplementedError

    @abstractmethod
    def get_class(self, class_id: int) -> FitnessClass | None:
        raise NotImplementedError

    @abstractmethod
    def find_active_booking(self, user_id: str, trainer_id: int, booked_time: datetime) -> Booking | None:
        """Return the booking in status booked matching all three fields exactly, if any."""
        raise NotImplementedError

    @abstractmethod
    def insert_booking(self, booking: Booking) -> int:
        """Persist a booking and return its id.

        Raises DuplicateBooking when another booked row already holds the
        (user, trainer, booked time) triple.
        """
        raise NotImplementedError

    @abstractmethod
    def get_booking(self, booking_id: int, user_id: str | None = None) -> Booking | None:
        """Fetch a booking; when user_id is given, only a booking owned by that user."""
        raise NotImplementedError

    @abstractmethod
    def update_booking_status(
        self,
        booking_id: int,
        user_id: str | None,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> int:
        """Set the status and return rows affected.

        user_id None means no ownership filter (admin). When expected_status is
        given, the row is only written while it still holds that status, so a
        concurrent change makes this return 0.
        """
        raise NotImplementedError

    @abstractmethod
    def list_bookings(self, query: BookingQuery) -> list[Booking]:
        """List bookings matching the query, newest booked time first."""
        raise NotImplementedError

    @abstractmethod
    def seed(self, classes: list[FitnessClass], trainers: list[Trainer]) -> None:
        """Insert or update reference data by id, so edited configuration reaches the store."""
        raise NotImplementedError
