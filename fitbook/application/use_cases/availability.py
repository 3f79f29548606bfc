from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from fitbook.application.exceptions import InvalidInput
from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.domain.entities.schedule import TimeRange, WeeklySchedule, Weekday

DEFAULT_SEARCH_DAYS = 60
DEFAULT_WINDOW_DAYS = 45


def slots_on(schedule: WeeklySchedule, day: date) -> tuple[TimeRange, ...]:
    return schedule.ranges_for(Weekday.of(day))


def next_available_date(schedule: WeeklySchedule, from_date: date, horizon_days: int = DEFAULT_SEARCH_DAYS) -> date:
    """
    First date on or after from_date with at least one slot, scanning horizon_days days.
    Falls back to from_date when nothing is found; callers must re-check slots_on.
    """
    for offset in range(horizon_days):
        candidate = from_date + timedelta(days=offset)
        if slots_on(schedule, candidate):
            return candidate
    return from_date


def booking_window(today: date, window_days: int = DEFAULT_WINDOW_DAYS) -> tuple[date, date]:
    return today, today + timedelta(days=window_days)


def within_window(day: date, today: date, window_days: int = DEFAULT_WINDOW_DAYS) -> bool:
    first, last = booking_window(today, window_days)
    return first <= day <= last


@dataclass(frozen=True)
class DayAvailability:
    day: date
    weekday: Weekday
    slots: tuple[TimeRange, ...]
    bookable: bool


class AvailabilityUseCase:
    def __init__(
        self,
        repository: BookingRepositoryPort,
        timezone: ZoneInfo,
        window_days: int = DEFAULT_WINDOW_DAYS,
        search_days: int = DEFAULT_SEARCH_DAYS,
    ) -> None:
        self._repository = repository
        self._timezone = timezone
        self._window_days = window_days
        self._search_days = search_days
        self._logger = logging.getLogger(__name__)

    def today(self) -> date:
        return datetime.now(self._timezone).date()

    def window(self, today: date | None = None) -> tuple[date, date]:
        return booking_window(today or self.today(), self._window_days)

    def slots_for(self, trainer_id: int, day: date, today: date | None = None) -> DayAvailability:
        today = today or self.today()
        self._require_in_window(day, today)
        schedule = self._repository.find_trainer_schedule(trainer_id)
        slots = slots_on(schedule, day)
        return DayAvailability(day=day, weekday=Weekday.of(day), slots=slots, bookable=bool(slots))

    def next_available(self, trainer_id: int, from_date: date | None = None, today: date | None = None) -> DayAvailability:
        today = today or self.today()
        from_date = from_date or today
        self._require_in_window(from_date, today)
        schedule = self._repository.find_trainer_schedule(trainer_id)
        found = next_available_date(schedule, from_date, self._search_days)
        slots = slots_on(schedule, found)
        if not slots:
            self._logger.info(
                "No availability within search horizon",
                extra={"trainer_id": trainer_id, "from_date": from_date.isoformat()},
            )
        # The scan horizon is wider than the booking window.
        bookable = bool(slots) and within_window(found, today, self._window_days)
        return DayAvailability(day=found, weekday=Weekday.of(found), slots=slots, bookable=bookable)

    def _require_in_window(self, day: date, today: date) -> None:
        if not within_window(day, today, self._window_days):
            first, last = booking_window(today, self._window_days)
            raise InvalidInput(f"date must be between {first.isoformat()} and {last.isoformat()}")
