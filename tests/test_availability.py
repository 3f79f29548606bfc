from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from fitbook.application.exceptions import InvalidInput, NotFound
from fitbook.application.use_cases.availability import (
    AvailabilityUseCase,
    booking_window,
    next_available_date,
    slots_on,
)
from fitbook.domain.entities.schedule import TimeRange, WeeklySchedule

from conftest import JOHN_CARTER, STUDIO_TZ

JOHN = WeeklySchedule.from_entries(["Mon 09:00–11:00", "Thu 09:00–11:00"])

MONDAY = date(2025, 11, 3)
TUESDAY = date(2025, 11, 4)
WEDNESDAY = date(2025, 11, 5)
THURSDAY = date(2025, 11, 6)


def test_slots_on_follow_the_weekday():
    assert slots_on(JOHN, WEDNESDAY) == ()
    assert slots_on(JOHN, MONDAY) == (TimeRange(time(9), time(11)),)


def test_slots_on_every_empty_weekday_is_empty():
    for offset in range(7):
        day = MONDAY + timedelta(days=offset)
        if day not in (MONDAY, THURSDAY):
            assert slots_on(JOHN, day) == ()


def test_next_available_is_fixed_point_on_available_date():
    assert next_available_date(JOHN, MONDAY) == MONDAY
    assert next_available_date(JOHN, THURSDAY, horizon_days=1) == THURSDAY


def test_next_available_picks_nearest_day_forward():
    assert next_available_date(JOHN, TUESDAY) == THURSDAY
    assert next_available_date(JOHN, date(2025, 11, 7)) == date(2025, 11, 10)


def test_next_available_falls_back_to_start_when_nothing_found():
    assert next_available_date(WeeklySchedule(), TUESDAY) == TUESDAY
    # Thursday is two days out; a two-day horizon only covers Tue and Wed.
    assert next_available_date(JOHN, TUESDAY, horizon_days=2) == TUESDAY


def test_booking_window_is_45_days():
    assert booking_window(MONDAY) == (MONDAY, MONDAY + timedelta(days=45))


def test_use_case_slots_for_trainer(memory_repo):
    uc = AvailabilityUseCase(memory_repo, STUDIO_TZ)
    result = uc.slots_for(JOHN_CARTER, MONDAY, today=date(2025, 11, 1))
    assert result.bookable is True
    assert [r.label() for r in result.slots] == ["09:00–11:00"]

    result = uc.slots_for(JOHN_CARTER, WEDNESDAY, today=date(2025, 11, 1))
    assert result.slots == ()
    assert result.bookable is False


def test_use_case_rejects_dates_outside_window(memory_repo):
    uc = AvailabilityUseCase(memory_repo, STUDIO_TZ)
    with pytest.raises(InvalidInput):
        uc.slots_for(JOHN_CARTER, date(2025, 10, 31), today=date(2025, 11, 1))
    with pytest.raises(InvalidInput):
        uc.slots_for(JOHN_CARTER, date(2025, 11, 1) + timedelta(days=46), today=date(2025, 11, 1))


def test_use_case_unknown_trainer(memory_repo):
    uc = AvailabilityUseCase(memory_repo, STUDIO_TZ)
    with pytest.raises(NotFound):
        uc.slots_for(999, MONDAY, today=date(2025, 11, 1))


def test_use_case_next_available_from_tuesday(memory_repo):
    uc = AvailabilityUseCase(memory_repo, STUDIO_TZ)
    result = uc.next_available(JOHN_CARTER, TUESDAY, today=date(2025, 11, 1))
    assert result.day == THURSDAY
    assert result.bookable is True


def test_next_available_beyond_window_is_not_bookable(memory_repo):
    # Search horizon (60) is wider than the booking window (45).
    uc = AvailabilityUseCase(memory_repo, STUDIO_TZ, window_days=45, search_days=60)
    today = date(2025, 11, 1)
    last = today + timedelta(days=45)  # 2025-12-16, a Tuesday
    result = uc.next_available(JOHN_CARTER, last, today=today)
    assert result.day == date(2025, 12, 18)
    assert result.slots
    assert result.bookable is False
