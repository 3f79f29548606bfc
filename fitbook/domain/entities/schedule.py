from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Iterable, Mapping

from fitbook.application.exceptions import ConfigurationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_RANGE_SEPARATORS = ("–", "-")


class Weekday(str, Enum):
    SUN = "Sun"
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        # date.weekday() counts from Monday
        return _BY_PY_WEEKDAY[day.weekday()]

    @classmethod
    def parse(cls, text: str) -> "Weekday":
        """Accept an abbreviation ("Mon") or a full name ("Monday"), case-insensitively."""
        try:
            return _BY_NAME[text.strip().lower()]
        except KeyError:
            raise ValueError(f"Unknown weekday: {text!r}") from None


_BY_PY_WEEKDAY = (
    Weekday.MON,
    Weekday.TUE,
    Weekday.WED,
    Weekday.THU,
    Weekday.FRI,
    Weekday.SAT,
    Weekday.SUN,
)

_FULL_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
_BY_NAME = {
    **{weekday.value.lower(): weekday for weekday in Weekday},
    **{name: Weekday(name[:3].capitalize()) for name in _FULL_NAMES},
}


def parse_time_of_day(text: str) -> time:
    match = _TIME_RE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid time of day: {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {text!r}")
    return time(hour, minute)


@dataclass(frozen=True, order=True)
class TimeRange:
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start.second or self.start.microsecond or self.end.second or self.end.microsecond:
            raise ValueError("Time ranges use minute granularity")
        if self.start >= self.end:
            raise ValueError(f"Time range must start before it ends: {self.start:%H:%M}-{self.end:%H:%M}")

    @classmethod
    def parse(cls, text: str) -> "TimeRange":
        """Parse "HH:MM–HH:MM" (en-dash or hyphen)."""
        for separator in _RANGE_SEPARATORS:
            if separator in text:
                start_text, _, end_text = text.partition(separator)
                return cls(parse_time_of_day(start_text), parse_time_of_day(end_text))
        raise ValueError(f"Invalid time range: {text!r}")

    def overlaps(self, other: "TimeRange") -> bool:
        return self.start < other.end and other.start < self.end

    def label(self) -> str:
        return f"{self.start:%H:%M}–{self.end:%H:%M}"

    def __str__(self) -> str:
        return self.label()


@dataclass(frozen=True)
class WeeklySchedule:
    """A trainer's recurring availability, keyed by weekday.

    Ranges are stored sorted by start time. Overlapping ranges on the same
    weekday raise ConfigurationError when the schedule is built.
    """

    days: Mapping[Weekday, tuple[TimeRange, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized: dict[Weekday, tuple[TimeRange, ...]] = {}
        for weekday, ranges in self.days.items():
            ordered = tuple(sorted(ranges))
            for previous, current in zip(ordered, ordered[1:]):
                if previous.overlaps(current):
                    raise ConfigurationError(
                        f"Overlapping ranges on {Weekday(weekday).value}: {previous} and {current}"
                    )
            if ordered:
                normalized[Weekday(weekday)] = ordered
        object.__setattr__(self, "days", normalized)

    def ranges_for(self, weekday: Weekday) -> tuple[TimeRange, ...]:
        return self.days.get(weekday, ())

    def is_empty(self) -> bool:
        return not self.days

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> "WeeklySchedule":
        """Build a schedule from entries such as "Mon 09:00–11:00"."""
        days: dict[Weekday, list[TimeRange]] = {}
        for entry in entries:
            day_text, _, range_text = entry.strip().partition(" ")
            try:
                weekday = Weekday.parse(day_text)
                time_range = TimeRange.parse(range_text)
            except ValueError as e:
                raise ConfigurationError(f"Invalid schedule entry {entry!r}: {e}") from e
            days.setdefault(weekday, []).append(time_range)
        return cls({day: tuple(ranges) for day, ranges in days.items()})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Iterable[str]]) -> "WeeklySchedule":
        """Build a schedule from {"Mon": ["09:00–11:00"], ...}."""
        days: dict[Weekday, tuple[TimeRange, ...]] = {}
        for day_text, ranges in data.items():
            try:
                days[Weekday.parse(day_text)] = tuple(TimeRange.parse(r) for r in ranges)
            except ValueError as e:
                raise ConfigurationError(f"Invalid schedule for {day_text!r}: {e}") from e
        return cls(days)

    def to_entries(self) -> list[str]:
        return [
            f"{weekday.value} {time_range.label()}"
            for weekday in Weekday
            for time_range in self.ranges_for(weekday)
        ]
