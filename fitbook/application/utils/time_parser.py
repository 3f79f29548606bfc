from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from fitbook.application.exceptions import InvalidInput
from fitbook.domain.entities.booking import BookingFilter, BookingStatus

_SLOT_START_RE = re.compile(r"(\d{1,2}):(\d{2})")


def parse_booking_date(text: str | None) -> date:
    """Parse a calendar date in YYYY-MM-DD form."""
    if not text or not text.strip():
        raise InvalidInput("missing date")
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise InvalidInput(f"invalid date: {text!r}") from None


def extract_slot_start(text: str | None) -> time:
    """Return the first HH:MM token of a free-form slot string such as "13:30–15:00"."""
    match = _SLOT_START_RE.search(text or "")
    if not match:
        raise InvalidInput(f"invalid time slot: {text!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidInput(f"invalid time slot: {text!r}")
    return time(hour, minute)


def to_booked_instant(day: date, start: time, studio_tz: ZoneInfo) -> datetime:
    """Combine a studio-local date and start time into an absolute UTC instant."""
    local = datetime.combine(day, start, tzinfo=studio_tz)
    return local.astimezone(timezone.utc)


def parse_status(text: str | None) -> BookingStatus:
    try:
        return BookingStatus((text or "").strip().lower())
    except ValueError:
        raise InvalidInput(f"invalid status: {text!r}") from None


def parse_filter(text: str | None) -> BookingFilter:
    if not text:
        return BookingFilter.ALL
    try:
        return BookingFilter(text.strip().lower())
    except ValueError:
        raise InvalidInput(f"invalid filter: {text!r}") from None
