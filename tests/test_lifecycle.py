from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from fitbook.application.exceptions import InvalidInput, NotFound
from fitbook.application.use_cases.booking import BookingRequest, BookingUseCase
from fitbook.application.use_cases.lifecycle import check_transition
from fitbook.domain.entities.booking import Booking, BookingStatus
from fitbook.infrastructure.store.memory_store import MemoryBookingRepository

from conftest import JOHN_CARTER, NOW, STRENGTH, STUDIO_TZ

BOOKED_AT = datetime(2025, 11, 3, 2, 0, tzinfo=timezone.utc)


def _booking(status: BookingStatus = BookingStatus.BOOKED) -> Booking:
    return Booking(
        user_id="u1",
        trainer_id=JOHN_CARTER,
        class_id=STRENGTH,
        price=1100,
        booked_time=BOOKED_AT,
        created_at=NOW,
        status=status,
        id=1,
    )


def _create(uc, user_id: str = "u1") -> Booking:
    return uc.create_booking(
        BookingRequest(user_id=user_id, trainer_id=JOHN_CARTER, class_id=STRENGTH, day=date(2025, 11, 3), time_slot="09:00–11:00"),
        now=NOW,
    )


def test_booked_can_be_cancelled_any_time():
    check_transition(_booking(), BookingStatus.CANCELLED, now=NOW)
    check_transition(_booking(), BookingStatus.CANCELLED, now=BOOKED_AT + timedelta(days=30))


def test_user_can_finish_only_after_start():
    with pytest.raises(InvalidInput):
        check_transition(_booking(), BookingStatus.FINISHED, now=NOW)
    check_transition(_booking(), BookingStatus.FINISHED, now=BOOKED_AT + timedelta(hours=2))
    check_transition(_booking(), BookingStatus.FINISHED, now=NOW, is_admin=True)


@pytest.mark.parametrize("terminal", [BookingStatus.CANCELLED, BookingStatus.FINISHED])
def test_terminal_states_do_not_move(terminal):
    for target in BookingStatus:
        if target is terminal:
            check_transition(_booking(terminal), target, now=NOW)
        else:
            with pytest.raises(InvalidInput):
                check_transition(_booking(terminal), target, now=NOW, is_admin=True)


def test_cancel_twice_succeeds_both_times(booking_uc, memory_repo):
    booking = _create(booking_uc)
    first = booking_uc.cancel(booking.id, "u1")
    second = booking_uc.cancel(booking.id, "u1")
    assert first.status is BookingStatus.CANCELLED
    assert second.status is BookingStatus.CANCELLED
    assert second.previous is BookingStatus.CANCELLED
    assert second.rows_affected == 1
    assert memory_repo.get_booking(booking.id).status is BookingStatus.CANCELLED


def test_unknown_status_is_invalid(booking_uc):
    booking = _create(booking_uc)
    with pytest.raises(InvalidInput):
        booking_uc.change_status(booking.id, "u1", "paused")


def test_foreign_booking_reads_as_not_found(booking_uc, memory_repo):
    booking = _create(booking_uc)
    with pytest.raises(NotFound):
        booking_uc.cancel(booking.id, "intruder")
    with pytest.raises(NotFound):
        booking_uc.cancel(9999, "u1")
    assert memory_repo.get_booking(booking.id).status is BookingStatus.BOOKED


def test_admin_can_cancel_any_booking(booking_uc):
    booking = _create(booking_uc)
    change = booking_uc.cancel(booking.id, "admin-user", is_admin=True)
    assert change.status is BookingStatus.CANCELLED


def test_cancelled_booking_cannot_be_reopened(booking_uc):
    booking = _create(booking_uc)
    booking_uc.cancel(booking.id, "u1")
    with pytest.raises(InvalidInput):
        booking_uc.change_status(booking.id, "u1", "booked")


def test_user_finishes_past_booking(booking_uc):
    booking = _create(booking_uc)
    change = booking_uc.change_status(booking.id, "u1", "finished", now=BOOKED_AT + timedelta(hours=1))
    assert change.previous is BookingStatus.BOOKED
    assert change.status is BookingStatus.FINISHED


class _InterleavedCancelRepository(MemoryBookingRepository):
    """Cancels the booking right after it is read, as if another request landed in between."""

    def __init__(self) -> None:
        super().__init__()
        self.cancel_after_read = False

    def get_booking(self, booking_id, user_id=None):
        booking = super().get_booking(booking_id, user_id)
        if self.cancel_after_read and booking is not None:
            self.cancel_after_read = False
            super().update_booking_status(booking_id, None, BookingStatus.CANCELLED)
        return booking


@pytest.fixture
def interleaved(studio):
    repo = _InterleavedCancelRepository()
    repo.seed(studio.classes, studio.trainers)
    return repo, BookingUseCase(repository=repo, timezone=STUDIO_TZ)


def test_finish_does_not_overwrite_concurrent_cancel(interleaved):
    repo, uc = interleaved
    booking = _create(uc)

    repo.cancel_after_read = True
    with pytest.raises(InvalidInput):
        uc.change_status(booking.id, "admin", "finished", is_admin=True)
    assert repo.get_booking(booking.id).status is BookingStatus.CANCELLED


def test_cancel_racing_another_cancel_succeeds(interleaved):
    repo, uc = interleaved
    booking = _create(uc)

    repo.cancel_after_read = True
    change = uc.cancel(booking.id, "u1")
    assert change.previous is BookingStatus.CANCELLED
    assert change.status is BookingStatus.CANCELLED
    assert change.rows_affected == 1


def test_status_write_is_conditional_on_expected_status(memory_repo):
    booking_id = memory_repo.insert_booking(_booking())
    assert memory_repo.update_booking_status(booking_id, None, BookingStatus.FINISHED, BookingStatus.CANCELLED) == 0
    assert memory_repo.get_booking(booking_id).status is BookingStatus.BOOKED
    assert memory_repo.update_booking_status(booking_id, None, BookingStatus.FINISHED, BookingStatus.BOOKED) == 1
    assert memory_repo.get_booking(booking_id).status is BookingStatus.FINISHED
