from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from fitbook.application.use_cases.booking import BookingUseCase
from fitbook.infrastructure.catalog.studio_config import load_studio_config
from fitbook.infrastructure.store.memory_store import MemoryBookingRepository

STUDIO_TZ = ZoneInfo("Asia/Bangkok")
# Saturday 2025-11-01 10:00 in the studio
NOW = datetime(2025, 11, 1, 3, 0, tzinfo=timezone.utc)

JOHN_CARTER = 1
STRENGTH = 1


@pytest.fixture
def studio():
    return load_studio_config()


@pytest.fixture
def memory_repo(studio):
    repo = MemoryBookingRepository()
    repo.seed(studio.classes, studio.trainers)
    return repo


@pytest.fixture
def booking_uc(memory_repo):
    return BookingUseCase(repository=memory_repo, timezone=STUDIO_TZ, window_days=45)
