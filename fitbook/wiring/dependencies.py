from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.application.use_cases.availability import AvailabilityUseCase
from fitbook.application.use_cases.booking import BookingUseCase
from fitbook.core.config import settings
from fitbook.infrastructure.catalog.studio_config import load_studio_config
from fitbook.infrastructure.store.memory_store import MemoryBookingRepository
from fitbook.infrastructure.store.sql_store import SqlBookingRepository, build_engine


_repository: BookingRepositoryPort | None = None


def get_repository() -> BookingRepositoryPort:
    global _repository
    if _repository is None:
        logger = logging.getLogger(__name__)
        if settings.STORE_PROVIDER.lower() == "memory":
            logger.info("Using MemoryBookingRepository")
            repository: BookingRepositoryPort = MemoryBookingRepository()
        else:
            logger.info("Using SqlBookingRepository")
            repository = SqlBookingRepository(build_engine(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS))
        config = load_studio_config(settings.STUDIO_CONFIG_PATH)
        repository.seed(config.classes, config.trainers)
        _repository = repository
    return _repository


def set_repository(repository: BookingRepositoryPort | None) -> None:
    global _repository
    _repository = repository


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.STUDIO_TIMEZONE)


def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(
        repository=get_repository(),
        timezone=get_timezone(),
        window_days=settings.BOOKING_WINDOW_DAYS,
        search_days=settings.AVAILABILITY_SEARCH_DAYS,
    )


def get_booking_use_case() -> BookingUseCase:
    return BookingUseCase(
        repository=get_repository(),
        timezone=get_timezone(),
        window_days=settings.BOOKING_WINDOW_DAYS,
    )
