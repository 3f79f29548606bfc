from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import and_, create_engine, or_, select
from sqlalchemy.engine import Engine, RowMapping
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.pool import StaticPool

from fitbook.application.exceptions import DuplicateBooking, StorageUnavailable
from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.domain.entities.booking import Booking, BookingFilter, BookingQuery, BookingStatus
from fitbook.domain.entities.schedule import WeeklySchedule
from fitbook.domain.entities.trainer import FitnessClass, Trainer
from fitbook.infrastructure.store import schema
from fitbook.infrastructure.store.migrations import apply_migrations

_b = schema.bookings
_t = schema.trainers
_c = schema.classes


def build_engine(database_url: str, timeout_seconds: float = 5.0) -> Engine:
    if database_url.startswith("sqlite"):
        path = database_url.split("///", 1)[1] if "///" in database_url else ""
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            return create_engine(database_url, connect_args={"timeout": timeout_seconds, "check_same_thread": False})
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args={"connect_timeout": int(timeout_seconds)},
    )


class SqlBookingRepository(BookingRepositoryPort):
    def __init__(self, engine: Engine, migrate: bool = True) -> None:
        self._engine = engine
        self._logger = logging.getLogger(__name__)
        if migrate:
            with self._guard():
                apply_migrations(engine)

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except OperationalError as e:
            self._logger.error("Storage unavailable", extra={"error": str(e)})
            raise StorageUnavailable(str(e.orig or e)) from e

    def seed(self, classes: list[FitnessClass], trainers: list[Trainer]) -> None:
        with self._guard(), self._engine.begin() as conn:
            known_classes = set(conn.execute(select(_c.c.id)).scalars())
            for fitness_class in classes:
                values = {
                    "name": fitness_class.name,
                    "price": fitness_class.price,
                    "about": fitness_class.about,
                    "syllabus": list(fitness_class.syllabus),
                    "level": fitness_class.level,
                    "length": fitness_class.length,
                    "group_size": fitness_class.group_size,
                }
                if fitness_class.id in known_classes:
                    conn.execute(_c.update().where(_c.c.id == fitness_class.id).values(**values))
                else:
                    conn.execute(_c.insert().values(id=fitness_class.id, **values))
            known_trainers = set(conn.execute(select(_t.c.id)).scalars())
            for trainer in trainers:
                values = {
                    "name": trainer.name,
                    "class_name": trainer.class_name,
                    "schedule": trainer.schedule.to_entries(),
                }
                if trainer.id in known_trainers:
                    conn.execute(_t.update().where(_t.c.id == trainer.id).values(**values))
                else:
                    conn.execute(_t.insert().values(id=trainer.id, **values))
        self._logger.info("Reference data synced: %d classes, %d trainers", len(classes), len(trainers))

    def get_trainer(self, trainer_id: int) -> Trainer | None:
        stmt = _trainer_select().where(_t.c.id == trainer_id)
        with self._guard(), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _to_trainer(row) if row else None

    def list_trainers(self) -> list[Trainer]:
        stmt = _trainer_select().order_by(_t.c.name)
        with self._guard(), self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_to_trainer(row) for row in rows]

    def get_class(self, class_id: int) -> FitnessClass | None:
        with self._guard(), self._engine.connect() as conn:
            row = conn.execute(select(_c).where(_c.c.id == class_id)).mappings().first()
        if row is None:
            return None
        return FitnessClass(
            id=row["id"],
            name=row["name"],
            price=row["price"],
            about=row["about"] or "",
            syllabus=tuple(row["syllabus"] or ()),
            level=row["level"],
            length=row["length"],
            group_size=row["group_size"],
        )

    def find_active_booking(self, user_id: str, trainer_id: int, booked_time: datetime) -> Booking | None:
        stmt = _booking_select().where(
            _b.c.user_id == user_id,
            _b.c.trainer_id == trainer_id,
            _b.c.booked_time == _to_db(booked_time),
            _b.c.status == BookingStatus.BOOKED.value,
        )
        with self._guard(), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _to_booking(row) if row else None

    def insert_booking(self, booking: Booking) -> int:
        values = {
            "user_id": booking.user_id,
            "trainer_id": booking.trainer_id,
            "class_id": booking.class_id,
            "name": booking.name,
            "email": booking.email,
            "price": booking.price,
            "created_at": _to_db(booking.created_at),
            "booked_time": _to_db(booking.booked_time),
            "status": booking.status.value,
        }
        try:
            with self._guard(), self._engine.begin() as conn:
                result = conn.execute(_b.insert().values(**values))
                return int(result.inserted_primary_key[0])
        except IntegrityError as e:
            if not _is_active_slot_violation(e):
                raise
            self._logger.info(
                "Active slot constraint hit",
                extra={"trainer_id": booking.trainer_id, "user_id": booking.user_id},
            )
            raise DuplicateBooking(existing={"booked_time": booking.booked_time.isoformat()}) from e

    def get_booking(self, booking_id: int, user_id: str | None = None) -> Booking | None:
        stmt = _booking_select().where(_b.c.id == booking_id)
        if user_id is not None:
            stmt = stmt.where(_b.c.user_id == user_id)
        with self._guard(), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return _to_booking(row) if row else None

    def update_booking_status(
        self,
        booking_id: int,
        user_id: str | None,
        new_status: BookingStatus,
        expected_status: BookingStatus | None = None,
    ) -> int:
        stmt = _b.update().where(_b.c.id == booking_id).values(status=new_status.value)
        if user_id is not None:
            stmt = stmt.where(_b.c.user_id == user_id)
        if expected_status is not None:
            stmt = stmt.where(_b.c.status == expected_status.value)
        with self._guard(), self._engine.begin() as conn:
            return int(conn.execute(stmt).rowcount or 0)

    def list_bookings(self, query: BookingQuery) -> list[Booking]:
        now = _to_db(query.now or datetime.now(timezone.utc))
        stmt = _booking_select()
        if query.user_id is not None:
            stmt = stmt.where(_b.c.user_id == query.user_id)
        if query.kind is BookingFilter.UPCOMING:
            stmt = stmt.where(and_(_b.c.status == BookingStatus.BOOKED.value, _b.c.booked_time >= now))
        elif query.kind is BookingFilter.HISTORY:
            stmt = stmt.where(
                or_(
                    _b.c.status.in_([BookingStatus.FINISHED.value, BookingStatus.CANCELLED.value]),
                    _b.c.booked_time < now,
                )
            )
        stmt = stmt.order_by(_b.c.booked_time.desc(), _b.c.id.desc())
        with self._guard(), self._engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_to_booking(row) for row in rows]


def _trainer_select():
    return select(_t, _c.c.id.label("class_id")).select_from(_t.outerjoin(_c, _c.c.name == _t.c.class_name))


def _booking_select():
    return select(
        _b,
        _t.c.name.label("trainer_name"),
        _c.c.name.label("class_name"),
    ).select_from(_b.outerjoin(_t, _t.c.id == _b.c.trainer_id).outerjoin(_c, _c.c.id == _b.c.class_id))


def _to_trainer(row: RowMapping) -> Trainer:
    return Trainer(
        id=row["id"],
        name=row["name"],
        class_name=row["class_name"],
        schedule=WeeklySchedule.from_entries(row["schedule"] or []),
        class_id=row["class_id"],
    )


def _to_booking(row: RowMapping) -> Booking:
    return Booking(
        id=row["id"],
        user_id=row["user_id"],
        trainer_id=row["trainer_id"],
        class_id=row["class_id"],
        price=row["price"],
        booked_time=_from_db(row["booked_time"]),
        created_at=_from_db(row["created_at"]),
        status=BookingStatus(row["status"]),
        name=row["name"],
        email=row["email"],
        trainer_name=row["trainer_name"],
        class_name=row["class_name"],
    )


def _to_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


def _is_active_slot_violation(error: IntegrityError) -> bool:
    orig: Any = getattr(error, "orig", None)
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None) == schema.ACTIVE_SLOT_INDEX:
        return True
    text = str(orig or error)
    # SQLite names the columns instead of the index.
    return schema.ACTIVE_SLOT_INDEX in text or "bookings.booked_time" in text
