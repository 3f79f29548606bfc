from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

classes = Table(
    "classes",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(120), unique=True, nullable=False),
    Column("price", Integer, nullable=False),
    Column("about", Text, nullable=False, default=""),
    Column("syllabus", JSON, nullable=False, default=list),
    Column("level", String(120)),
    Column("length", String(120)),
    Column("group_size", String(120)),
)

trainers = Table(
    "trainers",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(120), unique=True, nullable=False),
    Column("class_name", String(120), nullable=False),
    Column("schedule", JSON, nullable=False),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("trainer_id", Integer, ForeignKey("trainers.id"), nullable=False),
    Column("class_id", Integer, ForeignKey("classes.id"), nullable=False),
    Column("name", String(200)),
    Column("email", String(320)),
    Column("price", Integer, nullable=False),
    # naive UTC
    Column("created_at", DateTime, nullable=False),
    Column("booked_time", DateTime, nullable=False),
    Column("status", String(16), nullable=False, default="booked"),
)

ACTIVE_SLOT_INDEX = "uq_bookings_active_slot"

active_slot_index = Index(
    ACTIVE_SLOT_INDEX,
    bookings.c.user_id,
    bookings.c.trainer_id,
    bookings.c.booked_time,
    unique=True,
    sqlite_where=bookings.c.status == "booked",
    postgresql_where=bookings.c.status == "booked",
)

schema_migrations = Table(
    "schema_migrations",
    metadata,
    Column("version", Integer, primary_key=True),
    Column("description", String(200), nullable=False),
    Column("applied_at", DateTime, nullable=False),
)
