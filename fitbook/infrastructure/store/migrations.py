"""
Versioned schema migrations.

Each step runs once, in order, inside its own transaction, and is recorded in
schema_migrations. Steps use checkfirst so re-running them against a schema
that already has the objects is harmless.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import inspect, select
from sqlalchemy.engine import Connection, Engine

from fitbook.infrastructure.store import schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    apply: Callable[[Connection], None]


def _create_reference_tables(conn: Connection) -> None:
    schema.classes.create(conn, checkfirst=True)
    schema.trainers.create(conn, checkfirst=True)


def _create_bookings(conn: Connection) -> None:
    # Creates the partial unique index on active slots along with the table.
    schema.bookings.create(conn, checkfirst=True)


def _ensure_active_slot_index(conn: Connection) -> None:
    existing = {ix["name"] for ix in inspect(conn).get_indexes("bookings")}
    if schema.ACTIVE_SLOT_INDEX not in existing:
        schema.active_slot_index.create(conn)


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "create classes and trainers", _create_reference_tables),
    Migration(2, "create bookings", _create_bookings),
    Migration(3, "unique active booking per user, trainer and time", _ensure_active_slot_index),
)


def applied_versions(engine: Engine) -> set[int]:
    with engine.begin() as conn:
        schema.schema_migrations.create(conn, checkfirst=True)
        return set(conn.execute(select(schema.schema_migrations.c.version)).scalars())


def apply_migrations(engine: Engine, migrations: tuple[Migration, ...] = MIGRATIONS) -> list[int]:
    """Apply pending migrations and return the versions that ran."""
    done = applied_versions(engine)
    ran: list[int] = []
    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version in done:
            continue
        with engine.begin() as conn:
            migration.apply(conn)
            conn.execute(
                schema.schema_migrations.insert().values(
                    version=migration.version,
                    description=migration.description,
                    applied_at=datetime.now(timezone.utc).replace(tzinfo=None),
                )
            )
        logger.info("Applied migration %s: %s", migration.version, migration.description)
        ran.append(migration.version)
    return ran
