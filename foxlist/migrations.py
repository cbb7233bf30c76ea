# PURPOSE: versioned, idempotent startup migrations for the tasks table.
# - Each step probes the live schema first and only alters what is missing.
# - Applied versions are recorded in schema_migrations.
# - Forward-only; nothing is ever dropped. Safe to call multiple times.

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy import insert, inspect, select, text
from sqlalchemy.engine import Engine

from .db_models import SchemaMigrationDB, ix_tasks_user_email
from .models import now_utc, to_iso

logger = logging.getLogger(__name__)


def _table_exists(engine: Engine, table: str) -> bool:
    return inspect(engine).has_table(table)


def _column_exists(engine: Engine, table: str, column: str) -> bool:
    """Return True if `column` exists in `table`."""
    return any(c["name"] == column for c in inspect(engine).get_columns(table))


def _index_exists(engine: Engine, table: str, index: str) -> bool:
    return any(ix["name"] == index for ix in inspect(engine).get_indexes(table))


# --- Steps -------------------------------------------------------------------
# Each step returns True when it changed the schema, False when already satisfied.


def _add_tasks_user_email(engine: Engine) -> bool:
    if not _table_exists(engine, "tasks"):
        return False
    if _column_exists(engine, "tasks", "user_email"):
        return False
    with engine.begin() as conn:
        # Nullable: existing rows become orphans until reconciled
        conn.execute(text("ALTER TABLE tasks ADD COLUMN user_email TEXT"))
    return True


def _index_tasks_user_email(engine: Engine) -> bool:
    if not _table_exists(engine, "tasks"):
        return False
    if _index_exists(engine, "tasks", ix_tasks_user_email.name):
        return False
    ix_tasks_user_email.create(bind=engine)
    return True


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    apply: Callable[[Engine], bool]


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "tasks.user_email", _add_tasks_user_email),
    Migration(2, "ix_tasks_user_email", _index_tasks_user_email),
)


def applied_versions(engine: Engine) -> set[int]:
    if not _table_exists(engine, SchemaMigrationDB.__tablename__):
        return set()
    with engine.connect() as conn:
        rows = conn.execute(select(SchemaMigrationDB.version)).scalars().all()
    return set(rows)


def run_startup_migrations(engine: Engine) -> list[int]:
    """Bring the schema up to date; returns the versions that altered it.

    Expects schema_migrations to exist (created by metadata.create_all()).
    """
    done = applied_versions(engine)
    changed: list[int] = []
    for migration in MIGRATIONS:
        if migration.version in done:
            continue
        if migration.apply(engine):
            changed.append(migration.version)
            logger.info("migration applied version=%s name=%s", migration.version, migration.name)
        with engine.begin() as conn:
            conn.execute(
                insert(SchemaMigrationDB).values(
                    version=migration.version,
                    name=migration.name,
                    applied_at=to_iso(now_utc()),
                )
            )
    return changed
