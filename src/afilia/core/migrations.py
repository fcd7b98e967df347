"""
Versioned migrations for the catalog schema.

Migrations are applied in order, each in its own transaction, and recorded in
SQLite's `user_version` header field. Every statement is guarded with
IF NOT EXISTS so re-running a migration is harmless.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Connection, Engine, Table, text
from sqlalchemy.schema import CreateTable
from sqlalchemy.sql.expression import Executable

from afilia.core.exceptions import AppError, error_context
from afilia.models import Base
from afilia.models.catalog import CatalogEntry, Parameter, QueueItem, StorageUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    """One schema step. `version` is the `user_version` reached once it is applied."""

    version: int
    name: str
    statements: tuple[Executable, ...]


@dataclass
class MigrationResult:
    """Result of running one migration."""

    migration_name: str
    version: int
    applied: bool


def create_table(table: Table) -> Executable:
    """Build a guarded CREATE TABLE statement from the ORM metadata."""
    return CreateTable(table, if_not_exists=True)


def modified_trigger(table_name: str) -> Executable:
    """
    Build the trigger refreshing `modified` on updates.

    Updates that set `modified` explicitly keep their value.
    """
    return text(
        f"CREATE TRIGGER IF NOT EXISTS trg_{table_name}_modified "
        f"AFTER UPDATE ON {table_name} FOR EACH ROW "
        "WHEN NEW.modified = OLD.modified "
        f"BEGIN UPDATE {table_name} SET modified = CURRENT_TIMESTAMP WHERE rowid = NEW.rowid; END"
    )


def table_migration(version: int, name: str, table: Table) -> Migration:
    """Build the migration creating `table` together with its `modified` trigger."""
    return Migration(
        version=version,
        name=name,
        statements=(create_table(table), modified_trigger(table.name)),
    )


MIGRATIONS: tuple[Migration, ...] = (
    table_migration(1, "0001_storage_unit", StorageUnit.__table__),
    table_migration(2, "0002_main_catalog", CatalogEntry.__table__),
    table_migration(3, "0003_queue", QueueItem.__table__),
    table_migration(4, "0004_parameter", Parameter.__table__),
)

CATALOG_TABLES: tuple[str, ...] = tuple(sorted(Base.metadata.tables))


def check_migrations(migrations: Sequence[Migration]) -> None:
    """Ensure migration versions are positive and strictly increasing."""
    previous = 0
    for migration in migrations:
        if migration.version <= previous:
            raise ValueError(
                f"Migration {migration.name} has version {migration.version}, expected a value above {previous}."
            )
        previous = migration.version


def get_schema_version(conn: Connection) -> int:
    """Return the version of the last applied migration, 0 for a fresh database."""
    return int(conn.exec_driver_sql("PRAGMA user_version").scalar_one())


def apply_migration(conn: Connection, migration: Migration) -> None:
    """
    Run one migration's statements and record its version.

    The caller owns the transaction.
    """
    for statement in migration.statements:
        conn.execute(statement)
    # PRAGMA does not accept bound parameters; version is an int.
    conn.exec_driver_sql(f"PRAGMA user_version = {int(migration.version)}")


def apply_migrations(engine: Engine, migrations: Sequence[Migration]) -> list[MigrationResult]:
    """
    Apply pending migrations in order.

    Returns:
        One result per migration; already-applied ones have `applied=False`.

    Raises:
        AppError: database error naming the failing migration. Migrations
            applied before it stay applied; the failing one is rolled back.

    """
    check_migrations(migrations)
    results: list[MigrationResult] = []
    for migration in migrations:
        try:
            with error_context("migration %s failed", migration.name), engine.begin() as conn:
                applied = migration.version > get_schema_version(conn)
                if applied:
                    apply_migration(conn, migration)
        except AppError as err:
            logger.error("Migration %s failed: %s", migration.name, err)
            raise
        if applied:
            logger.info("Applied migration %s", migration.name)
        else:
            logger.debug("Migration %s already applied", migration.name)
        results.append(MigrationResult(migration.name, migration.version, applied=applied))
    return results
