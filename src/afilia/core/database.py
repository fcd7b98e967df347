"""Catalog database management for afilia repositories."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import Any

from sqlalchemy import URL, Engine, create_engine, event, inspect, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql.expression import Executable

from afilia.core.config import DB_FILE_NAME
from afilia.core.exceptions import AppError, CustomErrorKind, ErrorKind, error_context
from afilia.core.migrations import MIGRATIONS, Migration, MigrationResult, apply_migrations, get_schema_version

logger = logging.getLogger(__name__)

__all__ = ["CatalogStore"]


def _configure_sqlite(engine: Engine) -> None:
    """
    Make the pysqlite driver transactional for DDL and enforce foreign keys.

    The driver only opens transactions implicitly before DML, so autocommit is
    switched on at the driver level and BEGIN is emitted explicitly.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


class CatalogStore:
    """
    Owns the SQLite catalog database of a single repository.

    The database file is `afilia_repo.db` inside the repository directory.
    """

    def __init__(
        self,
        repository_path: Path,
        name: str = "catalog",
        migrations: Sequence[Migration] | None = None,
        echo: bool = False,
    ):
        """
        Initialize the store without touching the filesystem.

        Args:
            repository_path: The repository root holding the database file.
            name: Label used in log messages.
            migrations: Schema steps applied by `provision`; defaults to the catalog schema.
            echo: Log every SQL statement.

        """
        self.name = name
        self.path = Path(repository_path) / DB_FILE_NAME
        self.migrations: Sequence[Migration] = MIGRATIONS if migrations is None else migrations
        self.echo = echo
        self._engine: Engine | None = None
        self._session_local: sessionmaker[Session] | None = None

    @classmethod
    def open(cls, repository_path: Path, **kwargs: Any) -> "CatalogStore":
        """Create a store for `repository_path` and open its database."""
        store = cls(repository_path, **kwargs)
        store.connect()
        return store

    def connect(self) -> None:
        """
        Open, creating if absent, the database file.

        Raises:
            AppError: database error if the file cannot be opened.

        """
        if self._engine is not None:
            return

        # Built from parts so "?", "%" and "#" in the path are not read as URL syntax.
        url = URL.create("sqlite", database=str(self.path))
        engine = create_engine(url, echo=self.echo)
        _configure_sqlite(engine)
        try:
            with error_context("cannot open catalog database %s", self.path, kind=ErrorKind.DB):
                # The engine is lazy; connecting creates the file and surfaces open errors.
                with engine.connect():
                    pass
        except AppError:
            engine.dispose()
            raise

        self._engine = engine
        self._session_local = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("Opened catalog '%s' at %s", self.name, self.path)

    @property
    def is_open(self) -> bool:
        """Whether the database has been opened and not closed since."""
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        """Return the SQLAlchemy engine of this store."""
        if self._engine is None:
            raise self._not_open()
        return self._engine

    def session(self) -> Session:
        """
        Provide a new ORM session bound to the catalog.

        The caller is responsible for closing the session, typically using `with`.
        """
        if self._session_local is None:
            raise self._not_open()
        return self._session_local()

    def _not_open(self) -> AppError:
        return AppError.new_custom(CustomErrorKind.REPOSITORY_STRUCTURE, f"catalog database {self.path} is not open")

    def provision(self) -> list[MigrationResult]:
        """
        Create the catalog tables by applying pending migrations.

        Safe to call repeatedly.

        Raises:
            AppError: database error naming the failing migration.

        """
        logger.info("Provisioning catalog '%s'", self.name)
        return apply_migrations(self.engine, self.migrations)

    def execute(self, statement: str | Executable, parameters: Mapping[str, Any] | None = None) -> int:
        """
        Run a single parameterized statement in its own transaction.

        Returns:
            The number of rows affected, 0 for statements that affect none.

        Raises:
            AppError: database error if the statement fails.

        """
        executable = text(statement) if isinstance(statement, str) else statement
        with error_context("cannot execute statement on catalog %s", self.path, kind=ErrorKind.DB):
            with self.engine.begin() as conn:
                result = conn.execute(executable, dict(parameters or {}))
                return max(result.rowcount, 0)

    def table_names(self) -> list[str]:
        """Return the names of the tables in the catalog."""
        with error_context("cannot inspect catalog %s", self.path, kind=ErrorKind.DB):
            return sorted(inspect(self.engine).get_table_names())

    def schema_version(self) -> int:
        """Return the version of the last applied migration."""
        with error_context("cannot read schema version of %s", self.path, kind=ErrorKind.DB):
            with self.engine.connect() as conn:
                return get_schema_version(conn)

    def close(self) -> None:
        """Release every connection. The store can be reopened with `connect`."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_local = None
        logger.debug("Closed catalog '%s'", self.name)

    def __enter__(self) -> "CatalogStore":
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CatalogStore(name={self.name!r}, path={str(self.path)!r}, open={self.is_open})"
