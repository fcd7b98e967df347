"""The repository aggregate: identity, catalog and root directory."""

import logging
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType
from typing import Any

from afilia.core.config import (
    DB_FILE_NAME,
    SIGN_FILE_NAME,
    SUPPORTED_FORMAT_VERSIONS,
    AfiliaSettings,
    get_settings,
)
from afilia.core.database import CatalogStore
from afilia.core.exceptions import (
    AppError,
    CreationStage,
    CustomErrorKind,
    RepositoryCreationError,
    RepositoryExistsError,
    error_context,
)
from afilia.core.locking import creation_lock
from afilia.core.migrations import Migration
from afilia.core.result import AppResult
from afilia.models.identity import RepositoryIdentity

logger = logging.getLogger(__name__)


class _RepositoryBuilder:
    """
    Runs the creation stages and remembers what each one left on disk.

    `rollback` removes exactly the artifacts this builder created.
    """

    def __init__(self, root: Path, settings: AfiliaSettings, migrations: Sequence[Migration] | None):
        self.root = root
        self.settings = settings
        self.migrations = migrations
        self.identity: RepositoryIdentity | None = None
        self.catalog: CatalogStore | None = None
        self._created_root = False
        self._created_files: list[Path] = []
        self.stage = CreationStage.IDENTITY

    def prepare_root(self) -> None:
        if self.root.exists() and not self.root.is_dir():
            raise AppError.new_custom(
                CustomErrorKind.REPOSITORY_STRUCTURE, f"repository path {self.root} is not a directory"
            )
        for artifact in (self.root / SIGN_FILE_NAME, self.root / DB_FILE_NAME):
            if artifact.exists():
                raise RepositoryExistsError(f"a repository already exists at {self.root} ({artifact.name} present)")
        if not self.root.exists():
            with error_context("cannot create repository directory %s", self.root):
                self.root.mkdir(parents=True)
            self._created_root = True

    def build(self, name: str, payload: str) -> "Repository":
        self.stage = CreationStage.IDENTITY
        self.identity = RepositoryIdentity.new(name, payload)

        self.stage = CreationStage.MARKER_WRITE
        self._created_files.append(self.identity.serialize(self.root))

        self.stage = CreationStage.DATABASE_OPEN
        self.catalog = CatalogStore(self.root, name=name, migrations=self.migrations, echo=self.settings.echo_sql)
        # Checked absent by prepare_root, so a file at this path is ours.
        self._created_files.append(self.catalog.path)
        self.catalog.connect()

        self.stage = CreationStage.SCHEMA_PROVISIONING
        self.catalog.provision()

        return Repository(self.root, self.identity, self.catalog)

    def rollback(self) -> None:
        """Remove everything created so far. Cleanup failures are logged, not raised."""
        if self.catalog is not None:
            self.catalog.close()
        for path in reversed(self._created_files):
            try:
                path.unlink(missing_ok=True)
                logger.debug("Removed %s", path)
            except OSError as err:
                logger.error("Could not remove %s during rollback: %s", path, err)
        if self._created_root:
            try:
                self.root.rmdir()
                logger.debug("Removed directory %s", self.root)
            except OSError as err:
                logger.error("Could not remove directory %s during rollback: %s", self.root, err)


class Repository:
    """
    A directory-rooted content-addressed repository.

    The root holds the identity marker (`.afilia_repo`) and the catalog
    database (`afilia_repo.db`). Use `create` for a new repository and `open`
    for an existing one.
    """

    def __init__(self, path: Path, identity: RepositoryIdentity, catalog: CatalogStore):
        self.path = path
        self.identity = identity
        self.catalog = catalog

    @classmethod
    def create(
        cls,
        path: str | Path,
        name: str,
        payload: str,
        *,
        settings: AfiliaSettings | None = None,
        migrations: Sequence[Migration] | None = None,
    ) -> "Repository":
        """
        Create a repository at `path`.

        Creation holds a lock beside `path`, then builds the identity, writes
        the marker, opens the catalog and provisions its schema. On any
        failure everything created so far is removed.

        Args:
            path: The repository directory, created if missing.
            name: Human-readable repository name.
            payload: Secret or context bound into the signature; not stored.
            settings: Runtime settings; read from the environment by default.
            migrations: Catalog schema steps; the standard schema by default.

        Raises:
            RepositoryExistsError: If a repository (or part of one) exists at `path`.
            RepositoryCreationError: If a stage fails; its `stage` names it.
            AppError: If the creation lock cannot be acquired.

        """
        settings = settings or get_settings()
        root = Path(path).expanduser()

        with creation_lock(root, timeout=settings.lock_timeout):
            builder = _RepositoryBuilder(root, settings, migrations)
            builder.prepare_root()
            try:
                repository = builder.build(name, payload)
            except AppError as err:
                logger.error("Creating repository at %s failed at %s: %s", root, builder.stage.value, err)
                builder.rollback()
                raise RepositoryCreationError(builder.stage, err) from err
            except BaseException:
                builder.rollback()
                raise

        logger.info("Created repository '%s' (%s) at %s", name, repository.identity.id, root)
        return repository

    @classmethod
    def try_create(cls, path: str | Path, name: str, payload: str, **kwargs: Any) -> AppResult["Repository"]:
        """Like `create`, returning the outcome instead of raising application errors."""
        return AppResult.capture(lambda: cls.create(path, name, payload, **kwargs))

    @classmethod
    def open(cls, path: str | Path, *, settings: AfiliaSettings | None = None) -> "Repository":
        """
        Open an existing repository.

        Pending catalog migrations are applied.

        Raises:
            AppError: If the marker is unreadable or has an unsupported
                format version, or if the catalog database is missing.

        """
        settings = settings or get_settings()
        root = Path(path).expanduser()
        identity = RepositoryIdentity.load(root)
        if identity.format_version not in SUPPORTED_FORMAT_VERSIONS:
            raise AppError.new_custom(
                CustomErrorKind.REPOSITORY_METADATA,
                f"repository {root} has unsupported format version {identity.format_version}",
            )
        if not (root / DB_FILE_NAME).is_file():
            raise AppError.new_custom(
                CustomErrorKind.REPOSITORY_STRUCTURE, f"repository {root} has no catalog database"
            )

        catalog = CatalogStore.open(root, name=identity.name, echo=settings.echo_sql)
        try:
            catalog.provision()
        except AppError:
            catalog.close()
            raise
        logger.info("Opened repository '%s' (%s) at %s", identity.name, identity.id, root)
        return cls(root, identity, catalog)

    @property
    def marker_path(self) -> Path:
        """Path of the identity marker."""
        return self.path / SIGN_FILE_NAME

    @property
    def database_path(self) -> Path:
        """Path of the catalog database."""
        return self.catalog.path

    def verify(self, payload: str) -> bool:
        """Check `payload` against the repository signature."""
        return self.identity.verify(payload)

    def close(self) -> None:
        """Release the catalog connections."""
        self.catalog.close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Repository(name={self.identity.name!r}, id={self.identity.id}, path={str(self.path)!r})"
