"""Error taxonomy shared by every afilia component."""

import contextlib
import json
import logging
import sqlite3
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

import pydantic
from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """The category of an application error."""

    IO = "I/O error"
    PARSE = "conversion error"
    JSON = "JSON error"
    SYSTEM_TIME = "system time error"
    UTF8 = "Utf8 conversion error"
    DB = "database error"
    CUSTOM = "custom error"

    @property
    def category(self) -> str:
        """Return the label used when rendering errors of this kind."""
        return self.value


class CustomErrorKind(Enum):
    """Domain-specific error kinds, different from wrapped library errors."""

    REPOSITORY_STRUCTURE = "a repository structure operation issue"
    REPOSITORY_METADATA = "repository metadata operation issue"
    REPOSITORY_SIGN = "repository sign issue"

    def __str__(self) -> str:
        return self.value


class CreationStage(Enum):
    """The steps of repository creation, in execution order."""

    IDENTITY = "identity"
    MARKER_WRITE = "marker write"
    DATABASE_OPEN = "database open"
    SCHEMA_PROVISIONING = "schema provisioning"


@dataclass(frozen=True)
class CauseSnapshot:
    """A lossy, copyable record of an underlying exception."""

    type_name: str
    text: str

    @classmethod
    def of(cls, cause: "BaseException | CauseSnapshot | CustomErrorKind") -> "CauseSnapshot":
        """Snapshot a cause, returning snapshots unchanged."""
        if isinstance(cause, CauseSnapshot):
            return cause
        return cls(type_name=type(cause).__name__, text=str(cause))

    def __str__(self) -> str:
        return self.text


Cause = BaseException | CauseSnapshot | CustomErrorKind

# Order matters: several of these are ValueError subclasses.
_CLASSIFICATION: tuple[tuple[type[BaseException] | tuple[type[BaseException], ...], ErrorKind], ...] = (
    ((sa_exc.SQLAlchemyError, sqlite3.Error), ErrorKind.DB),
    ((json.JSONDecodeError, pydantic.ValidationError), ErrorKind.JSON),
    (UnicodeError, ErrorKind.UTF8),
    (OverflowError, ErrorKind.SYSTEM_TIME),
    (OSError, ErrorKind.IO),
    (ValueError, ErrorKind.PARSE),
)


def classify(err: BaseException) -> ErrorKind | None:
    """Return the error kind for a library exception, or None if it has none."""
    for types, kind in _CLASSIFICATION:
        if isinstance(err, types):
            return kind
    return None


class AppError(Exception):
    """
    The application error used for every failure raised by afilia.

    Attributes:
        kind: The error category.
        message: Contextual message added where the error was raised.
        cause: The underlying exception, a `CauseSnapshot` for cloned errors,
            or the `CustomErrorKind` for domain errors.

    """

    def __init__(self, kind: ErrorKind, message: str, cause: Cause) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @staticmethod
    def new_custom(kind: CustomErrorKind, message: str) -> "AppError":
        """Create a domain-specific error."""
        return AppError(ErrorKind.CUSTOM, message, kind)

    @staticmethod
    def from_error(err: BaseException, message: str, kind: ErrorKind | None = None) -> "AppError":
        """
        Wrap a lower-level exception with added context.

        Args:
            err: The underlying exception. An `AppError` keeps its own kind and cause.
            message: The context message.
            kind: Explicit kind, for exceptions that cannot be classified by type.

        Raises:
            TypeError: If `err` has no known kind and none is given.

        """
        if isinstance(err, AppError):
            return AppError(err.kind, message, err.cause)
        resolved = kind or classify(err)
        if resolved is None:
            raise TypeError(f"Cannot convert {type(err).__name__} into an application error.")
        return AppError(resolved, message, err)

    @property
    def custom_kind(self) -> CustomErrorKind | None:
        """The domain kind for custom errors, None otherwise."""
        return self.cause if isinstance(self.cause, CustomErrorKind) else None

    def clone(self) -> "AppError":
        """Return a copy holding a snapshot of the cause instead of the cause itself."""
        cause = self.cause if isinstance(self.cause, CustomErrorKind) else CauseSnapshot.of(self.cause)
        duplicate = AppError.__new__(type(self))
        duplicate.__dict__.update(self.__dict__)
        Exception.__init__(duplicate, *self.args)
        duplicate.cause = cause
        return duplicate

    __copy__ = clone

    def __str__(self) -> str:
        return f"{self.kind.category}: {self.message} ({self.cause})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.name}, message={self.message!r}, cause={self.cause!r})"


class RepositoryExistsError(AppError):
    """Raised when creating a repository where one already exists."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.CUSTOM, message, CustomErrorKind.REPOSITORY_STRUCTURE)


class RepositoryCreationError(AppError):
    """Raised when a repository creation stage fails; partial state has been removed."""

    def __init__(self, stage: CreationStage, error: AppError) -> None:
        super().__init__(error.kind, f"repository creation failed at {stage.value}: {error.message}", error.cause)
        self.stage = stage


@contextlib.contextmanager
def error_context(message: str, *args: object, kind: ErrorKind | None = None) -> Iterator[None]:
    """
    Convert exceptions raised in the block into an `AppError` with context.

    `AppError`s pass through untouched. Exceptions that cannot be classified
    (and no `kind` is given) propagate unchanged.
    """
    try:
        yield
    except AppError:
        raise
    except Exception as err:
        resolved = kind or classify(err)
        if resolved is None:
            raise
        text = message % args if args else message
        logger.debug("Wrapping %s as %s: %s", type(err).__name__, resolved.name, text)
        raise AppError(resolved, text, err) from err
