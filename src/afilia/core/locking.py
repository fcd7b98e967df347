"""Directory-scoped lock guarding repository creation."""

import contextlib
import logging
from collections.abc import Iterator
from pathlib import Path

from filelock import FileLock, Timeout

from afilia.core.exceptions import AppError, CustomErrorKind, error_context

logger = logging.getLogger(__name__)

LOCK_SUFFIX = ".afilia.lock"


def lock_path_for(repository_path: Path) -> Path:
    """
    Return the lock file path for a repository directory.

    The lock lives beside the directory, not inside it, so the repository
    root only ever holds the marker and the database.
    """
    resolved = repository_path.expanduser().resolve(strict=False)
    return resolved.parent / f".{resolved.name}{LOCK_SUFFIX}"


def _discard_lock(lock_file: Path, created_dirs: list[Path]) -> None:
    """Remove the lock file and the directories made for it, deepest first."""
    try:
        lock_file.unlink(missing_ok=True)
        for directory in created_dirs:
            directory.rmdir()
            logger.debug("Removed directory %s", directory)
    except OSError as err:
        logger.debug("Left lock directory in place: %s", err)


@contextlib.contextmanager
def creation_lock(repository_path: Path, timeout: float) -> Iterator[Path]:
    """
    Hold the exclusive creation lock for `repository_path`.

    Missing parent directories are created for the lock file. If the block
    raises, those directories and the lock file are removed again.

    Raises:
        AppError: custom `REPOSITORY_STRUCTURE` if the lock is not acquired
            within `timeout` seconds, I/O if the lock file cannot be created.

    """
    lock_file = lock_path_for(repository_path)
    created_dirs = [d for d in (lock_file.parent, *lock_file.parent.parents) if not d.exists()]
    with error_context("cannot prepare lock directory %s", lock_file.parent):
        lock_file.parent.mkdir(parents=True, exist_ok=True)

    lock = FileLock(str(lock_file), timeout=timeout)
    try:
        lock.acquire()
    except Timeout as err:
        # Timeout is an OSError, so it must be caught first.
        raise AppError.new_custom(
            CustomErrorKind.REPOSITORY_STRUCTURE,
            f"repository {repository_path} is being created by another process (lock {lock_file})",
        ) from err
    except OSError as err:
        raise AppError.from_error(err, f"cannot acquire creation lock {lock_file}") from err

    logger.debug("Acquired creation lock %s", lock_file)
    failed = False
    try:
        yield lock_file
    except BaseException:
        failed = True
        raise
    finally:
        lock.release()
        logger.debug("Released creation lock %s", lock_file)
        if failed and created_dirs:
            _discard_lock(lock_file, created_dirs)
