import logging
import os
import sys

DEFAULT_LOG_LEVEL = logging.WARNING
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL_ENV = "AFILIA_LOG_LEVEL"


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level

    if level is None:
        level_name = os.environ.get(LOG_LEVEL_ENV, "").upper()
        source = LOG_LEVEL_ENV
    else:
        level_name = level.upper()
        source = "log level string"

    if level_name and isinstance(getattr(logging, level_name, None), int):
        return getattr(logging, level_name)

    if level_name:
        # logging is not configured yet, so this goes straight to stderr.
        print(  # noqa: T201
            f"Warning: Invalid {source} '{level_name}'. Defaulting to {logging.getLevelName(DEFAULT_LOG_LEVEL)}.",
            file=sys.stderr,
        )
    return DEFAULT_LOG_LEVEL


def setup_logging(level: int | str | None = None) -> None:
    """
    Sets up logging for the afilia package.

    Args:
        level: The logging level to set. Can be an integer (e.g., logging.INFO),
               a string (e.g., "INFO"), or None. If None, it tries to get
               the level from the AFILIA_LOG_LEVEL environment variable,
               defaulting to DEFAULT_LOG_LEVEL.

    """
    app_logger = logging.getLogger("afilia")
    app_logger.setLevel(_resolve_level(level))

    # Replace existing handlers so the new one binds to the current sys.stderr.
    for handler_to_remove in list(app_logger.handlers):
        app_logger.removeHandler(handler_to_remove)
        handler_to_remove.close()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.addHandler(handler)

    # filelock logs every acquire and release at DEBUG.
    logging.getLogger("filelock").setLevel(logging.INFO)
