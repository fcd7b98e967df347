"""Settings and fixed names for afilia repositories."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SIGN_FILE_NAME = ".afilia_repo"
DB_FILE_NAME = "afilia_repo.db"
REPO_FORMAT_VERSION = "1.0"
SUPPORTED_FORMAT_VERSIONS = frozenset({REPO_FORMAT_VERSION})


class AfiliaSettings(BaseSettings):
    """
    Runtime settings, read from `AFILIA_*` environment variables.

    Repository file names are fixed and not part of the settings.
    """

    model_config = SettingsConfigDict(env_prefix="AFILIA_", extra="forbid")

    lock_timeout: float = Field(default=10.0, ge=0)
    """Seconds to wait for the repository creation lock."""

    echo_sql: bool = False
    """Log every SQL statement emitted by the catalog engine."""


def get_settings() -> AfiliaSettings:
    """Build settings from the current environment."""
    return AfiliaSettings()
