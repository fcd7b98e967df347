"""Repository identity and catalog bootstrap for a content-addressed file store."""

from afilia.core.config import DB_FILE_NAME, REPO_FORMAT_VERSION, SIGN_FILE_NAME, AfiliaSettings
from afilia.core.database import CatalogStore
from afilia.core.exceptions import (
    AppError,
    CreationStage,
    CustomErrorKind,
    ErrorKind,
    RepositoryCreationError,
    RepositoryExistsError,
)
from afilia.core.result import AppResult
from afilia.models.identity import RepositoryIdentity
from afilia.repository import Repository

__all__ = [
    "DB_FILE_NAME",
    "REPO_FORMAT_VERSION",
    "SIGN_FILE_NAME",
    "AfiliaSettings",
    "AppError",
    "AppResult",
    "CatalogStore",
    "CreationStage",
    "CustomErrorKind",
    "ErrorKind",
    "Repository",
    "RepositoryCreationError",
    "RepositoryExistsError",
    "RepositoryIdentity",
]
