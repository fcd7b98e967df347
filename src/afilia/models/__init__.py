"""Catalog models and the repository identity document."""

from .catalog import CatalogEntry, Parameter, QueueItem, StorageUnit
from .core import Base, TimestampedRecord
from .identity import RepositoryIdentity

__all__ = [
    "Base",
    "CatalogEntry",
    "Parameter",
    "QueueItem",
    "RepositoryIdentity",
    "StorageUnit",
    "TimestampedRecord",
]
