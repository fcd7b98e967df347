"""Data model for the main content catalog."""

import uuid
from pathlib import PurePosixPath

from sqlalchemy import CHAR, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core import TimestampedRecord
from .storage_unit import StorageUnit

STORAGE_PATH_MAX_LENGTH = 1024


def new_item_id() -> str:
    """Return a fresh 36-character item identifier."""
    return str(uuid.uuid4())


class CatalogEntry(TimestampedRecord):
    """
    The canonical record of one stored content item.

    An item lives in at most one storage unit. `storage_path` is relative to
    that unit's `path`.
    """

    __tablename__ = "main_catalog"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default_factory=new_item_id)
    hash: Mapped[bytes] = mapped_column(nullable=False)
    storage_unit_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("storage_unit.id"), nullable=True, default=None
    )
    storage_path: Mapped[str | None] = mapped_column(String(STORAGE_PATH_MAX_LENGTH), nullable=True, default=None)

    storage_unit: Mapped[StorageUnit | None] = relationship(init=False, repr=False)

    def location(self) -> PurePosixPath | None:
        """Return the item's full location, or None if it is not placed in a storage unit."""
        if self.storage_unit is None or self.storage_path is None:
            return None
        return PurePosixPath(self.storage_unit.path) / self.storage_path
