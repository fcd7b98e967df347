"""Data model for physical storage locations."""

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ..core import TimestampedRecord


class StorageUnit(TimestampedRecord):
    """A physical location able to hold stored content, with its running file count."""

    __tablename__ = "storage_unit"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, init=False)
    path: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    file_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (CheckConstraint("file_count >= 0", name="file_count_non_negative"),)
