"""Data model for pending ingestion work."""

from sqlalchemy import CHAR
from sqlalchemy.orm import Mapped, mapped_column

from ..core import TimestampedRecord
from .catalog_entry import new_item_id


class QueueItem(TimestampedRecord):
    """A work item waiting to be ingested; deleted once processed."""

    __tablename__ = "queue"

    id: Mapped[str] = mapped_column(CHAR(36), primary_key=True, default_factory=new_item_id)
    hash: Mapped[bytes] = mapped_column(nullable=False)
