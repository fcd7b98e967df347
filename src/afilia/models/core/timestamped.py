"""Base class for catalog records carrying creation and modification times."""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column

from .base_class import Base


class TimestampedRecord(Base):
    """
    Abstract base adding `created` and `modified` columns.

    Both default to CURRENT_TIMESTAMP on insert. `modified` is refreshed by
    the ORM on update and, for plain SQL updates, by a trigger installed with
    each table's migration.
    """

    __abstract__ = True

    created: Mapped[datetime] = mapped_column(
        server_default=func.current_timestamp(),
        nullable=False,
        init=False,
    )
    modified: Mapped[datetime] = mapped_column(
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
        init=False,
    )
