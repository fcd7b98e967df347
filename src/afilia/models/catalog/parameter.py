"""Data model for repository-wide key/value parameters."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..core import TimestampedRecord

KEY_MAX_LENGTH = 32
VALUE_MAX_LENGTH = 256


class Parameter(TimestampedRecord):
    """
    A repository-wide configuration value.

    SQLite does not enforce VARCHAR lengths, so the limits are checked here.
    """

    __tablename__ = "parameter"

    key: Mapped[str] = mapped_column(String(KEY_MAX_LENGTH), primary_key=True)
    value: Mapped[str | None] = mapped_column(String(VALUE_MAX_LENGTH), nullable=True, default=None)

    @validates("key")
    def _validate_key(self, _name: str, key: str) -> str:
        if not key or len(key) > KEY_MAX_LENGTH:
            raise ValueError(f"Parameter key must be 1 to {KEY_MAX_LENGTH} characters long, got {len(key)}.")
        return key

    @validates("value")
    def _validate_value(self, _name: str, value: str | None) -> str | None:
        if value is not None and len(value) > VALUE_MAX_LENGTH:
            raise ValueError(f"Parameter value must be at most {VALUE_MAX_LENGTH} characters long, got {len(value)}.")
        return value
