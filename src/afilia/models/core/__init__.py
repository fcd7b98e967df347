from .base_class import Base
from .timestamped import TimestampedRecord

__all__ = ["Base", "TimestampedRecord"]
