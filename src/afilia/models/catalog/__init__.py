from .catalog_entry import CatalogEntry
from .parameter import Parameter
from .queue_item import QueueItem
from .storage_unit import StorageUnit

__all__ = ["CatalogEntry", "Parameter", "QueueItem", "StorageUnit"]
