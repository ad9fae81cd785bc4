"""
API Module

External collaborators:
- Registry stores (local JSON file or REST backend)
- Bulk loader for target tables
- Sequential multi-table group sync
"""

from .registry_store import RegistryStore, JsonRegistryStore, HttpRegistryStore, SaveResult
from .bulk_loader import BulkLoader, HttpBulkLoader, LoadResult
from .data_importer import GroupSynchronizer, SyncReport, TableSyncResult

__all__ = [
    "RegistryStore",
    "JsonRegistryStore",
    "HttpRegistryStore",
    "SaveResult",
    "BulkLoader",
    "HttpBulkLoader",
    "LoadResult",
    "GroupSynchronizer",
    "SyncReport",
    "TableSyncResult",
]
