from .backends import BundledBackend, Capability, DurableBackend, FolderBackend, detect_backend
from .cache import EXPENSES, PRODUCTS, STORES, TRANSACTIONS, CacheLayer, VolatileMedium
from .record_store import RecordStore, WriteResult
from .sync import DEFAULT_PRODUCTS, SyncController, backfill_ids
from .manager import StorageManager, get_storage, init_storage

__all__ = [
    'BundledBackend', 'Capability', 'DurableBackend', 'FolderBackend', 'detect_backend',
    'EXPENSES', 'PRODUCTS', 'STORES', 'TRANSACTIONS', 'CacheLayer', 'VolatileMedium',
    'RecordStore', 'WriteResult',
    'DEFAULT_PRODUCTS', 'SyncController', 'backfill_ids',
    'StorageManager', 'get_storage', 'init_storage',
]
