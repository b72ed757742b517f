from cstore.base import CStoreBackend
from cstore.client import CStoreClient
from cstore.http_backend import HttpBackend
from cstore.mock_backend import MockBackend
from cstore.store import MemoryStore
from cstore.types import Entry, HashItem, Item, ListResult, SetOptions, Status

__all__ = [
    "CStoreBackend",
    "CStoreClient",
    "HttpBackend",
    "MockBackend",
    "MemoryStore",
    "Entry",
    "HashItem",
    "Item",
    "ListResult",
    "SetOptions",
    "Status",
]
