"""cstore backend over an in-process MemoryStore."""

from __future__ import annotations

import threading
from typing import Optional

from cstore.base import CStoreBackend
from cstore.store import MemoryStore
from cstore.types import Entry, EntryPage, SetOptions, Status


class MockBackend(CStoreBackend):
    """Delegates every call to a MemoryStore.

    `cancel`, when given, is handed to each store operation so a caller can
    stop traffic that has not started yet.
    """

    def __init__(self, store: Optional[MemoryStore] = None, cancel: Optional[threading.Event] = None):
        self.store = store or MemoryStore()
        self.cancel = cancel

    async def get(self, key: str) -> Optional[Entry]:
        return self.store.get(key, cancel=self.cancel)

    async def set(self, key: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        return self.store.set(key, raw, options, cancel=self.cancel)

    async def list(self, prefix: str = "", cursor: str = "", limit: int = 0) -> EntryPage:
        return self.store.list(prefix, cursor, limit, cancel=self.cancel)

    async def list_keys(self) -> list[str]:
        return self.store.keys(cancel=self.cancel)

    async def delete(self, key: str) -> None:
        self.store.delete(key, cancel=self.cancel)

    async def hget(self, hash_key: str, field: str) -> Optional[Entry]:
        return self.store.hget(hash_key, field, cancel=self.cancel)

    async def hset(self, hash_key: str, field: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        return self.store.hset(hash_key, field, raw, options, cancel=self.cancel)

    async def hgetall(self, hash_key: str) -> Optional[dict[str, Entry]]:
        return self.store.hgetall(hash_key, cancel=self.cancel)

    async def hdel(self, hash_key: str, field: str) -> None:
        self.store.hdel(hash_key, field, cancel=self.cancel)

    async def get_status(self) -> Status:
        return {"keys": self.store.keys(cancel=self.cancel)}
