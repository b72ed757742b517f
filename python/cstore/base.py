"""cstore backend base class (abstract).

The client facade depends on this type only, so the in-memory backend and
the remote HTTP backend can be swapped without touching call sites. All
payloads crossing this boundary are raw JSON bytes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from cstore.types import Entry, EntryPage, SetOptions, Status


class CStoreBackend(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Entry]:
        """Get the entry under key; None when absent."""
        ...

    @abstractmethod
    async def set(self, key: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        """Store raw JSON under key and return the written entry."""
        ...

    @abstractmethod
    async def list(self, prefix: str = "", cursor: str = "", limit: int = 0) -> EntryPage:
        """List one page of entries whose keys start with prefix."""
        ...

    @abstractmethod
    async def list_keys(self) -> list[str]:
        """List all keys, sorted."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key; NotFoundError when absent."""
        ...

    @abstractmethod
    async def hget(self, hash_key: str, field: str) -> Optional[Entry]:
        """Get one hash field; None when absent."""
        ...

    @abstractmethod
    async def hset(self, hash_key: str, field: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        """Store raw JSON under a hash field."""
        ...

    @abstractmethod
    async def hgetall(self, hash_key: str) -> Optional[dict[str, Entry]]:
        """Get every field of a hash bucket; None when the bucket does not exist."""
        ...

    @abstractmethod
    async def hdel(self, hash_key: str, field: str) -> None:
        """Remove one hash field; NotFoundError when absent."""
        ...

    @abstractmethod
    async def get_status(self) -> Status:
        """Report service status (at least the known keys)."""
        ...
