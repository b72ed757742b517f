"""Common types for the key/value (cstore) service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypedDict, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Entry:
    """Stored unit: raw JSON bytes, version token and optional expiry.

    Entries are never mutated; every write installs a new Entry.
    """
    data: bytes
    etag: str = ""
    expires_at: Optional[datetime] = None

    def expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


@dataclass(frozen=True)
class SetOptions:
    """Write semantics for set/hset."""
    ttl_seconds: Optional[int] = None
    if_absent: bool = False
    if_etag_match: str = ""


@dataclass
class Item(Generic[T]):
    """A key/value pair as seen by facade callers."""
    key: str
    value: T
    etag: str = ""
    expires_at: Optional[datetime] = None


@dataclass
class HashItem(Generic[T]):
    """A field stored under a hash key."""
    hash_key: str
    field: str
    value: T
    etag: str = ""
    expires_at: Optional[datetime] = None


@dataclass
class ListResult(Generic[T]):
    """One page of items; next_cursor is "" on the last page."""
    items: list[Item[T]]
    next_cursor: str = ""


class Status(TypedDict):
    """Payload of get_status."""
    keys: list[str]


EntryPage = tuple[list[tuple[str, Entry]], str]
