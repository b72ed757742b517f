"""Typed facade over a cstore backend.

Values are JSON-encoded on the way in and decoded on the way out; the
backend only ever sees bytes. Swapping MockBackend for HttpBackend does not
change any call site.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Optional, TypeVar

from common.clock import Clock
from common.errors import EncodingError, InvalidArgumentError
from common.jsonutil import compact_json_dumps, decode_json, is_null_payload
from common.logger import get_logger
from common.seed import CStoreSeedEntry
from common.transport import DEFAULT_TIMEOUT
from cstore.base import CStoreBackend
from cstore.http_backend import HttpBackend
from cstore.mock_backend import MockBackend
from cstore.store import MemoryStore
from cstore.types import Entry, HashItem, Item, ListResult, SetOptions, Status

T = TypeVar("T")
Decoder = Optional[Callable[[Any], T]]


def _require(value: str, what: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"cstore: {what} is required")


def _encode(value: Any) -> bytes:
    if value is None:
        raise InvalidArgumentError("cstore: value is required")
    try:
        return compact_json_dumps(value)
    except EncodingError as exc:
        raise EncodingError(f"cstore: {exc}") from exc


def _decode(ent: Entry, decode: Decoder) -> Any:
    try:
        return decode_json(ent.data, decode)
    except EncodingError as exc:
        raise EncodingError(f"cstore: {exc}") from exc


class CStoreClient:
    """Key/value client.

    Use `CStoreClient.mock()` for an in-process store (tests, local
    development) or `CStoreClient.http(url)` for the remote service.
    """

    def __init__(self, backend: CStoreBackend):
        self.backend = backend

    @classmethod
    def mock(
        cls,
        clock: Optional[Clock] = None,
        seed: Optional[Iterable[CStoreSeedEntry]] = None,
        store: Optional[MemoryStore] = None,
        cancel: Optional[threading.Event] = None,
    ) -> "CStoreClient":
        """In-process client. Once `cancel` is set every call raises CancelledError."""
        return cls(MockBackend(store or MemoryStore(clock=clock, seed=seed), cancel=cancel))

    @classmethod
    def http(cls, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> "CStoreClient":
        return cls(HttpBackend(base_url, timeout=timeout))

    async def get(self, key: str, decode: Decoder = None) -> Optional[Item[Any]]:
        """Get a value; None when the key is absent, expired or holds JSON null."""
        _require(key, "key")
        ent = await self.backend.get(key)
        if ent is None or is_null_payload(ent.data):
            return None
        return Item(key=key, value=_decode(ent, decode), etag=ent.etag, expires_at=ent.expires_at)

    async def set(self, key: str, value: Any, options: Optional[SetOptions] = None) -> Item[Any]:
        """Store a JSON-serializable value and return the written item."""
        _require(key, "key")
        raw = _encode(value)
        ent = await self.backend.set(key, raw, options)
        get_logger(__name__).debug("cstore: set key=%s bytes=%d", key, len(raw))
        return Item(key=key, value=value, etag=ent.etag, expires_at=ent.expires_at)

    async def list(
        self,
        prefix: str = "",
        cursor: str = "",
        limit: int = 0,
        decode: Decoder = None,
    ) -> ListResult[Any]:
        """List one page of items; pass result.next_cursor back to continue."""
        entries, next_cursor = await self.backend.list(prefix, cursor, limit)
        items = [
            Item(key=key, value=_decode(ent, decode), etag=ent.etag, expires_at=ent.expires_at)
            for key, ent in entries
        ]
        return ListResult(items=items, next_cursor=next_cursor)

    async def list_keys(self) -> list[str]:
        return await self.backend.list_keys()

    async def delete(self, key: str) -> None:
        _require(key, "key")
        await self.backend.delete(key)

    async def hget(self, hash_key: str, field: str, decode: Decoder = None) -> Optional[HashItem[Any]]:
        _require(hash_key, "hash key")
        _require(field, "hash field")
        ent = await self.backend.hget(hash_key, field)
        if ent is None or is_null_payload(ent.data):
            return None
        return HashItem(
            hash_key=hash_key,
            field=field,
            value=_decode(ent, decode),
            etag=ent.etag,
            expires_at=ent.expires_at,
        )

    async def hset(
        self,
        hash_key: str,
        field: str,
        value: Any,
        options: Optional[SetOptions] = None,
    ) -> HashItem[Any]:
        _require(hash_key, "hash key")
        _require(field, "hash field")
        raw = _encode(value)
        ent = await self.backend.hset(hash_key, field, raw, options)
        return HashItem(hash_key=hash_key, field=field, value=value, etag=ent.etag, expires_at=ent.expires_at)

    async def hgetall(self, hash_key: str, decode: Decoder = None) -> Optional[list[HashItem[Any]]]:
        """All live fields sorted by name; None when the bucket does not exist."""
        _require(hash_key, "hash key")
        fields = await self.backend.hgetall(hash_key)
        if not fields:
            return None
        return [
            HashItem(
                hash_key=hash_key,
                field=name,
                value=_decode(fields[name], decode),
                etag=fields[name].etag,
                expires_at=fields[name].expires_at,
            )
            for name in sorted(fields)
        ]

    async def hdel(self, hash_key: str, field: str) -> None:
        _require(hash_key, "hash key")
        _require(field, "hash field")
        await self.backend.hdel(hash_key, field)

    async def get_status(self) -> Status:
        return await self.backend.get_status()
