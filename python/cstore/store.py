"""In-memory cstore engine: values, hash buckets, TTL expiry and ETags.

One store instance owns its maps and a single reader/writer lock. Reads run
under the shared lock; expiry is lazy, so a read (or list) that meets a stale
entry escalates to the exclusive lock and deletes it. Callers therefore see
state change across reads: an expired key disappears from the maps the first
time anything looks at it.
"""

from __future__ import annotations

import secrets
import threading
from datetime import datetime, timedelta
from typing import Iterable, Optional

from common.clock import Clock, utc_now
from common.errors import (
    CancelledError,
    InvalidArgumentError,
    NotFoundError,
    PreconditionFailedError,
    SeedError,
)
from common.logger import get_logger
from common.pagination import paginate
from common.rwlock import RWLock
from common.seed import CStoreSeedEntry
from cstore.types import Entry, EntryPage, SetOptions


def new_etag() -> str:
    return secrets.token_hex(16)


def _require(value: str, what: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"cstore: {what} is required")


def _require_bytes(data: bytes) -> None:
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidArgumentError("cstore: payload must be bytes")


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CancelledError("cstore: operation cancelled")


def _expiry(now: datetime, ttl_seconds: Optional[int]) -> Optional[datetime]:
    if ttl_seconds is None or ttl_seconds <= 0:
        return None
    return now + timedelta(seconds=ttl_seconds)


def _live(bucket: dict[str, Entry], name: str, now: datetime) -> Optional[Entry]:
    """Return the live entry under name, dropping it first if it has expired."""
    ent = bucket.get(name)
    if ent is not None and ent.expired(now):
        del bucket[name]
        return None
    return ent


def _check_preconditions(current: Optional[Entry], opts: SetOptions, what: str) -> None:
    log = get_logger(__name__)
    if opts.if_absent and current is not None:
        log.debug("cstore: precondition failed (if_absent) target=%s", what)
        raise PreconditionFailedError(f"cstore: {what} already exists")
    if opts.if_etag_match and (current is None or current.etag != opts.if_etag_match):
        log.debug("cstore: precondition failed (if_etag_match) target=%s", what)
        raise PreconditionFailedError(f"cstore: etag mismatch for {what}")


class MemoryStore:
    """In-memory replacement for the remote key/value service."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        seed: Optional[Iterable[CStoreSeedEntry]] = None,
    ):
        self._lock = RWLock()
        self._items: dict[str, Entry] = {}
        self._hashes: dict[str, dict[str, Entry]] = {}
        self._clock: Clock = clock or utc_now
        if seed is not None:
            self.seed(seed)

    def now(self) -> datetime:
        return self._clock()

    def seed(self, entries: Iterable[CStoreSeedEntry]) -> int:
        """Bulk-load entries. The whole batch is validated before any is applied."""
        log = get_logger(__name__)
        now = self._clock()
        staged: dict[str, Entry] = {}
        for index, e in enumerate(entries):
            if not e.key or not e.key.strip():
                raise SeedError(f"cstore: seed entry {index} missing key")
            staged[e.key] = Entry(
                data=bytes(e.value) or b"null",
                etag=new_etag(),
                expires_at=_expiry(now, e.ttl_seconds),
            )
        with self._lock.write_locked():
            self._items.update(staged)
        log.info("cstore: seeded entries=%d", len(staged))
        return len(staged)

    # --- values -------------------------------------------------------------

    def get(self, key: str, cancel: Optional[threading.Event] = None) -> Optional[Entry]:
        """Return the live entry for key, or None if absent or expired."""
        _require(key, "key")
        _check_cancel(cancel)
        with self._lock.read_locked():
            ent = self._items.get(key)
            if ent is None or not ent.expired(self._clock()):
                return ent
        self._expire_item(key, ent)
        return None

    def set(
        self,
        key: str,
        data: bytes,
        options: Optional[SetOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Entry:
        """Replace the entry under key with a new one (fresh etag).

        Raises PreconditionFailedError when if_absent / if_etag_match do not
        hold against the current live entry.
        """
        _require(key, "key")
        _require_bytes(data)
        _check_cancel(cancel)
        opts = options or SetOptions()
        with self._lock.write_locked():
            now = self._clock()
            current = _live(self._items, key, now)
            _check_preconditions(current, opts, f"key {key!r}")
            entry = Entry(data=bytes(data), etag=new_etag(), expires_at=_expiry(now, opts.ttl_seconds))
            self._items[key] = entry
        return entry

    def delete(self, key: str, cancel: Optional[threading.Event] = None) -> None:
        _require(key, "key")
        _check_cancel(cancel)
        with self._lock.write_locked():
            if _live(self._items, key, self._clock()) is None:
                raise NotFoundError(f"cstore: key {key!r} not found")
            del self._items[key]

    def list(
        self,
        prefix: str = "",
        cursor: str = "",
        limit: int = 0,
        cancel: Optional[threading.Event] = None,
    ) -> EntryPage:
        """Return one page of (key, entry) pairs plus the next cursor.

        Stale entries anywhere in the store are swept first.
        """
        _check_cancel(cancel)
        with self._lock.write_locked():
            self._sweep(self._clock())
            page, next_cursor = paginate(self._items, prefix, cursor, limit)
            return [(key, self._items[key]) for key in page], next_cursor

    def keys(self, cancel: Optional[threading.Event] = None) -> list[str]:
        """Sorted live keys."""
        _check_cancel(cancel)
        with self._lock.write_locked():
            self._sweep(self._clock())
            return sorted(self._items)

    def _sweep(self, now: datetime) -> None:
        stale = [key for key, ent in self._items.items() if ent.expired(now)]
        for key in stale:
            del self._items[key]
        if stale:
            get_logger(__name__).debug("cstore: expired keys=%d", len(stale))

    def _expire_item(self, key: str, stale: Entry) -> None:
        with self._lock.write_locked():
            # A writer may have replaced the entry since the read lock was released.
            if self._items.get(key) is stale:
                del self._items[key]
                get_logger(__name__).debug("cstore: expired key=%s", key)

    # --- hashes -------------------------------------------------------------

    def hget(self, hash_key: str, field: str, cancel: Optional[threading.Event] = None) -> Optional[Entry]:
        _require(hash_key, "hash key")
        _require(field, "hash field")
        _check_cancel(cancel)
        with self._lock.read_locked():
            bucket = self._hashes.get(hash_key)
            ent = bucket.get(field) if bucket is not None else None
            if ent is None or not ent.expired(self._clock()):
                return ent
        self._expire_field(hash_key, field, ent)
        return None

    def hset(
        self,
        hash_key: str,
        field: str,
        data: bytes,
        options: Optional[SetOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Entry:
        """Write one field of a hash bucket, with the same preconditions as set()."""
        _require(hash_key, "hash key")
        _require(field, "hash field")
        _require_bytes(data)
        _check_cancel(cancel)
        opts = options or SetOptions()
        with self._lock.write_locked():
            now = self._clock()
            bucket = self._hashes.get(hash_key)
            current = _live(bucket, field, now) if bucket is not None else None
            self._prune(hash_key)
            _check_preconditions(current, opts, f"hash field {hash_key!r}/{field!r}")
            entry = Entry(data=bytes(data), etag=new_etag(), expires_at=_expiry(now, opts.ttl_seconds))
            self._hashes.setdefault(hash_key, {})[field] = entry
        return entry

    def hgetall(self, hash_key: str, cancel: Optional[threading.Event] = None) -> Optional[dict[str, Entry]]:
        """Return live fields sorted by name, or None when the bucket does not exist."""
        _require(hash_key, "hash key")
        _check_cancel(cancel)
        with self._lock.write_locked():
            bucket = self._hashes.get(hash_key)
            if bucket is None:
                return None
            now = self._clock()
            for name in [f for f, ent in bucket.items() if ent.expired(now)]:
                del bucket[name]
            if not self._prune(hash_key):
                return None
            return {name: bucket[name] for name in sorted(bucket)}

    def hdel(self, hash_key: str, field: str, cancel: Optional[threading.Event] = None) -> None:
        _require(hash_key, "hash key")
        _require(field, "hash field")
        _check_cancel(cancel)
        with self._lock.write_locked():
            bucket = self._hashes.get(hash_key)
            current = _live(bucket, field, self._clock()) if bucket is not None else None
            if current is None:
                self._prune(hash_key)
                raise NotFoundError(f"cstore: hash field {hash_key!r}/{field!r} not found")
            del bucket[field]
            self._prune(hash_key)

    def _prune(self, hash_key: str) -> bool:
        """Drop the bucket if it is empty. Returns whether it still exists."""
        bucket = self._hashes.get(hash_key)
        if bucket is None:
            return False
        if not bucket:
            del self._hashes[hash_key]
            return False
        return True

    def _expire_field(self, hash_key: str, field: str, stale: Entry) -> None:
        with self._lock.write_locked():
            bucket = self._hashes.get(hash_key)
            if bucket is not None and bucket.get(field) is stale:
                del bucket[field]
                self._prune(hash_key)
                get_logger(__name__).debug("cstore: expired hash field=%s/%s", hash_key, field)
