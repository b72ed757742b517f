"""Seed files: declarative bulk-load input for the in-memory stores.

cstore seed (JSON array):
    [{"key": "foo", "value": {"answer": 42}, "ttlSeconds": 60}, ...]

r1fs seed (JSON array):
    [{"path": "/docs/a.txt", "base64": "aGVsbG8=", "contentType": "text/plain",
      "metadata": {"owner": "ops"}, "lastModified": "2024-01-01T00:00:00Z"}, ...]

Loading only checks the document shape. Required identifiers and base64
payloads are validated by the store's `seed()`, which applies a batch only
once every entry in it is valid.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from common.errors import SeedError
from common.logger import get_logger

PathLike = Union[str, Path]

_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


@dataclass(frozen=True)
class CStoreSeedEntry:
    key: str
    value: bytes = b"null"
    ttl_seconds: Optional[int] = None


@dataclass(frozen=True)
class R1FSSeedEntry:
    path: str
    base64: str = ""
    content_type: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    last_modified: Optional[datetime] = None


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp (trailing `Z` accepted) as aware UTC."""
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: m.group(1) + "." + m.group(2)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _read_array(path: PathLike) -> list[Any]:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SeedError(f"seed: read {path}: {exc}") from exc
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SeedError(f"seed: decode {path}: {exc}") from exc
    if not isinstance(doc, list):
        raise SeedError(f"seed: {path}: expected a JSON array of entries")
    return doc


def _require_object(item: Any, index: int) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise SeedError(f"seed: entry {index}: expected an object")
    return item


def _optional_str(item: dict[str, Any], name: str, index: int) -> str:
    value = item.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SeedError(f"seed: entry {index}: {name} must be a string")
    return value


def parse_cstore_seed(doc: list[Any]) -> list[CStoreSeedEntry]:
    entries: list[CStoreSeedEntry] = []
    for index, raw in enumerate(doc):
        item = _require_object(raw, index)
        ttl = item.get("ttlSeconds")
        if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, int)):
            raise SeedError(f"seed: entry {index}: ttlSeconds must be an integer")
        value = json.dumps(item.get("value"), separators=(",", ":"), ensure_ascii=False)
        entries.append(
            CStoreSeedEntry(
                key=_optional_str(item, "key", index),
                value=value.encode("utf-8"),
                ttl_seconds=ttl,
            )
        )
    return entries


def parse_r1fs_seed(doc: list[Any]) -> list[R1FSSeedEntry]:
    entries: list[R1FSSeedEntry] = []
    for index, raw in enumerate(doc):
        item = _require_object(raw, index)
        metadata = item.get("metadata") or {}
        if not isinstance(metadata, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in metadata.items()
        ):
            raise SeedError(f"seed: entry {index}: metadata must map strings to strings")
        last_modified = None
        stamp = _optional_str(item, "lastModified", index)
        if stamp:
            try:
                last_modified = parse_timestamp(stamp)
            except ValueError as exc:
                raise SeedError(f"seed: entry {index}: invalid lastModified {stamp!r}") from exc
        entries.append(
            R1FSSeedEntry(
                path=_optional_str(item, "path", index),
                base64=_optional_str(item, "base64", index),
                content_type=_optional_str(item, "contentType", index),
                metadata=dict(metadata),
                last_modified=last_modified,
            )
        )
    return entries


def load_cstore_seed(path: PathLike) -> list[CStoreSeedEntry]:
    log = get_logger(__name__)
    entries = parse_cstore_seed(_read_array(path))
    log.debug("seed: loaded cstore seed path=%s entries=%d", path, len(entries))
    return entries


def load_r1fs_seed(path: PathLike) -> list[R1FSSeedEntry]:
    log = get_logger(__name__)
    entries = parse_r1fs_seed(_read_array(path))
    log.debug("seed: loaded r1fs seed path=%s entries=%d", path, len(entries))
    return entries
