from __future__ import annotations

import json
from typing import Any, Callable, Optional, TypeVar

from common.errors import EncodingError

T = TypeVar("T")

NULL_PAYLOADS = (b"", b"null")


def compact_json_dumps(obj: Any) -> bytes:
    """Serialize to compact UTF-8 JSON.

    Unserializable values and non-finite floats raise EncodingError.
    """
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"encode value: {exc}") from exc


def is_null_payload(raw: bytes) -> bool:
    return raw.strip() in NULL_PAYLOADS


def decode_json(raw: bytes, decode: Optional[Callable[[Any], T]] = None) -> Any:
    """Parse raw JSON and optionally convert it with `decode`."""
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise EncodingError(f"decode value: {exc}") from exc
    if decode is None:
        return value
    try:
        return decode(value)
    except (TypeError, ValueError, KeyError) as exc:
        raise EncodingError(f"decode value: {exc}") from exc
