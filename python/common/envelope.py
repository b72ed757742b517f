"""Unwrap the `{"result": ...}` envelope returned by the remote services."""

from __future__ import annotations

import json
from typing import Any, Optional

MAX_STRING_UNWRAP = 4


def _dumps(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def extract_result(body: bytes) -> Optional[bytes]:
    """Return the JSON payload stored under "result".

    A body that is not an object with a "result" field is returned as-is.
    When "result" is a string holding an encoded JSON document (possibly
    quoted several times), the inner document is returned instead.
    """
    trimmed = body.strip()
    if not trimmed:
        return None
    try:
        doc = json.loads(trimmed)
    except ValueError:
        return trimmed
    if not isinstance(doc, dict) or "result" not in doc:
        return trimmed

    result = doc["result"]
    if isinstance(result, str):
        decoded = result
        for _ in range(MAX_STRING_UNWRAP):
            try:
                inner = json.loads(decoded)
            except ValueError:
                break
            if not isinstance(inner, str):
                return _dumps(inner)
            decoded = inner
    return _dumps(result)


def decode_result(body: bytes) -> Any:
    """Decode the unwrapped payload; an empty body decodes as None."""
    return json.loads(extract_result(body) or b"null")
