"""cstore backend talking to the remote chainstore REST API."""

from __future__ import annotations

from typing import Any, Optional

from common.envelope import decode_result, extract_result
from common.errors import EncodingError, InvalidArgumentError, TransportError, UnsupportedFeatureError
from common.jsonutil import compact_json_dumps, decode_json
from common.logger import get_logger
from common.pagination import paginate
from common.transport import DEFAULT_TIMEOUT, request
from cstore.base import CStoreBackend
from cstore.types import Entry, EntryPage, SetOptions, Status

SERVICE = "cstore"


def coerce_bool(value: Any) -> bool:
    """Interpret the loosely-typed boolean results returned by set/hset."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "t", "true"):
            return True
        if text in ("0", "f", "false"):
            return False
        raise ValueError(f"unexpected boolean string {value!r}")
    raise ValueError(f"unexpected result type {type(value).__name__}")


def _validate_options(options: Optional[SetOptions]) -> None:
    if options is None:
        return
    if options.ttl_seconds is not None:
        raise UnsupportedFeatureError("cstore: ttl_seconds not supported by the remote API")
    if options.if_absent or options.if_etag_match:
        raise UnsupportedFeatureError("cstore: conditional writes not supported by the remote API")


def _payload_entry(payload: Optional[bytes]) -> Optional[Entry]:
    if payload is None or payload.strip() == b"null":
        return None
    return Entry(data=payload)


class HttpBackend(CStoreBackend):
    """Remote backend. The API exposes no etags, expiry or deletes."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        if not base_url or not base_url.strip():
            raise InvalidArgumentError("cstore: base URL is required")
        self.base_url = base_url.strip()
        self.timeout = timeout

    async def _get(self, path: str, params: Optional[dict[str, str]] = None) -> bytes:
        return await request(SERVICE, self.base_url, "GET", path, params=params, timeout=self.timeout)

    async def _post_bool(self, path: str, body: dict[str, Any]) -> None:
        raw = await request(SERVICE, self.base_url, "POST", path, json_body=body, timeout=self.timeout)
        try:
            ok = coerce_bool(decode_result(raw))
        except ValueError as exc:
            raise EncodingError(f"cstore: decode {path} response: {exc}") from exc
        if not ok:
            raise TransportError(f"cstore: {path} rejected by upstream")

    async def get(self, key: str) -> Optional[Entry]:
        return _payload_entry(extract_result(await self._get("get", {"key": key})))

    async def set(self, key: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        _validate_options(options)
        body = {"key": key, "value": decode_json(raw), "chainstore_peers": []}
        await self._post_bool("set", body)
        return Entry(data=bytes(raw))

    async def list(self, prefix: str = "", cursor: str = "", limit: int = 0) -> EntryPage:
        page, next_cursor = paginate(await self.list_keys(), prefix, cursor, limit)
        items: list[tuple[str, Entry]] = []
        for key in page:
            ent = await self.get(key)
            if ent is not None:
                items.append((key, ent))
        return items, next_cursor

    async def list_keys(self) -> list[str]:
        status = await self.get_status()
        return sorted(status["keys"])

    async def delete(self, key: str) -> None:
        raise UnsupportedFeatureError("cstore: delete not supported by the remote API")

    async def hget(self, hash_key: str, field: str) -> Optional[Entry]:
        return _payload_entry(extract_result(await self._get("hget", {"hkey": hash_key, "key": field})))

    async def hset(self, hash_key: str, field: str, raw: bytes, options: Optional[SetOptions] = None) -> Entry:
        _validate_options(options)
        body = {"hkey": hash_key, "key": field, "value": decode_json(raw), "chainstore_peers": []}
        await self._post_bool("hset", body)
        return Entry(data=bytes(raw))

    async def hgetall(self, hash_key: str) -> Optional[dict[str, Entry]]:
        payload = extract_result(await self._get("hgetall", {"hkey": hash_key}))
        if payload is None:
            return None
        fields = decode_json(payload)
        if fields is None:
            return None
        if not isinstance(fields, dict):
            raise EncodingError("cstore: hgetall response is not an object")
        if not fields:
            return None
        return {name: Entry(data=compact_json_dumps(fields[name])) for name in sorted(fields)}

    async def hdel(self, hash_key: str, field: str) -> None:
        raise UnsupportedFeatureError("cstore: hdel not supported by the remote API")

    async def get_status(self) -> Status:
        log = get_logger(__name__)
        raw = await self._get("get_status")
        try:
            payload = decode_result(raw)
        except ValueError as exc:
            raise EncodingError(f"cstore: decode get_status response: {exc}") from exc
        if payload is None:
            return {"keys": []}
        if not isinstance(payload, dict):
            raise EncodingError("cstore: get_status response is not an object")
        keys = payload.get("keys") or []
        log.debug("cstore: get_status keys=%d", len(keys))
        return {"keys": [str(k) for k in keys]}
