"""Facade over an r1fs backend.

Uploads accept raw bytes or a readable binary file object. Structured
documents are JSON-encoded by the backend and decoded here.
"""

from __future__ import annotations

import threading
from typing import Any, BinaryIO, Callable, Iterable, Optional, TypeVar, Union

from common.clock import Clock
from common.errors import DocumentError, EncodingError, InvalidArgumentError
from common.jsonutil import decode_json, is_null_payload
from common.logger import get_logger
from common.seed import R1FSSeedEntry
from common.transport import DEFAULT_TIMEOUT
from r1fs.base import R1FSBackend
from r1fs.http_backend import HttpBackend
from r1fs.mock_backend import MockBackend
from r1fs.store import MemoryFileStore
from r1fs.types import DeleteOptions, FileListResult, FileLocation, FileStat, UploadOptions, YAMLDocument

T = TypeVar("T")
Decoder = Optional[Callable[[Any], T]]
Payload = Union[bytes, bytearray, BinaryIO]


def _require(value: str, what: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"r1fs: {what} is required")


def _check_nonce(nonce: Optional[int], required: bool = False) -> None:
    if nonce is None and not required:
        return
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        raise InvalidArgumentError("r1fs: nonce must be an integer")


def _read_payload(data: Payload) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    read = getattr(data, "read", None)
    if read is None:
        raise InvalidArgumentError("r1fs: payload must be bytes or a binary file object")
    try:
        payload = read()
    except OSError as exc:
        raise InvalidArgumentError(f"r1fs: read upload payload: {exc}") from exc
    if not isinstance(payload, (bytes, bytearray)):
        raise InvalidArgumentError("r1fs: payload stream must yield bytes")
    return bytes(payload)


def decode_document(cid: str, raw: Optional[bytes], decode: Decoder = None) -> Optional[YAMLDocument[Any]]:
    """Interpret a get_yaml payload.

    Empty or null payloads give None; the JSON string "error" raises
    DocumentError; otherwise the "file_data" field becomes the document.
    """
    if raw is None or is_null_payload(raw):
        return None
    try:
        payload = decode_json(raw)
    except EncodingError as exc:
        raise EncodingError(f"r1fs: decode get_yaml response: {exc}") from exc
    if isinstance(payload, str) and payload.lower() == "error":
        raise DocumentError(f"r1fs: get_yaml reported error for cid {cid}")
    if not isinstance(payload, dict):
        raise EncodingError("r1fs: get_yaml response is not an object")
    if payload.get("file_data") is None:
        return YAMLDocument(cid=cid)
    value = payload["file_data"]
    if decode is not None:
        try:
            value = decode(value)
        except (TypeError, ValueError, KeyError) as exc:
            raise EncodingError(f"r1fs: decode document payload: {exc}") from exc
    return YAMLDocument(cid=cid, data=value)


class R1FSClient:
    """File client.

    `R1FSClient.mock()` keeps files in process; `R1FSClient.http(url)` talks
    to the remote R1FS manager.
    """

    def __init__(self, backend: R1FSBackend):
        self.backend = backend

    @classmethod
    def mock(
        cls,
        clock: Optional[Clock] = None,
        seed: Optional[Iterable[R1FSSeedEntry]] = None,
        store: Optional[MemoryFileStore] = None,
        cancel: Optional[threading.Event] = None,
    ) -> "R1FSClient":
        return cls(MockBackend(store or MemoryFileStore(clock=clock, seed=seed), cancel=cancel))

    @classmethod
    def http(cls, base_url: str, timeout: float = DEFAULT_TIMEOUT) -> "R1FSClient":
        return cls(HttpBackend(base_url, timeout=timeout))

    async def upload(
        self, path: str, data: Payload, size: int = -1, options: Optional[UploadOptions] = None
    ) -> FileStat:
        _require(path, "path")
        payload = _read_payload(data)
        stat = await self.backend.upload(path, payload, size, options)
        get_logger(__name__).debug("r1fs: upload path=%s bytes=%d", stat["path"], len(payload))
        return stat

    async def add_file(
        self, filename: str, data: Payload, size: int = -1, options: Optional[UploadOptions] = None
    ) -> FileStat:
        """Store anonymous content; stat["path"] is the generated cid."""
        _require(filename, "filename")
        payload = _read_payload(data)
        stat = await self.backend.add_file(filename, payload, size, options)
        get_logger(__name__).debug("r1fs: add_file cid=%s bytes=%d", stat["path"], len(payload))
        return stat

    async def download(self, path: str) -> bytes:
        _require(path, "path")
        return await self.backend.download(path)

    async def stat(self, path: str) -> FileStat:
        _require(path, "path")
        return await self.backend.stat(path)

    async def get_file(self, cid: str, secret: str = "") -> FileLocation:
        _require(cid, "cid")
        return await self.backend.get_file(cid, secret)

    async def get_file_base64(self, cid: str, secret: str = "") -> tuple[bytes, str]:
        _require(cid, "cid")
        return await self.backend.get_file_base64(cid, secret)

    async def list(self, directory: str = "/", cursor: str = "", limit: int = 0) -> FileListResult:
        return await self.backend.list(directory, cursor, limit)

    async def delete(self, path: str, options: Optional[DeleteOptions] = None) -> None:
        _require(path, "path")
        await self.backend.delete(path, options)

    async def add_json(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        if value is None:
            raise InvalidArgumentError("r1fs: json data is required")
        _check_nonce(nonce)
        return await self.backend.add_json(value, filename, secret, nonce)

    async def add_pickle(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        if value is None:
            raise InvalidArgumentError("r1fs: pickle data is required")
        _check_nonce(nonce)
        cid = await self.backend.add_pickle(value, filename, secret, nonce)
        get_logger(__name__).debug("r1fs: add_pickle cid=%s", cid)
        return cid

    async def calculate_json_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        """cid the JSON form of value would get with nonce; nothing is stored."""
        if value is None:
            raise InvalidArgumentError("r1fs: json data is required")
        _check_nonce(nonce, required=True)
        return await self.backend.calculate_json_cid(value, nonce, secret)

    async def calculate_pickle_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        if value is None:
            raise InvalidArgumentError("r1fs: pickle data is required")
        _check_nonce(nonce, required=True)
        return await self.backend.calculate_pickle_cid(value, nonce, secret)

    async def add_yaml(self, value: Any, filename: str = "", secret: str = "") -> str:
        if value is None:
            raise InvalidArgumentError("r1fs: yaml data is required")
        return await self.backend.add_yaml(value, filename, secret)

    async def get_yaml(self, cid: str, secret: str = "", decode: Decoder = None) -> Optional[YAMLDocument[Any]]:
        _require(cid, "cid")
        return decode_document(cid, await self.backend.get_yaml(cid, secret), decode)
