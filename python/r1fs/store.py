"""In-memory r1fs engine: path- and cid-addressed files plus a document index.

Two addressing modes share one map of normalized paths:
- upload(path, ...) stores under a caller-chosen path
- add_file(filename, ...) stores under a generated cid ("/<cid>" internally)
  and remembers the caller's filename for get_file()

Structured documents (add_yaml) are ordinary cid files whose raw JSON is
also indexed by cid so get_yaml() can hand it back directly. add_json and
add_pickle store the serialized bytes only. File entries never expire.

calculate_json_cid / calculate_pickle_cid hash the serialized payload and
nonce, so the same input always gives the same cid; nothing is stored.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import pickle
import secrets
import threading
from datetime import datetime
from typing import Any, Iterable, Optional

from common.clock import Clock, utc_now
from common.errors import CancelledError, EncodingError, InvalidArgumentError, NotFoundError, SeedError
from common.jsonutil import compact_json_dumps
from common.logger import get_logger
from common.pagination import paginate
from common.rwlock import RWLock
from common.seed import R1FSSeedEntry
from r1fs.types import DeleteOptions, FileEntry, FileListResult, FileLocation, FileStat, UploadOptions

DEFAULT_YAML_FILENAME = "document.yaml"
DEFAULT_JSON_FILENAME = "document.json"
DEFAULT_PICKLE_FILENAME = "document.pkl"
DOCUMENT_CONTENT_TYPE = "application/json"
PICKLE_CONTENT_TYPE = "application/octet-stream"
PICKLE_PROTOCOL = 4
META_FILENAME = "r1fs.filename"
META_SECRET = "r1fs.secret"
META_NONCE = "r1fs.nonce"
YAML_ERROR_SENTINEL = b'"error"'


def new_token() -> str:
    return secrets.token_hex(16)


def normalize_path(path: str) -> str:
    if not path:
        return "/"
    return path if path.startswith("/") else "/" + path


def normalize_dir(directory: str) -> str:
    if not directory or directory == "/":
        return "/"
    path = normalize_path(directory)
    return path if path.endswith("/") else path + "/"


def _require(value: str, what: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"r1fs: {what} is required")


def _require_bytes(data: bytes) -> None:
    if not isinstance(data, (bytes, bytearray)):
        raise InvalidArgumentError("r1fs: payload must be bytes")


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CancelledError("r1fs: operation cancelled")


def _options_metadata(options: Optional[UploadOptions]) -> dict[str, str]:
    if options is None:
        return {}
    meta = dict(options.metadata)
    if options.secret:
        meta[META_SECRET] = options.secret
    if options.nonce is not None:
        meta[META_NONCE] = str(options.nonce)
    return meta


def content_cid(payload: bytes, nonce: int) -> str:
    digest = hashlib.sha256()
    digest.update(payload)
    digest.update(b"\x00" + str(nonce).encode("ascii"))
    return digest.hexdigest()[:32]


def pickle_payload(value: Any) -> bytes:
    if value is None:
        raise InvalidArgumentError("r1fs: pickle data is required")
    try:
        return pickle.dumps(value, protocol=PICKLE_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise EncodingError(f"r1fs: encode pickle: {exc}") from exc


def _stat(path: str, entry: FileEntry, size: int) -> FileStat:
    return {
        "path": path,
        "size": size,
        "content_type": entry.content_type,
        "etag": entry.etag,
        "last_modified": entry.last_modified,
        "metadata": dict(entry.metadata),
    }


def _choose_size(provided: int, actual: int) -> int:
    return provided if provided >= 0 else actual


class MemoryFileStore:
    """In-memory replacement for the remote file service."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        seed: Optional[Iterable[R1FSSeedEntry]] = None,
    ):
        self._lock = RWLock()
        self._files: dict[str, FileEntry] = {}
        # normalized path -> caller-supplied filename (cid uploads only)
        self._file_names: dict[str, str] = {}
        # normalized path -> raw JSON of documents added with add_yaml
        self._yaml_docs: dict[str, bytes] = {}
        self._clock: Clock = clock or utc_now
        if seed is not None:
            self.seed(seed)

    def seed(self, entries: Iterable[R1FSSeedEntry]) -> int:
        """Bulk-load files. The whole batch is validated before any is applied."""
        log = get_logger(__name__)
        now = self._clock()
        staged: dict[str, FileEntry] = {}
        for index, e in enumerate(entries):
            if not e.path or not e.path.strip():
                raise SeedError(f"r1fs: seed entry {index} missing path")
            try:
                data = base64.b64decode(e.base64, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise SeedError(f"r1fs: seed entry {index} ({e.path}): decode base64: {exc}") from exc
            staged[normalize_path(e.path)] = FileEntry(
                data=data,
                content_type=e.content_type,
                etag=new_token(),
                metadata=dict(e.metadata),
                last_modified=e.last_modified or now,
            )
        with self._lock.write_locked():
            for path, entry in staged.items():
                self._install(path, entry)
        log.info("r1fs: seeded files=%d", len(staged))
        return len(staged)

    def _install(self, path: str, entry: FileEntry) -> None:
        self._files[path] = entry
        self._file_names.pop(path, None)
        self._yaml_docs.pop(path, None)

    def _new_entry(self, data: bytes, options: Optional[UploadOptions], now: datetime, **extra_meta: str) -> FileEntry:
        meta = _options_metadata(options)
        meta.update(extra_meta)
        return FileEntry(
            data=bytes(data),
            content_type=options.content_type if options is not None else "",
            etag=new_token(),
            metadata=meta,
            last_modified=now,
        )

    # --- writes -------------------------------------------------------------

    def upload(
        self,
        path: str,
        data: bytes,
        size: int = -1,
        options: Optional[UploadOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> FileStat:
        """Store data at path, replacing whatever was there."""
        _require(path, "path")
        _require_bytes(data)
        _check_cancel(cancel)
        normalized = normalize_path(path)
        with self._lock.write_locked():
            entry = self._new_entry(data, options, self._clock())
            self._install(normalized, entry)
        return _stat(normalized, entry, _choose_size(size, len(data)))

    def _add_locked(self, filename: str, data: bytes, size: int, options: Optional[UploadOptions]) -> FileStat:
        cid = new_token()
        path = normalize_path(cid)
        entry = self._new_entry(data, options, self._clock(), **{META_FILENAME: filename})
        self._install(path, entry)
        self._file_names[path] = filename
        stat = _stat(path, entry, _choose_size(size, len(data)))
        stat["path"] = cid
        return stat

    def add_file(
        self,
        filename: str,
        data: bytes,
        size: int = -1,
        options: Optional[UploadOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> FileStat:
        """Store data under a generated cid; the returned stat's path is the cid."""
        _require(filename, "filename")
        _require_bytes(data)
        _check_cancel(cancel)
        with self._lock.write_locked():
            return self._add_locked(filename, data, size, options)

    def add_json(
        self,
        value: Any,
        filename: str = "",
        secret: str = "",
        nonce: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Serialize value to JSON, store it as a cid file and return the cid."""
        payload = self._document_payload(value, "json data")
        _check_cancel(cancel)
        options = UploadOptions(content_type=DOCUMENT_CONTENT_TYPE, secret=secret, nonce=nonce)
        with self._lock.write_locked():
            stat = self._add_locked(filename.strip() or DEFAULT_JSON_FILENAME, payload, len(payload), options)
        return stat["path"]

    def add_pickle(
        self,
        value: Any,
        filename: str = "",
        secret: str = "",
        nonce: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Pickle value, store it as a cid file and return the cid."""
        payload = pickle_payload(value)
        _check_cancel(cancel)
        options = UploadOptions(content_type=PICKLE_CONTENT_TYPE, secret=secret, nonce=nonce)
        with self._lock.write_locked():
            stat = self._add_locked(filename.strip() or DEFAULT_PICKLE_FILENAME, payload, len(payload), options)
        return stat["path"]

    def calculate_json_cid(
        self, value: Any, nonce: int, secret: str = "", cancel: Optional[threading.Event] = None
    ) -> str:
        """Return the cid value would get as JSON with nonce, without storing it."""
        payload = self._document_payload(value, "json data")
        _check_cancel(cancel)
        return content_cid(payload, nonce)

    def calculate_pickle_cid(
        self, value: Any, nonce: int, secret: str = "", cancel: Optional[threading.Event] = None
    ) -> str:
        """Return the cid value would get as a pickle with nonce, without storing it."""
        payload = pickle_payload(value)
        _check_cancel(cancel)
        return content_cid(payload, nonce)

    def add_yaml(
        self,
        value: Any,
        filename: str = "",
        secret: str = "",
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Store a structured document and index its raw JSON by cid."""
        payload = self._document_payload(value, "yaml data")
        _check_cancel(cancel)
        options = UploadOptions(content_type=DOCUMENT_CONTENT_TYPE, secret=secret)
        with self._lock.write_locked():
            stat = self._add_locked(filename.strip() or DEFAULT_YAML_FILENAME, payload, len(payload), options)
            self._yaml_docs[normalize_path(stat["path"])] = payload
        return stat["path"]

    @staticmethod
    def _document_payload(value: Any, what: str) -> bytes:
        if value is None:
            raise InvalidArgumentError(f"r1fs: {what} is required")
        try:
            return compact_json_dumps(value)
        except EncodingError as exc:
            raise EncodingError(f"r1fs: {exc}") from exc

    def delete(
        self, path: str, options: Optional[DeleteOptions] = None, cancel: Optional[threading.Event] = None
    ) -> None:
        """Remove a file. Delete flags only matter remotely; here the entry is always dropped."""
        _require(path, "path")
        _check_cancel(cancel)
        normalized = normalize_path(path)
        with self._lock.write_locked():
            if normalized not in self._files:
                raise NotFoundError(f"r1fs: {path!r} not found")
            del self._files[normalized]
            self._file_names.pop(normalized, None)
            self._yaml_docs.pop(normalized, None)

    # --- reads --------------------------------------------------------------

    def _lookup(self, path: str) -> tuple[str, FileEntry]:
        normalized = normalize_path(path)
        entry = self._files.get(normalized)
        if entry is None:
            raise NotFoundError(f"r1fs: {path!r} not found")
        return normalized, entry

    def download(self, path: str, cancel: Optional[threading.Event] = None) -> bytes:
        _require(path, "path")
        _check_cancel(cancel)
        with self._lock.read_locked():
            _, entry = self._lookup(path)
            return entry.data

    def stat(self, path: str, cancel: Optional[threading.Event] = None) -> FileStat:
        _require(path, "path")
        _check_cancel(cancel)
        with self._lock.read_locked():
            normalized, entry = self._lookup(path)
            return _stat(normalized, entry, len(entry.data))

    def _display_name(self, normalized: str) -> str:
        return self._file_names.get(normalized) or normalized.rsplit("/", 1)[-1]

    def get_file(self, cid: str, secret: str = "", cancel: Optional[threading.Event] = None) -> FileLocation:
        """Resolve a cid to its path, display filename and metadata.

        `secret` is accepted for API parity; it is not checked.
        """
        _require(cid, "cid")
        _check_cancel(cancel)
        with self._lock.read_locked():
            normalized, entry = self._lookup(cid)
            filename = self._display_name(normalized)
            meta: dict[str, Any] = {"file": normalized, "filename": filename}
            meta.update(entry.metadata)
        return {"path": normalized, "filename": filename, "meta": meta}

    def get_file_base64(
        self, cid: str, secret: str = "", cancel: Optional[threading.Event] = None
    ) -> tuple[bytes, str]:
        """Return (payload, display filename) for a cid."""
        _require(cid, "cid")
        _check_cancel(cancel)
        with self._lock.read_locked():
            normalized, entry = self._lookup(cid)
            return entry.data, self._display_name(normalized)

    def get_yaml(self, cid: str, secret: str = "", cancel: Optional[threading.Event] = None) -> bytes:
        """Return b'{"file_data":<raw>}' for a known document.

        An unknown cid is answered in-band with the JSON string "error"
        rather than an exception; callers unwrap both shapes.
        """
        _require(cid, "cid")
        _check_cancel(cancel)
        with self._lock.read_locked():
            raw = self._yaml_docs.get(normalize_path(cid))
        if raw is None:
            get_logger(__name__).debug("r1fs: get_yaml unknown cid=%s", cid)
            return YAML_ERROR_SENTINEL
        return b'{"file_data":' + raw + b"}"

    def list(
        self,
        directory: str = "/",
        cursor: str = "",
        limit: int = 0,
        cancel: Optional[threading.Event] = None,
    ) -> FileListResult:
        """List files under directory in lexical order, one page at a time."""
        _check_cancel(cancel)
        prefix = normalize_dir(directory)
        with self._lock.read_locked():
            page, next_cursor = paginate(self._files, prefix, cursor, limit)
            files = [_stat(path, self._files[path], len(self._files[path].data)) for path in page]
        return {"files": files, "next_cursor": next_cursor}
