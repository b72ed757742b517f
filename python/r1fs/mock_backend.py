"""r1fs backend over an in-process MemoryFileStore."""

from __future__ import annotations

import threading
from typing import Any, Optional

from r1fs.base import R1FSBackend
from r1fs.store import MemoryFileStore
from r1fs.types import DeleteOptions, FileListResult, FileLocation, FileStat, UploadOptions


class MockBackend(R1FSBackend):
    def __init__(self, store: Optional[MemoryFileStore] = None, cancel: Optional[threading.Event] = None):
        self.store = store or MemoryFileStore()
        self.cancel = cancel

    async def upload(self, path: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None) -> FileStat:
        return self.store.upload(path, data, size, options, cancel=self.cancel)

    async def add_file(
        self, filename: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None
    ) -> FileStat:
        return self.store.add_file(filename, data, size, options, cancel=self.cancel)

    async def download(self, path: str) -> bytes:
        return self.store.download(path, cancel=self.cancel)

    async def stat(self, path: str) -> FileStat:
        return self.store.stat(path, cancel=self.cancel)

    async def get_file(self, cid: str, secret: str = "") -> FileLocation:
        return self.store.get_file(cid, secret, cancel=self.cancel)

    async def get_file_base64(self, cid: str, secret: str = "") -> tuple[bytes, str]:
        return self.store.get_file_base64(cid, secret, cancel=self.cancel)

    async def list(self, directory: str = "/", cursor: str = "", limit: int = 0) -> FileListResult:
        return self.store.list(directory, cursor, limit, cancel=self.cancel)

    async def delete(self, path: str, options: Optional[DeleteOptions] = None) -> None:
        self.store.delete(path, options, cancel=self.cancel)

    async def add_json(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        return self.store.add_json(value, filename, secret, nonce, cancel=self.cancel)

    async def add_pickle(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        return self.store.add_pickle(value, filename, secret, nonce, cancel=self.cancel)

    async def calculate_json_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        return self.store.calculate_json_cid(value, nonce, secret, cancel=self.cancel)

    async def calculate_pickle_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        return self.store.calculate_pickle_cid(value, nonce, secret, cancel=self.cancel)

    async def add_yaml(self, value: Any, filename: str = "", secret: str = "") -> str:
        return self.store.add_yaml(value, filename, secret, cancel=self.cancel)

    async def get_yaml(self, cid: str, secret: str = "") -> Optional[bytes]:
        return self.store.get_yaml(cid, secret, cancel=self.cancel)
