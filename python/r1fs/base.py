"""r1fs backend base class (abstract)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from r1fs.types import DeleteOptions, FileListResult, FileLocation, FileStat, UploadOptions


class R1FSBackend(ABC):
    @abstractmethod
    async def upload(self, path: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None) -> FileStat:
        """Store data at a caller-chosen path."""
        ...

    @abstractmethod
    async def add_file(
        self, filename: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None
    ) -> FileStat:
        """Store data under a generated cid (returned as stat["path"])."""
        ...

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the payload stored at path or cid."""
        ...

    @abstractmethod
    async def stat(self, path: str) -> FileStat:
        ...

    @abstractmethod
    async def get_file(self, cid: str, secret: str = "") -> FileLocation:
        """Resolve a cid to its location, display filename and metadata."""
        ...

    @abstractmethod
    async def get_file_base64(self, cid: str, secret: str = "") -> tuple[bytes, str]:
        """Return (payload, filename) for a cid."""
        ...

    @abstractmethod
    async def list(self, directory: str = "/", cursor: str = "", limit: int = 0) -> FileListResult:
        ...

    @abstractmethod
    async def delete(self, path: str, options: Optional[DeleteOptions] = None) -> None:
        ...

    @abstractmethod
    async def add_json(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        """Store a JSON document and return its cid."""
        ...

    @abstractmethod
    async def add_pickle(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        """Store a pickled object and return its cid."""
        ...

    @abstractmethod
    async def calculate_json_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        """cid that add_json would assign, without storing anything."""
        ...

    @abstractmethod
    async def calculate_pickle_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        ...

    @abstractmethod
    async def add_yaml(self, value: Any, filename: str = "", secret: str = "") -> str:
        """Store a structured document and return its cid."""
        ...

    @abstractmethod
    async def get_yaml(self, cid: str, secret: str = "") -> Optional[bytes]:
        """Raw unwrapped get_yaml payload: {"file_data": ...}, "error" or None."""
        ...
