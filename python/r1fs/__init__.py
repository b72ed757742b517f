from r1fs.base import R1FSBackend
from r1fs.client import R1FSClient
from r1fs.http_backend import HttpBackend
from r1fs.mock_backend import MockBackend
from r1fs.store import MemoryFileStore
from r1fs.types import DeleteOptions, FileEntry, FileListResult, FileLocation, FileStat, UploadOptions, YAMLDocument

__all__ = [
    "R1FSBackend",
    "R1FSClient",
    "HttpBackend",
    "MockBackend",
    "MemoryFileStore",
    "DeleteOptions",
    "FileEntry",
    "FileListResult",
    "FileLocation",
    "FileStat",
    "UploadOptions",
    "YAMLDocument",
]
