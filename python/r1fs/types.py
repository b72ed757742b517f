"""Common types for the file (r1fs) service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypedDict, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FileEntry:
    """Stored file: payload plus content type, version token and metadata."""
    data: bytes
    content_type: str = ""
    etag: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class UploadOptions:
    """Optional parameters for upload/add_file.

    `nonce` is forwarded to the remote service, which mixes it into the cid.
    """
    content_type: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    secret: str = ""
    nonce: Optional[int] = None


@dataclass(frozen=True)
class DeleteOptions:
    """Flags forwarded to the remote delete_file endpoint; None leaves the server default."""
    unpin_remote: Optional[bool] = None
    run_gc: Optional[bool] = None
    cleanup_local_files: Optional[bool] = None


class FileStat(TypedDict):
    """Metadata returned by upload, add_file, stat and list.

    For add_file, `path` is the generated cid.
    """
    path: str
    size: int
    content_type: str
    etag: str
    last_modified: Optional[datetime]
    metadata: dict[str, str]


class FileLocation(TypedDict):
    """Result of get_file: resolved path, display filename and metadata."""
    path: str
    filename: str
    meta: dict[str, Any]


class FileListResult(TypedDict):
    """One page of files; next_cursor is "" on the last page."""
    files: list[FileStat]
    next_cursor: str


@dataclass
class YAMLDocument(Generic[T]):
    """A structured document fetched by cid."""
    cid: str
    data: Optional[T] = None
