"""Error taxonomy shared by the cstore and r1fs packages.

Stores, backends and facades all raise these types so callers can tell a
missing key apart from a failed precondition or a remote transport failure,
whichever backend is plugged in.
"""

from __future__ import annotations

from typing import Optional


class StoreError(Exception):
    """Base class for all SDK errors."""


class InvalidArgumentError(StoreError, ValueError):
    """A required identifier or payload is empty or malformed."""


class NotFoundError(StoreError):
    """The requested key, path or cid does not exist."""


class PreconditionFailedError(StoreError):
    """A conditional write (if_absent / if_etag_match) did not hold."""


class EncodingError(StoreError):
    """A payload could not be serialized to or deserialized from bytes."""


class CancelledError(StoreError):
    """The caller's cancellation signal was set before the operation began."""


class SeedError(InvalidArgumentError):
    """A seed file or seed entry is invalid; nothing was applied."""


class UnsupportedFeatureError(StoreError):
    """The backend does not expose the requested capability."""


class DocumentError(StoreError):
    """A structured-document lookup was answered with the in-band error sentinel."""


class ConfigError(StoreError, ValueError):
    """Runtime configuration (environment) is inconsistent."""


class TransportError(StoreError):
    """A remote call failed before a usable response was received."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
