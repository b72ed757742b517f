"""r1fs backend talking to the remote R1FS manager REST API.

The remote service is content-addressed: every write returns a cid, and
reads go through that cid. Path listing and stat have no remote endpoint.
"""

from __future__ import annotations

import base64
import binascii
import json
import posixpath
from typing import Any, Optional

from common.envelope import decode_result, extract_result
from common.errors import EncodingError, InvalidArgumentError, TransportError, UnsupportedFeatureError
from common.logger import get_logger
from common.transport import DEFAULT_TIMEOUT, request
from r1fs.base import R1FSBackend
from r1fs.types import DeleteOptions, FileListResult, FileLocation, FileStat, UploadOptions

SERVICE = "r1fs"


def _stat(cid: str, size: int, actual: int, options: Optional[UploadOptions]) -> FileStat:
    return {
        "path": cid,
        "size": size if size >= 0 else actual,
        "content_type": options.content_type if options is not None else "",
        "etag": "",
        "last_modified": None,
        "metadata": dict(options.metadata) if options is not None else {},
    }


def _secret(options: Optional[UploadOptions]) -> str:
    return options.secret.strip() if options is not None else ""


def _document_body(value: Any, filename: str, secret: str, nonce: Optional[int] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"data": value}
    if secret.strip():
        body["secret"] = secret
    if filename.strip():
        body["fn"] = filename
    if nonce is not None:
        body["nonce"] = nonce
    return body


def _apply_upload_options(body: dict[str, Any], options: Optional[UploadOptions]) -> None:
    secret = _secret(options)
    if secret:
        body["secret"] = secret
    if options is not None and options.nonce is not None:
        body["nonce"] = options.nonce


class HttpBackend(R1FSBackend):
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        if not base_url or not base_url.strip():
            raise InvalidArgumentError("r1fs: base URL is required")
        self.base_url = base_url.strip()
        self.timeout = timeout

    async def _call(self, method: str, path: str, **kwargs: Any) -> bytes:
        return await request(SERVICE, self.base_url, method, path, timeout=self.timeout, **kwargs)

    async def _decode(self, method: str, path: str, **kwargs: Any) -> Any:
        raw = await self._call(method, path, **kwargs)
        try:
            return decode_result(raw)
        except ValueError as exc:
            raise EncodingError(f"r1fs: decode {path} response: {exc}") from exc

    async def _post_cid(self, path: str, **kwargs: Any) -> str:
        payload = await self._decode("POST", path, **kwargs)
        cid = payload.get("cid") if isinstance(payload, dict) else None
        if not isinstance(cid, str) or not cid.strip():
            raise EncodingError(f"r1fs: missing cid in {path} response")
        get_logger(__name__).debug("r1fs: %s cid=%s", path, cid)
        return cid

    async def upload(self, path: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None) -> FileStat:
        """Upload via /add_file_base64; the returned stat's path is the cid."""
        body: dict[str, Any] = {
            "file_base64_str": base64.b64encode(data).decode("ascii"),
            "filename": posixpath.basename(path) or path,
            "file_path": path,
        }
        _apply_upload_options(body, options)
        cid = await self._post_cid("add_file_base64", json_body=body)
        return _stat(cid, size, len(data), options)

    async def add_file(
        self, filename: str, data: bytes, size: int = -1, options: Optional[UploadOptions] = None
    ) -> FileStat:
        """Multipart upload via /add_file."""
        meta: dict[str, Any] = {"fn": filename}
        _apply_upload_options(meta, options)
        content_type = (options.content_type if options is not None else "") or "application/octet-stream"
        cid = await self._post_cid(
            "add_file",
            files={"file": (filename, data, content_type)},
            data={"body_json": json.dumps(meta)},
        )
        return _stat(cid, size, len(data), options)

    async def download(self, path: str) -> bytes:
        data, _ = await self.get_file_base64(path)
        return data

    async def stat(self, path: str) -> FileStat:
        raise UnsupportedFeatureError("r1fs: stat not supported by the remote API")

    async def get_file(self, cid: str, secret: str = "") -> FileLocation:
        params = {"cid": cid}
        if secret.strip():
            params["secret"] = secret
        payload = await self._decode("GET", "get_file", params=params)
        if not isinstance(payload, dict):
            raise EncodingError("r1fs: get_file response is not an object")
        file_path = str(payload.get("file_path") or "")
        meta = payload.get("meta") or {}
        if not isinstance(meta, dict):
            raise EncodingError("r1fs: get_file meta is not an object")
        filename = meta.get("filename") if isinstance(meta.get("filename"), str) else ""
        if not filename and file_path:
            filename = file_path.split("/")[-1]
        return {"path": file_path, "filename": filename, "meta": dict(meta)}

    async def get_file_base64(self, cid: str, secret: str = "") -> tuple[bytes, str]:
        body = {"cid": cid}
        if secret.strip():
            body["secret"] = secret
        payload = await self._decode("POST", "get_file_base64", json_body=body)
        if not isinstance(payload, dict):
            raise EncodingError("r1fs: get_file_base64 response is not an object")
        try:
            data = base64.b64decode(payload.get("file_base64_str") or "", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EncodingError(f"r1fs: decode base64 payload: {exc}") from exc
        return data, str(payload.get("filename") or "")

    async def list(self, directory: str = "/", cursor: str = "", limit: int = 0) -> FileListResult:
        raise UnsupportedFeatureError("r1fs: list not supported by the remote API")

    async def delete(self, path: str, options: Optional[DeleteOptions] = None) -> None:
        body: dict[str, Any] = {"cid": path}
        if options is not None:
            for name in ("unpin_remote", "run_gc", "cleanup_local_files"):
                flag = getattr(options, name)
                if flag is not None:
                    body[name] = flag
        payload = await self._decode("POST", "delete_file", json_body=body)
        if isinstance(payload, dict) and payload.get("success") is False:
            raise TransportError(f"r1fs: delete_file rejected by upstream: {payload.get('message', '')}")

    async def add_json(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        return await self._post_cid("add_json", json_body=_document_body(value, filename, secret, nonce))

    async def add_pickle(self, value: Any, filename: str = "", secret: str = "", nonce: Optional[int] = None) -> str:
        """The server pickles `value`, so it travels as JSON."""
        return await self._post_cid("add_pickle", json_body=_document_body(value, filename, secret, nonce))

    async def calculate_json_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        return await self._post_cid("calculate_json_cid", json_body=_document_body(value, "", secret, nonce))

    async def calculate_pickle_cid(self, value: Any, nonce: int, secret: str = "") -> str:
        return await self._post_cid(
            "calculate_pickle_cid", json_body=_document_body(value, "", secret, nonce)
        )

    async def add_yaml(self, value: Any, filename: str = "", secret: str = "") -> str:
        return await self._post_cid("add_yaml", json_body=_document_body(value, filename, secret))

    async def get_yaml(self, cid: str, secret: str = "") -> Optional[bytes]:
        params = {"cid": cid}
        if secret.strip():
            params["secret"] = secret
        return extract_result(await self._call("GET", "get_yaml", params=params))
