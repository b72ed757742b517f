"""One-shot async HTTP calls against the remote services.

Each call opens its own `httpx.AsyncClient`. Retry and backoff are left to
the caller.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from common.errors import NotFoundError, TransportError
from common.logger import get_logger

DEFAULT_TIMEOUT = 30.0


def join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


async def request(
    service: str,
    base_url: str,
    method: str,
    path: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    json_body: Any = None,
    files: Any = None,
    data: Optional[Mapping[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Perform one request and return the raw response body.

    HTTP 404 is reported as NotFoundError; any other non-2xx status or
    transport failure as TransportError.
    """
    log = get_logger(__name__)
    url = join_url(base_url, path)
    log.debug("%s: %s %s", service, method, url)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            if method == "GET":
                resp = await client.get(url, params=params)
            else:
                resp = await client.post(url, params=params, json=json_body, files=files, data=data)
            resp.raise_for_status()
            return resp.content
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 404:
            raise NotFoundError(f"{service}: {path} not found") from exc
        raise TransportError(f"{service}: {method} {path} failed: status={status}", status_code=status) from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{service}: {method} {path} failed: {exc}") from exc
