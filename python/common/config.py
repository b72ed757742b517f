"""Runtime settings shared by every service.

Env:
- R1_RUNTIME_MODE: auto|http|mock (default: auto)
- R1_HTTP_TIMEOUT: remote request timeout in seconds (default: 30)
"""

from __future__ import annotations

from os import getenv
from typing import Optional

from common.errors import ConfigError
from common.transport import DEFAULT_TIMEOUT

ENV_MODE = "R1_RUNTIME_MODE"
ENV_HTTP_TIMEOUT = "R1_HTTP_TIMEOUT"

MODE_AUTO = "auto"
MODE_HTTP = "http"
MODE_MOCK = "mock"


def runtime_mode(override: Optional[str] = None) -> str:
    raw = override if override is not None else getenv(ENV_MODE)
    mode = (raw or "").strip().lower()
    if mode in ("", MODE_AUTO):
        return MODE_AUTO
    if mode in (MODE_HTTP, MODE_MOCK):
        return mode
    raise ConfigError(f"unsupported {ENV_MODE} value {mode!r}")


def http_timeout() -> float:
    raw = (getenv(ENV_HTTP_TIMEOUT) or "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(f"invalid {ENV_HTTP_TIMEOUT} value {raw!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"invalid {ENV_HTTP_TIMEOUT} value {raw!r}")
    return timeout


def env_value(name: str) -> str:
    return (getenv(name) or "").strip()
