"""Build an R1FSClient from environment variables.

Env:
- R1_RUNTIME_MODE: auto|http|mock (default: auto)
- EE_R1FS_API_URL: remote base URL (http mode; auto picks http when set)
- R1_MOCK_R1FS_SEED: seed file loaded into the mock file store
"""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv

from common.config import MODE_AUTO, MODE_HTTP, MODE_MOCK, env_value, http_timeout, runtime_mode
from common.errors import ConfigError
from common.logger import get_logger
from common.seed import load_r1fs_seed
from r1fs.client import R1FSClient
from r1fs.store import MemoryFileStore

ENV_R1FS_URL = "EE_R1FS_API_URL"
ENV_MOCK_R1FS_SEED = "R1_MOCK_R1FS_SEED"


def mock_client() -> R1FSClient:
    store = MemoryFileStore()
    path = env_value(ENV_MOCK_R1FS_SEED)
    if path:
        store.seed(load_r1fs_seed(path))
    return R1FSClient.mock(store=store)


def http_client() -> R1FSClient:
    base_url = env_value(ENV_R1FS_URL)
    if not base_url:
        raise ConfigError(f"r1fs: HTTP mode requires {ENV_R1FS_URL}")
    return R1FSClient.http(base_url, timeout=http_timeout())


def from_env(mode: Optional[str] = None) -> tuple[R1FSClient, str]:
    """Return (client, mode) where mode is "http" or "mock".

    `mode` overrides R1_RUNTIME_MODE when given.
    """
    load_dotenv()
    mode = runtime_mode(mode)
    if mode == MODE_AUTO:
        mode = MODE_HTTP if env_value(ENV_R1FS_URL) else MODE_MOCK
    client = http_client() if mode == MODE_HTTP else mock_client()
    get_logger(__name__).info("r1fs: runtime mode=%s", mode)
    return client, mode
