"""Build a CStoreClient from environment variables.

Env:
- R1_RUNTIME_MODE: auto|http|mock (default: auto)
- EE_CHAINSTORE_API_URL: remote base URL (http mode; auto picks http when set)
- R1_MOCK_CSTORE_SEED: seed file loaded into the mock store
- R1_HTTP_TIMEOUT: remote request timeout in seconds (default: 30)
"""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv

from common.config import MODE_AUTO, MODE_HTTP, MODE_MOCK, env_value, http_timeout, runtime_mode
from common.errors import ConfigError
from common.logger import get_logger
from common.seed import load_cstore_seed
from cstore.client import CStoreClient
from cstore.store import MemoryStore

ENV_CSTORE_URL = "EE_CHAINSTORE_API_URL"
ENV_MOCK_CSTORE_SEED = "R1_MOCK_CSTORE_SEED"


def mock_client() -> CStoreClient:
    """Mock client, seeded from R1_MOCK_CSTORE_SEED when set."""
    store = MemoryStore()
    path = env_value(ENV_MOCK_CSTORE_SEED)
    if path:
        store.seed(load_cstore_seed(path))
    return CStoreClient.mock(store=store)


def http_client() -> CStoreClient:
    base_url = env_value(ENV_CSTORE_URL)
    if not base_url:
        raise ConfigError(f"cstore: HTTP mode requires {ENV_CSTORE_URL}")
    return CStoreClient.http(base_url, timeout=http_timeout())


def from_env(mode: Optional[str] = None) -> tuple[CStoreClient, str]:
    """Return (client, mode) where mode is "http" or "mock".

    `mode` overrides R1_RUNTIME_MODE when given.
    """
    load_dotenv()
    mode = runtime_mode(mode)
    if mode == MODE_AUTO:
        mode = MODE_HTTP if env_value(ENV_CSTORE_URL) else MODE_MOCK
    client = http_client() if mode == MODE_HTTP else mock_client()
    get_logger(__name__).info("cstore: runtime mode=%s", mode)
    return client, mode
