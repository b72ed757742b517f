"""Build both service clients from the node environment at once.

In auto mode the remote backends are used only when both
EE_CHAINSTORE_API_URL and EE_R1FS_API_URL are set; otherwise both clients
run in-process (seeded from R1_MOCK_CSTORE_SEED / R1_MOCK_R1FS_SEED).
"""

from __future__ import annotations

from typing import Optional

from dotenv import load_dotenv

from common.config import MODE_AUTO, MODE_HTTP, MODE_MOCK, env_value, runtime_mode
from common.errors import ConfigError
from common.logger import get_logger
from cstore import env as cstore_env
from cstore.client import CStoreClient
from r1fs import env as r1fs_env
from r1fs.client import R1FSClient


def from_env(mode: Optional[str] = None) -> tuple[CStoreClient, R1FSClient, str]:
    """Return (cstore_client, r1fs_client, mode) where mode is "http" or "mock"."""
    load_dotenv()
    log = get_logger(__name__)
    mode = runtime_mode(mode)
    cstore_url = env_value(cstore_env.ENV_CSTORE_URL)
    r1fs_url = env_value(r1fs_env.ENV_R1FS_URL)

    if mode == MODE_AUTO:
        mode = MODE_HTTP if cstore_url and r1fs_url else MODE_MOCK
    if mode == MODE_HTTP:
        if not cstore_url or not r1fs_url:
            raise ConfigError(
                f"ratio1_sdk: HTTP mode requires {cstore_env.ENV_CSTORE_URL} and {r1fs_env.ENV_R1FS_URL}"
            )
        clients = cstore_env.http_client(), r1fs_env.http_client()
    else:
        clients = cstore_env.mock_client(), r1fs_env.mock_client()
    log.info("ratio1_sdk: runtime mode=%s", mode)
    return clients[0], clients[1], mode
