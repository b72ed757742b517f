"""Central level-based logger (standard library `logging`).

Env:
- LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL (default: INFO)
"""

from __future__ import annotations

import logging
import os
from typing import Optional

DEFAULT_LOGGER_NAME = "ratio1_sdk"


def _level_from_env() -> int:
    raw = (os.getenv("LOG_LEVEL") or "INFO").upper().strip()
    return getattr(logging, raw, logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger.

    The root logger is configured once (idempotent); later calls only
    re-apply the level from LOG_LEVEL.
    """
    level = _level_from_env()
    root = logging.getLogger()
    if not getattr(root, "_ratio1_sdk_configured", False):
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
        setattr(root, "_ratio1_sdk_configured", True)
    root.setLevel(level)
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)
