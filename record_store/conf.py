"""Record store - Central path and logging configuration."""

import os
from pathlib import Path


def _env_flag(key: str, default: bool = False) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


USER_HOME = Path.home()
RECORD_STORE_HOME = Path(os.environ.get("RECORD_STORE_HOME") or USER_HOME / ".record_store")

RECORDS_PATH = Path(os.environ.get("RECORD_STORE_RECORDS_PATH") or RECORD_STORE_HOME / "records")

LOG_FILE = RECORD_STORE_HOME / "record_store.log"
LOG_ENABLED = _env_flag("RECORD_STORE_LOG")
LOG_TO_STDERR = _env_flag("RECORD_STORE_LOG_STDERR")
