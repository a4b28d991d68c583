from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .contracts import PomorangeStore
from .errors import StorageConfigurationError
from .json_store import JsonFileStore
from .sqlite_store import SQLiteStore

STORAGE_BACKENDS: tuple[str, ...] = ("sqlite", "json")


def build_store(
    backend: str,
    path: str | Path,
    *,
    logger: Optional[logging.Logger] = None,
) -> PomorangeStore:
    normalized = backend.strip().lower()
    if normalized == "sqlite":
        return SQLiteStore(path, logger=logger)
    if normalized == "json":
        return JsonFileStore(path, logger=logger)
    raise StorageConfigurationError(
        f"storage backend must be one of {', '.join(STORAGE_BACKENDS)}, got: {backend!r}"
    )
