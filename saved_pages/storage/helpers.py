"""Shared helpers for storage backends."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ..types import CacheConfig


def dt_to_str(dt: datetime) -> str:
    return dt.isoformat()


def open_store(config: CacheConfig):
    """Build the key-value store named by ``config.backend``."""
    from .filesystem import FilesystemKVStore
    from .memory import MemoryKVStore
    from .sqlite import SQLiteKVStore

    if config.backend == "sqlite":
        return SQLiteKVStore(db_path=Path(config.sqlite_path))
    if config.backend == "filesystem":
        return FilesystemKVStore(root=config.root)
    if config.backend == "memory":
        return MemoryKVStore()
    raise ValueError(f"Unknown cache backend: {config.backend}")
