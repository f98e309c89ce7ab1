"""FilesystemKVStore: all keys in one JSON file under a root directory."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..types import StorageUnavailable

logger = logging.getLogger(__name__)

STORE_FILENAME = "_store.json"


class FilesystemKVStore:
    """Persist a flat ``{key: value}`` mapping as ``<root>/_store.json``.

    Writes go to a temp file first and are renamed into place, so a crash
    mid-write leaves the previous contents intact.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._path = self.root / STORE_FILENAME

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text())
        except json.JSONDecodeError:
            logger.warning("Corrupt store file %s, starting empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self._ensure_root()
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str))
        os.replace(tmp, self._path)

    # -- sync implementations, run off the event loop --

    def _get_sync(self, key: str) -> Any | None:
        return self._load().get(key)

    def _set_sync(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def _remove_sync(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def _clear_sync(self) -> None:
        if self._path.is_file():
            self._path.unlink()

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except OSError as e:
            raise StorageUnavailable(f"{self._path}: {e}") from e

    async def get(self, key: str) -> Any | None:
        return await self._run(self._get_sync, key)

    async def set(self, key: str, value: Any) -> None:
        await self._run(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        await self._run(self._remove_sync, key)

    async def clear(self) -> None:
        await self._run(self._clear_sync)

    def keys(self) -> list[str]:
        return sorted(self._load())
