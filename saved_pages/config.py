"""Configuration loading, validation, and defaults."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .types import (
    ApiConfig,
    CacheConfig,
    RefreshConfig,
    SavedPagesConfig,
    ScrollConfig,
    SearchConfig,
)

CONFIG_FILENAMES = [
    "saved-pages.yaml",
    "saved-pages.yml",
    "saved-pages.json",
]

CACHE_BACKENDS = ("sqlite", "filesystem", "memory")


def _discover_config() -> Path | None:
    """Search CWD then parent dirs up to home for a config file."""
    cwd = Path.cwd()
    home = Path.home()
    search = cwd
    while True:
        for name in CONFIG_FILENAMES:
            candidate = search / name
            if candidate.is_file():
                return candidate
        if search == home or search == search.parent:
            break
        search = search.parent
    return None


def _build_config(raw: dict[str, Any]) -> SavedPagesConfig:
    """Build a SavedPagesConfig from a raw dict."""
    api_raw = raw.get("api", {})
    api = ApiConfig(
        base_url=api_raw.get("base_url", "http://localhost:8080"),
        timeout=float(api_raw.get("timeout", 30.0)),
        page_size=int(api_raw.get("page_size", 50)),
        sort=api_raw.get("sort", "newest"),
    )

    # Cache
    cache_raw = raw.get("cache", {})
    storage_root = raw.get("storage_root", ".saved-pages")
    cache = CacheConfig(
        key_prefix=cache_raw.get("key_prefix", "savedPages_cache"),
        ttl_ms=int(cache_raw.get("ttl_ms", 300_000)),
        backend=cache_raw.get("backend", "sqlite"),
        sqlite_path=cache_raw.get("sqlite_path", storage_root + "/cache.db"),
        root=cache_raw.get("root", storage_root + "/cache"),
    )

    search = SearchConfig(
        debounce_ms=int(raw.get("search", {}).get("debounce_ms", 300)),
    )
    scroll = ScrollConfig(
        root_margin_px=int(raw.get("scroll", {}).get("root_margin_px", 200)),
    )
    refresh_raw = raw.get("refresh", {})
    refresh = RefreshConfig(
        enabled=refresh_raw.get("enabled", True),
        delay_ms=int(refresh_raw.get("delay_ms", 500)),
    )

    return SavedPagesConfig(
        version=str(raw.get("version", "0.1")),
        api=api,
        cache=cache,
        search=search,
        scroll=scroll,
        refresh=refresh,
        log_level=str(raw.get("log_level", "WARNING")).upper(),
    )


def validate_config(config: SavedPagesConfig) -> list[str]:
    """Validate a config. Returns list of error strings (empty = valid)."""
    errors: list[str] = []

    if not config.api.base_url.startswith(("http://", "https://")):
        errors.append(f"api.base_url must be an http(s) URL, got '{config.api.base_url}'")

    if config.api.page_size < 1:
        errors.append("api.page_size must be >= 1")

    if config.api.timeout <= 0:
        errors.append("api.timeout must be > 0")

    if config.cache.ttl_ms < 1:
        errors.append("cache.ttl_ms must be >= 1")

    if config.cache.backend not in CACHE_BACKENDS:
        errors.append(
            f"Unknown cache backend '{config.cache.backend}' "
            f"(expected one of: {', '.join(CACHE_BACKENDS)})"
        )

    if not config.cache.key_prefix:
        errors.append("cache.key_prefix must not be empty")

    if config.search.debounce_ms < 0:
        errors.append("search.debounce_ms must be >= 0")

    if config.scroll.root_margin_px < 0:
        errors.append("scroll.root_margin_px must be >= 0")

    if config.refresh.delay_ms < 0:
        errors.append("refresh.delay_ms must be >= 0")

    return errors


def load_config(
    config_path: str | Path | None = None,
    config_dict: dict | None = None,
) -> SavedPagesConfig:
    """Load config from dict, explicit path, or auto-discover."""
    if config_dict is not None:
        return _build_config(config_dict)

    if config_path is not None:
        path = Path(config_path)
    else:
        path = _discover_config()

    if path is None:
        # Return defaults
        return _build_config({})

    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    text = path.read_text()
    if path.suffix == ".json":
        raw = json.loads(text)
    else:
        raw = yaml.safe_load(text) or {}

    return _build_config(raw)
