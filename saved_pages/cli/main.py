"""CLI: saved-pages init, config validate, cache show/clear/invalidate/prune-legacy, browse."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
import time
from pathlib import Path

import yaml

from ..api.client import SavedPagesClient
from ..api.local import LocalPageSource
from ..config import load_config, validate_config
from ..core.identity_cache import IdentityCache
from ..dashboard import SavedPagesDashboard
from ..storage import open_store
from ..types import CacheEntry, SavedPagesConfig
from ..view.headless import HeadlessView, describe, print_pages
from ..view.viewport import ScrollViewport

OWNER_ENV = "SAVED_PAGES_OWNER"
TOKEN_ENV = "SAVED_PAGES_TOKEN"


def _load(args) -> SavedPagesConfig:
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)
    _configure_logging(config, getattr(args, "verbose", False))
    return config


def _configure_logging(config: SavedPagesConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _owner(args) -> str | None:
    return getattr(args, "owner", None) or os.environ.get(OWNER_ENV) or None


def _close(store) -> None:
    close = getattr(store, "close", None)
    if close is not None:
        close()


def _parse_tag(value: str) -> tuple[str, str]:
    type_, sep, label = value.partition(":")
    if not sep or not type_ or not label:
        raise argparse.ArgumentTypeError(f"expected TYPE:LABEL, got '{value}'")
    return type_, label


def cmd_init(args):
    """Write a default config file to the current directory."""
    output = Path.cwd() / "saved-pages.yaml"
    if output.exists() and not args.force:
        print(f"Config file already exists: {output}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    output.write_text(yaml.safe_dump(dataclasses.asdict(SavedPagesConfig()), sort_keys=False))
    print(f"Created {output}")
    print()
    print("Next steps:")
    print("  1. Point api.base_url at your saved-pages endpoint")
    print("  2. Validate config:   saved-pages config validate")
    print(f"  3. Browse:            {TOKEN_ENV}=... saved-pages browse --owner <user-id>")


def cmd_config_validate(args):
    """Validate config file."""
    config = _load(args)
    errors = validate_config(config)
    if errors:
        print("Config validation errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)
    print("Config is valid.")
    print(f"  API: {config.api.base_url} (page size {config.api.page_size}, sort {config.api.sort})")
    print(f"  Cache: {config.cache.backend}, TTL {config.cache.ttl_ms / 1000:.0f}s")
    print(f"  Search debounce: {config.search.debounce_ms}ms")
    print(f"  Background refresh: {'on' if config.refresh.enabled else 'off'}")


def cmd_cache(args):
    """Inspect or clear the snapshot cache."""
    config = _load(args)
    action = args.cache_command
    store = open_store(config.cache)
    owner = _owner(args)
    cache = IdentityCache(
        lambda: owner,
        lambda: store,
        key_prefix=config.cache.key_prefix,
        ttl_ms=config.cache.ttl_ms,
    )
    try:
        if action == "show":
            asyncio.run(_cache_show(store, cache, owner))
        elif action == "clear":
            asyncio.run(cache.clear_all())
            print("Cache cleared.")
        elif action == "invalidate":
            if owner is None:
                print(f"No owner given (use --owner or ${OWNER_ENV})", file=sys.stderr)
                sys.exit(1)
            asyncio.run(cache.invalidate())
            print(f"Cache invalidated for {owner}.")
        elif action == "prune-legacy":
            asyncio.run(cache.prune_legacy_key())
            print(f"Removed legacy key {cache.legacy_key} (if present).")
        else:
            print("Usage: saved-pages cache {show,clear,invalidate,prune-legacy}")
            sys.exit(1)
    finally:
        _close(store)


async def _cache_show(store, cache: IdentityCache, owner: str | None) -> None:
    keys = store.keys()
    if not keys:
        print("Cache is empty.")
        return
    now_ms = int(time.time() * 1000)
    print(f"{'Key':<40} {'Owner':<16} {'Items':>6} {'Total':>6} {'Age':>8}")
    print("-" * 80)
    for key in keys:
        raw = await store.get(key)
        try:
            entry = CacheEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError):
            print(f"{key:<40} {'(unreadable)':<16}")
            continue
        age_s = (now_ms - entry.stored_at_ms) // 1000
        marker = " expired" if now_ms - entry.stored_at_ms > cache.ttl_ms else ""
        print(
            f"{key:<40} {entry.owner_id:<16} {len(entry.snapshot.items):>6} "
            f"{entry.snapshot.pagination.total:>6} {age_s:>7}s{marker}"
        )
    if owner is not None:
        print()
        print(f"Current owner key: {cache.key(owner)}")


def cmd_browse(args):
    """Load the dashboard headlessly and print what it shows."""
    config = _load(args)
    errors = validate_config(config)
    if errors:
        for err in errors:
            print(f"Config error: {err}", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(_browse(args, config)))


async def _browse(args, config: SavedPagesConfig) -> int:
    owner = _owner(args)
    store = open_store(config.cache)

    if args.pages:
        fetcher = LocalPageSource.from_json(args.pages)
    else:
        token = os.environ.get(TOKEN_ENV)

        async def token_provider() -> str | None:
            return token

        fetcher = SavedPagesClient(
            config.api.base_url,
            token_provider=token_provider if token else None,
            timeout=config.api.timeout,
        )

    viewport = ScrollViewport()
    view = HeadlessView(viewport, stream=sys.stderr if args.verbose else None)
    dashboard = SavedPagesDashboard(
        identity=lambda: owner,
        store=lambda: store,
        fetcher=fetcher,
        view=view,
        viewport=viewport,
        config=config,
    )
    try:
        await dashboard.start()
        for type_, label in args.tag or []:
            await dashboard.on_tag_click(type_, label)
        if args.search:
            dashboard.on_search_change(args.search)
            await dashboard.wait_idle()

        for _ in range(args.more):
            if not dashboard.pages.has_next_page:
                break
            before = dashboard.pages.loaded_count
            viewport.scroll_to_bottom()
            await dashboard.wait_idle()
            if dashboard.pages.loaded_count == before:
                # short lists never flip the sentinel; re-deliver the current state
                viewport.emit()
                await dashboard.wait_idle()
            if dashboard.pages.loaded_count == before:
                break
        await dashboard.wait_idle()
    finally:
        dashboard.scroll.cleanup()
        _close(store)

    if view.errors:
        print(f"Error: {view.errors[-1]}", file=sys.stderr)
        return 1
    state = dashboard.state()
    print(describe(state))
    print()
    print_pages(state)
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="saved-pages",
        description="Headless saved-pages dashboard: cache, pagination, and tag navigation",
    )
    parser.add_argument("--config", "-c", help="Path to config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")

    # init
    init_parser = subparsers.add_parser("init", help="Write a default config file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite existing config file")

    # config validate
    config_parser = subparsers.add_parser("config", help="Config operations")
    config_sub = config_parser.add_subparsers(dest="config_command")
    config_sub.add_parser("validate", help="Validate config file")

    # cache
    cache_parser = subparsers.add_parser("cache", help="Snapshot cache operations")
    cache_parser.add_argument("--owner", help=f"Identity to act for (default: ${OWNER_ENV})")
    cache_sub = cache_parser.add_subparsers(dest="cache_command")
    cache_sub.add_parser("show", help="List cached entries")
    cache_sub.add_parser("clear", help="Remove every cached entry")
    cache_sub.add_parser("invalidate", help="Remove the owner's entry")
    cache_sub.add_parser("prune-legacy", help="Remove the unscoped legacy entry")

    # browse
    browse_parser = subparsers.add_parser("browse", help="Load and print saved pages")
    browse_parser.add_argument("--owner", help=f"Signed-in identity (default: ${OWNER_ENV})")
    browse_parser.add_argument("--search", "-s", default="", help="Free-text search")
    browse_parser.add_argument(
        "--tag", "-t", action="append", type=_parse_tag, metavar="TYPE:LABEL",
        help="Tag step to drill into (repeatable, in order)",
    )
    browse_parser.add_argument("--more", "-m", type=int, default=0, help="Extra pages to load by scrolling")
    browse_parser.add_argument("--pages", help="Serve pages from a local JSON file instead of the API")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init":
        cmd_init(args)
    elif args.command == "cache":
        cmd_cache(args)
    elif args.command == "browse":
        cmd_browse(args)
    elif args.command == "config":
        if args.config_command == "validate":
            cmd_config_validate(args)
        else:
            print("Usage: saved-pages config validate")
            sys.exit(1)


if __name__ == "__main__":
    main()
