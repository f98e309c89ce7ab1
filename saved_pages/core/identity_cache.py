"""IdentityCache: per-identity snapshot cache over a persistent key-value store.

Every operation is fail-open. Store errors, missing identity, and unreadable
entries are logged and turn into a ``None`` read or a no-op write; nothing
propagates to the caller, because a miss always falls back to a live fetch.
"""

from __future__ import annotations

import logging
import time

from ..types import (
    CacheEntry,
    CacheMiss,
    Clock,
    IdentityProvider,
    KeyValueStore,
    ResponsePage,
    StoreProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "savedPages_cache"
DEFAULT_TTL_MS = 5 * 60 * 1000
LEGACY_KEY = "savedPages_cache"  # unscoped key from before per-identity caching


def _now_ms() -> int:
    return int(time.time() * 1000)


class IdentityCache:
    """Caches the first page of the Default view, scoped to the signed-in identity.

    The cache remembers which identity it last served. When a different
    identity reads, the previous identity's entry is evicted and the read
    is a miss (``CacheMiss.IDENTITY_MISMATCH``).
    """

    def __init__(
        self,
        identity: IdentityProvider,
        store: StoreProvider,
        *,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Clock | None = None,
        legacy_key: str = LEGACY_KEY,
    ) -> None:
        self._identity = identity
        self._store = store
        self.key_prefix = key_prefix
        self.ttl_ms = ttl_ms
        self._clock = clock or _now_ms
        self.legacy_key = legacy_key
        self._active_owner: str | None = None
        self.last_miss: CacheMiss | None = None

    def key(self, owner_id: str) -> str:
        return f"{self.key_prefix}_{owner_id}"

    def _resolve_store(self) -> KeyValueStore | None:
        try:
            return self._store()
        except Exception:
            logger.warning("Store accessor failed", exc_info=True)
            return None

    def _resolve_identity(self) -> str | None:
        try:
            return self._identity() or None
        except Exception:
            logger.warning("Identity accessor failed", exc_info=True)
            return None

    def _miss(self, reason: CacheMiss) -> None:
        self.last_miss = reason
        return None

    async def get(self) -> ResponsePage | None:
        """Return the cached snapshot for the current identity, or ``None``."""
        owner_id = self._resolve_identity()
        if owner_id is None:
            logger.debug("No identity signed in, skipping cache read")
            return self._miss(CacheMiss.NO_IDENTITY)

        store = self._resolve_store()
        if store is None:
            return self._miss(CacheMiss.STORE_UNAVAILABLE)

        try:
            previous = self._active_owner
            if previous is not None and previous != owner_id:
                logger.warning(
                    "Cache identity changed (%s -> %s), evicting stale entry",
                    previous, owner_id,
                )
                await store.remove(self.key(previous))
                # only forget the previous owner once its entry is gone
                self._active_owner = owner_id
                return self._miss(CacheMiss.IDENTITY_MISMATCH)
            self._active_owner = owner_id

            key = self.key(owner_id)
            raw = await store.get(key)
            if raw is None:
                logger.debug("No cache entry for %s", owner_id)
                return self._miss(CacheMiss.NOT_FOUND)

            try:
                entry = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Unreadable cache entry under %s, ignoring", key)
                return self._miss(CacheMiss.CORRUPT)

            if entry.owner_id and entry.owner_id != owner_id:
                logger.warning(
                    "Cache owner mismatch under %s (stored=%s, current=%s), evicting",
                    key, entry.owner_id, owner_id,
                )
                await store.remove(key)
                return self._miss(CacheMiss.IDENTITY_MISMATCH)

            age = self._clock() - entry.stored_at_ms
            if age > self.ttl_ms:
                logger.debug("Cache entry for %s expired (%d ms old)", owner_id, age)
                return self._miss(CacheMiss.EXPIRED)
        except Exception:
            logger.exception("Failed to read cache")
            return self._miss(CacheMiss.STORE_UNAVAILABLE)

        logger.debug(
            "Using cached pages for %s (%ds old, %d items, total=%d)",
            owner_id, age // 1000, len(entry.snapshot.items), entry.snapshot.pagination.total,
        )
        self.last_miss = None
        return entry.snapshot

    async def set(self, snapshot: ResponsePage) -> None:
        """Overwrite the current identity's entry with ``snapshot``."""
        owner_id = self._resolve_identity()
        if owner_id is None:
            logger.debug("No identity signed in, skipping cache write")
            return
        store = self._resolve_store()
        if store is None:
            return

        entry = CacheEntry(owner_id=owner_id, snapshot=snapshot, stored_at_ms=self._clock())
        try:
            await store.set(self.key(owner_id), entry.to_dict())
        except Exception:
            logger.exception("Failed to write cache")
            return
        self._active_owner = owner_id
        logger.debug(
            "Cache updated for %s (%d items, total=%d)",
            owner_id, len(snapshot.items), snapshot.pagination.total,
        )

    async def invalidate(self) -> None:
        """Drop the current identity's entry (after a delete or pin)."""
        owner_id = self._resolve_identity()
        if owner_id is None:
            return
        store = self._resolve_store()
        if store is None:
            return
        try:
            await store.remove(self.key(owner_id))
        except Exception:
            logger.exception("Failed to invalidate cache")
            return
        logger.info("Cache invalidated for %s", owner_id)

    async def clear_all(self) -> None:
        """Wipe the whole store. Used on sign-out and account switch."""
        store = self._resolve_store()
        if store is None:
            return
        try:
            await store.clear()
        except Exception:
            logger.exception("Failed to clear cache")
            return
        self._active_owner = None
        logger.info("All cache cleared")

    async def prune_legacy_key(self) -> None:
        """Remove the unscoped entry left by the earlier cache generation."""
        store = self._resolve_store()
        if store is None:
            return
        try:
            await store.remove(self.legacy_key)
        except Exception:
            logger.exception("Failed to remove legacy cache key")
            return
        logger.debug("Removed legacy cache key %s", self.legacy_key)
