"""Two-tier document cache: an in-process map backed by :mod:`diskcache`.

Raw documents are expensive to acquire, so :class:`DocumentCache` keeps
every fetched document in memory for the life of the process and mirrors
it on disk so that it survives restarts. Both tiers use the same key,
derived by :meth:`DocumentCache.make_key` from the document reference and
its request headers.

Every entry carries the time it was stored. The TTL is checked when an
entry is read, not when it is written, so a caller can ask for a shorter
or longer freshness window per lookup. Stale entries are never returned
and are replaced by the next :meth:`~DocumentCache.set` for the same key.

Cache I/O is best-effort: any failure of the disk tier is logged and
treated as a miss (on read) or a no-op (on write and delete). The memory
tier is guarded by a lock so concurrent calls may share one instance.

See Also:
    :class:`~swaggen.models.CacheConfig` -- the Pydantic model that
    controls ``enabled``, ``ttl_minutes`` and ``directory``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import diskcache

logger = logging.getLogger(__name__)

_CACHE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)

DEFAULT_TTL_SECONDS = 3600


class DocumentCache:
    """Memory + disk cache of raw documents keyed by reference and headers.

    Disk entries are stored as ``{"timestamp": float, "document": dict}``
    inside a :class:`diskcache.Cache` directory. ``diskcache`` commits each
    value in a single SQLite transaction, so a concurrent reader sees
    either the previous entry or the new one, never a partial write.

    Args:
        directory: Root directory of the disk tier. ``None`` keeps the
            cache memory-only.
        ttl_seconds: Default freshness window used when :meth:`get` is
            called without an explicit TTL.
        enabled: When ``False`` every lookup misses and every store is a
            no-op.
        clock: Time source returning seconds since the epoch. Tests inject
            a fake clock to move time forward.

    Example::

        cache = DocumentCache("/tmp/swaggen-cache", ttl_seconds=600)
        key = cache.make_key("https://api.example.com/openapi.json", {})
        cache.set(key, {"openapi": "3.0.3", "paths": {}})
        cache.get(key)  # -> the document, until ten minutes have passed
    """

    def __init__(
        self,
        directory: Optional[str | Path] = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = Path(directory) if directory is not None else None
        self._ttl_seconds = ttl_seconds
        self._enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._memory: dict[str, tuple[float, dict[str, Any]]] = {}
        self._disk: Optional[diskcache.Cache] = None
        self._disk_failed = False

    # ------------------------------------------------------------------ #
    # Keys
    # ------------------------------------------------------------------ #

    @staticmethod
    def make_key(reference: str, headers: Optional[Mapping[str, str]] = None) -> str:
        """Derive the cache key for a reference and its request headers.

        Headers are serialised with sorted keys so that two header maps
        with the same content produce the same key regardless of order.

        Args:
            reference: The document URL or path as supplied by the caller.
            headers: Request headers sent when fetching the document.

        Returns:
            A hex SHA-256 digest.
        """
        canonical_headers = json.dumps(dict(headers or {}), sort_keys=True)
        raw = f"{reference}|{canonical_headers}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def get(self, key: str, ttl_seconds: Optional[int] = None) -> Optional[dict[str, Any]]:
        """Look up a document, memory first, then disk.

        A disk hit is promoted into the memory tier.

        Args:
            key: Key from :meth:`make_key`.
            ttl_seconds: Freshness window for this lookup. Defaults to the
                instance TTL.

        Returns:
            The cached document, or ``None`` on a miss, on a stale entry,
            or when caching is disabled.
        """
        if not self._enabled:
            return None
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()

        with self._lock:
            entry = self._memory.get(key)
            if entry is not None:
                stored_at, document = entry
                if now - stored_at <= ttl:
                    logger.debug("Memory cache hit for %s", key[:12])
                    return document
                del self._memory[key]

        disk = self._open_disk()
        if disk is None:
            return None
        try:
            record = disk.get(key)
        except _CACHE_ERRORS as exc:
            logger.warning("Disk cache read failed for %s: %s", key[:12], exc)
            return None
        if not isinstance(record, dict) or "timestamp" not in record:
            return None

        stored_at = float(record["timestamp"])
        if now - stored_at > ttl:
            logger.debug("Disk cache entry for %s is stale", key[:12])
            return None

        document = record.get("document")
        if not isinstance(document, dict):
            return None
        with self._lock:
            self._memory[key] = (stored_at, document)
        logger.debug("Disk cache hit for %s", key[:12])
        return document

    def set(self, key: str, document: dict[str, Any]) -> None:
        """Store *document* in both tiers, stamped with the current time.

        Args:
            key: Key from :meth:`make_key`.
            document: The raw document to cache.
        """
        if not self._enabled:
            return
        stored_at = self._clock()
        with self._lock:
            self._memory[key] = (stored_at, document)

        disk = self._open_disk()
        if disk is None:
            return
        try:
            disk.set(key, {"timestamp": stored_at, "document": document})
        except _CACHE_ERRORS as exc:
            logger.warning("Disk cache write failed for %s: %s", key[:12], exc)

    def evict(self, key: str) -> None:
        """Remove one key from both tiers. Missing keys are ignored."""
        with self._lock:
            self._memory.pop(key, None)
        disk = self._open_disk()
        if disk is None:
            return
        try:
            disk.delete(key)
        except _CACHE_ERRORS as exc:
            logger.warning("Disk cache delete failed for %s: %s", key[:12], exc)

    def clear(self) -> None:
        """Remove every entry from both tiers."""
        with self._lock:
            self._memory.clear()
        disk = self._open_disk()
        if disk is None:
            return
        try:
            disk.clear()
        except _CACHE_ERRORS as exc:
            logger.warning("Disk cache clear failed: %s", exc)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled``, ``memory_entries``,
            ``disk_entries`` (``None`` when the disk tier is unavailable),
            ``directory`` and ``ttl_seconds``.
        """
        with self._lock:
            memory_entries = len(self._memory)
        disk_entries: Optional[int] = None
        disk = self._open_disk()
        if disk is not None:
            try:
                disk_entries = len(disk)
            except _CACHE_ERRORS as exc:
                logger.warning("Disk cache size lookup failed: %s", exc)
        return {
            "enabled": self._enabled,
            "memory_entries": memory_entries,
            "disk_entries": disk_entries,
            "directory": str(self._directory) if self._directory else None,
            "ttl_seconds": self._ttl_seconds,
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._disk is not None:
            self._disk.close()
            self._disk = None

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _open_disk(self) -> Optional[diskcache.Cache]:
        """Open the disk tier on first use.

        A directory that cannot be created disables the disk tier for the
        rest of the process; the memory tier keeps working.
        """
        if self._disk is not None:
            return self._disk
        if self._directory is None or self._disk_failed or not self._enabled:
            return None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._disk = diskcache.Cache(str(self._directory))
        except _CACHE_ERRORS as exc:
            logger.warning(
                "Disk cache unavailable at %s, continuing memory-only: %s",
                self._directory,
                exc,
            )
            self._disk_failed = True
            return None
        return self._disk
