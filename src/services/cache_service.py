"""
Edge cache service.

Stores fully buffered page responses on disk, keyed by a canonical request
key so that every caller asking for the same origin variant converges on
the same entry regardless of the headers it sent.
"""

import asyncio
import hashlib
from pathlib import Path
from typing import Optional

import diskcache
import structlog

from src.models.cache import CacheConfig, CacheStats, CachedResponse
from src.observability.metrics import CACHE_OPERATIONS

logger = structlog.get_logger()


def build_cache_key(url: str, referer: str) -> str:
    """
    Canonical cache key for an origin URL variant.

    Only the URL and the fixed Referer participate, so lookups are
    insensitive to caller-supplied headers.

    Args:
        url: Origin URL variant
        referer: Referer always sent to the origin

    Returns:
        SHA256 hash as hex string
    """
    content = f"{url}|referer={referer}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class EdgeCacheService:
    """
    Disk-backed edge cache with put / match-by-key semantics.

    Entries expire after the configured TTL. No invalidation path exists
    besides expiry and an explicit clear.
    """

    def __init__(self, config: CacheConfig):
        """
        Initialize edge cache.

        Args:
            config: Cache configuration
        """
        self.config = config
        self.cache_dir = Path(config.cache_dir)
        self.enabled = config.enabled

        if not config.enabled:
            logger.info("cache_disabled")
            self.cache: Optional[diskcache.Cache] = None
            return

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache = diskcache.Cache(
            str(self.cache_dir / "pages"), size_limit=config.size_limit_bytes
        )
        self.cache.stats(enable=True)

        logger.info(
            "cache_service_initialized",
            cache_dir=str(self.cache_dir),
            ttl_seconds=config.ttl_seconds,
        )

    def match(self, key: str) -> Optional[CachedResponse]:
        """
        Look up a cached response.

        Args:
            key: Canonical cache key

        Returns:
            Cached response or None on miss
        """
        if self.cache is None:
            return None

        try:
            data = self.cache.get(key)
        except Exception as e:
            logger.error("cache_match_error", cache_key=key[:8], error=str(e))
            return None

        if data is None:
            CACHE_OPERATIONS.labels(operation="miss").inc()
            logger.debug("cache_miss", cache_key=key[:8])
            return None

        CACHE_OPERATIONS.labels(operation="hit").inc()
        logger.debug("cache_hit", cache_key=key[:8])
        return CachedResponse.model_validate(data)

    async def match_async(self, key: str) -> Optional[CachedResponse]:
        """Look up without blocking the event loop"""
        return await asyncio.to_thread(self.match, key)

    def put(self, key: str, response: CachedResponse) -> bool:
        """
        Store a response under ``key`` for the configured TTL.

        Args:
            key: Canonical cache key
            response: Fully buffered response

        Returns:
            True if stored
        """
        if self.cache is None:
            return False

        try:
            self.cache.set(key, response.model_dump(), expire=self.config.ttl_seconds)
        except Exception as e:
            CACHE_OPERATIONS.labels(operation="error").inc()
            logger.error("cache_put_error", cache_key=key[:8], error=str(e))
            return False

        CACHE_OPERATIONS.labels(operation="set").inc()
        logger.debug("cache_put", cache_key=key[:8], size=len(response.body))
        return True

    async def put_async(self, key: str, response: CachedResponse) -> bool:
        """Store without blocking the event loop"""
        return await asyncio.to_thread(self.put, key, response)

    def expire(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        if self.cache is None:
            return 0
        removed = self.cache.expire()
        logger.info("cache_expired_entries_removed", removed=removed)
        return removed

    def get_stats(self) -> CacheStats:
        """
        Get cache statistics.

        Returns:
            CacheStats with current statistics
        """
        if self.cache is None:
            return CacheStats()

        try:
            hits, misses = self.cache.stats()
            return CacheStats(
                entries=len(self.cache),
                hits=hits,
                misses=misses,
                disk_mb=self.cache.volume() / (1024 * 1024),
            )
        except Exception as e:
            logger.error("cache_stats_error", error=str(e))
            return CacheStats()

    def clear(self) -> int:
        """
        Drop every entry.

        Returns:
            Number of entries removed
        """
        if self.cache is None:
            return 0
        removed = self.cache.clear()
        logger.info("cache_cleared", removed=removed)
        return removed

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()
