"""Scheduled job definitions for the smart cacher.

Provides pre-configured jobs:
- CacheWarmupJob: One time-sliced traversal run over the catalog
- CacheCleanupJob: Sweep expired entries out of the edge cache

Usage:
    from src.scheduling.jobs import CacheWarmupJob

    job = CacheWarmupJob(config)
    await job()
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from src.models.config import AppConfig
from src.observability.context import correlation_id_context, new_correlation_id

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseJob(ABC):
    """A scheduler-callable unit of work with its own correlation ID per run."""

    def __init__(self, name: str):
        self.name = name
        self.last_run: Optional[datetime] = None
        self.last_success: Optional[datetime] = None
        self.last_result: Any = None
        self.run_count: int = 0
        self.error_count: int = 0

    async def __call__(self) -> Any:
        """Execute the job with correlation ID and error handling.

        Unexpected exceptions are logged here and not re-raised: a failed
        run must never take down the scheduler loop, and the next trigger
        retries from whatever state was last persisted.
        """
        start = time.monotonic()
        with correlation_id_context(new_correlation_id(self.name)) as corr_id:
            logger.info("job_starting", job_name=self.name, correlation_id=corr_id)

            try:
                result = await self.run()
            except Exception as e:
                self.last_run = _utcnow()
                self.error_count += 1
                logger.error(
                    "job_failed",
                    job_name=self.name,
                    error=str(e),
                    correlation_id=corr_id,
                    exc_info=True,
                )
                return None

            self.last_run = _utcnow()
            self.last_success = self.last_run
            self.last_result = result
            self.run_count += 1

            logger.info(
                "job_completed",
                job_name=self.name,
                duration_seconds=round(time.monotonic() - start, 2),
                correlation_id=corr_id,
            )
            return result

    @abstractmethod
    async def run(self) -> Any: ...  # pragma: no cover

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": (
                self.last_success.isoformat() if self.last_success else None
            ),
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class CacheWarmupJob(BaseJob):
    """Smart cacher run.

    Fetches the catalog, resumes from the saved checkpoint and warms pages
    until the catalog is exhausted or the time budget expires.
    """

    def __init__(self, config: AppConfig):
        super().__init__("cache_warmup")
        self.config = config

    async def run(self) -> Dict[str, Any]:
        """Run one traversal.

        Returns:
            TraversalReport as a dictionary
        """
        from src.orchestration import build_traversal_engine
        from src.services.origin_client import OriginClient

        async with OriginClient(self.config.origin) as origin:
            engine = build_traversal_engine(self.config, origin)
            report = await engine.run()

        return report.to_dict()


class CacheCleanupJob(BaseJob):
    """Edge cache cleanup job.

    Removes expired entries so disk usage tracks the live working set.
    """

    def __init__(self, config: AppConfig):
        super().__init__("cache_cleanup")
        self.config = config

    async def run(self) -> Dict[str, Any]:
        """Run cache cleanup.

        Returns:
            Dictionary with cleanup results
        """
        from src.services.cache_service import EdgeCacheService

        if not Path(self.config.cache.cache_dir).exists():
            logger.info("cache_cleanup_skipped", reason="directory_not_found")
            return {"entries_removed": 0}

        cache = EdgeCacheService(self.config.cache)
        try:
            removed = cache.expire()
            stats = cache.get_stats()
        finally:
            cache.close()

        logger.info(
            "cache_cleanup_completed",
            entries_removed=removed,
            entries_remaining=stats.entries,
            disk_mb=round(stats.disk_mb, 2),
        )
        return {"entries_removed": removed, "entries_remaining": stats.entries}
