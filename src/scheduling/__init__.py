"""Scheduling for the smart cacher.

Provides:
- APScheduler wrapper with single-flight job defaults
- Warm-up and cache cleanup jobs

Usage:
    from src.scheduling import CacherScheduler, CacheWarmupJob

    scheduler = CacherScheduler.from_config(config)
    scheduler.schedule_warmup(CacheWarmupJob(config))
    await scheduler.start()
"""

from src.scheduling.scheduler import (
    CLEANUP_JOB_ID,
    WARMUP_JOB_ID,
    CacherScheduler,
)
from src.scheduling.jobs import (
    BaseJob,
    CacheCleanupJob,
    CacheWarmupJob,
)

__all__ = [
    "CacherScheduler",
    "WARMUP_JOB_ID",
    "CLEANUP_JOB_ID",
    "BaseJob",
    "CacheCleanupJob",
    "CacheWarmupJob",
]
