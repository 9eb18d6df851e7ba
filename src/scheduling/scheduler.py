"""APScheduler wrapper for the smart cacher daemon.

The traversal engine assumes two runs never overlap and never race on the
checkpoint. Every job registered here therefore runs with
``max_instances=1`` and ``coalesce=True``: a tick that fires while the
previous run is still draining pages is dropped, and a backlog of missed
ticks collapses into one run.

Usage:
    scheduler = CacherScheduler.from_config(config)
    scheduler.schedule_warmup(CacheWarmupJob(config))
    scheduler.schedule_cleanup(CacheCleanupJob(config))
    await scheduler.start()
"""

import asyncio
import signal
from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog
from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.models.config import AppConfig, ScheduleConfig
from src.observability.metrics import SCHEDULER_JOBS

logger = structlog.get_logger()

WARMUP_JOB_ID = "cache_warmup"
CLEANUP_JOB_ID = "cache_cleanup"

JobCallable = Callable[[], Awaitable[Any]]


class CacherScheduler:
    """Interval scheduler for the warm-up and cache cleanup jobs."""

    def __init__(
        self,
        timezone: str = "UTC",
        misfire_grace_time: int = 60,
        warmup_interval_minutes: int = 10,
        cleanup_interval_hours: int = 24,
    ):
        self.scheduler = AsyncIOScheduler(
            timezone=timezone,
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": misfire_grace_time,
            },
        )
        self.warmup_interval_minutes = warmup_interval_minutes
        self.cleanup_interval_hours = cleanup_interval_hours

        self._running = False
        self._shutdown_event = asyncio.Event()
        self._jobs: Dict[str, Any] = {}

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)
        self.scheduler.add_listener(self._on_job_skipped, EVENT_JOB_MAX_INSTANCES)

        logger.info(
            "scheduler_initialized",
            timezone=timezone,
            warmup_interval_minutes=warmup_interval_minutes,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "CacherScheduler":
        schedule: ScheduleConfig = config.schedule
        return cls(
            timezone=schedule.timezone,
            misfire_grace_time=schedule.misfire_grace_seconds,
            warmup_interval_minutes=schedule.interval_minutes,
            cleanup_interval_hours=schedule.cleanup_interval_hours,
        )

    def schedule_warmup(self, job: JobCallable) -> str:
        """Run the smart cacher every ``warmup_interval_minutes``."""
        return self._add_interval_job(
            job, WARMUP_JOB_ID, minutes=self.warmup_interval_minutes
        )

    def schedule_cleanup(self, job: JobCallable) -> str:
        """Sweep expired edge-cache entries every ``cleanup_interval_hours``."""
        return self._add_interval_job(
            job, CLEANUP_JOB_ID, hours=self.cleanup_interval_hours
        )

    def _add_interval_job(
        self, func: JobCallable, job_id: str, **interval: int
    ) -> str:
        job = self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(**interval),
            id=job_id,
            name=job_id,
            replace_existing=True,
        )
        self._jobs[job_id] = job

        next_run = getattr(job, "next_run_time", None)
        logger.info(
            "job_added",
            job_id=job_id,
            every=interval,
            next_run=str(next_run) if next_run else "not scheduled",
        )
        self._update_metrics()
        return job_id

    def remove_job(self, job_id: str) -> bool:
        """Unschedule a job. Returns False when it was never registered."""
        if job_id not in self._jobs:
            return False

        self.scheduler.remove_job(job_id)
        del self._jobs[job_id]
        logger.info("job_removed", job_id=job_id)
        self._update_metrics()
        return True

    def get_jobs(self) -> List[Dict[str, Optional[str]]]:
        summary = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            summary.append(
                {
                    "id": job.id,
                    "next_run_time": str(next_run) if next_run else None,
                }
            )
        return summary

    async def start(self) -> None:
        """Start ticking and block until a shutdown signal arrives."""
        if self._running:
            logger.warning("scheduler_already_running")
            return

        self._running = True
        self._shutdown_event.clear()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

        self.scheduler.start()
        logger.info("scheduler_started", jobs=sorted(self._jobs))
        self._update_metrics()

        await self._shutdown_event.wait()

    async def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler; with ``wait`` an in-flight run finishes first."""
        if not self._running:
            return

        logger.info("scheduler_shutting_down")
        self.scheduler.shutdown(wait=wait)
        self._running = False
        self._shutdown_event.set()
        logger.info("scheduler_stopped")

    def _signal_handler(self) -> None:
        logger.info("shutdown_signal_received")
        asyncio.create_task(self.shutdown())

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        logger.info(
            "job_executed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(
            "job_failed",
            job_id=event.job_id,
            exception=str(event.exception),
            traceback=event.traceback,
        )
        self._update_metrics()

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        logger.warning(
            "job_missed",
            job_id=event.job_id,
            scheduled_run_time=str(event.scheduled_run_time),
        )
        self._update_metrics()

    def _on_job_skipped(self, event: JobExecutionEvent) -> None:
        # previous run still in flight
        logger.info("job_skipped_overlap", job_id=event.job_id)

    def _update_metrics(self) -> None:
        SCHEDULER_JOBS.labels(status="scheduled").set(len(self._jobs))
        SCHEDULER_JOBS.labels(status="running").set(1 if self._running else 0)

    @property
    def is_running(self) -> bool:
        return self._running
