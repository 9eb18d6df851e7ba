"""Tests for scheduled job definitions."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.models.cache import CachedResponse
from src.models.warmup import TraversalOutcome, TraversalReport
from src.observability.context import get_correlation_id
from src.scheduling.jobs import BaseJob, CacheCleanupJob, CacheWarmupJob
from src.services.cache_service import EdgeCacheService


class ConcreteJob(BaseJob):
    """Concrete implementation for testing BaseJob."""

    def __init__(self, result=None, should_fail=False):
        super().__init__("test_job")
        self.result = result or {"status": "ok"}
        self.should_fail = should_fail
        self.seen_correlation_id = None

    async def run(self):
        self.seen_correlation_id = get_correlation_id()
        if self.should_fail:
            raise ValueError("Job failed")
        return self.result


class TestBaseJob:
    """Tests for BaseJob class."""

    def test_init(self):
        job = ConcreteJob()

        assert job.name == "test_job"
        assert job.last_run is None
        assert job.run_count == 0
        assert job.error_count == 0

    @pytest.mark.asyncio
    async def test_call_success(self):
        job = ConcreteJob(result={"data": "test"})

        result = await job()

        assert result == {"data": "test"}
        assert job.last_success is not None
        assert job.run_count == 1
        assert job.seen_correlation_id.startswith("test_job-")

    @pytest.mark.asyncio
    async def test_call_failure_is_logged_not_raised(self):
        job = ConcreteJob(should_fail=True)

        result = await job()

        assert result is None
        assert job.error_count == 1
        assert job.last_run is not None
        assert job.last_success is None

    def test_get_status(self):
        status = ConcreteJob().get_status()

        assert status == {
            "name": "test_job",
            "last_run": None,
            "last_success": None,
            "run_count": 0,
            "error_count": 0,
        }


class TestCacheWarmupJob:
    @pytest.mark.asyncio
    async def test_runs_engine_and_returns_report(self, app_config):
        engine = MagicMock()
        engine.run = AsyncMock(
            return_value=TraversalReport(outcome=TraversalOutcome.PASS_COMPLETE)
        )

        with patch(
            "src.orchestration.build_traversal_engine", return_value=engine
        ) as build:
            result = await CacheWarmupJob(app_config)()

        assert result["outcome"] == "pass_complete"
        build.assert_called_once()
        assert build.call_args.args[0] is app_config

    @pytest.mark.asyncio
    async def test_catalog_failure_is_a_normal_run(self, app_config):
        engine = MagicMock()
        engine.run = AsyncMock(
            return_value=TraversalReport(outcome=TraversalOutcome.CATALOG_UNAVAILABLE)
        )

        job = CacheWarmupJob(app_config)
        with patch("src.orchestration.build_traversal_engine", return_value=engine):
            result = await job()

        assert result["outcome"] == "catalog_unavailable"
        assert job.error_count == 0


class TestCacheCleanupJob:
    @pytest.mark.asyncio
    async def test_missing_directory(self, app_config):
        result = await CacheCleanupJob(app_config)()

        assert result == {"entries_removed": 0}

    @pytest.mark.asyncio
    async def test_expires_entries(self, app_config):
        cache = EdgeCacheService(app_config.cache)
        cache.put("live", CachedResponse(body=b"a"))
        cache.put("stale", CachedResponse(body=b"b"))
        cache.cache.touch("stale", expire=-1)
        cache.close()

        result = await CacheCleanupJob(app_config)()

        assert result == {"entries_removed": 1, "entries_remaining": 1}
