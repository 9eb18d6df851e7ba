"""Tests for health check implementations."""

from unittest.mock import patch

import pytest

from src.models.checkpoint import Checkpoint
from src.health.checks import (
    CheckResult,
    CheckStatus,
    HealthChecker,
    HealthReport,
    HealthStatus,
)

GB = 1024**3


class TestCheckResult:
    """Tests for CheckResult dataclass."""

    def test_to_dict(self):
        result = CheckResult(
            name="test",
            status=CheckStatus.PASS,
            message="OK",
            duration_ms=10.0,
            details={"foo": "bar"},
        )

        d = result.to_dict()

        assert d["name"] == "test"
        assert d["status"] == "pass"
        assert d["duration_ms"] == 10.0
        assert d["details"] == {"foo": "bar"}
        assert "timestamp" in d


class TestHealthReport:
    def test_to_dict(self):
        report = HealthReport(
            status=HealthStatus.DEGRADED,
            checks=[CheckResult(name="a", status=CheckStatus.WARN, message="low")],
        )

        d = report.to_dict()

        assert d["status"] == "degraded"
        assert d["checks"][0]["status"] == "warn"


class TestDiskSpace:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "free_gb,expected",
        [(50, CheckStatus.PASS), (3, CheckStatus.WARN), (0.5, CheckStatus.FAIL)],
    )
    async def test_thresholds(self, tmp_path, free_gb, expected):
        checker = HealthChecker(cache_dir=tmp_path)

        with patch(
            "src.health.checks.shutil.disk_usage",
            return_value=(100 * GB, 100 * GB - free_gb * GB, free_gb * GB),
        ):
            result = await checker.check_disk_space()

        assert result.status == expected
        assert result.details["free_gb"] == round(free_gb, 2)

    @pytest.mark.asyncio
    async def test_os_error_fails(self, tmp_path):
        checker = HealthChecker(cache_dir=tmp_path)

        with patch("src.health.checks.shutil.disk_usage", side_effect=OSError("gone")):
            result = await checker.check_disk_space()

        assert result.status == CheckStatus.FAIL


class TestDirectories:
    @pytest.mark.asyncio
    async def test_creates_and_writes(self, tmp_path):
        checker = HealthChecker(cache_dir=tmp_path / "cache", state_dir=tmp_path / "state")

        cache_result = await checker.check_cache_directory()
        state_result = await checker.check_state_directory()

        assert cache_result.status == CheckStatus.PASS
        assert state_result.status == CheckStatus.PASS
        assert (tmp_path / "state").is_dir()
        assert not (tmp_path / "state" / ".health_check").exists()

    @pytest.mark.asyncio
    async def test_unwritable_directory_fails(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        checker = HealthChecker(state_dir=blocker / "state")

        result = await checker.check_state_directory()

        assert result.status == CheckStatus.FAIL


class TestOverallStatus:
    def _checker(self, tmp_path):
        return HealthChecker(cache_dir=tmp_path / "c", state_dir=tmp_path / "s")

    @pytest.mark.asyncio
    async def test_all_pass_is_healthy(self, tmp_path):
        with patch(
            "src.health.checks.shutil.disk_usage", return_value=(100 * GB, 0, 100 * GB)
        ):
            report = await self._checker(tmp_path).check_all()

        assert report.status == HealthStatus.HEALTHY
        assert {c.name for c in report.checks} == {
            "disk_space",
            "cache_directory",
            "state_directory",
            "checkpoint",
        }

    @pytest.mark.asyncio
    async def test_warning_is_degraded_but_ready(self, tmp_path):
        checker = self._checker(tmp_path)

        with patch(
            "src.health.checks.shutil.disk_usage",
            return_value=(100 * GB, 97 * GB, 3 * GB),
        ):
            report = await checker.check_all()
            ready = await checker.is_ready()

        assert report.status == HealthStatus.DEGRADED
        assert ready is True

    @pytest.mark.asyncio
    async def test_failure_is_unhealthy_and_not_ready(self, tmp_path):
        checker = self._checker(tmp_path)

        with patch(
            "src.health.checks.shutil.disk_usage",
            return_value=(100 * GB, 99.9 * GB, 0.1 * GB),
        ):
            report = await checker.check_all()
            ready = await checker.is_ready()

        assert report.status == HealthStatus.UNHEALTHY
        assert ready is False

    @pytest.mark.asyncio
    async def test_is_alive(self, tmp_path):
        assert await self._checker(tmp_path).is_alive() is True


class TestFromChecks:
    def test_fail_outranks_warn(self):
        report = HealthReport.from_checks(
            [
                CheckResult(name="a", status=CheckStatus.WARN, message=""),
                CheckResult(name="b", status=CheckStatus.FAIL, message=""),
            ]
        )

        assert report.status == HealthStatus.UNHEALTHY

    def test_empty_is_healthy(self):
        assert HealthReport.from_checks([]).status == HealthStatus.HEALTHY


class TestCheckpoint:
    @pytest.mark.asyncio
    async def test_missing_record_passes(self, tmp_path):
        checker = HealthChecker(state_dir=tmp_path)

        result = await checker.check_checkpoint()

        assert result.status == CheckStatus.PASS
        assert result.details == {}

    @pytest.mark.asyncio
    async def test_valid_record_reports_position(self, tmp_path):
        position = Checkpoint(manga_index=2, chapter_index=5, page_index=10)
        (tmp_path / "nightly_step.json").write_text(position.to_json())
        checker = HealthChecker(state_dir=tmp_path)

        result = await checker.check_checkpoint()

        assert result.status == CheckStatus.PASS
        assert result.details == {"mIdx": 2, "cIdx": 5, "pIdx": 10}

    @pytest.mark.asyncio
    async def test_corrupt_record_warns(self, tmp_path):
        (tmp_path / "nightly_step.json").write_text("{not json")
        checker = HealthChecker(state_dir=tmp_path)

        result = await checker.check_checkpoint()

        assert result.status == CheckStatus.WARN

    @pytest.mark.asyncio
    async def test_custom_key(self, tmp_path):
        (tmp_path / "other.json").write_text('{"mIdx": 1, "cIdx": 1, "pIdx": 0}')
        checker = HealthChecker(state_dir=tmp_path, checkpoint_key="other")

        result = await checker.check_checkpoint()

        assert result.details["mIdx"] == 1

    def test_from_config(self, app_config):
        checker = HealthChecker.from_config(app_config)

        assert str(checker.state_dir) == app_config.checkpoint.state_dir
        assert checker.checkpoint_key == app_config.checkpoint.state_key
