"""Health checks for the proxy and the smart cacher.

Everything the service depends on locally:
- free disk where the edge cache lives
- the edge cache directory (diskcache needs to create files there)
- the state directory the checkpoint is written to
- the checkpoint record itself, so a corrupt record shows up before the
  next warm-up run silently restarts the catalog pass

Usage:
    checker = HealthChecker.from_config(config)
    report = await checker.check_all()
"""

import asyncio
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from src.models.config import AppConfig
from src.services.checkpoint_service import CheckpointService
from src.services.state_store import FileStateStore
from src.utils.exceptions import StateStoreError

logger = structlog.get_logger()

GB = 1024**3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckStatus(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    message: str
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class HealthReport:
    """Worst individual check decides the overall status."""

    status: HealthStatus
    checks: List[CheckResult]
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_checks(cls, checks: List[CheckResult]) -> "HealthReport":
        statuses = {c.status for c in checks}
        if CheckStatus.FAIL in statuses:
            overall = HealthStatus.UNHEALTHY
        elif CheckStatus.WARN in statuses:
            overall = HealthStatus.DEGRADED
        else:
            overall = HealthStatus.HEALTHY
        return cls(status=overall, checks=checks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "checks": [c.to_dict() for c in self.checks],
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """Local dependency checks backing /health and /ready."""

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        state_dir: Optional[Path] = None,
        checkpoint_key: str = "nightly_step",
        disk_threshold_gb: float = 1.0,
        disk_warning_gb: float = 5.0,
    ):
        """
        Args:
            cache_dir: Edge cache directory (default: ./cache)
            state_dir: Directory holding the checkpoint record (default: ./state)
            checkpoint_key: State key the cacher persists its position under
            disk_threshold_gb: Below this much free space the service is unhealthy
            disk_warning_gb: Below this much free space the service is degraded
        """
        self.cache_dir = cache_dir or Path("cache")
        self.state_dir = state_dir or Path("state")
        self.checkpoint_key = checkpoint_key
        self.disk_threshold_gb = disk_threshold_gb
        self.disk_warning_gb = disk_warning_gb

    @classmethod
    def from_config(cls, config: AppConfig) -> "HealthChecker":
        return cls(
            cache_dir=Path(config.cache.cache_dir),
            state_dir=Path(config.checkpoint.state_dir),
            checkpoint_key=config.checkpoint.state_key,
        )

    async def check_all(self) -> HealthReport:
        results = await asyncio.gather(
            self.check_disk_space(),
            self.check_cache_directory(),
            self.check_state_directory(),
            self.check_checkpoint(),
            return_exceptions=True,
        )

        checks: List[CheckResult] = []
        for result in results:
            if isinstance(result, CheckResult):
                checks.append(result)
            else:
                logger.error("health_check_crashed", error=str(result))
                checks.append(
                    CheckResult(
                        name="unknown",
                        status=CheckStatus.FAIL,
                        message=f"Check failed: {result}",
                    )
                )
        return HealthReport.from_checks(checks)

    async def check_disk_space(self) -> CheckResult:
        """Free space on the volume holding the edge cache."""
        start = time.monotonic()

        try:
            probe = self.cache_dir if self.cache_dir.exists() else Path.cwd()
            total, used, free = shutil.disk_usage(probe)
        except OSError as e:
            logger.error("disk_space_check_failed", error=str(e))
            return _result("disk_space", CheckStatus.FAIL, f"Disk check failed: {e}", start)

        free_gb = free / GB
        if free_gb < self.disk_threshold_gb:
            status, label = CheckStatus.FAIL, "critical"
        elif free_gb < self.disk_warning_gb:
            status, label = CheckStatus.WARN, "low"
        else:
            status, label = CheckStatus.PASS, "OK"

        return _result(
            "disk_space",
            status,
            f"Disk space {label}: {free_gb:.1f}GB free",
            start,
            free_gb=round(free_gb, 2),
            total_gb=round(total / GB, 2),
            used_percent=round((used / total) * 100, 1),
        )

    async def check_cache_directory(self) -> CheckResult:
        return _check_writable("cache_directory", self.cache_dir)

    async def check_state_directory(self) -> CheckResult:
        return _check_writable("state_directory", self.state_dir)

    async def check_checkpoint(self) -> CheckResult:
        """Warn when the stored position cannot be parsed.

        A corrupt record is not fatal (the next run restarts from the
        beginning of the catalog) but it does mean lost progress.
        """
        start = time.monotonic()

        try:
            raw = FileStateStore(self.state_dir).get(self.checkpoint_key)
        except (OSError, StateStoreError) as e:
            return _result("checkpoint", CheckStatus.FAIL, f"Checkpoint unreadable: {e}", start)

        if raw is None:
            return _result("checkpoint", CheckStatus.PASS, "No checkpoint, next run starts a fresh pass", start)

        checkpoint = CheckpointService.parse(raw)
        if checkpoint is None:
            return _result(
                "checkpoint",
                CheckStatus.WARN,
                "Checkpoint corrupt, next run restarts the pass",
                start,
                raw=raw[:200],
            )

        return _result(
            "checkpoint",
            CheckStatus.PASS,
            "Checkpoint OK",
            start,
            mIdx=checkpoint.manga_index,
            cIdx=checkpoint.chapter_index,
            pIdx=checkpoint.page_index,
        )

    async def is_ready(self) -> bool:
        """Ready unless some check fails outright."""
        report = await self.check_all()
        return report.status != HealthStatus.UNHEALTHY

    async def is_alive(self) -> bool:
        return True


def _result(
    name: str, status: CheckStatus, message: str, start: float, **details: Any
) -> CheckResult:
    return CheckResult(
        name=name,
        status=status,
        message=message,
        duration_ms=(time.monotonic() - start) * 1000,
        details=details,
    )


def _check_writable(name: str, path: Path) -> CheckResult:
    start = time.monotonic()
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / ".health_check"
        probe.write_text("health_check")
        probe.unlink()
    except OSError as e:
        return _result(name, CheckStatus.FAIL, f"Directory not writable: {e}", start, path=str(path.absolute()))

    return _result(name, CheckStatus.PASS, "Directory writable", start, path=str(path.absolute()))
