"""Health checks and operational endpoints.

Usage:
    from src.health import HealthChecker, register_health_routes

    register_health_routes(app, HealthChecker.from_config(config))
"""

from src.health.checks import (
    CheckResult,
    CheckStatus,
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from src.health.server import build_health_router, register_health_routes

__all__ = [
    "CheckResult",
    "CheckStatus",
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "build_health_router",
    "register_health_routes",
]
