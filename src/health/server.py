"""Operational endpoints for the proxy app: /health, /ready, /live, /metrics.

They are mounted before the page catch-all route, so ``/health`` never
reaches signature verification as if it were a manga slug.
"""

from fastapi import APIRouter, FastAPI, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
import structlog

from src.health.checks import CheckStatus, HealthChecker, HealthStatus
from src.models.config import APP_VERSION
from src.observability.metrics import get_metrics_content_type, get_metrics_text

logger = structlog.get_logger()


def build_health_router(checker: HealthChecker) -> APIRouter:
    router = APIRouter(tags=["operations"])

    @router.get(
        "/health",
        response_model=None,
        responses={503: {"description": "A local dependency check failed"}},
    )
    async def health() -> Response:
        """Full report; 503 only when unhealthy, degraded still answers 200."""
        report = await checker.check_all()
        if report.status == HealthStatus.UNHEALTHY:
            logger.warning(
                "health_check_unhealthy",
                failing=[c.name for c in report.checks if c.status == CheckStatus.FAIL],
            )
            code = status.HTTP_503_SERVICE_UNAVAILABLE
        else:
            code = status.HTTP_200_OK
        return JSONResponse(content=report.to_dict(), status_code=code)

    @router.get("/ready", response_model=None)
    async def ready() -> Response:
        is_ready = await checker.is_ready()
        return JSONResponse(
            content={"ready": is_ready},
            status_code=(
                status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE
            ),
        )

    @router.get("/live", response_model=None)
    async def live() -> Response:
        return JSONResponse(
            content={"alive": await checker.is_alive(), "version": APP_VERSION}
        )

    @router.get("/metrics", response_class=PlainTextResponse)
    async def metrics() -> Response:
        return Response(content=get_metrics_text(), media_type=get_metrics_content_type())

    return router


def register_health_routes(app: FastAPI, checker: HealthChecker) -> None:
    """Mount the operational routes on ``app``; call before the catch-all."""
    app.include_router(build_health_router(checker))
