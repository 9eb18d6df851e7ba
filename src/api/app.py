"""FastAPI application serving signed page requests.

Routes:
- /health, /ready, /live, /metrics - operational endpoints
- /{manga}/{chapter}/{file}?sig=&t= - signed, cache-first page proxy
- anything shorter than three path segments - plain-text status line

Usage:
    from src.api import create_app

    app = create_app(config)
    uvicorn.run(app, host=config.server.host, port=config.server.port)
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request, Response, status
from fastapi.responses import PlainTextResponse
import structlog

from src.health import HealthChecker, register_health_routes
from src.models.config import APP_VERSION, AppConfig
from src.observability.context import correlation_id_context, new_correlation_id
from src.observability.metrics import PROXY_REQUEST_DURATION, PROXY_REQUESTS
from src.services.cache_service import EdgeCacheService
from src.services.origin_client import OriginClient
from src.services.proxy_service import CacheFillProxy
from src.utils.background import PendingWrites
from src.utils.exceptions import AuthorizationFailure, OriginMiss
from src.utils.signature import verify_signature

logger = structlog.get_logger()

STATUS_TEXT = f"Manga Proxy Engine v{APP_VERSION} | Status: Online"
ACCESS_DENIED_TEXT = "Access Denied: Invalid or Expired Signature"
NOT_FOUND_TEXT = "Manga Page Not Found"

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


def _raw_path(request: Request) -> str:
    """Request path as sent by the client, percent-encoding intact.

    Links are signed over the encoded path, so ``/one%20piece/1/2.webp``
    must be verified as is rather than after Starlette decodes it.
    """
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.split(b"?", 1)[0].decode("latin-1")


def _observe(result: str, started: float) -> None:
    PROXY_REQUESTS.labels(result=result).inc()
    PROXY_REQUEST_DURATION.labels(result=result).observe(time.monotonic() - started)


def create_app(
    config: AppConfig,
    cache: Optional[EdgeCacheService] = None,
    origin: Optional[OriginClient] = None,
    checker: Optional[HealthChecker] = None,
) -> FastAPI:
    """Build the proxy application.

    Args:
        config: Service configuration
        cache: Edge cache to use (default: opened from ``config.cache``)
        origin: Origin client to use (default: opened from ``config.origin``)
        checker: Health checker (default: watches the cache and state dirs)

    Returns:
        Configured FastAPI application. Components are created on startup
        and the ones created here are closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_cache = cache is None
        owned_origin = origin is None
        edge_cache = cache if cache is not None else EdgeCacheService(config.cache)
        origin_client = origin if origin is not None else OriginClient(config.origin)

        app.state.cache = edge_cache
        app.state.proxy = CacheFillProxy(config, edge_cache, origin_client)
        logger.info("proxy_server_starting", version=APP_VERSION)
        try:
            yield
        finally:
            logger.info("proxy_server_stopping")
            if owned_origin:
                await origin_client.close()
            if owned_cache:
                edge_cache.close()

    app = FastAPI(
        title="Manga Edge Proxy",
        version=APP_VERSION,
        description="Signed-URL page proxy backed by an edge cache",
        lifespan=lifespan,
    )

    @app.exception_handler(AuthorizationFailure)
    async def on_authorization_failure(
        request: Request, exc: AuthorizationFailure
    ) -> Response:
        return PlainTextResponse(
            ACCESS_DENIED_TEXT,
            status_code=status.HTTP_403_FORBIDDEN,
            media_type=TEXT_MEDIA_TYPE,
        )

    @app.exception_handler(OriginMiss)
    async def on_origin_miss(request: Request, exc: OriginMiss) -> Response:
        return PlainTextResponse(
            NOT_FOUND_TEXT,
            status_code=status.HTTP_404_NOT_FOUND,
            media_type=TEXT_MEDIA_TYPE,
        )

    register_health_routes(app, checker or HealthChecker.from_config(config))

    @app.get("/{full_path:path}", response_model=None, include_in_schema=False)
    async def proxy_page(
        full_path: str, request: Request, background_tasks: BackgroundTasks
    ) -> Response:
        started = time.monotonic()
        path = _raw_path(request)
        parts = [p for p in path.split("/") if p]

        if len(parts) < 3:
            _observe("status", started)
            return PlainTextResponse(STATUS_TEXT, media_type=TEXT_MEDIA_TYPE)

        with correlation_id_context(new_correlation_id("req")):
            if not verify_signature(
                path,
                request.query_params.get("t"),
                request.query_params.get("sig"),
                config.signing.secret_key,
                max_age_seconds=config.signing.max_age_seconds,
            ):
                logger.info("proxy_request_denied", path=path)
                _observe("denied", started)
                raise AuthorizationFailure(path)

            manga, chapter, file = parts[0], parts[1], parts[2]
            pending = PendingWrites()
            proxy: CacheFillProxy = request.app.state.proxy
            result = await proxy.serve(manga, chapter, file, pending)

            # Runs after the response body has been sent
            background_tasks.add_task(pending.wait)

            if result is None:
                _observe("not_found", started)
                raise OriginMiss(
                    path, tried=proxy.origin.asset_variants(manga, chapter, file)
                )

            cache_status = result.headers.get("X-Proxy-Cache", "MISS").lower()
            _observe(cache_status, started)
            headers = {
                k: v for k, v in result.headers.items() if k.lower() != "content-type"
            }
            return Response(
                content=result.body,
                status_code=result.status,
                headers=headers,
                media_type=result.media_type,
            )

    return app


def run_server(config: AppConfig, log_level: str = "info") -> None:  # pragma: no cover
    """Run the proxy server (blocking)."""
    import uvicorn

    app = create_app(config)
    logger.info("proxy_server_binding", host=config.server.host, port=config.server.port)
    uvicorn.run(
        app, host=config.server.host, port=config.server.port, log_level=log_level
    )


async def run_server_async(  # pragma: no cover
    config: AppConfig, log_level: str = "info"
) -> None:
    """Run the proxy server inside an existing event loop."""
    import uvicorn

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(config),
            host=config.server.host,
            port=config.server.port,
            log_level=log_level,
            access_log=True,
        )
    )
    logger.info("proxy_server_binding", host=config.server.host, port=config.server.port)
    await server.serve()
