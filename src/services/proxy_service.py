"""Read-through cache-fill proxy for page assets.

Serves a request from the edge cache when present; otherwise fetches from
the origin, rewrites cache headers, returns the response immediately and
fills the cache in the background.
"""

from typing import Optional

import structlog

from src.models.cache import CachedResponse
from src.models.config import AppConfig
from src.observability.metrics import CACHE_WRITES
from src.services.cache_service import EdgeCacheService, build_cache_key
from src.services.origin_client import OriginClient, TRANSPORT_ERRORS
from src.utils.background import PendingWrites

logger = structlog.get_logger()

CACHE_STATUS_HEADER = "X-Proxy-Cache"


class CacheFillProxy:
    """Cache-first page proxy with background cache population"""

    def __init__(
        self,
        config: AppConfig,
        cache: EdgeCacheService,
        origin: OriginClient,
    ):
        self.config = config
        self.cache = cache
        self.origin = origin
        self.referer = config.origin.referer
        self.user_agent = config.origin.proxy_user_agent

    async def serve(
        self,
        manga: str,
        chapter: str,
        file: str,
        pending: PendingWrites,
    ) -> Optional[CachedResponse]:
        """
        Resolve one asset.

        Args:
            manga: Manga identifier
            chapter: Chapter segment of the path
            file: File name of the page
            pending: Receives the cache write on a miss; the caller must
                await it before its request lifecycle ends

        Returns:
            Response to send, or None if no origin variant succeeded
        """
        for url in self.origin.asset_variants(manga, chapter, file):
            key = build_cache_key(url, self.referer)

            cached = await self.cache.match_async(key)
            if cached is not None:
                logger.info("proxy_cache_hit", url=url, cache_key=key[:8])
                return cached.with_header(CACHE_STATUS_HEADER, "HIT").model_copy(
                    update={"status": 200}
                )

            try:
                upstream = await self.origin.fetch(url, self.user_agent)
            except TRANSPORT_ERRORS as e:
                logger.warning(
                    "proxy_origin_error", url=url, error_type=type(e).__name__
                )
                continue

            if not upstream.ok:
                logger.debug("proxy_origin_miss", url=url, status=upstream.status)
                continue

            headers = dict(upstream.headers)
            headers["Access-Control-Allow-Origin"] = "*"
            headers["Cache-Control"] = self.config.cache_control
            final = CachedResponse(status=200, headers=headers, body=upstream.body)
            final = final.with_header(CACHE_STATUS_HEADER, "MISS")

            # Body is already buffered, so the stored copy and the returned
            # response never share a stream
            pending.spawn(self._store(key, final.model_copy(deep=True)), name="cache_put")

            logger.info(
                "proxy_cache_fill", url=url, cache_key=key[:8], size=len(final.body)
            )
            return final

        logger.info("proxy_origin_exhausted", manga=manga, chapter=chapter, file=file)
        return None

    async def _store(self, key: str, response: CachedResponse) -> None:
        stored = await self.cache.put_async(key, response)
        CACHE_WRITES.labels(result="stored" if stored else "failed").inc()
