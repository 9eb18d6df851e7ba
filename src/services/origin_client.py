"""Origin HTTP client shared by the proxy and the warm-up path.

Both paths use the same URL-variant convention: for a page asset the HD
rendition is tried first, then the standard one.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import aiohttp
import structlog

from src.models.config import OriginConfig

logger = structlog.get_logger()

# Never replayed from origin; the body we return is already decoded and buffered
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "content-encoding",
        "content-length",
        "keep-alive",
        "transfer-encoding",
    }
)


@dataclass
class OriginResponse:
    """Buffered origin response"""

    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class OriginClient:
    """aiohttp-backed client for the asset origin.

    Usage:
        async with OriginClient(config.origin) as origin:
            urls = origin.asset_variants("one-piece", "12", "3.webp")
            response = await origin.fetch(urls[0], user_agent=...)
    """

    def __init__(
        self,
        config: OriginConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout_seconds)

    async def __aenter__(self) -> "OriginClient":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    # ==================== URL variants ====================

    def chapter_base(self, manga: str, chapter: int | str) -> str:
        return f"{self.config.base_url}/{manga}/{chapter}"

    def asset_variants(self, manga: str, chapter: int | str, file: str) -> List[str]:
        """Ordered origin URLs for one asset: HD first, then standard"""
        base = self.chapter_base(manga, chapter)
        return [f"{base}/{self.config.hd_segment}/{file}", f"{base}/{file}"]

    def page_variants(self, manga: str, chapter: int, page: int) -> List[str]:
        """Ordered origin URLs for a numbered page"""
        return self.asset_variants(
            manga, chapter, f"{page}.{self.config.page_extension}"
        )

    def request_headers(self, user_agent: str) -> Dict[str, str]:
        return {"Referer": self.config.referer, "User-Agent": user_agent}

    # ==================== Requests ====================

    async def fetch(self, url: str, user_agent: str) -> OriginResponse:
        """
        GET ``url`` and buffer the body.

        Raises:
            aiohttp.ClientError: Transport failure
            asyncio.TimeoutError: Request exceeded the configured timeout
        """
        session = self._get_session()
        async with session.get(
            url, headers=self.request_headers(user_agent), timeout=self._timeout
        ) as response:
            body = await response.read()
            headers = {
                k: v
                for k, v in response.headers.items()
                if k.lower() not in HOP_BY_HOP_HEADERS
            }
            return OriginResponse(
                url=url, status=response.status, headers=headers, body=body
            )

    async def drain(self, url: str, user_agent: str) -> bool:
        """
        GET ``url`` and, on HTTP 200, consume the whole body.

        The origin edge only stores complete objects, so the body must be
        read to the end even though it is discarded.

        Returns:
            True if the origin answered 200 and the body was drained
        """
        session = self._get_session()
        async with session.get(
            url, headers=self.request_headers(user_agent), timeout=self._timeout
        ) as response:
            if response.status != 200:
                logger.debug("origin_not_ok", url=url, status=response.status)
                return False
            await response.read()
            return True


TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)
