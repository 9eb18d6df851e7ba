"""Catalog feed client.

The catalog is fetched fresh on every traversal run and never persisted.
Any failure (network, timeout, non-2xx, malformed body) means "no catalog
this run" and the caller must leave its checkpoint untouched.
"""

import asyncio
import json
from typing import List, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from src.models.catalog import CatalogAdapter, CatalogEntry
from src.models.config import WarmupConfig
from src.utils.exceptions import CatalogUnavailable

logger = structlog.get_logger()


class CatalogService:
    """Fetches and validates the manga catalog feed"""

    def __init__(
        self,
        config: WarmupConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config
        self._session = session

    async def fetch(self) -> List[CatalogEntry]:
        """
        Fetch the catalog.

        Returns:
            Catalog entries in feed order

        Raises:
            CatalogUnavailable: On any fetch or validation failure
        """
        timeout = aiohttp.ClientTimeout(total=self.config.catalog_timeout_seconds)
        headers = {"User-Agent": self.config.catalog_user_agent}

        try:
            if self._session is not None:
                payload = await self._get(self._session, headers, timeout)
            else:
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    payload = await self._get(session, headers, timeout)
        except asyncio.TimeoutError:
            raise CatalogUnavailable("Catalog request timed out")
        except aiohttp.ClientError as e:
            raise CatalogUnavailable(f"Catalog request failed: {e}")

        try:
            data = json.loads(payload)
        except ValueError as e:
            raise CatalogUnavailable(f"Catalog is not valid JSON: {e}")

        if not isinstance(data, list):
            raise CatalogUnavailable("Catalog is not a JSON array")

        try:
            entries = CatalogAdapter.validate_python(data)
        except ValidationError as e:
            raise CatalogUnavailable(
                f"Catalog entries are malformed ({e.error_count()} errors)"
            )

        logger.info("catalog_fetched", entries=len(entries))
        return entries

    async def _get(
        self,
        session: aiohttp.ClientSession,
        headers: dict,
        timeout: aiohttp.ClientTimeout,
    ) -> bytes:
        async with session.get(
            self.config.catalog_url, headers=headers, timeout=timeout
        ) as response:
            if not 200 <= response.status < 300:
                raise CatalogUnavailable(f"Catalog returned HTTP {response.status}")
            return await response.read()

    async def try_fetch(self) -> Optional[List[CatalogEntry]]:
        """
        Fetch the catalog, converting failures into None.

        Returns:
            Catalog entries, or None when unavailable
        """
        try:
            return await self.fetch()
        except CatalogUnavailable as e:
            logger.warning(
                "catalog_unavailable", url=self.config.catalog_url, reason=str(e)
            )
            return None
