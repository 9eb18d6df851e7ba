"""Batch warm-up of consecutive manga pages.

Each page is requested from the origin exactly like a reader would, with
the body drained so the origin's edge stores the complete object. A batch
of consecutive pages is fetched concurrently and reduced to a single
"continue or stop" decision.

End-of-chapter heuristic: the first page in a batch that cannot be fetched
from any variant is treated as the first page past the end of the chapter.
A transient failure is indistinguishable from a missing page and is not
retried; the chapter simply ends early for this pass.
"""

import asyncio
import time
from typing import List

import structlog

from src.models.config import OriginConfig, WarmupConfig
from src.models.warmup import BatchOutcome
from src.observability.metrics import (
    PAGES_WARMED,
    WARMUP_BATCH_DURATION,
)
from src.services.origin_client import OriginClient
from src.utils.exceptions import PageWarmFailure

logger = structlog.get_logger()


class WarmupService:
    """Warms pages at the origin edge in fixed-size concurrent batches"""

    def __init__(
        self,
        warmup_config: WarmupConfig,
        origin_config: OriginConfig,
        origin: OriginClient,
    ):
        """
        Args:
            warmup_config: Batch size and related settings
            origin_config: Origin user agent and URL conventions
            origin: Shared origin client
        """
        self.batch_size = warmup_config.batch_size
        self.user_agent = origin_config.warmup_user_agent
        self.origin = origin

    async def warm_page(self, manga: str, chapter: int, page: int) -> bool:
        """
        Warm one page, trying each URL variant in order.

        Returns:
            True if some variant answered 200 and was fully drained
        """
        try:
            await self._drain_first_variant(manga, chapter, page)
        except PageWarmFailure:
            PAGES_WARMED.labels(result="missing").inc()
            return False
        except Exception as e:
            logger.debug(
                "page_warm_error",
                manga=manga,
                chapter=chapter,
                page=page,
                error_type=type(e).__name__,
            )
            PAGES_WARMED.labels(result="error").inc()
            return False

        PAGES_WARMED.labels(result="warmed").inc()
        return True

    async def _drain_first_variant(self, manga: str, chapter: int, page: int) -> str:
        for url in self.origin.page_variants(manga, chapter, page):
            if await self.origin.drain(url, self.user_agent):
                return url
        raise PageWarmFailure(f"{manga}/{chapter}/{page}: no variant answered 200")

    async def warm_batch(self, manga: str, chapter: int, start: int) -> BatchOutcome:
        """
        Warm pages ``start .. start + batch_size - 1`` concurrently.

        All pages are joined before the decision is made, so a late success
        never changes which page is reported missing.

        Args:
            manga: Manga identifier as used in origin URLs
            chapter: 1-based chapter number
            start: First page offset of the batch

        Returns:
            BatchOutcome with ``first_missing`` set to the first failed
            offset, or None when the whole batch was warmed
        """
        begin = time.monotonic()
        pages = [start + offset for offset in range(self.batch_size)]

        results: List[bool] = await asyncio.gather(
            *(self.warm_page(manga, chapter, page) for page in pages)
        )

        first_missing = reduce_batch(start, results)
        outcome = BatchOutcome(
            start=start,
            size=self.batch_size,
            first_missing=first_missing,
            warmed=sum(1 for ok in results if ok),
        )

        WARMUP_BATCH_DURATION.observe(time.monotonic() - begin)
        logger.debug(
            "warmup_batch_completed",
            manga=manga,
            chapter=chapter,
            start=start,
            warmed=outcome.warmed,
            first_missing=first_missing,
        )
        return outcome


def reduce_batch(start: int, results: List[bool]) -> int | None:
    """Absolute offset of the first failed page, None if all succeeded"""
    for offset, ok in enumerate(results):
        if not ok:
            return start + offset
    return None
