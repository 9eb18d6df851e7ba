"""Tests for batch page warm-up."""

import asyncio

import aiohttp
import pytest

from conftest import ORIGIN, FakeSession, page_url
from src.models.config import OriginConfig, WarmupConfig
from src.services.origin_client import OriginClient
from src.services.warmup_service import WarmupService, reduce_batch

PAGE = (200, b"webp")


def _service(routes, batch_size=5):
    session = FakeSession(routes)
    origin_config = OriginConfig(base_url=ORIGIN)
    origin = OriginClient(origin_config, session=session)
    service = WarmupService(WarmupConfig(batch_size=batch_size), origin_config, origin)
    return service, session


class TestReduceBatch:
    def test_all_succeeded(self):
        assert reduce_batch(10, [True] * 5) is None

    def test_first_failure_in_offset_order(self):
        assert reduce_batch(10, [True, True, False, True, False]) == 12

    def test_failure_at_start(self):
        assert reduce_batch(0, [False, True]) == 0


class TestWarmPage:
    @pytest.mark.asyncio
    async def test_hd_variant_hit_stops(self):
        service, session = _service({page_url("a", 1, 0): PAGE})

        assert await service.warm_page("a", 1, 0) is True
        assert session.urls() == [page_url("a", 1, 0)]

    @pytest.mark.asyncio
    async def test_falls_back_to_standard_variant(self):
        service, session = _service({page_url("a", 1, 0, hd=False): PAGE})

        assert await service.warm_page("a", 1, 0) is True
        assert session.urls() == [page_url("a", 1, 0), page_url("a", 1, 0, hd=False)]

    @pytest.mark.asyncio
    async def test_missing_everywhere(self):
        service, _ = _service({})

        assert await service.warm_page("a", 1, 0) is False

    @pytest.mark.asyncio
    async def test_transport_error_counts_as_missing(self):
        service, _ = _service(
            {page_url("a", 1, 0): aiohttp.ClientConnectionError("reset")}
        )

        assert await service.warm_page("a", 1, 0) is False

    @pytest.mark.asyncio
    async def test_timeout_counts_as_missing(self):
        service, _ = _service({page_url("a", 1, 0): asyncio.TimeoutError()})

        assert await service.warm_page("a", 1, 0) is False

    @pytest.mark.asyncio
    async def test_sends_warmup_user_agent(self):
        service, session = _service({page_url("a", 1, 0): PAGE})

        await service.warm_page("a", 1, 0)

        assert session.calls[0][1]["User-Agent"].startswith("Cloudflare-Cacher/")


class TestWarmBatch:
    @pytest.mark.asyncio
    async def test_whole_batch_warmed(self):
        service, _ = _service({page_url("a", 1, p): PAGE for p in range(10, 15)})

        outcome = await service.warm_batch("a", 1, 10)

        assert outcome.first_missing is None
        assert outcome.warmed == 5
        assert outcome.next_offset() == 15
        assert not outcome.chapter_exhausted

    @pytest.mark.asyncio
    async def test_missing_page_two_of_batch(self):
        """Pages 0,1,3,4 exist, page 2 does not: first missing is offset 2."""
        routes = {page_url("a", 1, p): PAGE for p in (0, 1, 3, 4)}
        service, _ = _service(routes)

        outcome = await service.warm_batch("a", 1, 0)

        assert outcome.first_missing == 2
        assert outcome.chapter_exhausted
        assert outcome.next_offset() == 2
        assert outcome.warmed == 4

    @pytest.mark.asyncio
    async def test_every_page_in_batch_is_requested(self):
        service, session = _service({})

        await service.warm_batch("a", 1, 0)

        requested = {u for u in session.urls() if "/HD/" in u}
        assert requested == {page_url("a", 1, p) for p in range(5)}

    @pytest.mark.asyncio
    async def test_respects_batch_size(self):
        service, _ = _service({page_url("a", 3, p): PAGE for p in range(3)}, batch_size=3)

        outcome = await service.warm_batch("a", 3, 0)

        assert outcome.size == 3
        assert outcome.next_offset() == 3
