"""Tests for the cache-fill proxy."""

import threading

import aiohttp
import pytest

from conftest import FakeSession, ORIGIN
from src.services.cache_service import EdgeCacheService, build_cache_key
from src.services.origin_client import OriginClient
from src.services.proxy_service import CacheFillProxy
from src.utils.background import PendingWrites

HD = f"{ORIGIN}/one-piece/12/HD/3.webp"
SD = f"{ORIGIN}/one-piece/12/3.webp"
IMAGE = (200, b"RIFF-page-3", {"Content-Type": "image/webp", "Content-Length": "11"})


@pytest.fixture
def cache(app_config):
    service = EdgeCacheService(app_config.cache)
    yield service
    service.close()


def _proxy(app_config, cache, routes):
    session = FakeSession(routes)
    origin = OriginClient(app_config.origin, session=session)
    return CacheFillProxy(app_config, cache, origin), session


class TestCacheFillProxy:
    @pytest.mark.asyncio
    async def test_miss_fetches_origin_and_sets_headers(self, app_config, cache):
        proxy, session = _proxy(app_config, cache, {HD: IMAGE})
        pending = PendingWrites()

        response = await proxy.serve("one-piece", "12", "3.webp", pending)
        await pending.wait()

        assert response.status == 200
        assert response.body == b"RIFF-page-3"
        assert response.headers["X-Proxy-Cache"] == "MISS"
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Cache-Control"] == "public, max-age=2592000, immutable"
        assert "Content-Length" not in response.headers
        assert session.calls[0][1]["Referer"] == app_config.origin.referer
        assert "Mozilla" in session.calls[0][1]["User-Agent"]

    @pytest.mark.asyncio
    async def test_second_request_is_hit_with_identical_bytes(self, app_config, cache):
        proxy, session = _proxy(app_config, cache, {HD: IMAGE})

        pending = PendingWrites()
        first = await proxy.serve("one-piece", "12", "3.webp", pending)
        await pending.wait()
        second = await proxy.serve("one-piece", "12", "3.webp", PendingWrites())

        assert second.headers["X-Proxy-Cache"] == "HIT"
        assert second.body == first.body
        assert second.headers["Cache-Control"] == first.headers["Cache-Control"]
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_cache_entry_keyed_by_variant_url(self, app_config, cache):
        proxy, _ = _proxy(app_config, cache, {HD: IMAGE})
        pending = PendingWrites()

        await proxy.serve("one-piece", "12", "3.webp", pending)
        await pending.wait()

        assert cache.match(build_cache_key(HD, app_config.origin.referer)) is not None
        assert cache.match(build_cache_key(SD, app_config.origin.referer)) is None

    @pytest.mark.asyncio
    async def test_falls_back_to_standard_variant(self, app_config, cache):
        proxy, session = _proxy(app_config, cache, {SD: IMAGE})
        pending = PendingWrites()

        response = await proxy.serve("one-piece", "12", "3.webp", pending)
        await pending.wait()

        assert response.body == b"RIFF-page-3"
        assert session.urls() == [HD, SD]

    @pytest.mark.asyncio
    async def test_transport_error_moves_to_next_variant(self, app_config, cache):
        proxy, _ = _proxy(
            app_config,
            cache,
            {HD: aiohttp.ClientConnectionError("reset"), SD: IMAGE},
        )

        response = await proxy.serve("one-piece", "12", "3.webp", PendingWrites())

        assert response is not None
        assert response.headers["X-Proxy-Cache"] == "MISS"

    @pytest.mark.asyncio
    async def test_all_variants_fail(self, app_config, cache):
        proxy, session = _proxy(app_config, cache, {HD: (500, b""), SD: (404, b"")})
        pending = PendingWrites()

        assert await proxy.serve("one-piece", "12", "3.webp", pending) is None
        assert len(pending) == 0
        assert session.urls() == [HD, SD]

    @pytest.mark.asyncio
    async def test_response_returned_before_write_completes(self, app_config, cache):
        proxy, _ = _proxy(app_config, cache, {HD: IMAGE})
        pending = PendingWrites()

        await proxy.serve("one-piece", "12", "3.webp", pending)

        assert len(pending) == 1
        await pending.wait()
        assert pending.completed == 1

    @pytest.mark.asyncio
    async def test_cache_lookup_runs_off_the_event_loop_thread(self, app_config, cache):
        proxy, _ = _proxy(app_config, cache, {HD: IMAGE})
        lookup_threads = []
        match = cache.match

        def recording_match(key):
            lookup_threads.append(threading.get_ident())
            return match(key)

        cache.match = recording_match

        await proxy.serve("one-piece", "12", "3.webp", PendingWrites())

        assert lookup_threads
        assert threading.get_ident() not in lookup_threads
