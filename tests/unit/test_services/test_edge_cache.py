"""Unit tests for the edge cache service"""

import pytest

from src.models.cache import CacheConfig, CachedResponse
from src.services.cache_service import EdgeCacheService, build_cache_key


@pytest.fixture
def cache_service(tmp_path):
    service = EdgeCacheService(CacheConfig(cache_dir=str(tmp_path / "cache")))
    yield service
    service.close()


@pytest.fixture
def response():
    return CachedResponse(
        status=200,
        headers={"Content-Type": "image/webp", "X-Proxy-Cache": "MISS"},
        body=b"\x52\x49\x46\x46page",
    )


class TestBuildCacheKey:
    def test_deterministic(self):
        assert build_cache_key("https://a/1.webp", "https://r/") == build_cache_key(
            "https://a/1.webp", "https://r/"
        )

    def test_differs_per_url(self):
        assert build_cache_key("https://a/1.webp", "r") != build_cache_key(
            "https://a/2.webp", "r"
        )

    def test_differs_per_referer(self):
        assert build_cache_key("https://a/1.webp", "r1") != build_cache_key(
            "https://a/1.webp", "r2"
        )

    def test_is_sha256_hex(self):
        key = build_cache_key("https://a/1.webp", "r")

        assert len(key) == 64
        int(key, 16)


class TestEdgeCacheService:
    def test_miss_returns_none(self, cache_service):
        assert cache_service.match("absent") is None

    def test_put_then_match(self, cache_service, response):
        assert cache_service.put("k", response) is True

        cached = cache_service.match("k")

        assert cached == response
        assert cached.body == response.body

    def test_put_overwrites(self, cache_service, response):
        cache_service.put("k", response)
        cache_service.put("k", response.model_copy(update={"body": b"new"}))

        assert cache_service.match("k").body == b"new"

    @pytest.mark.asyncio
    async def test_put_async(self, cache_service, response):
        assert await cache_service.put_async("k", response) is True
        assert cache_service.match("k") == response

    @pytest.mark.asyncio
    async def test_match_async(self, cache_service, response):
        cache_service.put("k", response)

        assert await cache_service.match_async("k") == response
        assert await cache_service.match_async("missing") is None

    def test_stats(self, cache_service, response):
        cache_service.put("k", response)
        cache_service.match("k")
        cache_service.match("missing")

        stats = cache_service.get_stats()

        assert stats.entries == 1
        assert stats.hits == 1
        assert stats.misses == 1

    def test_clear(self, cache_service, response):
        cache_service.put("a", response)
        cache_service.put("b", response)

        assert cache_service.clear() == 2
        assert cache_service.match("a") is None

    def test_expire_keeps_live_entries(self, cache_service, response):
        cache_service.put("k", response)

        assert cache_service.expire() == 0
        assert cache_service.match("k") is not None

    def test_expired_entries_are_dropped(self, tmp_path, response):
        service = EdgeCacheService(
            CacheConfig(cache_dir=str(tmp_path / "c"), ttl_seconds=1)
        )
        try:
            service.put("k", response)
            # Force expiry without sleeping
            service.cache.touch("k", expire=-1)

            assert service.match("k") is None
        finally:
            service.close()

    def test_disabled_cache(self, tmp_path, response):
        service = EdgeCacheService(
            CacheConfig(enabled=False, cache_dir=str(tmp_path / "off"))
        )

        assert service.put("k", response) is False
        assert service.match("k") is None
        assert service.get_stats().entries == 0
        assert not (tmp_path / "off").exists()
