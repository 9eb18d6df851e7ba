"""Tests for the catalog feed client."""

import asyncio
import json

import aiohttp
import pytest

from conftest import FakeSession
from src.models.catalog import CatalogEntry
from src.models.config import WarmupConfig
from src.services.catalog_service import CatalogService
from src.utils.exceptions import CatalogUnavailable

CATALOG_URL = "https://catalog.test/list.json"


def _service(route):
    session = FakeSession({CATALOG_URL: route})
    return CatalogService(WarmupConfig(catalog_url=CATALOG_URL), session=session), session


class TestCatalogService:
    @pytest.mark.asyncio
    async def test_fetch_valid_catalog(self):
        body = json.dumps([{"name": "one-piece", "chapters": 2}]).encode()
        service, session = _service((200, body))

        entries = await service.fetch()

        assert entries == [CatalogEntry(name="one-piece", chapters=2)]
        assert session.calls[0][1]["User-Agent"].startswith("Manga-Cacher-Bot/")

    @pytest.mark.asyncio
    async def test_empty_catalog_is_valid(self):
        service, _ = _service((200, b"[]"))

        assert await service.fetch() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "route",
        [
            (500, b"[]"),
            (404, b""),
            (200, b"<html>"),
            (200, b'{"name": "a", "chapters": 1}'),
            (200, b'[{"name": "a"}]'),
            asyncio.TimeoutError(),
            aiohttp.ClientConnectionError("refused"),
        ],
    )
    async def test_failures_raise_catalog_unavailable(self, route):
        service, _ = _service(route)

        with pytest.raises(CatalogUnavailable):
            await service.fetch()

    @pytest.mark.asyncio
    async def test_try_fetch_returns_none_on_failure(self):
        service, _ = _service((503, b""))

        assert await service.try_fetch() is None

    @pytest.mark.asyncio
    async def test_try_fetch_returns_entries(self):
        service, _ = _service((200, b'[{"name": "a", "chapters": 0}]'))

        assert await service.try_fetch() == [CatalogEntry(name="a", chapters=0)]
