"""Shared fixtures: an in-memory stand-in for aiohttp sessions and a config."""

from typing import Dict, List, Tuple, Union

import pytest

from src.models.cache import CacheConfig
from src.models.checkpoint import CheckpointConfig
from src.models.config import AppConfig, OriginConfig, SigningConfig, WarmupConfig

ORIGIN = "https://cdn.test/564"
REFERER = "https://reader.test/"
SECRET = "unit-test-secret"

Route = Union[Tuple[int, bytes], Tuple[int, bytes, Dict[str, str]], BaseException]


class FakeResponse:
    def __init__(self, status: int, body: bytes, headers: Dict[str, str]):
        self.status = status
        self.headers = headers
        self._body = body
        self.read_calls = 0

    async def read(self) -> bytes:
        self.read_calls += 1
        return self._body


class _RequestContext:
    def __init__(self, route: Route):
        self._route = route

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._route, BaseException):
            raise self._route
        status, body, *rest = self._route
        return FakeResponse(status, body, dict(rest[0]) if rest else {})

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None


class FakeSession:
    """Answers ``get`` from a url -> route table; unknown urls return 404."""

    def __init__(self, routes: Dict[str, Route] | None = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[Tuple[str, Dict[str, str]]] = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, dict(headers or {})))
        return _RequestContext(self.routes.get(url, (404, b"")))

    def urls(self) -> List[str]:
        return [url for url, _ in self.calls]

    async def close(self) -> None:
        self.closed = True


def page_url(manga: str, chapter: int, page: int, hd: bool = True) -> str:
    segment = "/HD" if hd else ""
    return f"{ORIGIN}/{manga}/{chapter}{segment}/{page}.webp"


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        signing=SigningConfig(secret_key=SECRET),
        origin=OriginConfig(base_url=ORIGIN, referer=REFERER),
        warmup=WarmupConfig(catalog_url="https://catalog.test/list.json"),
        cache=CacheConfig(cache_dir=str(tmp_path / "cache")),
        checkpoint=CheckpointConfig(state_dir=str(tmp_path / "state")),
    )

