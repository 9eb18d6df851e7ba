"""
Data models for the edge cache.

Defines cache configuration, the stored response shape and statistics.
"""

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field, ConfigDict


class CacheConfig(BaseModel):
    """Edge cache configuration"""

    model_config = ConfigDict(protected_namespaces=())

    enabled: bool = True
    cache_dir: str = "./cache"

    # 30 days
    ttl_seconds: int = Field(2592000, ge=1)

    # Size limit enforced by diskcache eviction
    max_cache_size_mb: int = Field(10000, ge=1)

    @property
    def size_limit_bytes(self) -> int:
        return self.max_cache_size_mb * 1024 * 1024


class CachedResponse(BaseModel):
    """A fully buffered HTTP response as stored in the edge cache"""

    model_config = ConfigDict(protected_namespaces=())

    status: int = 200
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    def with_header(self, name: str, value: str) -> "CachedResponse":
        """Return a copy with one header set (case-insensitive replace)"""
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return self.model_copy(update={"headers": headers})

    @property
    def media_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return "application/octet-stream"


class CacheStats(BaseModel):
    """Edge cache statistics"""

    model_config = ConfigDict(protected_namespaces=())

    entries: int = 0
    hits: int = 0
    misses: int = 0
    disk_mb: float = 0.0

    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate"""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total
