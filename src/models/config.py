from typing import Literal

from pydantic import BaseModel, Field, field_validator, ConfigDict

from src.models.cache import CacheConfig
from src.models.checkpoint import CheckpointConfig

APP_VERSION = "3.1.0"

DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0"
)


class SigningConfig(BaseModel):
    """Shared-secret URL signing"""

    secret_key: str = Field(..., min_length=8)
    max_age_seconds: int = Field(3600, ge=1, le=86400)

    @field_validator("secret_key")
    @classmethod
    def validate_secret_substituted(cls, v: str) -> str:
        # safe_substitute leaves unknown ${VAR} placeholders in place
        if v.startswith("${"):
            raise ValueError("secret_key references an unset environment variable")
        return v


class OriginConfig(BaseModel):
    """Where page assets are fetched from and how we present ourselves"""

    base_url: str = Field("https://cdne.megaman-server.ir/564")
    referer: str = "https://megaman-server.ir/"
    proxy_user_agent: str = DEFAULT_BROWSER_USER_AGENT
    warmup_user_agent: str = f"Cloudflare-Cacher/{APP_VERSION}"
    hd_segment: str = Field("HD", min_length=1)
    page_extension: str = Field("webp", min_length=1)
    request_timeout_seconds: float = Field(30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")


class WarmupConfig(BaseModel):
    """Smart cacher traversal settings"""

    catalog_url: str = "https://yoursite.com/manga_list.json"
    catalog_timeout_seconds: float = Field(10.0, gt=0, le=60)
    catalog_user_agent: str = f"Manga-Cacher-Bot/{APP_VERSION}"
    batch_size: int = Field(5, ge=1, le=50)
    time_budget_seconds: float = Field(24.0, gt=0)


class ScheduleConfig(BaseModel):
    """Recurring warm-up trigger"""

    interval_minutes: int = Field(10, ge=1, le=1440)
    timezone: str = "UTC"
    misfire_grace_seconds: int = Field(60, ge=1)
    cleanup_interval_hours: int = Field(24, ge=1)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8787, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True


class AppConfig(BaseModel):
    """Complete service configuration, injected into every component"""

    model_config = ConfigDict(protected_namespaces=())

    signing: SigningConfig
    origin: OriginConfig = Field(default_factory=OriginConfig)
    warmup: WarmupConfig = Field(default_factory=WarmupConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def cache_control(self) -> str:
        """Cache-Control stamped on freshly filled responses"""
        return f"public, max-age={self.cache.ttl_seconds}, immutable"
