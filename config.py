"""
Worker configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The settings object is built once at startup and handed to every component
that needs it. Every model is frozen, so nothing downstream can mutate the
configuration after it has been validated.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PVLINK_DB_", env_file=".env", extra="ignore", frozen=True
    )

    fqdn: str
    user: str
    password: str
    name: str
    max_conns: int = 5

    # Full SQLAlchemy URL; wins over the individual parts when set
    url: Optional[str] = None

    @property
    def sqlalchemy_url(self) -> str | URL:
        if self.url:
            return self.url
        host, _, port = self.fqdn.partition(":")
        return URL.create(
            "postgresql+asyncpg",
            username=self.user,
            password=self.password,
            host=host,
            port=int(port) if port else None,
            database=self.name,
        )


class CacheSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PVLINK_CACHE_", env_file=".env", extra="ignore", frozen=True
    )

    fqdn: str
    # None keeps geo entries until the cache's own eviction policy drops them
    ttl_seconds: Optional[int] = None

    @property
    def redis_uri(self) -> str:
        return f"redis://{self.fqdn}"


class QueueSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PVLINK_ANALYTIC_QUEUE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    fqdn: str
    # Also the consumer group: every instance consumes from this one queue
    name: str = "analytic"

    @property
    def amqp_url(self) -> str:
        return f"amqp://{self.fqdn}/"


class GeoSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ANALYTIC_IPINFO_", env_file=".env", extra="ignore", frozen=True
    )

    token: str
    host: str = "api.ipinfo.io"
    timeout_seconds: float = 5.0
    max_attempts: int = Field(default=3, ge=1)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.0


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    env: str = "development"
    app_name: str = "pvlink-analytic"

    # Sub-configs read from the same env/dotenv source
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    geo: GeoSettings = Field(default_factory=GeoSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    @property
    def is_production(self) -> bool:
        return self.env == "production"
