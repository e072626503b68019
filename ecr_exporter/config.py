"""Application configuration helpers."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field, PositiveInt


class RegistrySettings(BaseModel):
    """Configuration options for the ECR management API client."""

    region: str | None = Field(default=None, description="AWS region; falls back to the boto3 credential chain.")
    endpoint_url: str | None = Field(default=None, description="Override for the ECR API endpoint.")
    max_attempts: PositiveInt = Field(default=3, description="Total attempts per API call, retries included.")
    connect_timeout: float = Field(default=10.0, ge=0.1, description="Connection timeout in seconds.")
    read_timeout: float = Field(default=60.0, ge=0.1, description="Read timeout for a single API call in seconds.")
    page_size: PositiveInt | None = Field(
        default=None, le=1000, description="maxResults sent with each paginated call; API default when unset."
    )


class ScrapeSettings(BaseModel):
    """Tunable parameters for a scrape cycle."""

    namespace: str = Field(default="ecr", min_length=1, description="Prefix of every exported metric name.")
    timeout: float = Field(default=300.0, gt=0, description="Deadline for one whole scrape cycle in seconds.")


class ServerSettings(BaseModel):
    """Where the metrics HTTP server listens."""

    host: str = Field(default="0.0.0.0")
    port: PositiveInt = Field(default=8080, le=65535)


class AppConfig(BaseModel):
    """Root configuration container."""

    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    scrape: ScrapeSettings = Field(default_factory=ScrapeSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    log_level: str = Field(default="info")

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None, overrides: dict[str, Any] | None = None) -> "AppConfig":
        """Construct a configuration object from environment variables."""

        env = env if env is not None else os.environ
        overrides = overrides or {}

        page_size = overrides.get("page_size") or env.get("ECR_PAGE_SIZE")
        registry = RegistrySettings(
            region=overrides.get("region") or env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION"),
            endpoint_url=overrides.get("endpoint_url") or env.get("ECR_ENDPOINT_URL"),
            max_attempts=int(overrides.get("max_attempts") or env.get("ECR_MAX_ATTEMPTS", 3)),
            connect_timeout=float(overrides.get("connect_timeout") or env.get("ECR_CONNECT_TIMEOUT", 10.0)),
            read_timeout=float(overrides.get("read_timeout") or env.get("ECR_READ_TIMEOUT", 60.0)),
            page_size=int(page_size) if page_size else None,
        )

        scrape = ScrapeSettings(
            namespace=overrides.get("namespace") or env.get("METRICS_NAMESPACE") or "ecr",
            timeout=float(overrides.get("scrape_timeout") or env.get("SCRAPE_TIMEOUT") or 300.0),
        )

        server = ServerSettings(
            host=overrides.get("host") or env.get("LISTEN_HOST") or "0.0.0.0",
            port=int(overrides.get("port") or env.get("PORT") or 8080),
        )

        log_level = overrides.get("log_level") or env.get("LOG_LEVEL") or "info"

        return cls(registry=registry, scrape=scrape, server=server, log_level=log_level.strip().lower())


__all__ = [
    "AppConfig",
    "RegistrySettings",
    "ScrapeSettings",
    "ServerSettings",
]
