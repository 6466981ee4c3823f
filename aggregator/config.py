"""Configuration settings for the Financial Aggregator API."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identification
    service_name: str = "financial-aggregator-api"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080
    cors_allow_origins: list[str] = ["*"]

    # Overall deadline for a single request, enforced by middleware
    request_timeout_seconds: float = 60.0

    log_level: str = "INFO"

    # Page size used when a query omits limit or passes an unusable one
    default_page_limit: int = 50

    # Stand-in for the latency of a real upstream bank call
    refresh_delay_seconds: float = 0.1

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
