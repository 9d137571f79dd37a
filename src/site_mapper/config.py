"""
Configuration management for the site mapper service.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MapperSettings(BaseSettings):
    """Runtime settings for crawling and screenshotting."""

    # Storage
    screenshots_dir: str = "./screenshots"

    # Browser
    browser_headless: bool = True
    viewport_width: int = Field(default=1280, gt=0)
    viewport_height: int = Field(default=800, gt=0)
    navigation_timeout_ms: int = Field(default=15000, gt=0)

    # Crawl pacing (milliseconds)
    crawl_delay_ms: int = Field(default=300, ge=0)
    crawl_settle_ms: int = Field(default=500, ge=0)
    screenshot_settle_ms: int = Field(default=1000, ge=0)
    screenshot_batch_delay_ms: int = Field(default=500, ge=0)

    # Images
    thumbnail_width: int = Field(default=600, gt=0)
    thumbnail_height: int = Field(default=400, gt=0)
    full_page_quality: int = Field(default=85, ge=1, le=100)
    thumbnail_quality: int = Field(default=75, ge=1, le=100)

    # Rendered body text length above which a 4xx/5xx page still counts as a page
    spa_min_content_length: int = Field(default=100, ge=0)

    # Sessions
    session_ttl_seconds: int = Field(default=3600, gt=0)
    session_reaper_interval_seconds: int = Field(default=300, gt=0)

    # Persistence; the service runs without it when disabled or unreachable
    database_enabled: bool = True
    database_init_retries: int = Field(default=5, ge=1)
    database_retry_delay_seconds: float = Field(default=2.0, ge=0)

    # Server
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:4173"]
    )
    host: str = "0.0.0.0"
    port: int = 3002

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class DatabaseConfig(BaseModel):
    """Database configuration settings."""
    postgres_host: str = Field(
        default="localhost",
        description="PostgreSQL host"
    )
    postgres_port: int = Field(
        default=5432,
        description="PostgreSQL port"
    )
    postgres_db: str = Field(
        default="site_mapper",
        description="PostgreSQL database name"
    )
    postgres_user: str = Field(
        default="postgres",
        description="PostgreSQL user"
    )
    postgres_password: Optional[str] = Field(
        default=None,
        description="PostgreSQL password"
    )
    redis_host: str = Field(
        default="localhost",
        description="Redis host"
    )
    redis_port: int = Field(
        default=6379,
        description="Redis port"
    )
    redis_db: int = Field(
        default=0,
        description="Redis database number"
    )
    redis_password: Optional[str] = Field(
        default=None,
        description="Redis password"
    )
    echo_sql: bool = Field(
        default=False,
        description="Whether to echo SQL statements"
    )

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password or ''}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


def load_database_config() -> DatabaseConfig:
    """Load database configuration from environment variables."""
    return DatabaseConfig(
        postgres_host=os.getenv("POSTGRES_HOST", "localhost"),
        postgres_port=int(os.getenv("POSTGRES_PORT", "5432")),
        postgres_db=os.getenv("POSTGRES_DB", "site_mapper"),
        postgres_user=os.getenv("POSTGRES_USER", "postgres"),
        postgres_password=os.getenv("POSTGRES_PASSWORD"),
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=int(os.getenv("REDIS_PORT", "6379")),
        redis_db=int(os.getenv("REDIS_DB", "0")),
        redis_password=os.getenv("REDIS_PASSWORD"),
        echo_sql=os.getenv("DATABASE_ECHO_SQL", "false").lower() == "true",
    )
