"""Runtime configuration for the Player API."""
from __future__ import annotations

import os

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.resolver.metadata_fetcher import MetadataFetcher
from backend.resolver.stream_resolver import (
    DEFAULT_SCRAPE_BASE_URL,
    DEFAULT_USER_AGENT,
    PRIMARY_SERVER,
)


class PlayerSettings(BaseSettings):
    """Environment-aware settings for the Player API service."""

    scrape_base_url: str = Field(
        DEFAULT_SCRAPE_BASE_URL, description="Base URL of the scraping proxy used for stream lookup."
    )
    wyzie_base_url: str = Field(
        "https://sub.wyzie.ru", description="Base URL of the direct subtitle search provider."
    )
    rainsubs_base_url: str = Field(
        "https://rainsubs.com", description="Base URL of the proxied subtitle blob provider."
    )
    tmdb_base_url: str = Field(MetadataFetcher.TMDB_ENDPOINT, description="TMDB API root.")
    tmdb_image_base_url: str = Field(
        MetadataFetcher.IMAGE_ENDPOINT, description="Root for derived poster/backdrop URLs."
    )
    tmdb_api_key: str | None = Field(
        default=None,
        description="TMDB API key; falls back to the plain TMDB_API_KEY environment variable.",
    )
    tmdb_language: str = Field(default="en-US")
    user_agent: str = Field(DEFAULT_USER_AGENT, description="User-Agent sent to upstream services.")
    http_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds.")
    default_accent_color: str = Field(default="ef4444", description="Accent colour without '#'.")
    default_server: str = Field(default=PRIMARY_SERVER)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="VIDLUNA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _fallback_tmdb_key(self) -> "PlayerSettings":
        if not self.tmdb_api_key:
            self.tmdb_api_key = os.environ.get("TMDB_API_KEY") or None
        return self
