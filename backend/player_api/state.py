"""Shared state container for the Player API."""
from __future__ import annotations

from dataclasses import dataclass

import httpx

from backend.resolver.metadata_fetcher import MetadataFetcher
from backend.resolver.stream_resolver import StreamResolver
from backend.subtitles.loader import SubtitleLoader
from backend.subtitles.providers import RainsubsProvider, SubtitleAggregator, WyzieProvider

from .settings import PlayerSettings


@dataclass(slots=True)
class AppState:
    """Encapsulates the upstream clients shared across routers."""

    settings: PlayerSettings
    stream_resolver: StreamResolver
    metadata_fetcher: MetadataFetcher
    rainsubs: RainsubsProvider
    subtitle_aggregator: SubtitleAggregator
    subtitle_loader: SubtitleLoader

    def __init__(
        self,
        settings: PlayerSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        common = {"timeout": settings.http_timeout, "transport": transport}
        self.stream_resolver = StreamResolver(
            scrape_base_url=settings.scrape_base_url,
            user_agent=settings.user_agent,
            **common,
        )
        self.metadata_fetcher = MetadataFetcher(
            settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            image_base_url=settings.tmdb_image_base_url,
            language=settings.tmdb_language,
            **common,
        )
        wyzie = WyzieProvider(settings.wyzie_base_url, user_agent=settings.user_agent, **common)
        self.rainsubs = RainsubsProvider(
            settings.rainsubs_base_url, user_agent=settings.user_agent, **common
        )
        self.subtitle_aggregator = SubtitleAggregator(wyzie, self.rainsubs)
        self.subtitle_loader = SubtitleLoader(user_agent=settings.user_agent, **common)
