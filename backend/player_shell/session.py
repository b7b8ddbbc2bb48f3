"""
Player session: the initial state of one embed page.

A session is created per page load for one content reference. ``prepare``
resolves the stream (with the single server fallback), gathers the subtitle
tracks and, when a catalog is configured, the title metadata. The result is
rendered into the page, whose script takes over from there. Nothing here is
shared between sessions.
"""
from __future__ import annotations

import asyncio
from dataclasses import asdict
import logging
from typing import Any, Optional

from backend.resolver.metadata_fetcher import CatalogError, MetadataFetcher
from backend.resolver.models import ContentReference
from backend.resolver.stream_resolver import (
    PRIMARY_SERVER,
    SERVERS,
    StreamResolutionError,
    StreamResolver,
)
from backend.subtitles.models import SubtitleTrack
from backend.subtitles.providers import SubtitleAggregator

from .controls import PlayerState, controls_config, format_time
from .settings import (
    BACKGROUND_COLORS,
    FONT_FAMILIES,
    FONT_SIZE_RANGE,
    PLAYBACK_SPEEDS,
    TEXT_COLORS,
    TIMING_STEP,
    SubtitleDisplaySettings,
    normalize_hex_color,
)

logger = logging.getLogger(__name__)

DEFAULT_ACCENT_COLOR = "#ef4444"


class PlayerSession:
    """Explicit state container for one embedded player."""

    def __init__(
        self,
        reference: ContentReference,
        *,
        resolver: StreamResolver,
        aggregator: SubtitleAggregator,
        accent_color: str = DEFAULT_ACCENT_COLOR,
        autoplay: bool = False,
        server: str = PRIMARY_SERVER,
    ) -> None:
        self.reference = reference
        self.resolver = resolver
        self.aggregator = aggregator
        self.accent_color = normalize_hex_color(accent_color, DEFAULT_ACCENT_COLOR)
        self.autoplay = autoplay

        self.state = PlayerState()
        self.subtitle_settings = SubtitleDisplaySettings()

        self.current_server = server if server in SERVERS else PRIMARY_SERVER
        self.stream_url: Optional[str] = None
        self.error: Optional[str] = None

        self.metadata: Optional[dict[str, Any]] = None
        self.tracks: list[SubtitleTrack] = []

    async def prepare(self, fetcher: Optional[MetadataFetcher] = None) -> None:
        """Load stream, subtitles and (optionally) metadata concurrently."""

        jobs = [self.load_stream(), self.load_subtitles()]
        if fetcher is not None and fetcher.enabled:
            jobs.append(self.load_metadata(fetcher))
        await asyncio.gather(*jobs)

    # ------------------------------------------------------------------
    # Stream

    async def load_stream(self) -> bool:
        """Resolve the stream, falling back to the secondary server once."""

        self.error = None
        try:
            descriptor = await self.resolver.resolve(self.reference, self.current_server)
        except StreamResolutionError as exc:
            logger.error("Stream resolution failed: %s", exc)
            self.error = str(exc)
            return False

        self.stream_url = descriptor.url
        self.current_server = descriptor.server
        return True

    # ------------------------------------------------------------------
    # Metadata

    async def load_metadata(self, fetcher: MetadataFetcher) -> None:
        ref = self.reference
        try:
            self.metadata = await fetcher.fetch(
                ref.content_type, ref.catalog_id, ref.season, ref.episode
            )
        except CatalogError as exc:
            logger.error("Failed to fetch TMDB data: %s", exc)
            if not ref.is_tv:
                self.metadata = {"id": ref.catalog_id, "title": "Movie", "backdrop_url": None}

    @property
    def backdrop_url(self) -> Optional[str]:
        if not self.metadata:
            return None
        if self.reference.is_tv:
            return (self.metadata.get("show") or {}).get("backdrop_url")
        return self.metadata.get("backdrop_url")

    def _show_name(self) -> str:
        if self.reference.is_tv:
            show = (self.metadata or {}).get("show") or {}
            return show.get("name") or "TV Show"
        return (self.metadata or {}).get("title") or "Movie"

    def title(self) -> str:
        if self.reference.is_tv:
            ref = self.reference
            return f"{self._show_name()} - S{ref.season_or_default}E{ref.episode_or_default}"
        return self._show_name()

    def play_button_label(self) -> str:
        if self.reference.is_tv:
            ref = self.reference
            return f"{self._show_name()} S{ref.season_or_default} E{ref.episode_or_default}"
        return self._show_name()

    # ------------------------------------------------------------------
    # Subtitles

    async def load_subtitles(self) -> list[SubtitleTrack]:
        self.tracks = await self.aggregator.aggregate(self.reference)
        return self.tracks

    # ------------------------------------------------------------------
    # Rendering

    def server_options(self) -> list[dict[str, str]]:
        return [{"id": server.name, "name": server.label} for server in SERVERS.values()]

    def subtitle_options(self) -> list[dict[str, Any]]:
        # Remote URLs stay server-side; the page asks for cues by track id
        return [
            {
                "id": track.id,
                "language": track.language,
                "label": track.display,
                "flagUrl": getattr(track, "flag_url", ""),
                "source": track.source,
            }
            for track in self.tracks
        ]

    def to_template_context(self) -> dict[str, Any]:
        """Initial state handed to the embed page."""

        state = self.state
        return {
            "reference": self.reference.metadata(),
            "title": self.title(),
            "play_label": self.play_button_label(),
            "accent_color": self.accent_color,
            "autoplay": self.autoplay,
            "current_server": self.current_server,
            "servers": self.server_options(),
            "stream_url": self.stream_url,
            "error": self.error,
            "backdrop_url": self.backdrop_url,
            "subtitles": self.subtitle_options(),
            "subtitle_settings": self.subtitle_settings.to_dict(),
            "player": {
                "volume": state.volume,
                "muted": state.muted,
                "playback_rate": state.playback_rate,
                "settings_tab": state.settings_tab,
                "current_time": format_time(state.current_time),
                "display": asdict(state.display),
            },
            "options": {
                "playback_speeds": list(PLAYBACK_SPEEDS),
                "font_families": list(FONT_FAMILIES),
                "font_size_range": list(FONT_SIZE_RANGE),
                "text_colors": list(TEXT_COLORS),
                "background_colors": list(BACKGROUND_COLORS),
                "timing_step": TIMING_STEP,
            },
            "controls": controls_config(),
        }
