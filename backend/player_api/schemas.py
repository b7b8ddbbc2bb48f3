"""Pydantic models exposed by the Player API."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from backend.subtitles.models import SubtitleTrack


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")
    tmdb_configured: bool = Field(
        default=False, description="Whether a TMDB credential is available for catalog calls."
    )


class ContentMetadataModel(BaseModel):
    """Echo of the content reference a response was produced for."""

    model_config = ConfigDict(populate_by_name=True)

    tmdb_id: str = Field(alias="tmdbId")
    type: Literal["movie", "tv"]
    season: str | None = None
    episode: str | None = None


class StreamResponse(BaseModel):
    """Resolved HLS manifest."""

    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    stream_url: str = Field(alias="streamUrl", description="HLS manifest URL; not stable across reloads.")
    server: str = Field(description="Server that produced the manifest after any fallback.")
    metadata: ContentMetadataModel


class SubtitleBlobResponse(BaseModel):
    """Raw subtitle text returned by the proxied provider."""

    success: Literal[True] = True
    subtitles: str
    metadata: ContentMetadataModel


class CatalogResponse(BaseModel):
    """TMDB record augmented with derived image URLs."""

    success: Literal[True] = True
    data: dict[str, Any]


class SubtitleListResponse(BaseModel):
    """Aggregated subtitle tracks, English tracks first."""

    success: Literal[True] = True
    subtitles: list[SubtitleTrack] = Field(default_factory=list)


class CueModel(BaseModel):
    """A caption interval in seconds."""

    start: float
    end: float
    lines: list[str] = Field(default_factory=list)


class CueRequest(BaseModel):
    """Payload used to convert a subtitle track into cues.

    Remote tracks are addressed by ``trackId`` plus the content reference they
    were listed for; ``url`` only accepts inline ``data:`` URLs.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str | None = Field(default=None, description="Inline data URL with the subtitle text.")
    track_id: str | None = Field(default=None, alias="trackId")
    content_id: str | None = Field(default=None, alias="contentId")
    type: str | None = None
    season: str | None = None
    episode: str | None = None
    format: str = Field(
        default="srt",
        description="Declared track format; informational only, SRT is detected from the text.",
    )
    offset: float = Field(default=0.0, description="Signed timing offset in seconds.")


class CueResponse(BaseModel):
    """Normalized WebVTT text together with its parsed cues."""

    success: Literal[True] = True
    cues: list[CueModel] = Field(default_factory=list)
    vtt: str


class ErrorResponse(BaseModel):
    """Error payload shared by every API endpoint."""

    success: Literal[False] = False
    error: str
    server: str | None = None
