"""Subtitle track and cue models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _BaseTrack(BaseModel):
    """Fields shared by every provider's subtitle track."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(description="Stable identifier used when selecting the track.")
    url: str = Field(description="Remote URL or inline data URL with the subtitle text.")
    language: str = Field(default="und", description="ISO 639-1 code, or a provider label.")
    display: str = Field(default="Unknown", description="Human-readable label for menus.")
    format: str = Field(default="srt")


class WyzieTrack(_BaseTrack):
    """Track returned by the direct-search provider."""

    source: Literal["wyzie"] = "wyzie"
    flag_url: str = Field(default="", alias="flagUrl")
    is_hearing_impaired: bool = Field(default=False, alias="isHearingImpaired")


class RainsubsTrack(_BaseTrack):
    """Single inline track produced from the proxied blob provider."""

    source: Literal["rainsubs"] = "rainsubs"


SubtitleTrack = Annotated[Union[WyzieTrack, RainsubsTrack], Field(discriminator="source")]


@dataclass(slots=True)
class TimedCue:
    """Represents a caption interval in seconds with its text lines."""

    start: float
    end: float
    lines: list[str] = field(default_factory=list)

    def contains(self, position: float) -> bool:
        return self.start <= position <= self.end

    def to_dict(self) -> dict[str, object]:
        return {"start": self.start, "end": self.end, "lines": list(self.lines)}
