"""
Content and stream descriptors shared by the resolver helpers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

CONTENT_TYPES = ("movie", "tv")


@dataclass(frozen=True, slots=True)
class ContentReference:
    """Identifies a movie or a single TV episode in the TMDB catalog."""

    content_type: str
    catalog_id: str
    season: Optional[str] = None
    episode: Optional[str] = None

    def __post_init__(self) -> None:
        if self.content_type not in CONTENT_TYPES:
            raise ValueError(f"Unsupported content type: {self.content_type}")
        if not self.catalog_id:
            raise ValueError("Catalog id is required")

    @classmethod
    def from_query(
        cls,
        catalog_id: str,
        season: Optional[str] = None,
        episode: Optional[str] = None,
    ) -> "ContentReference":
        """Build a reference from loose query parameters.

        The reference is a TV episode only when both season and episode are given.
        """
        if season and episode:
            return cls("tv", catalog_id, season, episode)
        return cls("movie", catalog_id)

    @property
    def is_tv(self) -> bool:
        return self.content_type == "tv"

    @property
    def season_or_default(self) -> str:
        return self.season or "1"

    @property
    def episode_or_default(self) -> str:
        return self.episode or "1"

    def target_path(self) -> str:
        if not self.is_tv:
            return f"movie/{self.catalog_id}"
        return f"tv/{self.catalog_id}/{self.season_or_default}/{self.episode_or_default}"

    def metadata(self) -> Dict[str, Optional[str]]:
        return {
            "tmdbId": self.catalog_id,
            "type": self.content_type,
            "season": self.season or None,
            "episode": self.episode or None,
        }


@dataclass(frozen=True, slots=True)
class StreamDescriptor:
    """A resolved HLS manifest and the server that produced it."""

    url: str
    server: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "server": self.server}
