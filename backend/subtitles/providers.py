"""
Subtitle providers and the aggregator that merges their results.

Two services are queried for every title:

- wyzie: direct search by TMDB id, returning a JSON list of tracks.
- rainsubs: proxied search returning one plain subtitle blob, exposed as a
  single inline track.

The aggregator runs both searches concurrently. A provider failure only
removes that provider's tracks from the result; it is logged and never
surfaced to the viewer.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

import httpx

from backend.resolver.models import ContentReference

from .converter import SubtitleError, encode_data_url
from .models import RainsubsTrack, SubtitleTrack, WyzieTrack

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
PREFERRED_LANGUAGE = "en"


class SubtitleFetchError(SubtitleError):
    """Raised when a subtitle provider cannot be reached or returns garbage."""


class _HTTPProvider:
    name = "provider"

    def __init__(
        self,
        base_url: str,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self._timeout = timeout
        self._transport = transport

    async def _get(self, path: str, params: dict[str, str]) -> httpx.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(
                    url, params=params, headers={"User-Agent": self.user_agent}
                )
        except httpx.HTTPError as exc:
            raise SubtitleFetchError(f"{self.name} request failed: {exc}") from exc

        if response.status_code != 200:
            raise SubtitleFetchError(f"{self.name} API failed: {response.status_code}")
        return response


def _query_params(reference: ContentReference, id_param: str) -> dict[str, str]:
    params = {id_param: reference.catalog_id}
    if reference.is_tv:
        params["season"] = reference.season_or_default
        params["episode"] = reference.episode_or_default
    return params


class WyzieProvider(_HTTPProvider):
    """Direct subtitle search by TMDB id, season and episode."""

    name = "wyzie"

    async def search(self, reference: ContentReference) -> list[WyzieTrack]:
        response = await self._get("search", _query_params(reference, "id"))
        try:
            payload = response.json()
        except ValueError as exc:
            raise SubtitleFetchError("wyzie returned invalid JSON") from exc

        if not isinstance(payload, list):
            raise SubtitleFetchError("wyzie response must be a list")
        return [self.normalize(item) for item in payload if isinstance(item, dict)]

    @staticmethod
    def normalize(item: dict[str, Any]) -> WyzieTrack:
        language = str(item.get("language") or "und")
        url = str(item.get("url"))
        raw_id = item.get("id")
        return WyzieTrack(
            id=str(raw_id) if raw_id is not None else f"{item.get('language')}-{url}",
            url=url,
            flag_url=str(item.get("flagUrl") or ""),
            language=language,
            display=str(item.get("display") or item.get("language") or "Unknown"),
            format=str(item.get("format") or "srt"),
            is_hearing_impaired=bool(item.get("isHearingImpaired")),
        )


class RainsubsProvider(_HTTPProvider):
    """Proxied provider that answers with a single plain subtitle blob."""

    name = "rainsubs"
    TRACK_ID = "rainsubs"

    async def fetch_blob(self, reference: ContentReference) -> str:
        response = await self._get("api/subtitles", _query_params(reference, "tmdbId"))
        text = response.text
        logger.debug("rainsubs response length: %d", len(text))
        return text

    async def search(self, reference: ContentReference) -> list[RainsubsTrack]:
        blob = await self.fetch_blob(reference)
        if not blob:
            return []
        return [
            RainsubsTrack(
                id=self.TRACK_ID,
                url=encode_data_url(blob),
                language="rainbow",
                display="Rainbow",
                format="srt",
            )
        ]


def order_tracks(
    primary: Sequence[WyzieTrack],
    secondary: Sequence[RainsubsTrack],
) -> list[SubtitleTrack]:
    """English tracks first, then the remaining primary tracks, then the secondary ones."""

    english = [track for track in primary if track.language == PREFERRED_LANGUAGE]
    others = [track for track in primary if track.language != PREFERRED_LANGUAGE]
    return [*english, *others, *secondary]


class SubtitleAggregator:
    """Queries both providers concurrently and merges their tracks."""

    def __init__(self, wyzie: WyzieProvider, rainsubs: RainsubsProvider) -> None:
        self.wyzie = wyzie
        self.rainsubs = rainsubs

    async def aggregate(self, reference: ContentReference) -> list[SubtitleTrack]:
        wyzie_result, rainsubs_result = await asyncio.gather(
            self.wyzie.search(reference),
            self.rainsubs.search(reference),
            return_exceptions=True,
        )

        if isinstance(wyzie_result, BaseException):
            logger.warning("wyzie search failed for %s: %s", reference.target_path(), wyzie_result)
            wyzie_result = []
        if isinstance(rainsubs_result, BaseException):
            logger.warning(
                "rainsubs search failed for %s: %s", reference.target_path(), rainsubs_result
            )
            rainsubs_result = []

        tracks = order_tracks(wyzie_result, rainsubs_result)
        logger.info("Loaded %d subtitle tracks for %s", len(tracks), reference.target_path())
        return tracks
