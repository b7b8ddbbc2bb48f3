"""
TMDB metadata fetcher helper.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """Raised when TMDB cannot provide the requested record."""


class CatalogConfigurationError(CatalogError):
    """Raised when the TMDB credential is missing."""


def _decode_record(response: httpx.Response, label: str) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise CatalogError(f"TMDB returned invalid JSON for {label}") from exc
    if not isinstance(payload, dict):
        raise CatalogError(f"TMDB returned an unexpected {label} payload")
    return payload


class MetadataFetcher:
    TMDB_ENDPOINT = "https://api.themoviedb.org/3"
    IMAGE_ENDPOINT = "https://image.tmdb.org/t/p"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: str = TMDB_ENDPOINT,
        image_base_url: str = IMAGE_ENDPOINT,
        language: str = "en-US",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or os.environ.get("TMDB_API_KEY")
        self.enabled = bool(self.api_key)
        self.base_url = base_url.rstrip("/")
        self.image_base_url = image_base_url.rstrip("/")
        self.language = language
        self._timeout = timeout
        self._transport = transport

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise CatalogConfigurationError("TMDB_API_KEY environment variable is required")
        return self.api_key

    def build_image_url(self, path: Optional[str], size: str = "w500") -> Optional[str]:
        if not path:
            return None
        return f"{self.image_base_url}/{size}{path}"

    async def _get(self, client: httpx.AsyncClient, path: str, api_key: str) -> httpx.Response:
        return await client.get(
            f"{self.base_url}/{path}",
            params={"api_key": api_key, "language": self.language},
        )

    async def fetch_movie(self, movie_id: str) -> Dict[str, Any]:
        """Return the TMDB movie record with poster and backdrop URLs."""

        api_key = self._require_api_key()
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await self._get(client, f"movie/{movie_id}", api_key)
        except httpx.HTTPError as exc:
            raise CatalogError(f"Failed to fetch movie data: {exc}") from exc

        if response.status_code != 200:
            raise CatalogError(f"Failed to fetch movie data: {response.status_code}")

        movie = _decode_record(response, "movie")
        return {
            **movie,
            "poster_url": self.build_image_url(movie.get("poster_path"), "w500"),
            "backdrop_url": self.build_image_url(movie.get("backdrop_path"), "w1280"),
        }

    async def fetch_tv(
        self,
        tv_id: str,
        season: Optional[str] = None,
        episode: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return ``{"show": ..., "episode": ...}`` for a TV show.

        The show and episode records are requested concurrently. A failed episode
        lookup yields ``None`` rather than an error.
        """

        api_key = self._require_api_key()
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            requests = [self._get(client, f"tv/{tv_id}", api_key)]
            if season and episode:
                requests.append(
                    self._get(client, f"tv/{tv_id}/season/{season}/episode/{episode}", api_key)
                )
            responses = await asyncio.gather(*requests, return_exceptions=True)

        show_response = responses[0]
        if isinstance(show_response, BaseException):
            raise CatalogError(f"Failed to fetch TV show data: {show_response}") from show_response
        if show_response.status_code != 200:
            raise CatalogError(f"Failed to fetch TV show data: {show_response.status_code}")

        show = _decode_record(show_response, "TV show")
        episode_data: Optional[Dict[str, Any]] = None
        if len(responses) > 1:
            episode_response = responses[1]
            if isinstance(episode_response, BaseException):
                logger.warning("Episode lookup failed for tv/%s: %s", tv_id, episode_response)
            elif episode_response.status_code == 200:
                try:
                    episode_data = _decode_record(episode_response, "episode")
                except CatalogError as exc:
                    logger.warning("Episode lookup for tv/%s unusable: %s", tv_id, exc)
            else:
                logger.warning(
                    "Episode lookup for tv/%s returned %s", tv_id, episode_response.status_code
                )

        return {
            "show": {
                **show,
                "poster_url": self.build_image_url(show.get("poster_path"), "w500"),
                "backdrop_url": self.build_image_url(show.get("backdrop_path"), "w1280"),
            },
            "episode": (
                {
                    **episode_data,
                    "still_url": self.build_image_url(episode_data.get("still_path"), "w780"),
                }
                if episode_data
                else None
            ),
        }

    async def fetch(
        self,
        content_type: str,
        catalog_id: str,
        season: Optional[str] = None,
        episode: Optional[str] = None,
    ) -> Dict[str, Any]:
        if content_type == "movie":
            return await self.fetch_movie(catalog_id)
        if content_type == "tv":
            return await self.fetch_tv(catalog_id, season, episode)
        raise ValueError(f"Invalid type: {content_type}")
