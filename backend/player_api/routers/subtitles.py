"""Subtitle listing and conversion endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from backend.player_shell.settings import normalize_timing_offset
from backend.resolver.models import CONTENT_TYPES, ContentReference
from backend.subtitles.converter import SubtitleError
from backend.subtitles.loader import SubtitleLoader
from backend.subtitles.providers import SubtitleAggregator, SubtitleFetchError

from ..dependencies import get_subtitle_aggregator, get_subtitle_loader
from ..errors import ApiError
from ..schemas import CueModel, CueRequest, CueResponse, ErrorResponse, SubtitleListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subtitles", tags=["subtitles"])


def _reference(
    catalog_id: str | None,
    content_type: str | None,
    season: str | None,
    episode: str | None,
) -> ContentReference:
    if not catalog_id:
        raise ApiError(400, "TMDB ID is required")
    if content_type is None:
        return ContentReference.from_query(catalog_id, season, episode)
    if content_type not in CONTENT_TYPES:
        raise ApiError(400, "Invalid type")
    return ContentReference(content_type, catalog_id, season, episode)


@router.get(
    "",
    summary="Aggregated subtitle tracks from both providers",
    response_model=SubtitleListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_subtitles(
    content_id: str | None = Query(default=None, alias="contentId"),
    tmdb_id: str | None = Query(default=None, alias="tmdbId"),
    content_type: str | None = Query(default=None, alias="type"),
    season: str | None = None,
    episode: str | None = None,
    aggregator: SubtitleAggregator = Depends(get_subtitle_aggregator),
) -> SubtitleListResponse:
    """Provider failures only shrink the list; this endpoint does not fail on them."""

    reference = _reference(content_id or tmdb_id, content_type, season, episode)
    tracks = await aggregator.aggregate(reference)
    return SubtitleListResponse(subtitles=tracks)


@router.post(
    "/cues",
    summary="Convert a subtitle track into timed cues",
    response_model=CueResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def convert_cues(
    payload: CueRequest,
    aggregator: SubtitleAggregator = Depends(get_subtitle_aggregator),
    loader: SubtitleLoader = Depends(get_subtitle_loader),
) -> CueResponse:
    """Fetch the track, apply the timing offset and return the full cue list.

    Only URLs the providers listed for the given title are downloaded.
    """

    if payload.track_id:
        reference = _reference(payload.content_id, payload.type, payload.season, payload.episode)
        tracks = await aggregator.aggregate(reference)
        track = next((item for item in tracks if item.id == payload.track_id), None)
        if track is None:
            raise ApiError(404, f"Subtitle track not found: {payload.track_id}")
        url = track.url
    elif payload.url:
        if not payload.url.startswith("data:"):
            raise ApiError(400, "Remote subtitle tracks must be requested by trackId")
        url = payload.url
    else:
        raise ApiError(400, "trackId or an inline data URL is required")

    offset = normalize_timing_offset(payload.offset)
    try:
        loaded = await loader.load(url, offset)
    except SubtitleFetchError as exc:
        logger.error("Failed to load subtitle: %s", exc)
        raise ApiError(502, str(exc)) from exc
    except SubtitleError as exc:
        logger.warning("Rejected subtitle track: %s", exc)
        raise ApiError(400, str(exc)) from exc

    return CueResponse(
        cues=[CueModel(start=cue.start, end=cue.end, lines=cue.lines) for cue in loaded.cues],
        vtt=loaded.vtt,
    )
