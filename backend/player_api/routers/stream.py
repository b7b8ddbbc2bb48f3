"""Stream resolution endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from backend.resolver.models import ContentReference
from backend.resolver.stream_resolver import SERVERS, StreamResolutionError, StreamResolver
from backend.subtitles.converter import SubtitleError
from backend.subtitles.providers import RainsubsProvider

from ..dependencies import get_rainsubs_provider, get_settings, get_stream_resolver
from ..errors import ApiError
from ..schemas import ContentMetadataModel, ErrorResponse, StreamResponse, SubtitleBlobResponse
from ..settings import PlayerSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stream"])


@router.get(
    "/stream",
    summary="Resolve an HLS manifest or fetch the inline subtitle blob",
    response_model=StreamResponse | SubtitleBlobResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_stream(
    content_id: str | None = Query(default=None, alias="contentId"),
    tmdb_id: str | None = Query(default=None, alias="tmdbId"),
    season: str | None = None,
    episode: str | None = None,
    server: str | None = None,
    subtitles: bool = False,
    fallback: bool = True,
    resolver: StreamResolver = Depends(get_stream_resolver),
    rainsubs: RainsubsProvider = Depends(get_rainsubs_provider),
    settings: PlayerSettings = Depends(get_settings),
) -> StreamResponse | SubtitleBlobResponse:
    """Return the first manifest URL found by the scraping proxy.

    With ``subtitles=true`` the proxied subtitle provider is queried instead and
    its raw text is returned.
    """

    catalog_id = content_id or tmdb_id
    if not catalog_id:
        raise ApiError(400, "TMDB ID is required")

    server = server or settings.default_server
    if server not in SERVERS:
        raise ApiError(400, f"Unknown server: {server}")

    reference = ContentReference.from_query(catalog_id, season, episode)
    metadata = ContentMetadataModel.model_validate(reference.metadata())

    if subtitles:
        try:
            blob = await rainsubs.fetch_blob(reference)
        except SubtitleError as exc:
            logger.error("Rainsubs fetch failed: %s", exc)
            raise ApiError(500, str(exc) or "Failed to fetch rainsubs") from exc
        return SubtitleBlobResponse(subtitles=blob, metadata=metadata)

    try:
        if fallback:
            descriptor = await resolver.resolve(reference, server)
        else:
            descriptor = await resolver.fetch_stream(reference, server)
    except StreamResolutionError as exc:
        logger.error("%s API error: %s", server, exc)
        raise ApiError(500, str(exc) or f"Failed to fetch stream from {server}", server=server) from exc

    return StreamResponse(stream_url=descriptor.url, server=descriptor.server, metadata=metadata)
