"""TMDB catalog proxy endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from backend.resolver.metadata_fetcher import CatalogError, MetadataFetcher
from backend.resolver.models import CONTENT_TYPES

from ..dependencies import get_metadata_fetcher
from ..errors import ApiError
from ..schemas import CatalogResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get(
    "/catalog",
    summary="Movie, show and episode metadata with image URLs",
    response_model=CatalogResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_catalog(
    content_type: str | None = Query(default=None, alias="type"),
    catalog_id: str | None = Query(default=None, alias="id"),
    season: str | None = None,
    episode: str | None = None,
    fetcher: MetadataFetcher = Depends(get_metadata_fetcher),
) -> CatalogResponse:
    """Return the TMDB record for a movie, or ``{show, episode}`` for TV."""

    if not content_type or not catalog_id:
        raise ApiError(400, "Type and ID are required")
    if content_type not in CONTENT_TYPES:
        raise ApiError(400, "Invalid type")

    try:
        data = await fetcher.fetch(content_type, catalog_id, season, episode)
    except CatalogError as exc:
        logger.error("TMDB API error: %s", exc)
        raise ApiError(500, str(exc) or "Failed to fetch TMDB data") from exc

    return CatalogResponse(data=data)
