"""Embeddable player page routes."""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from backend.player_shell.session import PlayerSession
from backend.resolver.models import CONTENT_TYPES, ContentReference
from backend.resolver.stream_resolver import SERVERS

from ..dependencies import get_app_state
from ..state import AppState

TEMPLATES = Jinja2Templates(directory=Path(__file__).resolve().parent.parent / "templates")

TRUTHY = {"1", "true", "yes", "on"}

router = APIRouter(prefix="/embed", tags=["embed"])


def _parse_autoplay(value: str | None) -> bool:
    return bool(value) and value.strip().lower() in TRUTHY


async def _render(
    request: Request,
    app_state: AppState,
    content_type: str,
    catalog_id: str,
    season: str | None,
    episode: str | None,
    color: str | None,
    autoplay: str | None,
    server: str | None,
) -> HTMLResponse:
    if content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown content type: {content_type}")

    settings = app_state.settings
    session = PlayerSession(
        ContentReference(content_type, catalog_id, season, episode),
        resolver=app_state.stream_resolver,
        aggregator=app_state.subtitle_aggregator,
        accent_color=color or settings.default_accent_color,
        autoplay=_parse_autoplay(autoplay),
        server=server if server in SERVERS else settings.default_server,
    )
    await session.prepare(app_state.metadata_fetcher)

    return TEMPLATES.TemplateResponse(
        request,
        "embed.html",
        {"player": session.to_template_context()},
    )


@router.get("/{content_type}/{catalog_id}", response_class=HTMLResponse)
async def embed_title(
    request: Request,
    content_type: str,
    catalog_id: str,
    color: str | None = None,
    autoplay: str | None = None,
    server: str | None = None,
    app_state: AppState = Depends(get_app_state),
) -> HTMLResponse:
    """Player page for a movie (or a show's first episode)."""

    return await _render(
        request, app_state, content_type, catalog_id, None, None, color, autoplay, server
    )


@router.get("/{content_type}/{catalog_id}/{season}/{episode}", response_class=HTMLResponse)
async def embed_episode(
    request: Request,
    content_type: str,
    catalog_id: str,
    season: str,
    episode: str,
    color: str | None = None,
    autoplay: str | None = None,
    server: str | None = None,
    app_state: AppState = Depends(get_app_state),
) -> HTMLResponse:
    """Player page for a single episode."""

    return await _render(
        request, app_state, content_type, catalog_id, season, episode, color, autoplay, server
    )
