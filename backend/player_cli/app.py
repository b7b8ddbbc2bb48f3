"""Command line interface for the Vidluna Player API."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import httpx
import typer

from backend.resolver.stream_resolver import SERVERS
from backend.subtitles.converter import convert_to_vtt

from .client import DEFAULT_API_BASE, create_client

app = typer.Typer(help="Interact with the Vidluna player backend service.")
subtitles_app = typer.Typer(help="Search, convert and inspect subtitle tracks.")
app.add_typer(subtitles_app, name="subtitles")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Player API service.",
        show_default=True,
        envvar="VIDLUNA_API_BASE",
    )


def _echo_response(response: httpx.Response) -> None:
    """Pretty-print a JSON body, exiting non-zero on API errors."""

    try:
        payload = response.json()
    except ValueError:
        response.raise_for_status()
        typer.echo(response.text)
        return

    if response.is_error or (isinstance(payload, dict) and payload.get("success") is False):
        message = payload.get("error") if isinstance(payload, dict) else None
        typer.echo(message or f"Request failed with HTTP {response.status_code}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _reference_params(
    tmdb_id: str, season: Optional[str], episode: Optional[str]
) -> dict[str, str]:
    params = {"contentId": tmdb_id}
    if season is not None:
        params["season"] = season
    if episode is not None:
        params["episode"] = episode
    return params


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        _echo_response(client.get("/health"))


@app.command()
def stream(
    tmdb_id: str = typer.Argument(..., help="TMDB id of the movie or show."),
    season: Optional[str] = typer.Option(None, help="Season number (TV only)."),
    episode: Optional[str] = typer.Option(None, help="Episode number (TV only)."),
    server: str = typer.Option("veronica", help="Preferred server.", show_default=True),
    fallback: bool = typer.Option(
        True,
        "--fallback/--no-fallback",
        help="Retry once on the secondary server when the primary fails.",
        show_default=True,
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Resolve the HLS manifest for a title."""

    if server not in SERVERS:
        typer.echo(f"Unknown server '{server}'. Choose from: {', '.join(SERVERS)}", err=True)
        raise typer.Exit(code=1)

    params = _reference_params(tmdb_id, season, episode)
    params["server"] = server
    params["fallback"] = "true" if fallback else "false"

    with create_client(api_base) as client:
        _echo_response(client.get("/api/stream", params=params))


@app.command()
def catalog(
    content_type: str = typer.Argument(..., help="Either 'movie' or 'tv'."),
    tmdb_id: str = typer.Argument(..., help="TMDB id of the movie or show."),
    season: Optional[str] = typer.Option(None, help="Season number (TV only)."),
    episode: Optional[str] = typer.Option(None, help="Episode number (TV only)."),
    api_base: str = _api_base_option(),
) -> None:
    """Show TMDB metadata for a movie, show or episode."""

    params: dict[str, str] = {"type": content_type, "id": tmdb_id}
    if season is not None:
        params["season"] = season
    if episode is not None:
        params["episode"] = episode

    with create_client(api_base) as client:
        _echo_response(client.get("/api/catalog", params=params))


@subtitles_app.command("list")
def list_subtitles(
    tmdb_id: str = typer.Argument(..., help="TMDB id of the movie or show."),
    season: Optional[str] = typer.Option(None, help="Season number (TV only)."),
    episode: Optional[str] = typer.Option(None, help="Episode number (TV only)."),
    api_base: str = _api_base_option(),
) -> None:
    """List subtitle tracks from both providers, English first."""

    with create_client(api_base) as client:
        _echo_response(
            client.get("/api/subtitles", params=_reference_params(tmdb_id, season, episode))
        )


@subtitles_app.command("cues")
def subtitle_cues(
    tmdb_id: str = typer.Argument(..., help="TMDB id of the movie or show."),
    track_id: str = typer.Argument(..., help="Track id as shown by 'subtitles list'."),
    season: Optional[str] = typer.Option(None, help="Season number (TV only)."),
    episode: Optional[str] = typer.Option(None, help="Episode number (TV only)."),
    offset: float = typer.Option(0.0, help="Timing offset in seconds (negative = earlier)."),
    api_base: str = _api_base_option(),
) -> None:
    """Convert one listed subtitle track into cues through the API."""

    body: dict[str, object] = {"trackId": track_id, "offset": offset}
    body.update(_reference_params(tmdb_id, season, episode))
    with create_client(api_base) as client:
        _echo_response(client.post("/api/subtitles/cues", json=body))


@subtitles_app.command("convert")
def convert_file(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="SRT file to convert."),
    offset: float = typer.Option(0.0, help="Timing offset in seconds (negative = earlier)."),
    output: Optional[Path] = typer.Option(None, help="Write the WebVTT here instead of stdout."),
) -> None:
    """Convert a local SRT file to WebVTT without contacting the API."""

    text = source.read_text(encoding="utf-8", errors="replace")
    vtt = convert_to_vtt(text, offset)
    if output is None:
        typer.echo(vtt)
        return
    output.write_text(vtt, encoding="utf-8")
    typer.echo(f"Wrote {output}")
