"""FastAPI dependencies for the Player API."""
from fastapi import Depends, Request

from backend.resolver.metadata_fetcher import MetadataFetcher
from backend.resolver.stream_resolver import StreamResolver
from backend.subtitles.loader import SubtitleLoader
from backend.subtitles.providers import RainsubsProvider, SubtitleAggregator

from .settings import PlayerSettings
from .state import AppState


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> PlayerSettings:
    return app_state.settings


def get_stream_resolver(app_state: AppState = Depends(get_app_state)) -> StreamResolver:
    """Return the scraping-proxy stream resolver."""
    return app_state.stream_resolver


def get_metadata_fetcher(app_state: AppState = Depends(get_app_state)) -> MetadataFetcher:
    return app_state.metadata_fetcher


def get_rainsubs_provider(app_state: AppState = Depends(get_app_state)) -> RainsubsProvider:
    return app_state.rainsubs


def get_subtitle_aggregator(app_state: AppState = Depends(get_app_state)) -> SubtitleAggregator:
    """Return the aggregator that merges both subtitle providers."""
    return app_state.subtitle_aggregator


def get_subtitle_loader(app_state: AppState = Depends(get_app_state)) -> SubtitleLoader:
    return app_state.subtitle_loader
