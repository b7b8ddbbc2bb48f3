"""Application factory for the Vidluna Player API."""
import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import ApiError, api_error_handler
from .routers import catalog, embed, health, stream, subtitles
from .settings import PlayerSettings
from .state import AppState


def create_app(
    settings: PlayerSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    ``transport`` is handed to every upstream HTTP client, which lets tests
    replace the network with an ``httpx.MockTransport``.
    """

    resolved_settings = settings or PlayerSettings()
    app_state = AppState(settings=resolved_settings, transport=transport)

    app = FastAPI(title="Vidluna Player API", version="0.1.0")
    app.state.app_state = app_state
    app.state.settings = app_state.settings

    # The player is embedded in iframes on arbitrary origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ApiError, api_error_handler)

    for router in (
        health.router,
        stream.router,
        catalog.router,
        subtitles.router,
        embed.router,
    ):
        app.include_router(router)

    return app
