"""HTTP client helpers for the Player CLI."""
from __future__ import annotations

import httpx

DEFAULT_API_BASE = "http://localhost:8000"

# Stream resolution waits on a headless browser upstream
DEFAULT_TIMEOUT = 60.0


def create_client(
    base_url: str = DEFAULT_API_BASE,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Instantiate an HTTPX client pointed at a Player API instance."""

    return httpx.Client(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        transport=transport,
        headers={"Accept": "application/json"},
    )
