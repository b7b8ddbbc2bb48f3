"""
Stream resolver that asks the scraping proxy for an HLS manifest.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .models import ContentReference, StreamDescriptor

logger = logging.getLogger(__name__)

DEFAULT_SCRAPE_BASE_URL = "https://scrape.lordflix.club"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
MANIFEST_EXTENSION = ".m3u8"

PRIMARY_SERVER = "veronica"
SECONDARY_SERVER = "vienna"


@dataclass(frozen=True, slots=True)
class ScrapeServer:
    """Upstream player page and DOM hints handed to the scraping proxy."""

    name: str
    label: str
    player_url: str
    wait_for: str = MANIFEST_EXTENSION
    click_selector: Optional[str] = None

    def scrape_params(self, target_path: str) -> Dict[str, str]:
        params = {"url": f"{self.player_url.rstrip('/')}/{target_path.lstrip('/')}"}
        if self.click_selector:
            params["clickSelector"] = self.click_selector
        params["waitFor"] = self.wait_for
        return params


SERVERS: Dict[str, ScrapeServer] = {
    PRIMARY_SERVER: ScrapeServer(
        name=PRIMARY_SERVER,
        label="Veronica",
        player_url="https://player.videasy.net",
        click_selector=".play-icon-main",
    ),
    SECONDARY_SERVER: ScrapeServer(
        name=SECONDARY_SERVER,
        label="Vienna",
        player_url="https://vidlink.pro",
    ),
}


class StreamResolutionError(RuntimeError):
    """Raised when a server does not yield a playable manifest."""

    def __init__(self, message: str, *, server: Optional[str] = None) -> None:
        super().__init__(message)
        self.server = server


class AllServersFailedError(StreamResolutionError):
    """Raised when both the preferred server and its fallback failed."""

    def __init__(self, failures: Dict[str, str]) -> None:
        self.failures = dict(failures)
        details = "; ".join(f"{server}: {reason}" for server, reason in self.failures.items())
        super().__init__(f"Failed to load stream from both servers ({details})")


def extract_manifest_url(payload: Any) -> Optional[str]:
    """Return the first captured request URL that points at an HLS manifest."""

    if not isinstance(payload, dict):
        return None
    requests = payload.get("requests")
    if not isinstance(requests, list):
        return None
    for entry in requests:
        url = entry.get("url") if isinstance(entry, dict) else None
        if isinstance(url, str) and url.endswith(MANIFEST_EXTENSION):
            return url
    return None


class StreamResolver:
    """Resolves content references into stream descriptors with one-shot failover."""

    def __init__(
        self,
        *,
        scrape_base_url: str = DEFAULT_SCRAPE_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.scrape_base_url = scrape_base_url.rstrip("/")
        self.user_agent = user_agent
        self._timeout = timeout
        self._transport = transport

    def _get_server(self, server: str) -> ScrapeServer:
        try:
            return SERVERS[server]
        except KeyError:
            raise StreamResolutionError(f"Unknown server: {server}", server=server) from None

    async def fetch_stream(self, reference: ContentReference, server: str) -> StreamDescriptor:
        """Ask a single server for the manifest, without any fallback."""

        config = self._get_server(server)
        params = config.scrape_params(reference.target_path())
        logger.info("Scraping %s for %s", server, reference.target_path())

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.scrape_base_url}/api/scrape",
                    params=params,
                    headers={"User-Agent": self.user_agent},
                )
        except httpx.HTTPError as exc:
            raise StreamResolutionError(f"{server} scrape failed: {exc}", server=server) from exc

        if response.status_code != 200:
            raise StreamResolutionError(
                f"{server} scrape failed: {response.status_code} {response.reason_phrase}",
                server=server,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise StreamResolutionError(f"{server} returned invalid JSON", server=server) from exc

        manifest_url = extract_manifest_url(payload)
        if not manifest_url:
            raise StreamResolutionError(f"No HLS stream found from {server}", server=server)

        logger.info("Found manifest from %s: %s", server, manifest_url)
        return StreamDescriptor(url=manifest_url, server=server)

    async def resolve(
        self,
        reference: ContentReference,
        server: str = PRIMARY_SERVER,
    ) -> StreamDescriptor:
        """Resolve a stream, retrying once on the secondary server when the primary fails."""

        try:
            return await self.fetch_stream(reference, server)
        except StreamResolutionError as exc:
            if server != PRIMARY_SERVER:
                raise
            primary_error = exc

        logger.warning("%s failed (%s), trying %s", server, primary_error, SECONDARY_SERVER)
        try:
            return await self.fetch_stream(reference, SECONDARY_SERVER)
        except StreamResolutionError as exc:
            logger.error("Both servers failed for %s", reference.target_path())
            raise AllServersFailedError(
                {server: str(primary_error), SECONDARY_SERVER: str(exc)}
            ) from exc


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve an HLS stream for a TMDB id.")
    parser.add_argument("tmdb_id", help="TMDB id of the movie or show")
    parser.add_argument("--season", help="Season number (TV only)")
    parser.add_argument("--episode", help="Episode number (TV only)")
    parser.add_argument("--server", choices=tuple(SERVERS), default=PRIMARY_SERVER)
    parser.add_argument("--no-fallback", action="store_true", help="Do not retry on the secondary server")
    parser.add_argument(
        "--scrape-base-url",
        default=os.environ.get("VIDLUNA_SCRAPE_BASE_URL", DEFAULT_SCRAPE_BASE_URL),
        help="Base URL of the scraping proxy",
    )
    parser.add_argument("--output", type=str, help="Optional path to write JSON result (defaults to stdout)")
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    args = parse_args()
    reference = ContentReference.from_query(args.tmdb_id, args.season, args.episode)
    resolver = StreamResolver(scrape_base_url=args.scrape_base_url)

    if args.no_fallback:
        descriptor = asyncio.run(resolver.fetch_stream(reference, args.server))
    else:
        descriptor = asyncio.run(resolver.resolve(reference, args.server))

    data = {"reference": reference.metadata(), "stream": descriptor.to_dict()}
    output_json = json.dumps(data, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(output_json)
        logger.info("wrote result to %s", args.output)
    else:
        os.write(1, (output_json + "\n").encode("utf-8", "replace"))


if __name__ == "__main__":
    main()
