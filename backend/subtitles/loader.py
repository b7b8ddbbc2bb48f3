"""Fetches a selected subtitle track and turns it into cues."""
from __future__ import annotations

from dataclasses import dataclass
import ipaddress
import logging
from typing import Optional

import httpx

from .converter import SubtitleError, convert_to_vtt, decode_data_url, parse_vtt_to_cues
from .models import TimedCue
from .providers import DEFAULT_USER_AGENT, SubtitleFetchError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")
BLOCKED_HOST_SUFFIXES = (".localhost", ".local", ".internal")


class UnsafeSubtitleURLError(SubtitleError):
    """Raised when a subtitle URL points at a non-public or non-HTTP target."""


def ensure_public_url(url: str | httpx.URL) -> None:
    """Reject URLs that could reach loopback, private or link-local services."""

    try:
        parsed = url if isinstance(url, httpx.URL) else httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise UnsafeSubtitleURLError(f"Invalid subtitle URL: {exc}") from exc

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise UnsafeSubtitleURLError(f"Unsupported subtitle URL scheme: {parsed.scheme or '-'}")

    host = parsed.host.lower().rstrip(".")
    if not host or host == "localhost" or host.endswith(BLOCKED_HOST_SUFFIXES):
        raise UnsafeSubtitleURLError(f"Refusing to fetch subtitles from {host or 'an empty host'}")

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return
    if not address.is_global:
        raise UnsafeSubtitleURLError(f"Refusing to fetch subtitles from non-public address {host}")


async def _check_request(request: httpx.Request) -> None:
    # runs for the first request and for every redirect hop
    ensure_public_url(request.url)


@dataclass(slots=True)
class LoadedSubtitle:
    """Normalized WebVTT text and the cues parsed from it."""

    vtt: str
    cues: list[TimedCue]


class SubtitleLoader:
    """Downloads subtitle text (or decodes inline payloads) and converts it."""

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.user_agent = user_agent
        self._timeout = timeout
        self._transport = transport

    async def fetch_text(self, url: str) -> str:
        if url.startswith("data:"):
            return decode_data_url(url)

        ensure_public_url(url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
                event_hooks={"request": [_check_request]},
            ) as client:
                response = await client.get(url, headers={"User-Agent": self.user_agent})
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SubtitleFetchError(
                f"Subtitle download failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SubtitleFetchError(f"Subtitle download failed: {exc}") from exc
        return response.text

    async def load(self, url: str, offset: float = 0.0) -> LoadedSubtitle:
        """Fetch a track and rebuild its full cue list for the given timing offset."""

        text = await self.fetch_text(url)
        vtt = convert_to_vtt(text, offset)
        cues = parse_vtt_to_cues(vtt)
        logger.info("Parsed %d cues (offset %.1fs)", len(cues), offset)
        return LoadedSubtitle(vtt=vtt, cues=cues)
