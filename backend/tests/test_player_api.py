"""Tests for the Player API application factory and routers."""
from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.player_api import create_app  # noqa: E402
from backend.player_api.settings import PlayerSettings  # noqa: E402
from backend.subtitles.converter import encode_data_url  # noqa: E402

SRT = "1\n00:00:01,000 --> 00:00:03,500\nHello\n"

MOVIE_RECORD = {"id": 550, "title": "Fight Club", "poster_path": "/p.jpg", "backdrop_path": "/b.jpg"}
SHOW_RECORD = {"id": 1399, "name": "Game of Thrones", "poster_path": "/p.jpg", "backdrop_path": "/b.jpg"}
EPISODE_RECORD = {"id": 1, "name": "The Kingsroad", "still_path": "/s.jpg"}


def _manifest(server: str) -> httpx.Response:
    return httpx.Response(200, json={"requests": [{"url": f"https://cdn.test/{server}.m3u8"}]})


class Upstream:
    """Fake for every service the API talks to, keyed by host."""

    def __init__(self) -> None:
        self.scrape: dict[str, Callable[[], httpx.Response]] = {
            "videasy": lambda: _manifest("veronica"),
            "vidlink": lambda: _manifest("vienna"),
        }
        self.wyzie: Callable[[], httpx.Response] = lambda: httpx.Response(
            200,
            json=[
                {"id": "es-1", "url": "https://files.test/es.srt", "language": "es", "display": "Spanish"},
                {
                    "id": "en-1",
                    "url": "https://files.test/en.srt",
                    "language": "en",
                    "display": "English",
                    "flagUrl": "https://flags.test/gb.png",
                },
            ],
        )
        self.rainsubs: Callable[[], httpx.Response] = lambda: httpx.Response(200, text=SRT)
        self.tmdb_status = 200
        self.tmdb_episode: Callable[[], httpx.Response] = lambda: httpx.Response(
            200, json=EPISODE_RECORD
        )
        self.tmdb_movie: Callable[[], httpx.Response] = lambda: httpx.Response(
            200, json=MOVIE_RECORD
        )
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "scrape.test":
            target = request.url.params["url"]
            for key, outcome in self.scrape.items():
                if key in target:
                    return outcome()
        if host == "wyzie.test":
            return self.wyzie()
        if host == "rainsubs.test":
            return self.rainsubs()
        if host == "files.test":
            if request.url.path == "/en.srt":
                return httpx.Response(200, text=SRT)
            return httpx.Response(404)
        if host == "tmdb.test":
            if self.tmdb_status != 200:
                return httpx.Response(self.tmdb_status)
            path = request.url.path
            if "/episode/" in path:
                return self.tmdb_episode()
            if path.startswith("/3/tv/"):
                return httpx.Response(200, json=SHOW_RECORD)
            return self.tmdb_movie()
        return httpx.Response(404)

    def scrape_targets(self) -> list[str]:
        return [r.url.params["url"] for r in self.requests if r.url.host == "scrape.test"]


def _build_client(upstream: Upstream, tmdb_api_key: Optional[str] = None) -> TestClient:
    settings = PlayerSettings(
        scrape_base_url="https://scrape.test",
        wyzie_base_url="https://wyzie.test",
        rainsubs_base_url="https://rainsubs.test",
        tmdb_base_url="https://tmdb.test/3",
        tmdb_image_base_url="https://img.test/t/p",
        tmdb_api_key=tmdb_api_key,
    )
    return TestClient(create_app(settings=settings, transport=httpx.MockTransport(upstream)))


@pytest.fixture(autouse=True)
def _no_ambient_tmdb_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)
    monkeypatch.delenv("VIDLUNA_TMDB_API_KEY", raising=False)


@pytest.fixture()
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture()
def client(upstream: Upstream) -> TestClient:
    """Provide a test client whose upstream services are all faked."""

    return _build_client(upstream)


@pytest.fixture()
def tmdb_client(upstream: Upstream) -> TestClient:
    return _build_client(upstream, tmdb_api_key="test-key")


def test_health_endpoint_reports_ok_status(client: TestClient, tmdb_client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0", "tmdb_configured": False}
    assert tmdb_client.get("/health").json()["tmdb_configured"] is True


# ----------------------------------------------------------------------
# /api/stream


def test_stream_requires_tmdb_id(client: TestClient) -> None:
    response = client.get("/api/stream")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "TMDB ID is required"}


def test_stream_rejects_unknown_server(client: TestClient, upstream: Upstream) -> None:
    response = client.get("/api/stream", params={"contentId": "550", "server": "vortex"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Unknown server: vortex"}
    assert upstream.requests == []


def test_stream_returns_primary_manifest(client: TestClient, upstream: Upstream) -> None:
    response = client.get("/api/stream", params={"contentId": "550"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "streamUrl": "https://cdn.test/veronica.m3u8",
        "server": "veronica",
        "metadata": {"tmdbId": "550", "type": "movie", "season": None, "episode": None},
    }
    assert upstream.scrape_targets() == ["https://player.videasy.net/movie/550"]


def test_stream_accepts_tmdb_id_alias_for_episodes(client: TestClient, upstream: Upstream) -> None:
    response = client.get(
        "/api/stream", params={"tmdbId": "1399", "season": "1", "episode": "2", "server": "vienna"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["server"] == "vienna"
    assert body["metadata"] == {"tmdbId": "1399", "type": "tv", "season": "1", "episode": "2"}
    assert upstream.scrape_targets() == ["https://vidlink.pro/tv/1399/1/2"]


def test_stream_falls_back_to_secondary(client: TestClient, upstream: Upstream) -> None:
    upstream.scrape["videasy"] = lambda: httpx.Response(500)

    response = client.get("/api/stream", params={"contentId": "550"})

    assert response.status_code == 200
    assert response.json()["server"] == "vienna"
    assert response.json()["streamUrl"] == "https://cdn.test/vienna.m3u8"


def test_stream_reports_both_failures(client: TestClient, upstream: Upstream) -> None:
    upstream.scrape["videasy"] = lambda: httpx.Response(500)
    upstream.scrape["vidlink"] = lambda: httpx.Response(200, json={"requests": []})

    response = client.get("/api/stream", params={"contentId": "550"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["server"] == "veronica"
    assert "both servers" in body["error"]
    assert "veronica" in body["error"] and "vienna" in body["error"]


def test_stream_without_fallback_fails_fast(client: TestClient, upstream: Upstream) -> None:
    upstream.scrape["videasy"] = lambda: httpx.Response(502)

    response = client.get("/api/stream", params={"contentId": "550", "fallback": "false"})

    assert response.status_code == 500
    assert response.json()["server"] == "veronica"
    assert len(upstream.scrape_targets()) == 1


def test_stream_subtitles_mode_returns_rainsubs_blob(client: TestClient, upstream: Upstream) -> None:
    response = client.get("/api/stream", params={"contentId": "550", "subtitles": "true"})

    assert response.status_code == 200
    assert response.json()["subtitles"] == SRT
    assert upstream.scrape_targets() == []


def test_stream_subtitles_mode_surfaces_provider_failure(client: TestClient, upstream: Upstream) -> None:
    upstream.rainsubs = lambda: httpx.Response(503)

    response = client.get("/api/stream", params={"contentId": "550", "subtitles": "true"})

    assert response.status_code == 500
    assert response.json()["success"] is False


# ----------------------------------------------------------------------
# /api/catalog


def test_catalog_requires_type_and_id(client: TestClient) -> None:
    response = client.get("/api/catalog", params={"type": "movie"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Type and ID are required"}


def test_catalog_rejects_invalid_type(tmdb_client: TestClient) -> None:
    response = tmdb_client.get("/api/catalog", params={"type": "anime", "id": "1"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid type"


def test_catalog_without_key_is_server_error(client: TestClient) -> None:
    response = client.get("/api/catalog", params={"type": "movie", "id": "550"})

    assert response.status_code == 500
    assert "TMDB_API_KEY" in response.json()["error"]


def test_catalog_returns_movie_with_image_urls(tmdb_client: TestClient) -> None:
    response = tmdb_client.get("/api/catalog", params={"type": "movie", "id": "550"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Fight Club"
    assert data["poster_url"] == "https://img.test/t/p/w500/p.jpg"
    assert data["backdrop_url"] == "https://img.test/t/p/w1280/b.jpg"


def test_catalog_returns_show_and_episode(tmdb_client: TestClient) -> None:
    response = tmdb_client.get(
        "/api/catalog", params={"type": "tv", "id": "1399", "season": "1", "episode": "2"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["show"]["name"] == "Game of Thrones"
    assert data["episode"]["still_url"] == "https://img.test/t/p/w780/s.jpg"


def test_catalog_episode_with_unreadable_body_returns_show_only(
    tmdb_client: TestClient, upstream: Upstream
) -> None:
    upstream.tmdb_episode = lambda: httpx.Response(200, text="<html>oops</html>")

    response = tmdb_client.get(
        "/api/catalog", params={"type": "tv", "id": "1", "season": "1", "episode": "1"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["show"]["name"] == "Game of Thrones"
    assert body["data"]["episode"] is None


def test_catalog_unreadable_movie_is_json_server_error(
    tmdb_client: TestClient, upstream: Upstream
) -> None:
    upstream.tmdb_movie = lambda: httpx.Response(200, text="<html>oops</html>")

    response = tmdb_client.get("/api/catalog", params={"type": "movie", "id": "550"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "TMDB returned invalid JSON for movie"}


def test_catalog_upstream_failure_is_server_error(tmdb_client: TestClient, upstream: Upstream) -> None:
    upstream.tmdb_status = 401

    response = tmdb_client.get("/api/catalog", params={"type": "movie", "id": "550"})

    assert response.status_code == 500
    assert response.json()["success"] is False


# ----------------------------------------------------------------------
# /api/subtitles


def test_subtitles_are_listed_english_first(client: TestClient) -> None:
    response = client.get("/api/subtitles", params={"contentId": "550"})

    assert response.status_code == 200
    tracks = response.json()["subtitles"]
    assert [track["id"] for track in tracks] == ["en-1", "es-1", "rainsubs"]
    assert tracks[0]["flagUrl"] == "https://flags.test/gb.png"
    assert tracks[0]["source"] == "wyzie"
    assert tracks[2]["language"] == "rainbow"
    assert tracks[2]["url"].startswith("data:text/plain;base64,")


def test_subtitle_provider_failure_does_not_fail_request(client: TestClient, upstream: Upstream) -> None:
    upstream.wyzie = lambda: httpx.Response(500)

    response = client.get("/api/subtitles", params={"contentId": "550"})

    assert response.status_code == 200
    assert [track["id"] for track in response.json()["subtitles"]] == ["rainsubs"]


def test_subtitles_reject_invalid_type(client: TestClient) -> None:
    response = client.get("/api/subtitles", params={"contentId": "550", "type": "anime"})

    assert response.status_code == 400


def test_cues_from_inline_track_apply_offset(client: TestClient) -> None:
    response = client.post(
        "/api/subtitles/cues", json={"url": encode_data_url(SRT), "offset": -2.0}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["cues"] == [{"start": 0.0, "end": 1.5, "lines": ["Hello"]}]
    assert body["vtt"].startswith("WEBVTT")


def test_cues_for_listed_track_apply_offset(client: TestClient, upstream: Upstream) -> None:
    response = client.post(
        "/api/subtitles/cues", json={"trackId": "en-1", "contentId": "550", "offset": 0.5}
    )

    assert response.status_code == 200
    assert response.json()["cues"] == [{"start": 1.5, "end": 4.0, "lines": ["Hello"]}]
    downloads = [str(r.url) for r in upstream.requests if r.url.host == "files.test"]
    assert downloads == ["https://files.test/en.srt"]


def test_cues_for_episode_track_query_the_episode(client: TestClient, upstream: Upstream) -> None:
    response = client.post(
        "/api/subtitles/cues",
        json={"trackId": "en-1", "contentId": "1399", "type": "tv", "season": "2", "episode": "3"},
    )

    assert response.status_code == 200
    wyzie = [r for r in upstream.requests if r.url.host == "wyzie.test"]
    assert wyzie[0].url.params["season"] == "2"
    assert wyzie[0].url.params["episode"] == "3"


def test_cues_for_unknown_track_are_not_found(client: TestClient) -> None:
    response = client.post("/api/subtitles/cues", json={"trackId": "xx-9", "contentId": "550"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Subtitle track not found: xx-9"}


def test_cues_for_track_require_tmdb_id(client: TestClient) -> None:
    response = client.post("/api/subtitles/cues", json={"trackId": "en-1"})

    assert response.status_code == 400
    assert response.json()["error"] == "TMDB ID is required"


def test_cues_download_failure_is_bad_gateway(client: TestClient) -> None:
    response = client.post("/api/subtitles/cues", json={"trackId": "es-1", "contentId": "550"})

    assert response.status_code == 502
    assert "404" in response.json()["error"]


def test_cues_refuse_arbitrary_remote_urls(client: TestClient, upstream: Upstream) -> None:
    response = client.post(
        "/api/subtitles/cues", json={"url": "http://169.254.169.254/latest/meta-data/iam"}
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Remote subtitle tracks must be requested by trackId",
    }
    assert upstream.requests == []


def test_cues_refuse_listed_track_on_internal_host(client: TestClient, upstream: Upstream) -> None:
    upstream.wyzie = lambda: httpx.Response(
        200,
        json=[{"id": "meta", "url": "http://169.254.169.254/latest/meta-data/iam", "language": "en"}],
    )

    response = client.post("/api/subtitles/cues", json={"trackId": "meta", "contentId": "550"})

    assert response.status_code == 400
    assert "non-public address" in response.json()["error"]
    assert all(r.url.host != "169.254.169.254" for r in upstream.requests)


def test_cues_require_track_or_inline_url(client: TestClient) -> None:
    response = client.post("/api/subtitles/cues", json={"offset": 1.0})

    assert response.status_code == 400
    assert response.json()["error"] == "trackId or an inline data URL is required"


def test_cues_declared_format_does_not_change_parsing(client: TestClient) -> None:
    response = client.post(
        "/api/subtitles/cues", json={"url": encode_data_url(SRT), "format": "vtt"}
    )

    assert response.status_code == 200
    assert response.json()["cues"] == [{"start": 1.0, "end": 3.5, "lines": ["Hello"]}]


def test_cues_keep_markup_as_plain_text(client: TestClient) -> None:
    markup = "<img src=x onerror=alert(1)>"
    srt = f"1\n00:00:01,000 --> 00:00:02,000\n{markup}\n"

    response = client.post("/api/subtitles/cues", json={"url": encode_data_url(srt)})

    assert response.status_code == 200
    assert response.json()["cues"][0]["lines"] == [markup]


def test_cues_reject_corrupt_inline_payload(client: TestClient) -> None:
    response = client.post("/api/subtitles/cues", json={"url": "data:text/plain;base64,abc"})

    assert response.status_code == 400


# ----------------------------------------------------------------------
# /embed

_STATE_RE = re.compile(r'<script id="player-state" type="application/json">(.*?)</script>', re.S)


def _page_state(html: str) -> dict:
    match = _STATE_RE.search(html)
    assert match is not None, "player state block missing"
    return json.loads(match.group(1))


def test_embed_page_renders_resolved_stream(client: TestClient, upstream: Upstream) -> None:
    response = client.get("/embed/movie/550", params={"color": "00ff00", "autoplay": "true"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    html = response.text
    assert "<title>Movie</title>" in html
    state = _page_state(html)
    assert state["accent_color"] == "#00ff00"
    assert state["autoplay"] is True
    assert state["stream_url"] == "https://cdn.test/veronica.m3u8"
    assert state["current_server"] == "veronica"
    assert state["error"] is None
    assert [track["id"] for track in state["subtitles"]] == ["en-1", "es-1", "rainsubs"]
    assert "files.test" not in html
    assert upstream.scrape_targets() == ["https://player.videasy.net/movie/550"]


def test_embed_page_uses_requested_server(client: TestClient, upstream: Upstream) -> None:
    state = _page_state(client.get("/embed/tv/1399/2/4", params={"server": "vienna"}).text)

    assert state["current_server"] == "vienna"
    assert state["stream_url"] == "https://cdn.test/vienna.m3u8"
    assert state["reference"] == {"tmdbId": "1399", "type": "tv", "season": "2", "episode": "4"}
    assert upstream.scrape_targets() == ["https://vidlink.pro/tv/1399/2/4"]


def test_embed_page_with_unknown_server_uses_default(client: TestClient) -> None:
    state = _page_state(client.get("/embed/movie/550", params={"server": "vortex"}).text)

    assert state["current_server"] == "veronica"


def test_embed_page_falls_back_to_secondary_server(client: TestClient, upstream: Upstream) -> None:
    upstream.scrape["videasy"] = lambda: httpx.Response(500)

    state = _page_state(client.get("/embed/movie/550").text)

    assert state["current_server"] == "vienna"
    assert state["stream_url"] == "https://cdn.test/vienna.m3u8"


def test_embed_page_renders_resolution_error(client: TestClient, upstream: Upstream) -> None:
    upstream.scrape["videasy"] = lambda: httpx.Response(500)
    upstream.scrape["vidlink"] = lambda: httpx.Response(500)

    response = client.get("/embed/movie/550")

    assert response.status_code == 200
    state = _page_state(response.text)
    assert state["stream_url"] is None
    assert "both servers" in state["error"]


def test_embed_page_carries_control_rules(client: TestClient) -> None:
    state = _page_state(client.get("/embed/movie/550").text)

    assert state["controls"]["key_bindings"]["arrowright"] == "seek_forward"
    assert state["controls"]["hide_delay_ms"] == 3000
    assert state["options"]["timing_step"] == 0.1


def test_embed_page_builds_captions_from_text_nodes(client: TestClient) -> None:
    html = client.get("/embed/movie/550").text

    assert "innerHTML" not in html
    assert "row.textContent = line;" in html


def test_embed_page_loads_catalog_title_when_configured(tmdb_client: TestClient) -> None:
    response = tmdb_client.get("/embed/tv/1399/1/2")

    assert response.status_code == 200
    assert "Game of Thrones - S1E2" in response.text
    assert _page_state(response.text)["backdrop_url"] == "https://img.test/t/p/w1280/b.jpg"


def test_embed_rejects_unknown_content_type(client: TestClient) -> None:
    response = client.get("/embed/anime/1")

    assert response.status_code == 404
