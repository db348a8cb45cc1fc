from __future__ import annotations

from typing import Any, Callable, Iterator

import httpx
import pytest

from config import Config
from models import Credentials
from services import SearchSession

ARTIST_ID = "4tZwfgrHOc3mvqYlEYSvVi"


def album_item(index: int) -> dict[str, Any]:
    return {
        "id": f"album-{index}",
        "name": f"Album {index}",
        "release_date": f"200{index}-03-1{index}",
        "total_tracks": 10 + index,
        "images": [{"url": f"https://i.scdn.co/image/{index}", "height": 640, "width": 640}],
        "external_urls": {"spotify": f"https://open.spotify.com/album/album-{index}"},
        "artists": [{"id": ARTIST_ID, "name": "Daft Punk"}],
    }


class FakeSpotify:
    """Answers the token, search and albums endpoints and records every request."""

    def __init__(
        self,
        token_payload: dict[str, Any] | None = None,
        token_status: int = 200,
        artists: list[dict[str, Any]] | None = None,
        search_status: int = 200,
        albums_payload: dict[str, Any] | None = None,
        albums_status: int = 200,
    ) -> None:
        self.token_payload = token_payload if token_payload is not None else {
            "access_token": "token-123",
            "token_type": "Bearer",
            "expires_in": 3600,
        }
        self.token_status = token_status
        self.artists = artists if artists is not None else [{"id": ARTIST_ID, "name": "Daft Punk"}]
        self.search_status = search_status
        self.albums_payload = albums_payload if albums_payload is not None else {
            "items": [album_item(i) for i in range(1, 4)],
        }
        self.albums_status = albums_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "accounts.spotify.com":
            return httpx.Response(self.token_status, json=self.token_payload)
        if request.url.path == "/v1/search":
            if self.search_status != 200:
                return httpx.Response(self.search_status, json={"error": {"status": self.search_status}})
            return httpx.Response(200, json={"artists": {"items": self.artists}})
        if request.url.path.endswith("/albums"):
            if self.albums_status != 200:
                return httpx.Response(self.albums_status, json={"error": {"status": self.albums_status}})
            return httpx.Response(200, json=self.albums_payload)
        return httpx.Response(404, json={"error": {"status": 404}})

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == "api.spotify.com"]


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(client_id="client-id", client_secret="client-secret")


@pytest.fixture
def spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest.fixture
def make_session(config: Config) -> Iterator[Callable[..., SearchSession]]:
    """Builds sessions whose HTTP calls are answered by the given handler."""

    def _make(handler: Callable[[httpx.Request], Any], credentials: Credentials | None) -> SearchSession:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SearchSession(config, credentials, client=client)

    yield _make
