# services.py
import logging
from typing import Callable, List, Optional

import httpx

from config import Config
from models import Album, AppState, Credentials

logger = logging.getLogger(__name__)

CONFIG_ERROR_MESSAGE = "Configuration manquante - L'application n'est pas configurée correctement pour la production"
AUTH_ERROR_MESSAGE = "Erreur d'authentification Spotify - Vérifiez les clés API"
CONNECTION_ERROR_MESSAGE = "Erreur de connexion à Spotify"
NOT_CONFIGURED_MESSAGE = "Application non configurée - Contactez l'administrateur"
NOT_READY_MESSAGE = "Connexion à Spotify en cours... Réessayez dans quelques secondes"
ARTIST_NOT_FOUND_MESSAGE = "Artiste non trouvé"
SEARCH_FAILED_MESSAGE = "Erreur lors de la recherche"


class SpotifyError(Exception):
    """Base class for failures talking to Spotify."""


class AuthenticationError(SpotifyError):
    """The token endpoint answered with an error payload."""


class ConnectivityError(SpotifyError):
    """The token endpoint could not be reached or answered garbage."""


class ApiError(SpotifyError):
    """A Web API call answered with a non-success status."""
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Erreur API: {status_code}")


class SpotifyAuthService:
    """A service to perform the client-credentials token exchange."""
    def __init__(self, client: httpx.AsyncClient, config: Config):
        self.client = client
        self.config = config

    async def request_token(self, credentials: Credentials) -> str:
        """Exchanges the client id and secret for a bearer token."""
        try:
            resp = await self.client.post(
                self.config.ACCOUNTS_TOKEN_URL,
                data={
                    "grant_type": "client_credentials",
                    "client_id": credentials.client_id,
                    "client_secret": credentials.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise ConnectivityError(f"Spotify token request failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise ConnectivityError(f"Spotify token response was not JSON (HTTP {resp.status_code})") from e

        if not isinstance(payload, dict):
            raise ConnectivityError("Spotify token response was not an object")
        if payload.get("error"):
            raise AuthenticationError(f"Spotify token exchange failed: {payload.get('error')}")

        token = payload.get("access_token")
        if not token:
            raise AuthenticationError("Spotify token response has no access_token")
        return str(token)


class SpotifyCatalogService:
    """A service to handle artist lookups and album listings on the Web API."""
    def __init__(self, client: httpx.AsyncClient, config: Config):
        self.client = client
        self.config = config

    async def _get_json(self, path: str, token: str, params: dict) -> dict:
        resp = await self.client.get(
            f"{self.config.API_BASE_URL}{path}",
            params=params,
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )
        if not resp.is_success:
            raise ApiError(resp.status_code)
        return resp.json()

    async def find_artist_id(self, query: str, token: str) -> Optional[str]:
        """Returns the id of the best artist match, or None when nothing matches."""
        data = await self._get_json("/search", token, {"q": query, "type": "artist"})
        items = (data.get("artists") or {}).get("items") or []
        if not items:
            return None
        return items[0]["id"]

    async def list_albums(self, artist_id: str, token: str) -> List[Album]:
        """Lists one page of the artist's albums in the order Spotify returns them."""
        data = await self._get_json(
            f"/artists/{artist_id}/albums",
            token,
            {
                "include_groups": self.config.INCLUDE_GROUPS,
                "market": self.config.MARKET,
                "limit": self.config.ALBUM_LIMIT,
            },
        )
        return [Album.from_api(item) for item in data.get("items") or []]


StateListener = Callable[[AppState], None]


class SearchSession:
    """Owns the application state for one run and drives authentication and searches.

    Every state change replaces ``state`` wholesale and is pushed to the
    subscribed listeners. Searches are tagged with a generation number: once
    a search is superseded (newer search, reset, or close) its remaining
    updates are dropped.
    """

    def __init__(self, config: Config, credentials: Optional[Credentials],
                 client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.credentials = credentials
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT)
        self.auth_service = SpotifyAuthService(self.client, config)
        self.catalog_service = SpotifyCatalogService(self.client, config)

        self._listeners: List[StateListener] = []
        self._generation = 0
        self._connect_attempted = False
        self.state = AppState(config_error="" if credentials else CONFIG_ERROR_MESSAGE)

    @property
    def is_configured(self) -> bool:
        return self.credentials is not None

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _update(self, generation: Optional[int] = None, **changes) -> bool:
        if generation is not None and generation != self._generation:
            return False
        self.state = self.state.evolve(**changes)
        for listener in self._listeners:
            listener(self.state)
        return True

    def _supersede(self) -> int:
        self._generation += 1
        return self._generation

    async def connect(self) -> None:
        """Performs the token exchange, once per session."""
        if not self.is_configured or self._connect_attempted:
            return
        self._connect_attempted = True

        try:
            token = await self.auth_service.request_token(self.credentials)
        except AuthenticationError as e:
            logger.error("%s", e)
            self._update(error=AUTH_ERROR_MESSAGE)
            return
        except ConnectivityError as e:
            logger.error("%s", e)
            self._update(error=CONNECTION_ERROR_MESSAGE)
            return

        logger.info("Spotify access token acquired")
        self._update(access_token=token)

    def set_query(self, text: str) -> None:
        if text != self.state.search_input:
            self._update(search_input=text)

    async def search(self, query_text: str) -> None:
        """Resolves the artist then lists its albums, reporting failures through ``state.error``."""
        query = query_text.strip()
        if not query:
            self._supersede()
            self._update(albums=[], error="", has_searched=False, loading=False)
            return

        if not self.is_configured:
            self._update(error=NOT_CONFIGURED_MESSAGE)
            return
        if not self.state.access_token:
            self._update(error=NOT_READY_MESSAGE)
            return

        generation = self._supersede()
        token = self.state.access_token
        self._update(generation, loading=True, error="", has_searched=True, albums=[])
        try:
            artist_id = await self.catalog_service.find_artist_id(query, token)
            if artist_id is None:
                logger.info("No artist found for %r", query)
                self._update(generation, error=ARTIST_NOT_FOUND_MESSAGE)
                return

            albums = await self.catalog_service.list_albums(artist_id, token)
            logger.info("Found %d albums for %r (artist %s)", len(albums), query, artist_id)
            self._update(generation, albums=albums)
        except ApiError as e:
            logger.warning("Search for %r failed: %s", query, e)
            self._update(generation, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error while searching for %r", query)
            self._update(generation, error=str(e) or SEARCH_FAILED_MESSAGE)
        finally:
            self._update(generation, loading=False)

    def clear(self) -> None:
        """Returns to the initial state, keeping the token and configuration status."""
        self._supersede()
        self._update(search_input="", albums=[], error="", has_searched=False, loading=False)

    async def aclose(self) -> None:
        self._supersede()
        if self._owns_client:
            await self.client.aclose()
