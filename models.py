# models.py
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Credentials:
    """Client id and secret used for the client-credentials exchange."""
    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class Album:
    """A data class to hold the details shown for a single album."""
    id: str
    name: str
    release_date: str
    external_url: str
    cover_url: Optional[str] = None
    artists: str = ""
    total_tracks: Optional[int] = None

    @classmethod
    def from_api(cls, item: dict) -> "Album":
        """Parses a single raw album item from the artist albums endpoint."""
        images = item.get("images") or []
        return cls(
            id=item.get("id", ""),
            name=item.get("name", "N/A"),
            release_date=item.get("release_date", ""),
            external_url=(item.get("external_urls") or {}).get("spotify", ""),
            cover_url=images[0].get("url") if images else None,
            artists=", ".join(a.get("name", "") for a in item.get("artists", [])),
            total_tracks=item.get("total_tracks"),
        )


class View(str, Enum):
    """What the main area shows; values match the ContentSwitcher child ids."""
    CONFIG_ERROR = "config-error"
    ERROR = "error"
    LOADING = "loading"
    WELCOME = "welcome"
    EMPTY = "empty"
    RESULTS = "results"


@dataclass(frozen=True)
class AppState:
    """A single object to hold the entire application state."""
    search_input: str = ""
    access_token: str = ""
    albums: List[Album] = field(default_factory=list)
    loading: bool = False
    error: str = ""
    has_searched: bool = False
    config_error: str = ""

    @property
    def view(self) -> View:
        if self.config_error:
            return View.CONFIG_ERROR
        if self.error:
            return View.ERROR
        if self.loading:
            return View.LOADING
        if self.albums:
            return View.RESULTS
        if self.has_searched:
            return View.EMPTY
        return View.WELCOME

    def evolve(self, **changes) -> "AppState":
        return replace(self, **changes)
