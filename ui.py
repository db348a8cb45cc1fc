# ui.py
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import (Button, DataTable, Input, Label, LoadingIndicator,
                             Markdown, RichLog, Static)

from models import Album, AppState

CONFIG_HELP = """\
## Configuration requise

{message}

Pour résoudre ce problème :

1. Vérifiez que les variables `SPOTIFY_CLIENT_ID` et `SPOTIFY_CLIENT_SECRET` sont définies
2. Relancez l'application
"""

WELCOME_TEXT = """\
## Bienvenue sur Spotify Album Explorer

Explorez la discographie complète de millions d'artistes.
Trouvez leurs albums, dates de sortie et écoutez directement sur Spotify.

- **Recherche intuitive** : trouvez rapidement vos artistes préférés
- **Discographie complète** : accédez à tous les albums officiels
- **Écoute instantanée** : lancez la lecture directement sur Spotify
"""

EMPTY_TEXT = "## Prêt à explorer ?\n\nCommencez par rechercher un artiste ci-dessus."

_DATE_FORMATS = (("%Y-%m-%d", "%d/%m/%Y"), ("%Y-%m", "%m/%Y"), ("%Y", "%Y"))


def format_release_date(release_date: str) -> str:
    """Formats a Spotify release date (day, month or year precision) the French way."""
    for parse_format, display_format in _DATE_FORMATS:
        try:
            return datetime.strptime(release_date, parse_format).strftime(display_format)
        except ValueError:
            continue
    return release_date or "Date inconnue"


def error_hint(error: str) -> str:
    if "configurée" in error:
        return "L'application nécessite une configuration pour fonctionner"
    return "Vérifiez l'orthographe ou essayez un autre artiste"


def loading_text(query: str) -> str:
    return f"Exploration en cours...\nRecherche des albums de {query.strip()}"


def results_summary(state: AppState) -> Text:
    count = len(state.albums)
    plural = "s" if count > 1 else ""
    return Text.assemble("Albums de ", (state.search_input.strip(), "bold"), f" ({count} album{plural})")


def album_details(album: Optional[Album]) -> str:
    if album is None:
        return "## Détails\n\n*Sélectionnez un album pour voir ses détails.*"
    lines = [
        f"## {album.name}",
        "",
        f"- **Artistes** : {album.artists or 'N/A'}",
        f"- **Sorti le** : {format_release_date(album.release_date)}",
    ]
    if album.total_tracks is not None:
        lines.append(f"- **Titres** : {album.total_tracks}")
    if album.cover_url:
        lines.append(f"- **Pochette** : `{album.cover_url}`")
    lines.append(f"- **Écouter sur Spotify** : `{album.external_url}`")
    return "\n".join(lines)


class SearchControls(Static):
    """Widget for the search input, action buttons and artist suggestions."""
    class SearchRequested(Message):
        def __init__(self, query: str) -> None:
            self.query = query
            super().__init__()

    class ClearRequested(Message):
        pass

    class QueryChanged(Message):
        def __init__(self, value: str) -> None:
            self.value = value
            super().__init__()

    def __init__(self, suggestions: Sequence[str], **kwargs) -> None:
        super().__init__(**kwargs)
        self.suggestions = list(suggestions)

    def compose(self) -> ComposeResult:
        yield Label("Entrez le nom d'un artiste :")
        with Horizontal(id="search-row"):
            yield Input(placeholder="ex: Daft Punk, Taylor Swift...", id="search-input")
            yield Button("Effacer", id="clear-button")
            yield Button("Explorer", id="search-button", variant="primary", disabled=True)
        with Horizontal(id="suggestions"):
            yield Label("Artistes populaires :")
            for index, artist in enumerate(self.suggestions):
                yield Button(artist, id=f"suggestion-{index}", name=artist, classes="suggestion")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "clear-button":
            self.post_message(self.ClearRequested())
        elif event.button.id == "search-button":
            self.post_message(self.SearchRequested(self.query_one(Input).value))
        elif event.button.name:
            # Suggestions fill the input and search right away.
            self.query_one(Input).value = event.button.name
            self.post_message(self.SearchRequested(event.button.name))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.post_message(self.SearchRequested(event.value))

    def on_input_changed(self, event: Input.Changed) -> None:
        self.post_message(self.QueryChanged(event.value))

    def sync(self, state: AppState) -> None:
        """Brings the buttons and suggestions in line with the current state."""
        search_button = self.query_one("#search-button", Button)
        search_button.disabled = state.loading or not state.search_input.strip()
        search_button.label = "Recherche..." if state.loading else "Explorer"
        clear_button = self.query_one("#clear-button", Button)
        clear_button.display = state.has_searched
        clear_button.disabled = state.loading
        self.query_one("#suggestions").display = not state.has_searched and not state.albums and not state.error

    def set_query(self, text: str) -> None:
        self.query_one(Input).value = text


class ErrorPanel(Vertical):
    """Shows the current error with a way back to a fresh search."""
    def compose(self) -> ComposeResult:
        yield Static(id="error-title")
        yield Static(id="error-hint")
        yield Button("Nouvelle recherche", id="retry-button", variant="warning")

    def update_error(self, error: str) -> None:
        self.query_one("#error-title", Static).update(Text(error, style="bold"))
        self.query_one("#error-hint", Static).update(error_hint(error))


class LoadingPanel(Vertical):
    def compose(self) -> ComposeResult:
        yield LoadingIndicator()
        yield Static(id="loading-text")

    def update_query(self, query: str) -> None:
        self.query_one("#loading-text", Static).update(Text(loading_text(query)))


class DetailsPane(Static):
    """Widget to display details of the highlighted album."""
    def on_mount(self) -> None:
        self.update_details(None)

    def update_details(self, album: Optional[Album]) -> None:
        self.query_one(Markdown).update(album_details(album))

    def compose(self) -> ComposeResult:
        yield Markdown()


class ResultsDisplay(DataTable):
    """Widget for the album results table."""
    class AlbumHighlighted(Message):
        def __init__(self, album: Album) -> None:
            self.album = album
            super().__init__()

    class AlbumChosen(Message):
        def __init__(self, album: Album) -> None:
            self.album = album
            super().__init__()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._result_batch = 0
        self._albums_by_key: Dict[str, Album] = {}

    def on_mount(self) -> None:
        self.add_columns("Album", "Pochette", "Sortie", "Lien")
        self.cursor_type = "row"

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        album = self._albums_by_key.get(event.row_key.value)
        if album is not None:
            self.post_message(self.AlbumHighlighted(album))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        album = self._albums_by_key.get(event.row_key.value)
        if album is not None:
            self.post_message(self.AlbumChosen(album))

    def update_results(self, albums: List[Album]) -> None:
        # Row keys are unique per result list, so events from a previous list match nothing.
        self.clear()
        self._result_batch += 1
        self._albums_by_key = {}
        for index, album in enumerate(albums):
            key = f"{self._result_batch}:{index}"
            self._albums_by_key[key] = album
            self.add_row(album.name, "🖼" if album.cover_url else "-",
                         format_release_date(album.release_date), album.external_url, key=key)


class ResultsPanel(Vertical):
    def compose(self) -> ComposeResult:
        with Horizontal(id="results-header"):
            yield Static(id="results-summary")
            yield Button("← Nouvelle recherche", id="back-button")
        with Horizontal(id="results-body"):
            yield ResultsDisplay(id="results-table")
            yield DetailsPane(id="details-pane")

    def update_results(self, state: AppState, albums_changed: bool) -> None:
        self.query_one("#results-summary", Static).update(results_summary(state))
        if albums_changed:
            self.query_one(ResultsDisplay).update_results(state.albums)
            self.show_details(state.albums[0] if state.albums else None)

    def show_details(self, album: Optional[Album]) -> None:
        self.query_one(DetailsPane).update_details(album)


class LogPane(RichLog):
    """A dedicated widget for logging application events."""
    def add_message(self, message: str) -> None:
        self.write(message)
