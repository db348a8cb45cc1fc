# main.py
import argparse
import logging
import webbrowser
from typing import Optional

import pyperclip
from rich.markup import escape
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.reactive import reactive
from textual.widgets import Button, ContentSwitcher, Footer, Header, Input, Markdown

from config import Config, load_config, load_credentials, setup_logging
from models import Album, AppState, View
from services import SearchSession
from ui import (CONFIG_HELP, EMPTY_TEXT, WELCOME_TEXT, ErrorPanel, LoadingPanel,
                LogPane, ResultsDisplay, ResultsPanel, SearchControls)

logger = logging.getLogger(__name__)


class AlbumExplorerApp(App):
    BINDINGS = [
        ("q", "quit", "Quitter"),
        ("c", "copy_link", "Copier le lien"),
        ("o", "open_link", "Ouvrir dans Spotify"),
        Binding("escape", "clear_search", "Nouvelle recherche", priority=True),
    ]
    CSS_PATH = "album_explorer.tcss"
    TITLE = "Spotify Album Explorer"

    app_state = reactive(AppState(), always_update=True, init=False)

    def __init__(self, session: SearchSession, config: Config, initial_query: Optional[str] = None):
        super().__init__()
        self.session = session
        self.config = config
        self.initial_query = initial_query
        self.selected_album: Optional[Album] = None
        self.set_reactive(AlbumExplorerApp.app_state, session.state)

    def compose(self) -> ComposeResult:
        state = self.app_state
        yield Header()
        with Container(id="main-container"):
            yield SearchControls(self.config.SUGGESTED_ARTISTS, id="search-controls")
            with ContentSwitcher(initial=state.view.value, id="views"):
                yield Markdown(CONFIG_HELP.format(message=state.config_error), id=View.CONFIG_ERROR.value)
                yield ErrorPanel(id=View.ERROR.value)
                yield LoadingPanel(id=View.LOADING.value)
                yield Markdown(WELCOME_TEXT, id=View.WELCOME.value)
                yield Markdown(EMPTY_TEXT, id=View.EMPTY.value)
                yield ResultsPanel(id=View.RESULTS.value)
            yield LogPane(id="log", wrap=True, highlight=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        self.session.subscribe(self._on_state_changed)
        self.render_state(self.app_state, albums_changed=True)
        log = self.query_one(LogPane)
        if self.app_state.config_error:
            log.add_message("[red]❌ Identifiants Spotify manquants, recherche désactivée.[/red]")
            return
        self.query_one(Input).focus()
        log.add_message("🔐 Connexion à Spotify...")
        self.run_worker(self.perform_connect(), group="auth_worker")

    async def on_unmount(self) -> None:
        await self.session.aclose()

    def _on_state_changed(self, state: AppState) -> None:
        self.app_state = state

    def watch_app_state(self, old_state: AppState, new_state: AppState) -> None:
        """Pushes every state change to the widgets."""
        self.render_state(new_state, albums_changed=old_state.albums != new_state.albums)

    def render_state(self, state: AppState, albums_changed: bool) -> None:
        view = state.view
        controls = self.query_one(SearchControls)
        controls.display = view is not View.CONFIG_ERROR
        if view is not View.CONFIG_ERROR:
            controls.sync(state)
            if state.error:
                self.query_one(ErrorPanel).update_error(state.error)
            if state.loading:
                self.query_one(LoadingPanel).update_query(state.search_input)
            self.query_one(ResultsPanel).update_results(state, albums_changed)
            if albums_changed:
                self.selected_album = state.albums[0] if state.albums else None
        self.query_one(ContentSwitcher).current = view.value

    def start_search(self, query: str) -> None:
        self.session.set_query(query)
        if query.strip():
            self.query_one(LogPane).add_message(f"🔎 Recherche de '{escape(query.strip())}'...")
        self.workers.cancel_group(self, "search_worker")
        self.run_worker(self.perform_search(query), group="search_worker", exclusive=True)

    # --- Actions ---
    def action_clear_search(self) -> None:
        if self.app_state.config_error:
            return
        self.workers.cancel_group(self, "search_worker")
        self.session.clear()
        self.query_one(SearchControls).set_query("")

    def action_copy_link(self) -> None:
        log = self.query_one(LogPane)
        album = self.selected_album
        if album is None:
            log.add_message("[yellow]⚠️ Aucun album sélectionné.[/yellow]")
            return
        try:
            pyperclip.copy(album.external_url)
        except pyperclip.PyperclipException as e:
            log.add_message(f"[red]❌ Presse-papiers indisponible : {escape(str(e))}[/red]")
            return
        log.add_message(f"📋 Lien copié pour '[b]{escape(album.name)}[/b]'.")

    def action_open_link(self) -> None:
        album = self.selected_album
        if album is None or not album.external_url:
            self.query_one(LogPane).add_message("[yellow]⚠️ Aucun album sélectionné.[/yellow]")
            return
        webbrowser.open(album.external_url)
        self.query_one(LogPane).add_message(f"▶ Ouverture de '[b]{escape(album.name)}[/b]' dans Spotify.")

    # --- Message Handlers ---
    def on_search_controls_query_changed(self, message: SearchControls.QueryChanged) -> None:
        self.session.set_query(message.value)

    def on_search_controls_search_requested(self, message: SearchControls.SearchRequested) -> None:
        self.start_search(message.query)

    def on_search_controls_clear_requested(self, message: SearchControls.ClearRequested) -> None:
        self.action_clear_search()

    @on(Button.Pressed, "#retry-button, #back-button")
    def handle_new_search(self) -> None:
        self.action_clear_search()

    def on_results_display_album_highlighted(self, message: ResultsDisplay.AlbumHighlighted) -> None:
        if message.album not in self.app_state.albums:
            return
        self.selected_album = message.album
        self.query_one(ResultsPanel).show_details(self.selected_album)

    def on_results_display_album_chosen(self, message: ResultsDisplay.AlbumChosen) -> None:
        if message.album in self.app_state.albums:
            self.selected_album = message.album
            self.action_open_link()

    # --- Worker Methods ---
    async def perform_connect(self) -> None:
        await self.session.connect()
        log = self.query_one(LogPane)
        state = self.session.state
        if not state.access_token:
            log.add_message(f"[red]❌ {escape(state.error)}[/red]")
            return
        log.add_message("[green]✅ Connecté à Spotify.[/green]")
        if self.initial_query:
            self.query_one(SearchControls).set_query(self.initial_query)
            self.start_search(self.initial_query)

    async def perform_search(self, query: str) -> None:
        await self.session.search(query)
        state = self.session.state
        if state.loading or not state.has_searched:
            return
        log = self.query_one(LogPane)
        if state.error:
            log.add_message(f"[red]❌ {escape(state.error)}[/red]")
        else:
            log.add_message(f"🎶 {len(state.albums)} album(s) trouvé(s) pour '{escape(query.strip())}'.")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Explore the albums of any artist on Spotify.")
    parser.add_argument("query", nargs="?", help="Artist to search for as soon as the app is connected.")
    parser.add_argument("--log-file", help="Write logs to this file instead of the Textual console.")
    args = parser.parse_args(argv)

    app_config = load_config()
    if args.log_file:
        app_config.LOG_FILENAME = args.log_file
    setup_logging(app_config)

    credentials = load_credentials(app_config)
    logger.info("Starting album explorer (configured=%s)", credentials is not None)
    session = SearchSession(app_config, credentials)
    app = AlbumExplorerApp(session, app_config, initial_query=args.query)
    app.run()


if __name__ == "__main__":
    main()
