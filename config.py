# config.py
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import find_dotenv, load_dotenv
from textual.logging import TextualHandler

from models import Credentials

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Holds all application configuration."""
    ACCOUNTS_TOKEN_URL: str = "https://accounts.spotify.com/api/token"
    API_BASE_URL: str = "https://api.spotify.com/v1"
    MARKET: str = "US"
    INCLUDE_GROUPS: str = "album"
    ALBUM_LIMIT: int = 50
    REQUEST_TIMEOUT: float = 30.0
    SUGGESTED_ARTISTS: Tuple[str, ...] = (
        "Kendrick Lamar", "Beyoncé", "The Weeknd", "Ariana Grande", "Drake",
    )
    CLIENT_ID_VAR: str = "SPOTIFY_CLIENT_ID"
    CLIENT_SECRET_VAR: str = "SPOTIFY_CLIENT_SECRET"
    LOG_FILE_VAR: str = "ALBUM_EXPLORER_LOG"
    LOG_FILENAME: Optional[str] = None


def _process_environ() -> Mapping[str, str]:
    # A .env in the working directory fills in variables the shell did not set.
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
    return os.environ


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Builds the configuration, picking up the optional log file from the environment."""
    environ = _process_environ() if environ is None else environ
    config = Config()
    log_file = (environ.get(config.LOG_FILE_VAR) or "").strip()
    if log_file:
        config.LOG_FILENAME = log_file
    return config


def load_credentials(config: Config, environ: Optional[Mapping[str, str]] = None) -> Optional[Credentials]:
    """Reads the client id and secret once; returns None when either is missing."""
    environ = _process_environ() if environ is None else environ
    client_id = (environ.get(config.CLIENT_ID_VAR) or "").strip()
    client_secret = (environ.get(config.CLIENT_SECRET_VAR) or "").strip()

    missing = [name for name, value in ((config.CLIENT_ID_VAR, client_id),
                                        (config.CLIENT_SECRET_VAR, client_secret)) if not value]
    if missing:
        logger.warning("Missing Spotify credentials: %s", ", ".join(missing))
        return None
    return Credentials(client_id=client_id, client_secret=client_secret)


def setup_logging(config: Config, level: int = logging.INFO) -> logging.Logger:
    """Routes log records to a file, or to the Textual devtools console when no file is set."""
    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        handler.close()
    root.handlers.clear()

    if config.LOG_FILENAME:
        handler: logging.Handler = logging.FileHandler(config.LOG_FILENAME, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = TextualHandler()
    root.addHandler(handler)

    # httpx logs every request at INFO, which would include query strings.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return root
