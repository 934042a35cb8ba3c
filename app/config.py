from dataclasses import dataclass, field
from functools import lru_cache
import os
from typing import Optional, Tuple

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Spotify API constants
SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

# Hard ceiling imposed by Spotify on "add items to playlist"
SPOTIFY_MAX_BATCH = 100

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

SCOPES = (
    "user-read-email",
    "user-read-private",
    "user-top-read",
    "playlist-modify-private",
    "playlist-modify-public",
)

DEFAULT_PLAYLIST_DESCRIPTION = "Created with Moodlist - AI-powered playlist generator"


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, built once and passed to the components that need it.

    Nothing below the API layer reads environment variables directly.
    """

    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    spotify_redirect_uri: str = "http://127.0.0.1:8000/auth/callback"
    spotify_auth_url: str = SPOTIFY_AUTH_URL
    spotify_token_url: str = SPOTIFY_TOKEN_URL
    spotify_api_base: str = SPOTIFY_API_BASE
    scopes: Tuple[str, ...] = field(default=SCOPES)

    data_dir: str = os.path.join(BASE_DIR, "data")

    generation_url: Optional[str] = None
    generation_api_key: Optional[str] = None

    weather_url: str = OPEN_METEO_URL

    http_timeout: float = 10.0
    generation_timeout: float = 60.0
    resolver_workers: int = 8

    log_level: str = "INFO"


def load_settings() -> Settings:
    """
    Build Settings from the process environment (and a local .env file).
    """
    load_dotenv()

    return Settings(
        spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
        spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
        spotify_redirect_uri=os.getenv(
            "SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8000/auth/callback"
        ),
        data_dir=os.getenv("MOODLIST_DATA_DIR", os.path.join(BASE_DIR, "data")),
        generation_url=os.getenv("MOODLIST_GENERATION_URL"),
        generation_api_key=os.getenv("MOODLIST_GENERATION_API_KEY"),
        http_timeout=float(os.getenv("MOODLIST_HTTP_TIMEOUT", "10")),
        generation_timeout=float(os.getenv("MOODLIST_GENERATION_TIMEOUT", "60")),
        resolver_workers=int(os.getenv("MOODLIST_RESOLVER_WORKERS", "8")),
        log_level=os.getenv("MOODLIST_LOG_LEVEL", "INFO"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide Settings."""
    return load_settings()
