import threading
from typing import Any, Dict, Iterable, List, Optional

import pytest

from app.config import Settings
from app.core import (
    RefreshedToken,
    RefreshError,
    SpotifyApiError,
    SpotifyAuthError,
    TrackRequest,
)
from app.data import (
    JsonCollectionStore,
    ReflectionRepository,
    TokenStore,
    UserRepository,
    VibeAnalysisRepository,
)
from app.pipeline import PlaylistGenerator, Services, WeatherClient

USER_ID = "user-1"


def make_track(uri_id: str, name: str = "", artist: str = "") -> Dict[str, Any]:
    """Minimal Spotify track object as returned by /search."""
    return {
        "id": uri_id,
        "uri": f"spotify:track:{uri_id}",
        "name": name or f"Song {uri_id}",
        "artists": [{"name": artist or "Some Artist"}],
        "album": {"name": "Some Album", "images": [{"url": f"https://img/{uri_id}"}]},
    }


def scoped_query(song: str, artist: str) -> str:
    return f"track:{song} artist:{artist}"


class FakeSpotify:
    """
    In-memory stand-in for the Spotify Web API.

    Calls made with a token outside `valid_tokens` fail with 401, like an
    expired or revoked token would.
    """

    def __init__(self, valid_tokens: Iterable[str] = ("access-1",)):
        self.valid_tokens = set(valid_tokens)
        self.catalog: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        self.playlists: Dict[str, List[str]] = {}
        self.add_batches: List[List[str]] = []
        self.fail_create = False
        self.fail_add_at: Optional[int] = None
        # query -> exception raised by search_tracks for that query
        self.fail_search: Dict[str, Exception] = {}
        self.fail_top_artists: Optional[Exception] = None
        self.top_artists: List[str] = ["Artist A", "Artist B"]
        self.top_tracks: List[Dict[str, Any]] = []
        self.audio_features: List[Optional[Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def client(self, access_token: str) -> "FakeSpotifyClient":
        return FakeSpotifyClient(self, access_token)

    def add_to_catalog(self, query: str, *tracks: Dict[str, Any]) -> None:
        self.catalog[query] = list(tracks)

    def calls_named(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


class FakeSpotifyClient:
    def __init__(self, backend: FakeSpotify, access_token: str):
        self.backend = backend
        self.access_token = access_token

    def _record(self, name: str, *args: Any) -> None:
        with self.backend._lock:
            self.backend.calls.append((name, self.access_token, args))
        if self.access_token not in self.backend.valid_tokens:
            raise SpotifyAuthError("The access token expired", status_code=401)

    def get_current_user(self) -> Dict[str, Any]:
        self._record("me")
        return {"id": "spotify-user", "display_name": "Test User", "email": "t@example.com"}

    def search_tracks(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        self._record("search", query)
        if query in self.backend.fail_search:
            raise self.backend.fail_search[query]
        return self.backend.catalog.get(query, [])[:limit]

    def create_playlist(
        self, spotify_user_id: str, name: str, description: str, public: bool = True
    ) -> Dict[str, Any]:
        self._record("create_playlist", spotify_user_id, name, description, public)
        if self.backend.fail_create:
            raise SpotifyApiError("Playlist creation failed", status_code=500)
        playlist_id = f"pl{len(self.backend.playlists) + 1}"
        self.backend.playlists[playlist_id] = []
        return {
            "id": playlist_id,
            "external_urls": {"spotify": f"https://open.spotify.com/playlist/{playlist_id}"},
        }

    def add_tracks(self, playlist_id: str, uris: List[str]) -> Dict[str, Any]:
        self._record("add_tracks", playlist_id, list(uris))
        if self.backend.fail_add_at == len(self.backend.add_batches):
            raise SpotifyApiError("Add tracks failed", status_code=500)
        self.backend.add_batches.append(list(uris))
        self.backend.playlists[playlist_id].extend(uris)
        return {"snapshot_id": f"snap{len(self.backend.add_batches)}"}

    def get_top_artists(self, limit: int = 20) -> List[str]:
        self._record("top_artists", limit)
        if self.backend.fail_top_artists is not None:
            raise self.backend.fail_top_artists
        return self.backend.top_artists[:limit]

    def get_top_tracks(self, limit: int = 50, time_range: str = "short_term"):
        self._record("top_tracks", limit, time_range)
        return self.backend.top_tracks[:limit]

    def get_audio_features(self, track_ids):
        self._record("audio_features", list(track_ids))
        return self.backend.audio_features


class FakeRefresher:
    """
    Token endpoint stand-in. Each refresh mints access-2, access-3, ...

    With grant_valid=False the new tokens are still rejected by FakeSpotify.
    """

    def __init__(self, backend: FakeSpotify, grant_valid: bool = True):
        self.backend = backend
        self.grant_valid = grant_valid
        self.fail = False
        self.expires_in = 3600
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def refresh(self, refresh_token: str) -> RefreshedToken:
        with self._lock:
            self.calls.append(refresh_token)
            token = f"access-{len(self.calls) + 1}"
        if self.fail:
            raise RefreshError("refresh rejected", status_code=400)
        if self.grant_valid:
            self.backend.valid_tokens.add(token)
        return RefreshedToken(access_token=token, expires_in=self.expires_in)

    def exchange_code(self, code: str) -> Dict[str, Any]:
        self.calls.append(f"code:{code}")
        self.backend.valid_tokens.add("access-code")
        return {
            "access_token": "access-code",
            "refresh_token": "refresh-code",
            "expires_in": 3600,
        }


def track_requests(count: int) -> List[TrackRequest]:
    return [TrackRequest(song=f"Song {i}", artist=f"Artist {i}") for i in range(count)]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        data_dir=str(tmp_path / "data"),
        generation_url="https://generate.example/functions/v1/generate-playlist",
        generation_api_key="anon-key",
        resolver_workers=4,
    )


@pytest.fixture
def store(settings) -> JsonCollectionStore:
    return JsonCollectionStore(settings.data_dir)


@pytest.fixture
def token_store(store) -> TokenStore:
    return TokenStore(store)


@pytest.fixture
def spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest.fixture
def refresher(spotify) -> FakeRefresher:
    return FakeRefresher(spotify)


@pytest.fixture
def connected_user(token_store) -> str:
    token_store.put(USER_ID, "access-1", "refresh-1", 3600)
    return USER_ID


@pytest.fixture
def services(settings, store, token_store, refresher, spotify) -> Services:
    return Services(
        settings=settings,
        token_store=token_store,
        refresher=refresher,
        users=UserRepository(store),
        reflections=ReflectionRepository(store),
        vibes=VibeAnalysisRepository(store),
        generator=PlaylistGenerator(settings),
        weather=WeatherClient(settings),
        client_factory=spotify.client,
    )
