"""High-level flows behind the HTTP endpoints.

  - generate_draft()   : top artists (unless discovery mode) + AI draft,
                         nothing is written to Spotify
  - confirm_playlist() : playlist assembly on Spotify + reflection record
  - connect_account()  : OAuth code exchange, identity upsert, token save
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from app.config import Settings
from app.core import (
    EmptyAssemblyError,
    MoodlistError,
    PersistenceError,
    PlaylistRef,
    ProviderNetworkError,
    ProviderTimeoutError,
    ReflectionRecord,
    SpotifyApiError,
    TrackRequest,
    log_error,
    log_info,
    log_step,
    log_success,
    log_warning,
)
from app.data import (
    JsonCollectionStore,
    ReflectionRepository,
    TokenStore,
    UserRepository,
    VibeAnalysisRepository,
)
from app.spotify import (
    CredentialedRequestRunner,
    SpotifyClient,
    TokenRefresher,
    create_playlist_from_tracks,
)

from .generation import GeneratedPlaylist, GenerationRequest, PlaylistGenerator
from .weather import WeatherClient

# Only the first few favourite artists are useful as prompt context
TOP_ARTISTS_LIMIT = 20


@dataclass
class Services:
    """Wired collaborators for one process; built once from Settings."""

    settings: Settings
    token_store: TokenStore
    refresher: TokenRefresher
    users: UserRepository
    reflections: ReflectionRepository
    vibes: VibeAnalysisRepository
    generator: PlaylistGenerator
    weather: WeatherClient
    client_factory: Optional[Callable[[str], SpotifyClient]] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        store = JsonCollectionStore(settings.data_dir)
        return cls(
            settings=settings,
            token_store=TokenStore(store),
            refresher=TokenRefresher(settings),
            users=UserRepository(store),
            reflections=ReflectionRepository(store),
            vibes=VibeAnalysisRepository(store),
            generator=PlaylistGenerator(settings),
            weather=WeatherClient(settings),
        )

    def runner_for(self, user_id: str) -> CredentialedRequestRunner:
        return CredentialedRequestRunner(
            user_id,
            self.token_store,
            self.refresher,
            self.settings,
            client_factory=self.client_factory,
        )

    def client_for(self, access_token: str) -> SpotifyClient:
        if self.client_factory is not None:
            return self.client_factory(access_token)
        return SpotifyClient(access_token, self.settings)


class PlaylistConfirmation(BaseModel):
    """A draft the user accepted, plus the context it was generated with."""

    playlist_name: str = Field(min_length=1)
    tracks: List[TrackRequest] = Field(min_length=1)
    narrative: str = ""
    valence: float = Field(ge=0.0, le=1.0)
    energy: float = Field(ge=0.0, le=1.0)
    prompt: str = ""
    discovery_mode: bool = False
    weather: Optional[str] = None
    time_of_day: Optional[str] = None


@dataclass
class ConfirmationResult:
    playlist: PlaylistRef
    reflection: Optional[ReflectionRecord]


def generate_draft(
    services: Services,
    user_id: str,
    prompt: str,
    discovery_mode: bool = False,
    weather: Optional[str] = None,
    time_of_day: Optional[str] = None,
) -> GeneratedPlaylist:
    top_artists: List[str] = []
    if not discovery_mode:
        runner = services.runner_for(user_id)
        try:
            top_artists = runner.call(
                lambda client: client.get_top_artists(limit=TOP_ARTISTS_LIMIT)
            )
        except (SpotifyApiError, ProviderTimeoutError, ProviderNetworkError) as e:
            # Optional prompt context; auth errors still propagate
            log_warning(
                f"Top artists unavailable, generating without them: {e}",
                user_id=user_id,
            )

    return services.generator.generate(
        GenerationRequest(
            prompt=prompt,
            discovery_mode=discovery_mode,
            weather=weather,
            time_of_day=time_of_day,
            top_artists=top_artists,
        )
    )


def _reflection_for(
    user_id: str,
    confirmation: PlaylistConfirmation,
    ref: Optional[PlaylistRef],
) -> ReflectionRecord:
    return ReflectionRecord(
        user_id=user_id,
        prompt=confirmation.prompt,
        playlist_name=confirmation.playlist_name,
        narrative=confirmation.narrative,
        valence=confirmation.valence,
        energy=confirmation.energy,
        tracks=[t.model_dump() for t in confirmation.tracks],
        playlist_id=ref.playlist_id if ref else None,
        playlist_url=ref.playlist_url if ref else None,
        discovery_mode=confirmation.discovery_mode,
        weather=confirmation.weather,
        time_of_day=confirmation.time_of_day,
    )


def _save_reflection(
    services: Services,
    record: ReflectionRecord,
) -> Optional[ReflectionRecord]:
    """Persist a reflection; a storage failure is logged, never raised."""
    try:
        return services.reflections.add(record)
    except PersistenceError as e:
        log_error(f"Failed to save reflection: {e}", user_id=record.user_id)
        return None


def confirm_playlist(
    services: Services,
    user_id: str,
    confirmation: PlaylistConfirmation,
) -> ConfirmationResult:
    """
    Create the Spotify playlist for an accepted draft and record it.

    Every attempt is recorded. When assembly fails or nothing resolved, the
    reflection has no playlist id and the error (EmptyAssemblyError for the
    latter) is raised after it is saved.
    """
    log_step(f"Confirming playlist '{confirmation.playlist_name}'...", user_id=user_id)
    try:
        ref = create_playlist_from_tracks(
            user_id,
            confirmation.playlist_name,
            confirmation.tracks,
            confirmation.narrative or None,
            token_store=services.token_store,
            refresher=services.refresher,
            settings=services.settings,
            client_factory=services.client_factory,
        )
    except MoodlistError:
        _save_reflection(services, _reflection_for(user_id, confirmation, None))
        raise

    saved = _save_reflection(services, _reflection_for(user_id, confirmation, ref))

    if ref is None:
        raise EmptyAssemblyError(len(confirmation.tracks))

    log_success(
        f"Playlist {ref.playlist_id} created with "
        f"{ref.resolved_count}/{ref.requested_count} tracks.",
        user_id=user_id,
    )
    return ConfirmationResult(playlist=ref, reflection=saved)


def connect_account(services: Services, code: str) -> Dict[str, Optional[str]]:
    """
    Finish the OAuth flow: exchange the code, upsert the user, store tokens.

    Returns the internal user id along with the Spotify profile basics.
    """
    token_info = services.refresher.exchange_code(code)
    profile = services.client_for(token_info["access_token"]).get_current_user()

    user_id = services.users.upsert_by_spotify_id(
        profile["id"],
        email=profile.get("email"),
        display_name=profile.get("display_name"),
    )
    services.token_store.put(
        user_id,
        token_info["access_token"],
        token_info.get("refresh_token"),
        int(token_info.get("expires_in", 3600)),
    )
    log_info(f"Spotify account {profile['id']} connected.", user_id=user_id)
    return {
        "user_id": user_id,
        "spotify_id": profile["id"],
        "display_name": profile.get("display_name"),
    }
