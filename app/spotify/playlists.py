"""Playlist assembly from resolved tracks.

assemble() runs four steps:
  1. create an empty playlist (a failure here aborts everything)
  2. resolve all requested tracks, keeping request order and dropping misses
  3. if nothing resolved, return None; the empty playlist is left in place and
     the caller decides what to do with it
  4. append the URIs in sequential batches of at most 100

An append failure propagates and may leave the playlist partially filled;
nothing is rolled back.
"""

from typing import Callable, Iterator, List, Optional, Sequence

from app.config import DEFAULT_PLAYLIST_DESCRIPTION, SPOTIFY_MAX_BATCH, Settings
from app.core import (
    PlaylistRef,
    TrackRequest,
    log_step,
    log_success,
    log_warning,
)
from app.data import TokenStore

from .auth import TokenRefresher
from .client import SpotifyClient
from .session import CredentialedRequestRunner
from .tracks import TrackResolver


def chunked(items: Sequence[str], size: int) -> Iterator[List[str]]:
    if size <= 0:
        raise ValueError("Batch size must be positive.")
    for i in range(0, len(items), size):
        yield list(items[i : i + size])


class PlaylistAssembler:
    def __init__(
        self,
        runner: CredentialedRequestRunner,
        resolver: TrackResolver,
        batch_size: int = SPOTIFY_MAX_BATCH,
    ):
        self.runner = runner
        self.resolver = resolver
        self.batch_size = min(batch_size, SPOTIFY_MAX_BATCH)

    def _create_empty_playlist(
        self,
        name: str,
        description: str,
        public: bool,
    ) -> PlaylistRef:
        profile = self.runner.call(lambda client: client.get_current_user())
        playlist = self.runner.call(
            lambda client: client.create_playlist(
                profile["id"], name, description, public=public
            )
        )
        return PlaylistRef(
            playlist_id=playlist["id"],
            playlist_url=(playlist.get("external_urls") or {}).get("spotify", ""),
        )

    def assemble(
        self,
        name: str,
        tracks: Sequence[TrackRequest],
        description: Optional[str] = None,
        public: bool = True,
    ) -> Optional[PlaylistRef]:
        log_step(
            f"Creating playlist '{name}' from {len(tracks)} suggested tracks...",
            user_id=self.runner.user_id,
        )
        ref = self._create_empty_playlist(
            name, description or DEFAULT_PLAYLIST_DESCRIPTION, public
        )

        resolved = self.resolver.resolve_all(tracks)
        uris = [uri for uri in resolved if uri]
        ref.requested_count = len(tracks)
        ref.resolved_count = len(uris)

        if not uris:
            log_warning(
                f"No tracks resolved for playlist '{name}' ({ref.playlist_id}); "
                "leaving it empty.",
                user_id=self.runner.user_id,
            )
            return None

        for batch in chunked(uris, self.batch_size):
            self.runner.call(
                lambda client, batch=batch: client.add_tracks(ref.playlist_id, batch)
            )

        log_success(
            f"Playlist '{name}' ready with {len(uris)}/{len(tracks)} tracks.",
            user_id=self.runner.user_id,
        )
        return ref


def create_playlist_from_tracks(
    user_id: str,
    name: str,
    tracks: Sequence[TrackRequest],
    description: Optional[str] = None,
    *,
    token_store: TokenStore,
    refresher: TokenRefresher,
    settings: Settings,
    client_factory: Optional[Callable[[str], SpotifyClient]] = None,
) -> Optional[PlaylistRef]:
    """
    Build a playlist for `user_id` from AI-suggested tracks.

    Returns None when no track could be resolved.
    """
    runner = CredentialedRequestRunner(
        user_id, token_store, refresher, settings, client_factory=client_factory
    )
    resolver = TrackResolver(runner, max_workers=settings.resolver_workers)
    return PlaylistAssembler(runner, resolver).assemble(name, tracks, description)
