"""Public façade for the app.spotify package.

This module exposes the Spotify Web API integration: the token endpoint, the
credentialed request runner, track resolution and playlist assembly. Callers
should import these symbols from this façade instead of the internal auth,
client, session, tracks, or playlists modules.
"""

from .auth import TokenRefresher, build_spotify_auth_url
from .client import SpotifyClient
from .playlists import PlaylistAssembler, chunked, create_playlist_from_tracks
from .session import (
    CredentialedRequestRunner,
    ensure_fresh_access_token,
    ensure_fresh_credential,
)
from .tracks import TrackResolver

__all__ = [
    "build_spotify_auth_url",
    "TokenRefresher",
    "SpotifyClient",
    "CredentialedRequestRunner",
    "ensure_fresh_access_token",
    "ensure_fresh_credential",
    "TrackResolver",
    "PlaylistAssembler",
    "chunked",
    "create_playlist_from_tracks",
]
