from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Credential:
    """
    Stored Spotify OAuth tokens for one user.

    - access_token  : short-lived bearer token
    - refresh_token : long-lived token, may be missing
    - expires_at    : absolute expiry instant (UTC-aware)
    """

    user_id: str
    access_token: str
    refresh_token: Optional[str]
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return now >= self.expires_at


@dataclass
class RefreshedToken:
    access_token: str
    expires_in: int
    # Spotify may rotate the refresh token; None means "keep the old one"
    refresh_token: Optional[str] = None


class TrackRequest(BaseModel):
    """An AI-suggested (song, artist) pair awaiting resolution."""

    song: str = Field(min_length=1)
    artist: str = Field(min_length=1)


@dataclass
class PlaylistRef:
    playlist_id: str
    playlist_url: str
    requested_count: int = 0
    resolved_count: int = 0


@dataclass
class ReflectionRecord:
    """
    Audit entry for one playlist generation.

    tracks holds every suggested track, including those that did not resolve.
    """

    user_id: str
    prompt: str
    playlist_name: str
    narrative: str
    valence: float
    energy: float
    tracks: List[Dict[str, str]]
    playlist_id: Optional[str] = None
    playlist_url: Optional[str] = None
    discovery_mode: bool = False
    weather: Optional[str] = None
    time_of_day: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class VibeAnalysis:
    user_id: str
    valence: float
    energy: float
    danceability: float
    acousticness: float
    instrumentalness: float
    tracks: List[Dict[str, Any]] = field(default_factory=list)
    id: Optional[str] = None
    analyzed_at: Optional[datetime] = None
