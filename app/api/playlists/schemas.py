from typing import List, Optional

from pydantic import BaseModel, Field

from app.core import TrackRequest


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1)
    discovery_mode: bool = False
    weather: Optional[str] = None
    time_of_day: Optional[str] = None


class DraftResponse(BaseModel):
    playlist_name: str
    tracks: List[TrackRequest]
    narrative: str
    valence: float
    energy: float
    prompt: str
    discovery_mode: bool
    weather: Optional[str] = None
    time_of_day: Optional[str] = None


class ConfirmResponse(BaseModel):
    success: bool = True
    playlist_id: str
    spotify_url: str
    tracks_requested: int
    tracks_added: int
    reflection_id: Optional[str] = None


class TrackPreview(BaseModel):
    name: str
    artist: str
    album: str
    image: str
    uri: str
