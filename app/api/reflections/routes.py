from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.api.deps import get_current_user_id, get_services
from app.core import ReflectionRecord
from app.pipeline import Services

router = APIRouter()


class ReflectionItem(BaseModel):
    id: Optional[str] = None
    prompt: str
    playlist_name: str
    narrative: str
    valence: float
    energy: float
    tracks: List[Dict[str, str]]
    spotify_playlist_id: Optional[str] = None
    spotify_playlist_url: Optional[str] = None
    discovery_mode: bool = False
    weather_condition: Optional[str] = None
    time_of_day: Optional[str] = None
    created_at: Optional[datetime] = None


class ReflectionList(BaseModel):
    data: List[ReflectionItem]


def _to_item(record: ReflectionRecord) -> ReflectionItem:
    return ReflectionItem(
        id=record.id,
        prompt=record.prompt,
        playlist_name=record.playlist_name,
        narrative=record.narrative,
        valence=record.valence,
        energy=record.energy,
        tracks=record.tracks,
        spotify_playlist_id=record.playlist_id,
        spotify_playlist_url=record.playlist_url,
        discovery_mode=record.discovery_mode,
        weather_condition=record.weather,
        time_of_day=record.time_of_day,
        created_at=record.created_at,
    )


@router.get("", response_model=ReflectionList)
def list_reflections(
    limit: int = Query(default=10, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ReflectionList:
    """
    Most recent playlist generations for the user, newest first.
    """
    records = services.reflections.latest(user_id, limit=limit)
    return ReflectionList(data=[_to_item(r) for r in records])
