from typing import Any, Dict, List

from app.core import ReflectionRecord

from .store import JsonCollectionStore, parse_datetime

REFLECTIONS_COLLECTION = "reflections"


def _serialize_reflection(record: ReflectionRecord) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    if record.created_at is not None:
        row["created_at"] = record.created_at.isoformat()
    return row | {
        "user_id": record.user_id,
        "prompt": record.prompt,
        "playlist_name": record.playlist_name,
        "narrative": record.narrative,
        "valence": record.valence,
        "energy": record.energy,
        "tracks": list(record.tracks),
        "spotify_playlist_id": record.playlist_id,
        "spotify_playlist_url": record.playlist_url,
        "discovery_mode": record.discovery_mode,
        "weather_condition": record.weather,
        "time_of_day": record.time_of_day,
    }


def _deserialize_reflection(row: Dict[str, Any]) -> ReflectionRecord:
    return ReflectionRecord(
        id=row.get("id"),
        user_id=row["user_id"],
        prompt=row.get("prompt") or "",
        playlist_name=row.get("playlist_name") or "",
        narrative=row.get("narrative") or "",
        valence=float(row.get("valence") or 0.0),
        energy=float(row.get("energy") or 0.0),
        tracks=row.get("tracks") or [],
        playlist_id=row.get("spotify_playlist_id"),
        playlist_url=row.get("spotify_playlist_url"),
        discovery_mode=bool(row.get("discovery_mode")),
        weather=row.get("weather_condition"),
        time_of_day=row.get("time_of_day"),
        created_at=parse_datetime(row.get("created_at")),
    )


class ReflectionRepository:
    """Insert-only history of playlist generations."""

    def __init__(self, store: JsonCollectionStore):
        self.store = store

    def add(self, record: ReflectionRecord) -> ReflectionRecord:
        row = self.store.insert(REFLECTIONS_COLLECTION, _serialize_reflection(record))
        return _deserialize_reflection(row)

    def latest(self, user_id: str, limit: int = 10) -> List[ReflectionRecord]:
        rows = self.store.select(
            REFLECTIONS_COLLECTION,
            where={"user_id": user_id},
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [_deserialize_reflection(r) for r in rows]
