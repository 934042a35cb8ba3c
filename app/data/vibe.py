from typing import Any, Dict, List, Optional

from app.core import VibeAnalysis, utc_now

from .store import JsonCollectionStore, parse_datetime

VIBE_COLLECTION = "vibe_analysis"


def _deserialize_vibe(row: Dict[str, Any]) -> VibeAnalysis:
    return VibeAnalysis(
        id=row.get("id"),
        user_id=row["user_id"],
        valence=float(row.get("valence") or 0.0),
        energy=float(row.get("energy") or 0.0),
        danceability=float(row.get("danceability") or 0.0),
        acousticness=float(row.get("acousticness") or 0.0),
        instrumentalness=float(row.get("instrumentalness") or 0.0),
        tracks=row.get("tracks") or [],
        analyzed_at=parse_datetime(row.get("analyzed_at")),
    )


class VibeAnalysisRepository:
    """
    Listening-profile snapshots.

    Every analysis is a new row; older rows are kept as history.
    """

    def __init__(self, store: JsonCollectionStore):
        self.store = store

    def save(self, analysis: VibeAnalysis) -> VibeAnalysis:
        row = self.store.insert(
            VIBE_COLLECTION,
            {
                "user_id": analysis.user_id,
                "valence": analysis.valence,
                "energy": analysis.energy,
                "danceability": analysis.danceability,
                "acousticness": analysis.acousticness,
                "instrumentalness": analysis.instrumentalness,
                "tracks": analysis.tracks,
                "analyzed_at": utc_now().isoformat(),
            },
        )
        return _deserialize_vibe(row)

    def latest(self, user_id: str) -> Optional[VibeAnalysis]:
        history = self.history(user_id, limit=1)
        return history[0] if history else None

    def history(self, user_id: str, limit: int = 10) -> List[VibeAnalysis]:
        rows = self.store.select(
            VIBE_COLLECTION,
            where={"user_id": user_id},
            order_by="analyzed_at",
            descending=True,
            limit=limit,
        )
        return [_deserialize_vibe(r) for r in rows]
