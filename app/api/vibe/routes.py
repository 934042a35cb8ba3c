from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.api.deps import get_current_user_id, get_services
from app.core import VibeAnalysis
from app.pipeline import AUDIO_METRICS, Services, analyze_top_tracks

router = APIRouter()


class VibeResponse(BaseModel):
    id: Optional[str] = None
    tracks: List[Dict[str, str]]
    # Percentages, 0-100
    metrics: Dict[str, int]
    analyzed_at: Optional[datetime] = None


def _to_response(analysis: VibeAnalysis) -> VibeResponse:
    return VibeResponse(
        id=analysis.id,
        tracks=analysis.tracks,
        metrics={m: round(getattr(analysis, m) * 100) for m in AUDIO_METRICS},
        analyzed_at=analysis.analyzed_at,
    )


@router.get("/top-tracks", response_model=VibeResponse)
def top_tracks(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> VibeResponse:
    """
    Analyze the user's last four weeks of listening and store the snapshot.
    """
    analysis = analyze_top_tracks(services.runner_for(user_id), services.vibes)
    return _to_response(analysis)


@router.get("/history", response_model=List[VibeResponse])
def history(
    limit: int = Query(default=10, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> List[VibeResponse]:
    return [_to_response(a) for a in services.vibes.history(user_id, limit=limit)]
