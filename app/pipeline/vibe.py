from typing import Any, Dict, List, Optional, Sequence

from app.core import VibeAnalysis, log_info, log_step
from app.data import VibeAnalysisRepository
from app.spotify import CredentialedRequestRunner

AUDIO_METRICS = (
    "valence",
    "energy",
    "danceability",
    "acousticness",
    "instrumentalness",
)


def average_audio_features(features: Sequence[Optional[Dict[str, Any]]]) -> Dict[str, float]:
    """
    Mean of each audio metric over the tracks Spotify returned features for.

    Missing entries (None) are ignored; with no features at all every metric is 0.
    """
    present = [f for f in features if f]
    if not present:
        return {metric: 0.0 for metric in AUDIO_METRICS}

    return {
        metric: sum(float(f.get(metric) or 0.0) for f in present) / len(present)
        for metric in AUDIO_METRICS
    }


def _track_summary(track: Dict[str, Any]) -> Dict[str, str]:
    images = (track.get("album") or {}).get("images") or []
    artists = track.get("artists") or []
    return {
        "name": track.get("name", ""),
        "artist": artists[0].get("name", "") if artists else "",
        "album": (track.get("album") or {}).get("name", ""),
        "image": images[0].get("url", "") if images else "",
        "uri": track.get("uri", ""),
    }


def analyze_top_tracks(
    runner: CredentialedRequestRunner,
    repository: VibeAnalysisRepository,
    limit: int = 50,
) -> VibeAnalysis:
    """
    Snapshot the user's recent listening profile and store it as a new row.
    """
    log_step("Fetching short-term top tracks for vibe analysis...", user_id=runner.user_id)
    top_tracks: List[Dict[str, Any]] = runner.call(
        lambda client: client.get_top_tracks(limit=limit, time_range="short_term")
    )
    track_ids = [t["id"] for t in top_tracks if t.get("id")]
    features = runner.call(lambda client: client.get_audio_features(track_ids))

    metrics = average_audio_features(features)
    analysis = VibeAnalysis(
        user_id=runner.user_id,
        tracks=[_track_summary(t) for t in top_tracks],
        **metrics,
    )
    saved = repository.save(analysis)
    log_info(f"Vibe analysis saved from {len(top_tracks)} top tracks.", user_id=runner.user_id)
    return saved
