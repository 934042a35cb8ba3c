from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user_id, get_services
from app.pipeline import (
    PlaylistConfirmation,
    Services,
    confirm_playlist,
    generate_draft,
    time_of_day,
)
from app.spotify import TrackResolver

from .schemas import ConfirmResponse, DraftResponse, GenerateRequest, TrackPreview

router = APIRouter()


@router.post("/generate", response_model=DraftResponse)
def generate_playlist(
    body: GenerateRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> DraftResponse:
    """
    Ask the AI for a draft playlist. Nothing is created on Spotify yet.
    """
    moment = body.time_of_day or time_of_day()
    draft = generate_draft(
        services,
        user_id,
        body.prompt,
        discovery_mode=body.discovery_mode,
        weather=body.weather,
        time_of_day=moment,
    )
    return DraftResponse(
        **draft.model_dump(),
        prompt=body.prompt,
        discovery_mode=body.discovery_mode,
        weather=body.weather,
        time_of_day=moment,
    )


@router.post("/confirm", response_model=ConfirmResponse)
def confirm(
    body: PlaylistConfirmation,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> ConfirmResponse:
    """
    Create the Spotify playlist for an accepted draft.

    Responds 422 when none of the tracks could be found on Spotify.
    """
    result = confirm_playlist(services, user_id, body)
    return ConfirmResponse(
        playlist_id=result.playlist.playlist_id,
        spotify_url=result.playlist.playlist_url,
        tracks_requested=result.playlist.requested_count,
        tracks_added=result.playlist.resolved_count,
        reflection_id=result.reflection.id if result.reflection else None,
    )


@router.get("/search", response_model=TrackPreview)
def search_track(
    song: str = Query(min_length=1),
    artist: str = Query(min_length=1),
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> TrackPreview:
    """
    Preview how a suggested track looks on Spotify (scoped search only).

    An unmatched track comes back as a placeholder with an empty uri.
    """
    resolver = TrackResolver(services.runner_for(user_id))
    hit = resolver.find_track(song, artist)
    if hit is None:
        return TrackPreview(name=song, artist=artist, album="Unknown", image="", uri="")

    images = hit.get("album", {}).get("images") or []
    artists = hit.get("artists") or []
    return TrackPreview(
        name=hit.get("name", song),
        artist=artists[0]["name"] if artists else artist,
        album=hit.get("album", {}).get("name", "Unknown"),
        image=images[0]["url"] if images else "",
        uri=hit.get("uri", ""),
    )
