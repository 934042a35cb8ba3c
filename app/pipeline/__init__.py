"""Public façade for the app.pipeline package.

This module exposes the user-facing flows (draft generation, playlist
confirmation, account connection, vibe analysis) and the external context
collaborators they use (AI generation endpoint, weather). Other packages
should import pipeline behaviour from this façade instead of the internal
pipeline submodules.
"""

from .generation import (
    GeneratedPlaylist,
    GenerationRequest,
    PlaylistGenerator,
    recover_json,
)
from .orchestration import (
    ConfirmationResult,
    PlaylistConfirmation,
    Services,
    confirm_playlist,
    connect_account,
    generate_draft,
)
from .vibe import AUDIO_METRICS, analyze_top_tracks, average_audio_features
from .weather import WeatherClient, describe_weather_code, time_of_day

__all__ = [
    "GenerationRequest",
    "GeneratedPlaylist",
    "PlaylistGenerator",
    "recover_json",
    "Services",
    "PlaylistConfirmation",
    "ConfirmationResult",
    "generate_draft",
    "confirm_playlist",
    "connect_account",
    "AUDIO_METRICS",
    "average_audio_features",
    "analyze_top_tracks",
    "WeatherClient",
    "describe_weather_code",
    "time_of_day",
]
