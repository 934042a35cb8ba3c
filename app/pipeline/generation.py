"""Client for the AI playlist generation endpoint.

The endpoint receives the user's mood prompt plus optional context and answers
with a draft: a playlist name, a list of (song, artist) pairs, a two-sentence
narrative and valence/energy scores in [0, 1].

Model output is not always clean JSON, so the body goes through a light
recovery pass (code fences, surrounding prose, control characters, trailing
commas) before pydantic validates the shape.
"""

import json
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError
import requests

from app.config import Settings
from app.core import (
    GenerationError,
    ProviderNetworkError,
    ProviderTimeoutError,
    TrackRequest,
    log_info,
    log_step,
    log_warning,
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


class GenerationRequest(BaseModel):
    prompt: str = Field(min_length=1)
    discovery_mode: bool = False
    weather: Optional[str] = None
    time_of_day: Optional[str] = None
    top_artists: List[str] = Field(default_factory=list)


class GeneratedPlaylist(BaseModel):
    playlist_name: str = Field(min_length=1)
    tracks: List[TrackRequest] = Field(min_length=1)
    narrative: str = Field(min_length=1)
    valence: float = Field(ge=0.0, le=1.0)
    energy: float = Field(ge=0.0, le=1.0)


def recover_json(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from raw model output.

    Raises GenerationError if no object can be parsed.
    """
    cleaned = _FENCE_RE.sub("", text.strip())

    start = cleaned.find("{")
    end = cleaned.rfind("}") + 1
    if start != -1 and end > start:
        cleaned = cleaned[start:end]

    cleaned = _CONTROL_CHARS_RE.sub("", cleaned)
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned).strip()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationError("AI returned invalid JSON. Please try again.") from e

    if not isinstance(data, dict):
        raise GenerationError("AI response is not a JSON object.")
    return data


class PlaylistGenerator:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _payload(self, request: GenerationRequest) -> Dict[str, Any]:
        # The endpoint speaks camelCase
        return {
            "prompt": request.prompt,
            "discoveryMode": request.discovery_mode,
            "weather": request.weather,
            "timeOfDay": request.time_of_day,
            "topArtists": request.top_artists,
        }

    def generate(self, request: GenerationRequest) -> GeneratedPlaylist:
        if not self.settings.generation_url:
            raise GenerationError("AI generation endpoint is not configured.")

        headers = {"Content-Type": "application/json"}
        if self.settings.generation_api_key:
            headers["Authorization"] = f"Bearer {self.settings.generation_api_key}"

        log_step(
            f"Requesting AI draft (discovery={request.discovery_mode}, "
            f"top artists={len(request.top_artists)})..."
        )
        try:
            r = requests.post(
                self.settings.generation_url,
                json=self._payload(request),
                headers=headers,
                timeout=self.settings.generation_timeout,
            )
        except requests.Timeout as e:
            raise ProviderTimeoutError("AI generation endpoint timed out.") from e
        except requests.ConnectionError as e:
            raise ProviderNetworkError(f"AI generation endpoint unreachable: {e}") from e

        if not r.ok:
            log_warning(f"AI generation failed: HTTP {r.status_code} {r.text[:300]}")
            raise GenerationError(f"AI generation failed with HTTP {r.status_code}.")

        data = recover_json(r.text)
        try:
            draft = GeneratedPlaylist.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"Invalid AI response: {e.error_count()} problem(s).") from e

        log_info(f"AI draft '{draft.playlist_name}' with {len(draft.tracks)} tracks.")
        return draft
