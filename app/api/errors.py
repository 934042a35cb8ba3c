from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import Settings, get_settings
from app.core import (
    AuthRequiredError,
    EmptyAssemblyError,
    GenerationError,
    MoodlistError,
    PersistenceError,
    ProviderNetworkError,
    ProviderTimeoutError,
    SpotifyApiError,
    log_warning,
)
from app.spotify import build_spotify_auth_url

# Most specific class first; the first isinstance match wins.
_STATUS_BY_ERROR: Dict[Type[MoodlistError], int] = {
    AuthRequiredError: 401,
    EmptyAssemblyError: 422,
    ProviderTimeoutError: 504,
    ProviderNetworkError: 502,
    SpotifyApiError: 502,
    GenerationError: 502,
    PersistenceError: 500,
}


def status_for(exc: MoodlistError) -> int:
    for error_cls, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_cls):
            return status
    return 500


def _settings_for(request: Request) -> Settings:
    # Handlers get no dependency injection; honor overrides by hand
    provider = request.app.dependency_overrides.get(get_settings, get_settings)
    return provider()


async def moodlist_error_handler(request: Request, exc: MoodlistError) -> JSONResponse:
    status = status_for(exc)
    body = {"error": exc.kind, "message": str(exc)}
    if isinstance(exc, AuthRequiredError):
        body["auth_url"] = build_spotify_auth_url(_settings_for(request))

    log_warning(f"{request.method} {request.url.path} -> {status} ({exc.kind}): {exc}")
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MoodlistError, moodlist_error_handler)
