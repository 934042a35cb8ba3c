from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.config import Settings, get_settings
from app.pipeline import Services


@lru_cache(maxsize=1)
def _services_for(settings: Settings) -> Services:
    return Services.from_settings(settings)


def get_services(settings: Settings = Depends(get_settings)) -> Services:
    """FastAPI dependency returning the wired collaborators."""
    return _services_for(settings)


def get_current_user_id(
    x_user_id: str | None = Header(default=None),
) -> str:
    """
    Internal user id of the caller, as returned by /auth/callback.

    Session handling lives in front of this API; it forwards the id in the
    X-User-Id header.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=401,
            detail={"error": "unauthenticated", "message": "Missing X-User-Id header."},
        )
    return x_user_id
