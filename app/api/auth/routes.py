from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_current_user_id, get_services
from app.config import Settings, get_settings
from app.pipeline import Services, connect_account
from app.spotify import build_spotify_auth_url

from .schemas import AuthStatus, AuthUrl, ConnectedAccount

router = APIRouter()


@router.get("/url", response_model=AuthUrl)
def get_auth_url(settings: Settings = Depends(get_settings)) -> AuthUrl:
    """
    Return the Spotify consent URL the front-end should redirect to.
    """
    return AuthUrl(auth_url=build_spotify_auth_url(settings))


@router.get("/callback", response_model=ConnectedAccount)
def auth_callback(
    code: str | None = Query(default=None),
    error: str | None = Query(default=None),
    services: Services = Depends(get_services),
) -> ConnectedAccount:
    """
    Spotify redirect target: exchange the code, upsert the user, save tokens.
    """
    if error:
        raise HTTPException(
            status_code=400,
            detail=f"Spotify authorization failed: {error}",
        )

    if not code:
        raise HTTPException(status_code=400, detail="Missing 'code' parameter.")

    account = connect_account(services, code)
    return ConnectedAccount(**account)


@router.get("/status", response_model=AuthStatus)
def auth_status(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> AuthStatus:
    """
    Whether a Spotify credential is stored for the user, and when it expires.

    Does not refresh anything.
    """
    credential = services.token_store.get(user_id)
    if credential is None:
        return AuthStatus(authenticated=False, reason="missing_token")

    return AuthStatus(
        authenticated=True,
        expired=credential.is_expired(),
        expires_at=credential.expires_at,
    )


@router.post("/logout")
def logout(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
) -> dict:
    services.token_store.clear(user_id)
    return {"success": True}
