from typing import Dict, Optional
from urllib.parse import urlencode

import requests

from app.config import Settings
from app.core import (
    AuthRequiredError,
    ProviderNetworkError,
    ProviderTimeoutError,
    RefreshedToken,
    RefreshError,
    log_step,
    log_warning,
)


def build_spotify_auth_url(settings: Settings, state: Optional[str] = None) -> str:
    """
    URL of the Spotify consent page for the authorization code flow.
    """
    auth_query_parameters = {
        "response_type": "code",
        "redirect_uri": settings.spotify_redirect_uri,
        "scope": " ".join(settings.scopes),
        "client_id": settings.spotify_client_id or "",
    }
    if state:
        auth_query_parameters["state"] = state
    return f"{settings.spotify_auth_url}?{urlencode(auth_query_parameters)}"


class TokenRefresher:
    """
    Talks to the Spotify token endpoint with the app's client credentials.

    Makes exactly one HTTP call per method and never retries on its own: a
    rejected refresh usually means the refresh token is revoked, and retrying
    is the caller's decision.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _post_token(self, data: Dict[str, str]) -> requests.Response:
        try:
            return requests.post(
                self.settings.spotify_token_url,
                data=data,
                auth=(
                    self.settings.spotify_client_id or "",
                    self.settings.spotify_client_secret or "",
                ),
                timeout=self.settings.http_timeout,
            )
        except requests.Timeout as e:
            raise ProviderTimeoutError("Spotify token endpoint timed out.") from e
        except requests.ConnectionError as e:
            raise ProviderNetworkError(f"Spotify token endpoint unreachable: {e}") from e

    def refresh(self, refresh_token: str) -> RefreshedToken:
        log_step("Refreshing Spotify access token...")
        r = self._post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        if not r.ok:
            log_warning(f"Spotify token refresh rejected (HTTP {r.status_code}).")
            raise RefreshError(
                "Spotify refused to refresh the access token; reconnect required.",
                status_code=r.status_code,
            )

        token_info = r.json()
        return RefreshedToken(
            access_token=token_info["access_token"],
            expires_in=int(token_info.get("expires_in", 3600)),
            refresh_token=token_info.get("refresh_token"),
        )

    def exchange_code(self, code: str) -> Dict:
        """
        Trade an authorization code for {access_token, refresh_token, expires_in}.
        """
        r = self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.spotify_redirect_uri,
            }
        )
        if not r.ok:
            raise AuthRequiredError(
                f"Failed to exchange authorization code (HTTP {r.status_code})."
            )
        return r.json()
