from typing import Any, Dict, List, Optional, Sequence

import requests

from app.config import Settings
from app.core import (
    ProviderNetworkError,
    ProviderTimeoutError,
    SpotifyApiError,
    SpotifyAuthError,
)


class SpotifyClient:
    """
    Thin wrapper over the Spotify Web API bound to one access token.

    Every call is bounded by settings.http_timeout. Failures are translated:
      - 401 / 403            -> SpotifyAuthError
      - other non-2xx        -> SpotifyApiError
      - requests.Timeout     -> ProviderTimeoutError
      - connection failures  -> ProviderNetworkError
    """

    def __init__(
        self,
        access_token: str,
        settings: Settings,
        http: Optional[requests.Session] = None,
    ):
        self.access_token = access_token
        self.settings = settings
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.settings.spotify_api_base}{path}"
        try:
            r = self.http.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json,
                timeout=self.settings.http_timeout,
            )
        except requests.Timeout as e:
            raise ProviderTimeoutError(f"Spotify {method} {path} timed out.") from e
        except requests.ConnectionError as e:
            raise ProviderNetworkError(f"Spotify {method} {path} failed: {e}") from e

        if r.status_code in (401, 403):
            raise SpotifyAuthError(
                f"Spotify rejected the access token for {method} {path}.",
                status_code=r.status_code,
            )
        if not r.ok:
            raise SpotifyApiError(
                f"Spotify {method} {path} failed with HTTP {r.status_code}.",
                status_code=r.status_code,
            )
        if not r.content:
            return {}
        return r.json()

    def get_current_user(self) -> Dict[str, Any]:
        return self._request("GET", "/me")

    def search_tracks(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        data = self._request(
            "GET", "/search", params={"q": query, "type": "track", "limit": limit}
        )
        return (data.get("tracks") or {}).get("items") or []

    def create_playlist(
        self,
        spotify_user_id: str,
        name: str,
        description: str,
        public: bool = True,
    ) -> Dict[str, Any]:
        payload = {"name": name, "description": description, "public": public}
        return self._request("POST", f"/users/{spotify_user_id}/playlists", json=payload)

    def add_tracks(self, playlist_id: str, uris: Sequence[str]) -> Dict[str, Any]:
        return self._request(
            "POST", f"/playlists/{playlist_id}/tracks", json={"uris": list(uris)}
        )

    def get_top_artists(self, limit: int = 20) -> List[str]:
        data = self._request("GET", "/me/top/artists", params={"limit": limit})
        return [a["name"] for a in data.get("items", []) if a.get("name")]

    def get_top_tracks(
        self,
        limit: int = 50,
        time_range: str = "short_term",
    ) -> List[Dict[str, Any]]:
        data = self._request(
            "GET", "/me/top/tracks", params={"limit": limit, "time_range": time_range}
        )
        return data.get("items", [])

    def get_audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        if not track_ids:
            return []
        data = self._request(
            "GET", "/audio-features", params={"ids": ",".join(track_ids)}
        )
        return data.get("audio_features", [])
