"""Error kinds surfaced by the playlist pipeline.

Every failure that can reach the HTTP boundary has its own class so the API
layer can pick a status code and message per kind. A track that cannot be
found on Spotify is not an error and has no class here.
"""

from typing import Optional


class MoodlistError(Exception):
    """Base class for all application errors."""

    kind = "error"


class AuthRequiredError(MoodlistError):
    """The user has to (re)connect their Spotify account."""

    kind = "auth_required"


class NoCredentialError(AuthRequiredError):
    """No stored Spotify token for the user."""

    kind = "no_credential"

    def __init__(self, user_id: str):
        super().__init__(f"No Spotify credential stored for user {user_id!r}.")
        self.user_id = user_id


class RefreshError(AuthRequiredError):
    """The token endpoint rejected a refresh (expired or revoked refresh token)."""

    kind = "refresh_failed"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SpotifyAuthError(AuthRequiredError):
    """Spotify answered 401/403 to an authenticated call."""

    kind = "spotify_auth"

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class SpotifyApiError(MoodlistError):
    """Spotify answered with a non-success status other than 401/403."""

    kind = "spotify_api"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderTimeoutError(MoodlistError):
    """An upstream call did not answer within the configured timeout."""

    kind = "provider_timeout"


class ProviderNetworkError(MoodlistError):
    """An upstream call failed at the connection level."""

    kind = "provider_network"


class EmptyAssemblyError(MoodlistError):
    """None of the requested tracks could be resolved."""

    kind = "empty_assembly"

    def __init__(self, requested: int):
        super().__init__(
            f"None of the {requested} suggested tracks could be found on Spotify."
        )
        self.requested = requested


class PersistenceError(MoodlistError):
    """Reading or writing the local store failed."""

    kind = "persistence"


class GenerationError(MoodlistError):
    """The AI generation endpoint failed or returned an unusable draft."""

    kind = "generation_failed"
