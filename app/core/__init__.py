"""Public façade for the app.core package.

This module exposes logging helpers, filesystem utilities, the error taxonomy
and the base models that are safe to import from other packages. Callers
should import these cross-cutting concerns from this façade instead of the
internal submodules.
"""

from .errors import (
    AuthRequiredError,
    EmptyAssemblyError,
    GenerationError,
    MoodlistError,
    NoCredentialError,
    PersistenceError,
    ProviderNetworkError,
    ProviderTimeoutError,
    RefreshError,
    SpotifyApiError,
    SpotifyAuthError,
)
from .fs_utils import ensure_dir, read_json, write_json
from .logging_config import configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_progress,
    log_step,
    log_success,
    log_warning,
    mask_token,
)
from .models import (
    Credential,
    PlaylistRef,
    RefreshedToken,
    ReflectionRecord,
    TrackRequest,
    VibeAnalysis,
    utc_now,
)

__all__ = [
    "configure_logging",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "log_progress",
    "mask_token",
    "ensure_dir",
    "write_json",
    "read_json",
    "Credential",
    "RefreshedToken",
    "TrackRequest",
    "PlaylistRef",
    "ReflectionRecord",
    "VibeAnalysis",
    "utc_now",
    "MoodlistError",
    "AuthRequiredError",
    "NoCredentialError",
    "RefreshError",
    "SpotifyAuthError",
    "SpotifyApiError",
    "ProviderTimeoutError",
    "ProviderNetworkError",
    "EmptyAssemblyError",
    "PersistenceError",
    "GenerationError",
]
