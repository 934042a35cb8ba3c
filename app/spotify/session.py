"""Credential lifecycle for authenticated Spotify calls.

Two layers keep the access token usable:

  - proactive: before a call, an expired token (now >= expires_at) is refreshed
    and persisted first
  - reactive: if Spotify still answers 401/403, the runner refreshes once and
    retries the call once; a second auth failure is surfaced

Refreshes for the same user are serialized by a per-user lock. Whoever gets
the lock second re-reads the stored credential and reuses the token the first
refresh produced instead of refreshing again.
"""

import threading
from typing import Callable, Dict, Optional, Tuple, TypeVar

from app.config import Settings
from app.core import (
    Credential,
    NoCredentialError,
    RefreshError,
    SpotifyAuthError,
    log_info,
    log_warning,
    mask_token,
)
from app.data import TokenStore

from .auth import TokenRefresher
from .client import SpotifyClient

T = TypeVar("T")

_REFRESH_LOCKS: Dict[str, threading.Lock] = {}
_REFRESH_LOCKS_GUARD = threading.Lock()


def _refresh_lock(user_id: str) -> threading.Lock:
    with _REFRESH_LOCKS_GUARD:
        lock = _REFRESH_LOCKS.get(user_id)
        if lock is None:
            lock = _REFRESH_LOCKS[user_id] = threading.Lock()
        return lock


def _load_credential(user_id: str, token_store: TokenStore) -> Credential:
    credential = token_store.get(user_id)
    if credential is None:
        raise NoCredentialError(user_id)
    return credential


def _refresh_and_store(
    credential: Credential,
    token_store: TokenStore,
    refresher: TokenRefresher,
) -> Credential:
    if not credential.refresh_token:
        raise RefreshError("No refresh token stored; reconnect required.")

    refreshed = refresher.refresh(credential.refresh_token)
    return token_store.put(
        credential.user_id,
        refreshed.access_token,
        refreshed.refresh_token or credential.refresh_token,
        refreshed.expires_in,
    )


def _fresh_credential(
    user_id: str,
    token_store: TokenStore,
    refresher: TokenRefresher,
) -> Tuple[Credential, bool]:
    """Return (credential, refreshed_here)."""
    credential = _load_credential(user_id, token_store)
    if not credential.is_expired():
        return credential, False

    with _refresh_lock(user_id):
        credential = _load_credential(user_id, token_store)
        if not credential.is_expired():
            return credential, False
        log_info("Access token expired; refreshing.", user_id=user_id)
        return _refresh_and_store(credential, token_store, refresher), True


def ensure_fresh_credential(
    user_id: str,
    token_store: TokenStore,
    refresher: TokenRefresher,
) -> Credential:
    """
    Return a non-expired credential, refreshing and persisting it if needed.

    The refreshed credential is stored before this returns.
    """
    return _fresh_credential(user_id, token_store, refresher)[0]


def ensure_fresh_access_token(
    user_id: str,
    token_store: TokenStore,
    refresher: TokenRefresher,
) -> str:
    return ensure_fresh_credential(user_id, token_store, refresher).access_token


class CredentialedRequestRunner:
    """
    Runs Spotify operations for one user within one logical operation.

    Build one runner per request. It performs at most one refresh for a
    rejected or expired token over its lifetime: when the proactive path
    already refreshed, a later 401/403 is surfaced as is.
    Safe to share between the worker threads of a single request.
    """

    def __init__(
        self,
        user_id: str,
        token_store: TokenStore,
        refresher: TokenRefresher,
        settings: Settings,
        client_factory: Optional[Callable[[str], SpotifyClient]] = None,
    ):
        self.user_id = user_id
        self.token_store = token_store
        self.refresher = refresher
        self.settings = settings
        self._client_factory = client_factory or (
            lambda token: SpotifyClient(token, settings)
        )
        self._lock = threading.Lock()
        self._credential: Optional[Credential] = None
        self._refresh_spent = False

    def access_token(self) -> str:
        with self._lock:
            if self._credential is None or self._credential.is_expired():
                self._credential, refreshed = _fresh_credential(
                    self.user_id, self.token_store, self.refresher
                )
                if refreshed:
                    self._refresh_spent = True
            return self._credential.access_token

    def _recover_from_auth_error(self, failed_token: str, error: SpotifyAuthError) -> str:
        with self._lock:
            # Another worker already swapped the token: just retry with it.
            if self._credential is not None and self._credential.access_token != failed_token:
                return self._credential.access_token
            if self._refresh_spent:
                raise error

            self._refresh_spent = True
            with _refresh_lock(self.user_id):
                stored = _load_credential(self.user_id, self.token_store)
                if stored.access_token != failed_token and not stored.is_expired():
                    self._credential = stored
                else:
                    log_warning(
                        f"Spotify returned HTTP {error.status_code} for token "
                        f"{mask_token(failed_token)}; refreshing once.",
                        user_id=self.user_id,
                    )
                    self._credential = _refresh_and_store(
                        stored, self.token_store, self.refresher
                    )
            return self._credential.access_token

    def call(self, operation: Callable[[SpotifyClient], T]) -> T:
        """
        Run `operation` with a client holding a fresh token.

        On a 401/403 the token is refreshed and the operation retried exactly
        once; if the retry fails too, its SpotifyAuthError propagates.
        """
        token = self.access_token()
        try:
            return operation(self._client_factory(token))
        except SpotifyAuthError as e:
            token = self._recover_from_auth_error(token, e)

        return operation(self._client_factory(token))
