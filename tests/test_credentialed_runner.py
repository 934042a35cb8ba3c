import threading
import time
from datetime import datetime, timezone

import pytest

from app.core import NoCredentialError, RefreshError, SpotifyAuthError
from app.spotify import CredentialedRequestRunner, ensure_fresh_access_token

from conftest import USER_ID, FakeRefresher, FakeSpotify


def _runner(token_store, refresher, settings, spotify) -> CredentialedRequestRunner:
    return CredentialedRequestRunner(
        USER_ID, token_store, refresher, settings, client_factory=spotify.client
    )


def test_fresh_token_is_used_without_refresh(connected_user, token_store, refresher) -> None:
    token = ensure_fresh_access_token(connected_user, token_store, refresher)

    assert token == "access-1"
    assert refresher.calls == []


def test_expired_token_is_refreshed_exactly_once_and_persisted(
    token_store, refresher
) -> None:
    token_store.put(USER_ID, "access-1", "refresh-1", -5)

    token = ensure_fresh_access_token(USER_ID, token_store, refresher)

    assert refresher.calls == ["refresh-1"]
    stored = token_store.get(USER_ID)
    assert stored.access_token == token == "access-2"
    assert stored.expires_at > datetime.now(timezone.utc)
    # refresh token is kept when the endpoint does not rotate it
    assert stored.refresh_token == "refresh-1"


def test_missing_credential_raises(token_store, refresher) -> None:
    with pytest.raises(NoCredentialError):
        ensure_fresh_access_token("ghost", token_store, refresher)


def test_expired_without_refresh_token_requires_reconnect(token_store, refresher) -> None:
    token_store.put(USER_ID, "access-1", None, -5)

    with pytest.raises(RefreshError):
        ensure_fresh_access_token(USER_ID, token_store, refresher)
    assert refresher.calls == []


def test_rejected_refresh_propagates(token_store, refresher) -> None:
    token_store.put(USER_ID, "access-1", "refresh-1", -5)
    refresher.fail = True

    with pytest.raises(RefreshError):
        ensure_fresh_access_token(USER_ID, token_store, refresher)


def test_concurrent_expired_requests_refresh_once(token_store, spotify) -> None:
    token_store.put(USER_ID, "access-1", "refresh-1", -5)

    class SlowRefresher(FakeRefresher):
        def refresh(self, refresh_token):
            time.sleep(0.05)
            return super().refresh(refresh_token)

    slow = SlowRefresher(spotify)
    tokens = []

    def worker() -> None:
        tokens.append(ensure_fresh_access_token(USER_ID, token_store, slow))

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(slow.calls) == 1
    assert set(tokens) == {"access-2"}


def test_auth_error_on_fresh_token_triggers_one_refresh_and_retry(
    connected_user, token_store, refresher, settings, spotify
) -> None:
    # Token looks fresh locally but Spotify has revoked it.
    spotify.valid_tokens.clear()
    runner = _runner(token_store, refresher, settings, spotify)

    profile = runner.call(lambda client: client.get_current_user())

    assert profile["id"] == "spotify-user"
    assert refresher.calls == ["refresh-1"]
    assert [c[1] for c in spotify.calls_named("me")] == ["access-1", "access-2"]
    assert token_store.get(USER_ID).access_token == "access-2"


def test_second_auth_error_is_surfaced_without_looping(
    connected_user, token_store, settings
) -> None:
    spotify = FakeSpotify(valid_tokens=())
    refresher = FakeRefresher(spotify, grant_valid=False)
    runner = _runner(token_store, refresher, settings, spotify)

    with pytest.raises(SpotifyAuthError):
        runner.call(lambda client: client.get_current_user())

    assert len(refresher.calls) == 1
    assert len(spotify.calls_named("me")) == 2

    # The one-shot budget is spent for this runner.
    with pytest.raises(SpotifyAuthError):
        runner.call(lambda client: client.get_current_user())
    assert len(refresher.calls) == 1


def test_runner_refreshes_proactively_before_first_call(
    token_store, refresher, settings, spotify
) -> None:
    token_store.put(USER_ID, "access-1", "refresh-1", -5)
    runner = _runner(token_store, refresher, settings, spotify)

    runner.call(lambda client: client.get_current_user())

    assert refresher.calls == ["refresh-1"]
    assert [c[1] for c in spotify.calls_named("me")] == ["access-2"]


def test_auth_error_after_proactive_refresh_is_not_refreshed_again(
    token_store, settings
) -> None:
    token_store.put(USER_ID, "access-1", "refresh-1", -5)
    spotify = FakeSpotify(valid_tokens=())
    refresher = FakeRefresher(spotify, grant_valid=False)
    runner = _runner(token_store, refresher, settings, spotify)

    with pytest.raises(SpotifyAuthError):
        runner.call(lambda client: client.get_current_user())

    assert refresher.calls == ["refresh-1"]
    assert [c[1] for c in spotify.calls_named("me")] == ["access-2"]
