import pytest

from app.core import (
    EmptyAssemblyError,
    NoCredentialError,
    PersistenceError,
    ProviderTimeoutError,
    SpotifyApiError,
)
from app.pipeline import (
    GeneratedPlaylist,
    PlaylistConfirmation,
    analyze_top_tracks,
    average_audio_features,
    confirm_playlist,
    connect_account,
    generate_draft,
)

from conftest import USER_ID, make_track, scoped_query, track_requests


def _confirmation(count: int) -> PlaylistConfirmation:
    return PlaylistConfirmation(
        playlist_name="Rainy Sunday",
        tracks=track_requests(count),
        narrative="Grey skies outside. Warm tea inside.",
        valence=0.4,
        energy=0.3,
        prompt="rainy sunday morning",
        weather="Rain, 9°C",
        time_of_day="Morning",
    )


def _make_resolvable(spotify, confirmation, skip=()):
    uris = []
    for i, t in enumerate(confirmation.tracks):
        if i in skip:
            continue
        spotify.add_to_catalog(scoped_query(t.song, t.artist), make_track(f"id{i}"))
        uris.append(f"spotify:track:id{i}")
    return uris


def test_confirm_adds_resolved_tracks_and_records_full_reflection(
    connected_user, services, spotify
) -> None:
    confirmation = _confirmation(17)
    expected = _make_resolvable(spotify, confirmation, skip=(4, 11))

    result = confirm_playlist(services, USER_ID, confirmation)

    assert result.playlist.requested_count == 17
    assert result.playlist.resolved_count == 15
    assert spotify.playlists[result.playlist.playlist_id] == expected

    stored = services.reflections.latest(USER_ID)
    assert len(stored) == 1
    reflection = stored[0]
    assert reflection.id == result.reflection.id
    # Unresolved suggestions are kept in the audit record.
    assert len(reflection.tracks) == 17
    assert reflection.playlist_id == result.playlist.playlist_id
    assert reflection.playlist_url == result.playlist.playlist_url
    assert reflection.weather == "Rain, 9°C"


def test_reflection_failure_does_not_undo_playlist(
    connected_user, services, spotify, monkeypatch
) -> None:
    confirmation = _confirmation(3)
    _make_resolvable(spotify, confirmation)

    def broken_add(record):
        raise PersistenceError("disk full")

    monkeypatch.setattr(services.reflections, "add", broken_add)

    result = confirm_playlist(services, USER_ID, confirmation)

    assert result.reflection is None
    assert len(spotify.playlists[result.playlist.playlist_id]) == 3


def test_nothing_resolved_raises_and_still_records_attempt(
    connected_user, services, spotify
) -> None:
    with pytest.raises(EmptyAssemblyError) as excinfo:
        confirm_playlist(services, USER_ID, _confirmation(2))

    assert excinfo.value.requested == 2
    reflection = services.reflections.latest(USER_ID)[0]
    assert reflection.playlist_id is None
    assert len(reflection.tracks) == 2


def test_failed_append_still_records_the_attempt(connected_user, services, spotify) -> None:
    confirmation = _confirmation(150)
    _make_resolvable(spotify, confirmation)
    spotify.fail_add_at = 1

    with pytest.raises(SpotifyApiError):
        confirm_playlist(services, USER_ID, confirmation)

    reflection = services.reflections.latest(USER_ID)[0]
    assert reflection.playlist_id is None
    assert len(reflection.tracks) == 150
    assert reflection.playlist_name == "Rainy Sunday"


def test_confirm_without_credential_requires_auth(services) -> None:
    with pytest.raises(NoCredentialError):
        confirm_playlist(services, USER_ID, _confirmation(1))


def test_generate_draft_passes_top_artists(connected_user, services, spotify, monkeypatch) -> None:
    seen = []

    def fake_generate(request):
        seen.append(request)
        return GeneratedPlaylist(
            playlist_name="X",
            tracks=track_requests(1),
            narrative="One. Two.",
            valence=0.5,
            energy=0.5,
        )

    monkeypatch.setattr(services.generator, "generate", fake_generate)

    generate_draft(services, USER_ID, "focus", time_of_day="Morning")
    generate_draft(services, USER_ID, "focus", discovery_mode=True)

    assert seen[0].top_artists == ["Artist A", "Artist B"]
    assert seen[1].top_artists == []
    assert len(spotify.calls_named("top_artists")) == 1


def test_generate_draft_without_top_artists_when_lookup_fails(
    connected_user, services, spotify, monkeypatch
) -> None:
    spotify.fail_top_artists = ProviderTimeoutError("Spotify GET /me/top/artists timed out.")
    seen = []

    def fake_generate(request):
        seen.append(request)
        return GeneratedPlaylist(
            playlist_name="X",
            tracks=track_requests(1),
            narrative="One. Two.",
            valence=0.5,
            energy=0.5,
        )

    monkeypatch.setattr(services.generator, "generate", fake_generate)

    draft = generate_draft(services, USER_ID, "focus")

    assert draft.playlist_name == "X"
    assert seen[0].top_artists == []


def test_connect_account_is_idempotent_per_spotify_profile(services) -> None:
    first = connect_account(services, "code-1")
    second = connect_account(services, "code-2")

    assert first["user_id"] == second["user_id"]
    assert first["spotify_id"] == "spotify-user"

    credential = services.token_store.get(first["user_id"])
    assert credential.access_token == "access-code"
    assert credential.refresh_token == "refresh-code"


def test_average_audio_features_ignores_missing_entries() -> None:
    metrics = average_audio_features(
        [{"valence": 0.2, "energy": 1.0}, None, {"valence": 0.6, "energy": 0.0}]
    )

    assert metrics["valence"] == pytest.approx(0.4)
    assert metrics["energy"] == pytest.approx(0.5)
    assert metrics["danceability"] == 0.0
    assert average_audio_features([])["valence"] == 0.0


def test_vibe_analysis_keeps_history(connected_user, services, spotify) -> None:
    spotify.top_tracks = [make_track("a", "Song A", "Artist A"), make_track("b")]
    spotify.audio_features = [{"valence": 0.8, "energy": 0.6}, None]
    runner = services.runner_for(USER_ID)

    first = analyze_top_tracks(runner, services.vibes)
    analyze_top_tracks(runner, services.vibes)

    assert first.valence == pytest.approx(0.8)
    assert first.tracks[0] == {
        "name": "Song A",
        "artist": "Artist A",
        "album": "Some Album",
        "image": "https://img/a",
        "uri": "spotify:track:a",
    }
    assert len(services.vibes.history(USER_ID)) == 2
    assert spotify.calls_named("audio_features")[0][2] == (["a", "b"],)
