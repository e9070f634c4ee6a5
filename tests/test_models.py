import pytest

from conftest import NOW, SOURCE_PLAYLIST, TRACK_URI, MemoryCredentialStore, make_auth, playback_payload
from prunify.core.uris import canonical_playlist_uri
from prunify.models.auth import AuthorizationState
from prunify.models.playback import PlaybackSnapshot, PlaylistRef
from prunify.models.state import UserSettings


def test_authorization_state_survives_store_round_trip():
    state = make_auth()
    store = MemoryCredentialStore()
    store.save(state.to_bytes())
    restored = AuthorizationState.from_bytes(store.load())
    assert restored == state
    assert restored.expires_at == state.expires_at
    assert restored.to_bytes() == state.to_bytes()


def test_authorization_state_round_trip_without_refresh_token():
    state = make_auth(refresh_token=None, expires_at=NOW + 0.123456789)
    assert AuthorizationState.from_bytes(state.to_bytes()) == state


def test_authorization_state_repr_hides_tokens():
    text = repr(make_auth())
    assert "access-1" not in text
    assert "refresh-1" not in text


def test_from_bytes_rejects_garbage():
    with pytest.raises(ValueError):
        AuthorizationState.from_bytes(b"\xff\x00not json")
    with pytest.raises(ValueError):
        AuthorizationState.from_bytes(b'{"refresh_token": "x"}')


def test_from_token_response_keeps_previous_refresh_token():
    state = AuthorizationState.from_token_response(
        {"access_token": "a2", "expires_in": 3600},
        now=NOW,
        previous_refresh_token="r1",
        default_scopes=["user-read-playback-state"],
    )
    assert state.refresh_token == "r1"
    assert state.expires_at == NOW + 3600
    assert state.scopes == frozenset({"user-read-playback-state"})


def test_is_expired_honors_leeway():
    state = make_auth(expires_at=NOW + 30)
    assert not state.is_expired(NOW)
    assert state.is_expired(NOW, leeway=60)


def test_snapshot_from_playlist_playback():
    snapshot = PlaybackSnapshot.from_playback(playback_payload())
    assert snapshot.track.uri == TRACK_URI
    assert snapshot.track.artist_names == "Rick Astley"
    assert snapshot.playlist_context == SOURCE_PLAYLIST


def test_snapshot_clears_context_for_album():
    snapshot = PlaybackSnapshot.from_playback(
        playback_payload(context_type="album", context_uri="spotify:album:1")
    )
    assert snapshot.track is not None
    assert snapshot.playlist_context is None


def test_snapshot_without_context_has_track_only():
    snapshot = PlaybackSnapshot.from_playback(playback_payload(context_type=None))
    assert snapshot.track is not None
    assert snapshot.playlist_context is None


@pytest.mark.parametrize("payload", [None, {}, {"item": None, "currently_playing_type": "ad"}])
def test_snapshot_empty_when_nothing_playing(payload):
    assert PlaybackSnapshot.from_playback(payload) == PlaybackSnapshot.EMPTY


def test_snapshot_ignores_episodes():
    snapshot = PlaybackSnapshot.from_playback(
        playback_payload(track_uri="spotify:episode:1", item_type="episode")
    )
    assert snapshot == PlaybackSnapshot.EMPTY


def test_snapshot_normalizes_legacy_user_playlist_uri():
    snapshot = PlaybackSnapshot.from_playback(
        playback_payload(context_uri="spotify:user:someone:playlist:abc123")
    )
    assert snapshot.playlist_context == "spotify:playlist:abc123"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("37i9dQZF1DXcBWIGoYBM5M", "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M"),
        ("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M", "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M"),
        ("spotify:user:bob:playlist:xyz", "spotify:playlist:xyz"),
        ("https://open.spotify.com/playlist/xyz?si=abc", "spotify:playlist:xyz"),
    ],
)
def test_canonical_playlist_uri(value, expected):
    assert canonical_playlist_uri(value) == expected


def test_playlist_ref_from_api():
    ref = PlaylistRef.from_api({"id": "p1", "uri": "spotify:playlist:p1", "name": None})
    assert ref == PlaylistRef(id="p1", uri="spotify:playlist:p1", name="")


@pytest.mark.parametrize("seconds, expected_ms", [(30, 30000), (10, 10000), (0, 30000), (-5, 30000)])
def test_effective_skip_offset(seconds, expected_ms):
    assert UserSettings(skip_offset_seconds=seconds).effective_skip_offset_ms == expected_ms
