"""Fakes for the remote capability, accounts endpoint, and credential store."""
import asyncio
from typing import List, Optional

import pytest

from prunify.core.errors import LoadFailed
from prunify.core.session import SessionController
from prunify.models.auth import AuthorizationState
from prunify.models.state import UserSettings

NOW = 1_700_000_000.0
TRACK_URI = "spotify:track:4uLU6hMCjMI75M1A2tKUQC"
SOURCE_PLAYLIST = "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M"


def playback_payload(
    track_uri: str = TRACK_URI,
    context_type: Optional[str] = "playlist",
    context_uri: Optional[str] = SOURCE_PLAYLIST,
    item_type: str = "track",
) -> dict:
    context = None
    if context_type is not None:
        context = {"type": context_type, "uri": context_uri}
    return {
        "is_playing": True,
        "progress_ms": 1000,
        "currently_playing_type": item_type,
        "context": context,
        "item": {
            "type": item_type,
            "uri": track_uri,
            "name": "Never Gonna Give You Up",
            "duration_ms": 213000,
            "artists": [{"name": "Rick Astley"}],
            "album": {"name": "Whenever You Need Somebody"},
        },
    }


def make_auth(expires_at: float = NOW + 3600, refresh_token: Optional[str] = "refresh-1") -> AuthorizationState:
    return AuthorizationState(
        access_token="access-1",
        refresh_token=refresh_token,
        expires_at=expires_at,
        scopes=frozenset({"user-read-playback-state", "playlist-modify-private"}),
    )


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class Clock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


class MemoryCredentialStore:
    def __init__(self, blob: Optional[bytes] = None):
        self.blob = blob
        self.saved: List[bytes] = []
        self.deletes = 0
        self.fail_load = False

    def save(self, blob: bytes) -> None:
        self.delete()
        self.blob = blob
        self.saved.append(blob)

    def load(self) -> Optional[bytes]:
        if self.fail_load:
            raise LoadFailed("backend unavailable")
        return self.blob

    def delete(self) -> None:
        self.deletes += 1
        self.blob = None


class FakeAccounts:
    """Token endpoint double. Set gate to hold refreshes open."""

    def __init__(self):
        self.exchanges: List[tuple] = []
        self.refreshes: List[str] = []
        self.exchange_error: Optional[Exception] = None
        self.refresh_error: Optional[Exception] = None
        self.refresh_response = {"access_token": "access-2", "expires_in": 3600}
        self.gate: Optional[asyncio.Event] = None

    async def exchange_authorization_code(self, code: str, verifier: str) -> dict:
        self.exchanges.append((code, verifier))
        if self.exchange_error is not None:
            raise self.exchange_error
        return {
            "access_token": "access-new",
            "refresh_token": "refresh-new",
            "expires_in": 3600,
            "scope": "user-read-playback-state playlist-modify-private",
        }

    async def refresh_token(self, refresh_token: str) -> dict:
        self.refreshes.append(refresh_token)
        if self.gate is not None:
            await self.gate.wait()
        if self.refresh_error is not None:
            raise self.refresh_error
        return dict(self.refresh_response)


class FakeRemote:
    """Records every Web API call in order; fails a named call on request."""

    def __init__(self, token_provider=None):
        self._token_provider = token_provider
        self.calls: List[tuple] = []
        self.playback: Optional[dict] = None
        self.fail: dict = {}
        self.playlist_pages: List[dict] = []
        self.gate: Optional[asyncio.Event] = None
        self.playlist_gate: Optional[asyncio.Event] = None

    async def _record(self, name: str, *args):
        if self._token_provider is not None:
            await self._token_provider()
        self.calls.append((name,) + args)
        if name in self.fail:
            raise self.fail[name]

    @property
    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    async def get_current_playback(self):
        await self._record("get_current_playback")
        if self.gate is not None:
            await self.gate.wait()
        return self.playback

    async def list_current_user_playlists(self, limit: int, offset: int):
        await self._record("list_current_user_playlists", limit, offset)
        gate = self.playlist_gate
        if gate is not None:
            await gate.wait()
        return self.playlist_pages[offset // limit]

    async def remove_all_occurrences(self, playlist_uri, track_uris):
        await self._record("remove_all_occurrences", playlist_uri, list(track_uris))
        return {"snapshot_id": "s1"}

    async def add_items(self, playlist_uri, track_uris):
        await self._record("add_items", playlist_uri, list(track_uris))
        return {"snapshot_id": "s2"}

    async def skip_to_next(self):
        await self._record("skip_to_next")

    async def seek(self, position_ms):
        await self._record("seek", position_ms)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def accounts():
    return FakeAccounts()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_controller(store, accounts, sleep, clock):
    """Build a controller over the fakes. Tests call shutdown() themselves."""

    def _make(settings: Optional[UserSettings] = None, poll_interval: float = 60.0) -> SessionController:
        controller = SessionController(
            store=store,
            accounts=accounts,
            remote_factory=FakeRemote,
            settings=settings or UserSettings(),
            client_id="client-123",
            redirect_uri="prunify://callback",
            scopes=["user-read-playback-state", "playlist-modify-private"],
            poll_interval=poll_interval,
            sleep=sleep,
            clock=clock,
        )
        return controller

    return _make
