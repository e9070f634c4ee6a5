"""Session controller: composition root for auth, polling, and commands.

Constructed once per process and handed to collaborators; it is the only
object they talk to. All state changes happen on the event loop that called
start().
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Set

from prunify.config import POLL_INTERVAL_SEC
from prunify.core.commands import PlaybackCommandCoordinator
from prunify.core.errors import (
    AuthError,
    NoDefaultPlaylist,
    NotAuthorized,
    PrunifyError,
    RefreshFailed,
    StorageError,
)
from prunify.core.pkce import PKCEAuthorizationFlow
from prunify.core.poller import NowPlayingPoller
from prunify.core.publisher import StatePublisher
from prunify.core.token_session import TokenSession
from prunify.models.auth import AuthorizationState, SessionLifecycleEvent
from prunify.models.playback import PlaybackSnapshot
from prunify.models.state import PublishedState, UserSettings

logger = logging.getLogger(__name__)

# last_error categories; a success clears only an error of its own category
AUTH = "auth"
COMMAND = "command"
PLAYLISTS = "playlists"


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    error: Optional[PrunifyError] = None

    @property
    def message(self) -> Optional[str]:
        return None if self.error is None else str(self.error)


class SessionController:
    def __init__(
        self,
        store,
        accounts,
        remote_factory: Callable[[Callable[[], Awaitable[str]]], object],
        settings: UserSettings,
        client_id: str,
        redirect_uri: str,
        scopes,
        poll_interval: float = POLL_INTERVAL_SEC,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.publisher = StatePublisher()
        self._store = store
        self._accounts = accounts
        self._error_category: Optional[str] = None
        self._background: Set[asyncio.Task] = set()

        self.session = TokenSession(store, accounts, listener=self._on_lifecycle, clock=clock)
        self.flow = PKCEAuthorizationFlow(client_id, redirect_uri, scopes, accounts, clock=clock)
        self.remote = remote_factory(self.session.access_token)
        self.poller = NowPlayingPoller(
            self.remote.get_current_playback, on_snapshot=self._on_snapshot, interval=poll_interval
        )
        self.commands = PlaybackCommandCoordinator(
            self.remote, self.poller, self.publisher, settings, sleep=sleep
        )

    @property
    def state(self) -> PublishedState:
        return self.publisher.state

    def subscribe(self, listener):
        return self.publisher.subscribe(listener)

    # Lifecycle

    async def start(self) -> None:
        """Restore stored credentials and, if still valid, start polling."""
        try:
            blob = self._store.load()
        except StorageError as e:
            logger.warning("Could not load stored credentials: %s", e)
            return
        if blob is None:
            logger.info("No stored Spotify session")
            return
        try:
            auth = AuthorizationState.from_bytes(blob)
        except ValueError as e:
            logger.warning("Discarding unreadable stored credentials: %s", e)
            try:
                self._store.delete()
            except StorageError as delete_error:
                logger.warning("Could not delete stored credentials: %s", delete_error)
            return

        self.session.restore(auth)
        try:
            await self.session.ensure_valid()
        except RefreshFailed as e:
            if not e.terminal:
                # Provider unreachable; keep the session and let the next call retry.
                logger.warning("Could not refresh restored session: %s", e)
                self._on_lifecycle(SessionLifecycleEvent.AUTHORIZED)
            return
        logger.info("Restored Spotify session")
        self._on_lifecycle(SessionLifecycleEvent.AUTHORIZED)

    async def shutdown(self) -> None:
        self.poller.stop()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        for resource in (self.remote, self._accounts):
            close_fn = getattr(resource, "close", None)
            if callable(close_fn):
                close_fn()

    # Authorization

    def begin_authorization(self) -> str:
        return self.flow.begin_authorization()

    async def handle_callback(self, url: str) -> CommandResult:
        try:
            auth = await self.flow.complete_authorization(url)
        except AuthError as e:
            logger.warning("Authorization callback rejected: %s", e)
            return self._fail(AUTH, e)
        self.session.establish(auth)
        self._succeed(AUTH)
        return CommandResult(ok=True)

    def sign_out(self) -> None:
        self.session.deauthorize()

    def _on_lifecycle(self, event: SessionLifecycleEvent) -> None:
        logger.info("Session event: %s", event.value)
        if event is SessionLifecycleEvent.AUTHORIZED:
            self.publisher.update(authorized=True)
            self.poller.start()
            self._spawn(self.refresh_playlists())
            return
        self.poller.stop()
        self.poller.clear()
        self.commands.invalidate_playlists()
        self.publisher.update(
            authorized=False,
            current_track=None,
            current_playlist_uri=None,
            playlists=(),
            is_loading=False,
        )

    def _on_snapshot(self, snapshot: PlaybackSnapshot) -> None:
        self.publisher.update(
            current_track=snapshot.track,
            current_playlist_uri=snapshot.playlist_context,
        )

    # Commands

    async def remove_and_skip(self) -> CommandResult:
        return await self._run_command(COMMAND, self.commands.remove_and_skip)

    async def add_to_playlist(self, target_playlist_id: str, remove_from_current: bool = False) -> CommandResult:
        return await self._run_command(
            COMMAND, lambda: self.commands.add_to_playlist(target_playlist_id, remove_from_current)
        )

    async def move_to_playlist(self, target_playlist_id: str) -> CommandResult:
        return await self._run_command(
            COMMAND, lambda: self.commands.move_to_playlist(target_playlist_id)
        )

    async def add_to_default_playlist(self) -> CommandResult:
        """Add the current track to the configured default playlist and move on."""
        playlist_id = self.settings.default_playlist_id
        if not playlist_id:
            return self._fail(COMMAND, NoDefaultPlaylist())
        return await self.add_to_playlist(playlist_id, remove_from_current=True)

    async def skip_to_next(self) -> CommandResult:
        return await self._run_command(COMMAND, self.commands.skip_to_next)

    async def refresh_playlists(self) -> CommandResult:
        return await self._run_command(PLAYLISTS, self.commands.fetch_playlists)

    async def _run_command(self, category: str, run: Callable[[], Awaitable]) -> CommandResult:
        if not self.session.is_authorized:
            return self._fail(category, NotAuthorized())
        try:
            await run()
        except PrunifyError as e:
            return self._fail(category, e)
        self._succeed(category)
        return CommandResult(ok=True)

    def _fail(self, category: str, error: PrunifyError) -> CommandResult:
        self._error_category = category
        self.publisher.update(last_error=str(error))
        return CommandResult(ok=False, error=error)

    def _succeed(self, category: str) -> None:
        if self._error_category == category:
            self._error_category = None
            self.publisher.update(last_error=None)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
