"""Playback commands as ordered remote steps against the latest snapshot.

Spotify's playlist and player endpoints are not transactional: a failed step
aborts the rest, and steps already taken stay taken.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Tuple

from prunify.config import PLAYLIST_PAGE_SIZE, REFRESH_SETTLE_SEC, REMOVE_SETTLE_SEC
from prunify.core.errors import AuthError, CommandStep, NoEligibleTrack, RemoteCallFailed, RemoteError
from prunify.core.uris import canonical_playlist_uri
from prunify.models.playback import PlaylistRef

logger = logging.getLogger(__name__)


class PlaybackCommandCoordinator:
    def __init__(
        self,
        remote,
        poller,
        publisher,
        settings,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        page_size: int = PLAYLIST_PAGE_SIZE,
    ) -> None:
        self._remote = remote
        self._poller = poller
        self._publisher = publisher
        self._settings = settings
        self._sleep = sleep
        self.page_size = page_size
        self._lock = asyncio.Lock()
        self._playlist_generation = 0
        self._playlist_fetches = 0

    async def _step(self, step: CommandStep, call: Awaitable):
        try:
            return await call
        except (RemoteError, AuthError) as e:
            logger.warning("Command step %s failed: %s", step.value, e)
            raise RemoteCallFailed(step, e) from e

    async def remove_and_skip(self) -> None:
        """Remove the current track from its playlist, skip, and seek into the next one."""
        async with self._lock:
            snapshot = self._poller.snapshot
            if snapshot.track is None or snapshot.playlist_context is None:
                raise NoEligibleTrack()
            track = snapshot.track
            playlist_uri = canonical_playlist_uri(snapshot.playlist_context)
            logger.info("Removing %s from %s", track.uri, playlist_uri)

            await self._step(
                CommandStep.REMOVE,
                self._remote.remove_all_occurrences(playlist_uri, [track.uri]),
            )
            await self._step(CommandStep.SKIP, self._remote.skip_to_next())

            # Give Spotify time to register the skip before seeking.
            await self._sleep(REMOVE_SETTLE_SEC)
            await self._step(
                CommandStep.SEEK,
                self._remote.seek(self._settings.effective_skip_offset_ms),
            )

            await self._sleep(REMOVE_SETTLE_SEC)
            await self._poller.refresh_now()
            logger.info("Remove+skip completed")

    async def add_to_playlist(self, target_playlist: str, remove_from_current: bool) -> None:
        """Add the current track to target; optionally move it out of the current playlist.

        Removal is skipped (add only) when the track is not playing from a playlist.
        """
        async with self._lock:
            snapshot = self._poller.snapshot
            if snapshot.track is None:
                raise NoEligibleTrack("No track currently playing")
            track = snapshot.track
            target_uri = canonical_playlist_uri(target_playlist)

            await self._step(CommandStep.ADD, self._remote.add_items(target_uri, [track.uri]))
            logger.info("Added %s to %s", track.uri, target_uri)

            if remove_from_current and snapshot.playlist_context is not None:
                current_uri = canonical_playlist_uri(snapshot.playlist_context)
                await self._step(
                    CommandStep.REMOVE,
                    self._remote.remove_all_occurrences(current_uri, [track.uri]),
                )
                await self._step(CommandStep.SKIP, self._remote.skip_to_next())
                logger.info("Moved %s out of %s", track.uri, current_uri)

            await self._sleep(REFRESH_SETTLE_SEC)
            await self._poller.refresh_now()

    async def move_to_playlist(self, target_playlist: str) -> None:
        await self.add_to_playlist(target_playlist, remove_from_current=True)

    async def skip_to_next(self) -> None:
        async with self._lock:
            await self._step(CommandStep.SKIP, self._remote.skip_to_next())
            await self._sleep(REFRESH_SETTLE_SEC)
            await self._poller.refresh_now()

    def invalidate_playlists(self) -> None:
        """Drop the results of playlist fetches already in flight."""
        self._playlist_generation += 1
        self._playlist_fetches = 0

    async def fetch_playlists(self) -> Tuple[PlaylistRef, ...]:
        """Page through the user's playlists and replace the collection whole.

        Fetches may overlap; is_loading stays set until the last one finishes.
        """
        generation = self._playlist_generation
        self._playlist_fetches += 1
        self._publisher.update(is_loading=True)
        try:
            collected = []
            offset = 0
            while True:
                page = await self._step(
                    CommandStep.LIST_PLAYLISTS,
                    self._remote.list_current_user_playlists(limit=self.page_size, offset=offset),
                )
                items = (page or {}).get("items") or []
                # Spotify returns null entries for playlists it cannot show.
                collected.extend(PlaylistRef.from_api(item) for item in items if item)
                if len(items) < self.page_size:
                    break
                total = (page or {}).get("total")
                if total is not None and offset + len(items) >= int(total):
                    break
                offset += self.page_size

            playlists = tuple(collected)
            if generation != self._playlist_generation:
                logger.debug("Dropping playlists fetched for a previous session")
                return ()
            self._publisher.update(playlists=playlists)
            logger.info("Fetched %d playlists", len(playlists))
            return playlists
        finally:
            if generation == self._playlist_generation:
                self._playlist_fetches -= 1
                self._publisher.update(is_loading=self._playlist_fetches > 0)
