"""Now-playing poller: recurring, single-flight fetch of remote playback."""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from prunify.config import POLL_INTERVAL_SEC
from prunify.models.playback import PlaybackSnapshot

logger = logging.getLogger(__name__)


class PollerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class NowPlayingPoller:
    """Polls on the running event loop.

    One timer task at most; one fetch in flight at most. stop() bumps the
    generation so results of fetches started before it are dropped.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Optional[dict]]],
        on_snapshot: Optional[Callable[[PlaybackSnapshot], None]] = None,
        interval: float = POLL_INTERVAL_SEC,
    ) -> None:
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self.interval = interval
        self._snapshot = PlaybackSnapshot.EMPTY
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> PlaybackSnapshot:
        return self._snapshot

    @property
    def state(self) -> PollerState:
        if self._timer is not None and not self._timer.done():
            return PollerState.RUNNING
        return PollerState.STOPPED

    @property
    def is_running(self) -> bool:
        return self.state is PollerState.RUNNING

    def start(self) -> None:
        """Start polling (restart if already running). First tick is immediate."""
        self.stop()
        self._generation += 1
        self._timer = asyncio.get_running_loop().create_task(self._run(self._generation))
        logger.info("Now-playing poller started (interval %.1fs)", self.interval)

    def stop(self) -> None:
        """Cancel the timer and drop the result of any fetch in flight."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info("Now-playing poller stopped")
        if self._in_flight is not None:
            self._in_flight.cancel()
            self._in_flight = None

    def clear(self) -> None:
        self._apply(PlaybackSnapshot.EMPTY)

    async def refresh_now(self) -> None:
        """Fetch once outside the timer, after any fetch already in flight."""
        previous = self._in_flight
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        task = asyncio.get_running_loop().create_task(self._tick(self._generation))
        self._in_flight = task
        await asyncio.wait({task})

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            self._spawn_tick(generation)
            await asyncio.sleep(self.interval)

    def _spawn_tick(self, generation: int) -> None:
        if self._in_flight is not None and not self._in_flight.done():
            logger.debug("Now-playing fetch still in flight, skipping tick")
            return
        self._in_flight = asyncio.get_running_loop().create_task(self._tick(generation))

    async def _tick(self, generation: int) -> None:
        try:
            pb = await self._fetch()
            snapshot = PlaybackSnapshot.from_playback(pb)
        except Exception as e:
            # Network blips are expected; keep polling.
            logger.warning("Now-playing poll failed: %s", e)
            return
        if generation != self._generation:
            logger.debug("Dropping now-playing result from a stopped cycle")
            return
        self._apply(snapshot)

    def _apply(self, snapshot: PlaybackSnapshot) -> None:
        self._snapshot = snapshot
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)
