import asyncio

import pytest

from conftest import SOURCE_PLAYLIST, FakeRemote, playback_payload, settle
from prunify.core.errors import RemoteError
from prunify.core.poller import NowPlayingPoller, PollerState
from prunify.models.playback import PlaybackSnapshot


@pytest.fixture
def remote():
    r = FakeRemote()
    r.playback = playback_payload()
    return r


@pytest.fixture
def snapshots():
    return []


def make_poller(remote, snapshots, interval=60.0):
    return NowPlayingPoller(remote.get_current_playback, on_snapshot=snapshots.append, interval=interval)


async def test_first_tick_is_immediate(remote, snapshots):
    poller = make_poller(remote, snapshots, interval=60.0)
    poller.start()
    await settle()

    assert remote.names == ["get_current_playback"]
    assert poller.snapshot.playlist_context == SOURCE_PLAYLIST
    assert snapshots == [poller.snapshot]
    assert poller.state is PollerState.RUNNING
    poller.stop()


async def test_ticks_repeat_on_interval(remote, snapshots):
    poller = make_poller(remote, snapshots, interval=0.01)
    poller.start()
    await asyncio.sleep(0.055)
    poller.stop()
    assert remote.names.count("get_current_playback") >= 3


async def test_no_overlapping_fetches(remote, snapshots):
    remote.gate = asyncio.Event()
    poller = make_poller(remote, snapshots, interval=0.01)
    poller.start()
    await asyncio.sleep(0.06)

    # Several intervals elapsed while the first fetch was still out.
    assert remote.names.count("get_current_playback") == 1

    remote.gate.set()
    await asyncio.sleep(0.03)
    poller.stop()
    assert remote.names.count("get_current_playback") >= 2


async def test_start_while_running_keeps_one_timer(remote, snapshots):
    poller = make_poller(remote, snapshots, interval=60.0)
    poller.start()
    await settle()
    poller.start()
    await settle()
    poller.start()
    await settle()

    assert poller.is_running
    # Each (re)start ticks immediately, nothing else fires.
    assert remote.names.count("get_current_playback") == 3
    poller.stop()
    assert poller.state is PollerState.STOPPED


async def test_stop_drops_in_flight_result(remote, snapshots):
    remote.gate = asyncio.Event()
    poller = make_poller(remote, snapshots)
    poller.start()
    await settle()
    poller.stop()
    remote.gate.set()
    await settle()

    assert snapshots == []
    assert poller.snapshot == PlaybackSnapshot.EMPTY


async def test_failed_tick_is_swallowed(remote, snapshots):
    remote.fail["get_current_playback"] = RemoteError(502, "Bad gateway")
    poller = make_poller(remote, snapshots, interval=0.01)
    poller.start()
    await asyncio.sleep(0.015)
    assert poller.is_running

    del remote.fail["get_current_playback"]
    await asyncio.sleep(0.03)
    poller.stop()
    assert poller.snapshot.track is not None


async def test_no_playback_clears_snapshot(remote, snapshots):
    poller = make_poller(remote, snapshots)
    await poller.refresh_now()
    assert poller.snapshot.track is not None

    remote.playback = None
    await poller.refresh_now()
    assert poller.snapshot == PlaybackSnapshot.EMPTY
    assert snapshots[-1] == PlaybackSnapshot.EMPTY


async def test_refresh_now_waits_for_in_flight_fetch(remote, snapshots):
    remote.gate = asyncio.Event()
    poller = make_poller(remote, snapshots)
    poller.start()
    await settle()

    refresh = asyncio.ensure_future(poller.refresh_now())
    await settle()
    assert remote.names.count("get_current_playback") == 1

    remote.gate.set()
    await refresh
    assert remote.names.count("get_current_playback") == 2
    assert len(snapshots) == 2
    poller.stop()


async def test_clear_resets_snapshot(remote, snapshots):
    poller = make_poller(remote, snapshots)
    await poller.refresh_now()
    poller.clear()
    assert poller.snapshot == PlaybackSnapshot.EMPTY
