"""Tests for playback controller logic (using NullEngine)."""

import asyncio
import logging

import pytest

from challenge_player.backends.null_backend import NullEngine
from challenge_player.core.models import PlayerState, StatusEvent, Track
from challenge_player.services.challenge_store import ChallengeStore
from challenge_player.services.playback import PlaybackController
from challenge_player.services.rewards import RewardLedger
from challenge_player.storage import MemoryStorage

TRACK_A = Track(id="a", audio_uri="mem://a", title="Track A", artist="X", points=5)
TRACK_B = Track(id="b", audio_uri="mem://b", title="Track B", artist="Y", points=7)
TRACK_T1 = Track(id="t1", audio_uri="mem://t1", title="Track 1", artist="Z", points=10)


def _run(coro):
    """Run an async scenario from a sync test function."""
    return asyncio.run(coro)


async def _settle() -> None:
    """Let pending tasks run until they suspend again."""
    for _ in range(5):
        await asyncio.sleep(0)


def create_controller(deferred: bool = False):
    """Create a controller wired to a NullEngine, store and ledger."""
    engine = NullEngine(deferred=deferred)
    store = ChallengeStore(MemoryStorage(), defaults=[TRACK_A, TRACK_B, TRACK_T1])
    ledger = RewardLedger()
    controller = PlaybackController(engine, store, ledger)
    return controller, engine, store, ledger


def test_load_starts_playback():
    """Test that load acquires a resource and plays it."""
    controller, engine, _, _ = create_controller()

    _run(controller.load(TRACK_A))

    session = controller.session
    assert controller.has_resource
    assert session.track == TRACK_A
    assert session.state == PlayerState.PLAYING
    assert session.is_playing
    assert not session.loading
    assert session.last_error is None
    assert len(engine.resources) == 1
    assert engine.resources[0].uri == "mem://a"
    assert engine.resources[0].playing


def test_load_releases_previous_resource():
    """Test that loading B stops and releases A first."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        await controller.load(TRACK_B)

    _run(run())

    first, second = engine.resources
    assert first.released
    assert ("stop",) in first.calls
    assert first.calls[-1] == ("release",)
    assert engine.live_resources() == [second]
    assert controller.session.track == TRACK_B


def test_overlapping_loads_release_late_stale_resource():
    """Test that A's acquisition resolving after B's is released, not adopted."""
    controller, engine, _, _ = create_controller(deferred=True)

    async def run():
        load_a = asyncio.create_task(controller.load(TRACK_A))
        await _settle()
        load_b = asyncio.create_task(controller.load(TRACK_B))
        await _settle()
        assert engine.pending_uris == ["mem://a", "mem://b"]

        resource_b = engine.resolve("mem://b")
        await _settle()
        resource_a = engine.resolve("mem://a")
        await asyncio.gather(load_a, load_b)
        return resource_a, resource_b

    resource_a, resource_b = _run(run())

    assert resource_a.released
    assert not resource_b.released
    assert engine.live_resources() == [resource_b]
    assert controller.session.track == TRACK_B
    assert controller.session.state == PlayerState.PLAYING


def test_overlapping_loads_release_early_stale_resource():
    """Test that A resolving before B is still discarded."""
    controller, engine, _, _ = create_controller(deferred=True)

    async def run():
        load_a = asyncio.create_task(controller.load(TRACK_A))
        await _settle()
        load_b = asyncio.create_task(controller.load(TRACK_B))
        await _settle()

        resource_a = engine.resolve("mem://a")
        await _settle()
        resource_b = engine.resolve("mem://b")
        await asyncio.gather(load_a, load_b)
        return resource_a, resource_b

    resource_a, resource_b = _run(run())

    assert resource_a.released
    assert engine.live_resources() == [resource_b]
    assert controller.session.track == TRACK_B


def test_superseded_failure_is_not_surfaced():
    """Test that a failing stale acquisition does not set last_error."""
    controller, engine, _, _ = create_controller(deferred=True)

    async def run():
        load_a = asyncio.create_task(controller.load(TRACK_A))
        await _settle()
        load_b = asyncio.create_task(controller.load(TRACK_B))
        await _settle()
        engine.reject("mem://a", "network down")
        engine.resolve("mem://b")
        await asyncio.gather(load_a, load_b)

    _run(run())

    assert controller.session.last_error is None
    assert controller.session.state == PlayerState.PLAYING


def test_track_is_visible_while_loading():
    """Test that observers see the new track before acquisition completes."""
    controller, engine, _, _ = create_controller(deferred=True)
    states = []
    controller.subscribe(lambda session: states.append((session.state, session.track)))

    async def run():
        load_a = asyncio.create_task(controller.load(TRACK_A))
        await _settle()
        assert controller.session.loading
        assert controller.session.track == TRACK_A
        engine.resolve("mem://a")
        await load_a

    _run(run())

    assert states[0] == (PlayerState.LOADING, TRACK_A)
    assert states[-1] == (PlayerState.PLAYING, TRACK_A)


def test_load_failure_records_error():
    """Test that an acquisition failure lands in last_error."""
    controller, engine, _, _ = create_controller()
    engine.failing_uris["mem://a"] = "file missing"

    _run(controller.load(TRACK_A))

    session = controller.session
    assert not controller.has_resource
    assert session.state == PlayerState.ERROR
    assert session.last_error == "Failed to load track: file missing"
    assert not session.loading
    assert not session.is_playing


def test_release_failure_is_swallowed(caplog):
    """Test that failing to release A does not block loading B."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        engine.resources[0].fail_on("release", "unload failed")
        await controller.load(TRACK_B)

    with caplog.at_level(logging.WARNING, logger="challenge_player.services.playback"):
        _run(run())

    assert controller.session.track == TRACK_B
    assert controller.session.last_error is None
    assert "Error releasing resource" in caplog.text


def test_completion_scenario():
    """Test progress, completion and reward for a full listen."""
    controller, engine, store, ledger = create_controller()

    _run(controller.load(TRACK_T1))
    resource = engine.resources[0]

    resource.emit(StatusEvent(is_loaded=True, position_ms=0, duration_ms=200000, is_playing=True))
    assert store.get("t1").progress == 0
    assert controller.session.is_playing

    finished = StatusEvent(
        is_loaded=True,
        position_ms=200000,
        duration_ms=200000,
        is_playing=True,
        just_finished=True,
    )
    resource.emit(finished)

    challenge = store.get("t1")
    assert challenge.completed
    assert challenge.progress == 100
    assert not controller.session.is_playing
    assert controller.session.state == PlayerState.PAUSED
    assert controller.session.track.completed
    assert ledger.total_points == 10

    completed_at = challenge.completed_at
    resource.emit(finished)

    assert store.get("t1").completed_at == completed_at
    assert ledger.total_points == 10
    assert ledger.completed_challenges == ("t1",)


def test_replaying_completed_track_does_not_reward_again():
    """Test that finishing an already completed track awards nothing."""
    controller, engine, store, ledger = create_controller()
    finished = StatusEvent(
        is_loaded=True, position_ms=1000, duration_ms=1000, just_finished=True
    )

    async def run():
        await controller.load(TRACK_A)
        engine.resources[-1].emit(finished)
        await controller.load(TRACK_A)
        engine.resources[-1].emit(finished)

    _run(run())

    assert ledger.total_points == 5


def test_stale_events_are_dropped():
    """Test that events from a superseded resource never mutate state."""
    controller, engine, store, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        stale_callback = engine.resources[0].subscribers[0]
        await controller.load(TRACK_B)
        return stale_callback

    stale_callback = _run(run())
    before = controller.session

    stale_callback(StatusEvent(
        is_loaded=True, position_ms=5000, duration_ms=5000, just_finished=True
    ))

    assert controller.session == before
    assert not store.get("a").completed
    assert store.get("a").progress == 0


def test_release_unsubscribes():
    """Test that the status subscription ends with the resource."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        await controller.load(TRACK_B)

    _run(run())

    assert engine.resources[0].subscribers == ()
    assert len(engine.resources[1].subscribers) == 1


def test_pause_without_track_warns(caplog):
    """Test that pause with nothing loaded is a logged no-op."""
    controller, _, _, _ = create_controller()

    with caplog.at_level(logging.WARNING, logger="challenge_player.services.playback"):
        _run(controller.pause())

    assert not controller.session.is_playing
    assert controller.session.last_error is None
    assert "No sound instance to pause" in caplog.text


def test_controls_without_resource_are_noops():
    """Test every control operation with nothing loaded."""
    controller, _, _, _ = create_controller()

    async def run():
        await controller.play()
        await controller.resume()
        await controller.stop()
        await controller.seek(10)

    _run(run())

    assert controller.session.state == PlayerState.IDLE


def test_pause_resume_stop():
    """Test state transitions for control operations."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        await controller.pause()
        assert controller.session.state == PlayerState.PAUSED
        assert not controller.session.is_playing
        await controller.resume()
        assert controller.session.state == PlayerState.PLAYING
        assert controller.session.is_playing
        await controller.stop()
        assert controller.session.state == PlayerState.STOPPED
        await controller.play()
        assert controller.session.state == PlayerState.PLAYING

    _run(run())

    resource = engine.resources[0]
    assert not resource.released
    assert controller.has_resource
    assert [c[0] for c in resource.calls] == ["pause", "play", "stop", "play"]


def test_seek_clamps_negative_positions():
    """Test that seek never sends a negative position to the engine."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        await controller.seek(-3)
        await controller.seek(5)

    _run(run())

    seeks = [c for c in engine.resources[0].calls if c[0] == "seek"]
    assert seeks == [("seek", 0), ("seek", 5000)]
    assert controller.session.is_playing


def test_control_failure_records_error():
    """Test that engine failures in control calls are surfaced, not raised."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        engine.resources[0].fail_on("pause", "device busy")
        await controller.pause()

    _run(run())

    assert controller.session.last_error == "Failed to pause: device busy"
    assert controller.has_resource


def test_teardown_is_idempotent():
    """Test that teardown releases and returns to IDLE, twice over."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        await controller.teardown()
        await controller.teardown()

    _run(run())

    assert engine.resources[0].released
    assert not controller.has_resource
    assert controller.session.state == PlayerState.IDLE
    assert controller.session.track is None


def test_teardown_swallows_release_failures():
    """Test that teardown reaches IDLE even when stop and release fail."""
    controller, engine, _, _ = create_controller()

    async def run():
        await controller.load(TRACK_A)
        engine.resources[0].fail_on("stop", "stop failed")
        engine.resources[0].fail_on("release", "release failed")
        await controller.teardown()

    _run(run())

    assert not controller.has_resource
    assert controller.session.state == PlayerState.IDLE
    assert ("release",) in engine.resources[0].calls


def test_teardown_during_load_discards_result():
    """Test that a teardown supersedes an in-flight acquisition."""
    controller, engine, _, _ = create_controller(deferred=True)

    async def run():
        load_a = asyncio.create_task(controller.load(TRACK_A))
        await _settle()
        await controller.teardown()
        resource = engine.resolve("mem://a")
        await load_a
        return resource

    resource = _run(run())

    assert resource.released
    assert not controller.has_resource
    assert controller.session.state == PlayerState.IDLE


def test_not_loaded_events_are_ignored():
    """Test that still-loading status events leave the session alone."""
    controller, engine, _, _ = create_controller()

    _run(controller.load(TRACK_A))
    before = controller.session
    engine.resources[0].emit(StatusEvent(is_loaded=False))

    assert controller.session == before


def test_engine_reported_pause_updates_state():
    """Test that the engine's playing flag drives the session state."""
    controller, engine, _, _ = create_controller()

    _run(controller.load(TRACK_A))
    engine.resources[0].emit(
        StatusEvent(is_loaded=True, position_ms=1000, duration_ms=10000, is_playing=False)
    )

    assert controller.session.state == PlayerState.PAUSED
    assert controller.session.position_seconds == 1


def test_null_engine_resolve_unknown_uri():
    """Test that resolving an acquisition nobody requested is an error."""
    engine = NullEngine(deferred=True)

    with pytest.raises(KeyError):
        engine.resolve("mem://nothing")
