"""Null engine for testing (no actual audio output)."""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple
from challenge_player.core.exceptions import EngineError, ReleaseError
from challenge_player.core.interfaces import IAudioEngine, IAudioResource, StatusCallback
from challenge_player.core.models import AudioModeConfig, StatusEvent
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)


class NullResource(IAudioResource):
    """Null resource that records control calls and emits scripted events."""

    def __init__(self, resource_id: str, uri: str, playing: bool = False):
        self.resource_id = resource_id
        self.uri = uri
        self.playing = playing
        self.position_ms: float = 0.0
        self.released = False
        self.calls: List[Tuple] = []
        self.failures: Dict[str, str] = {}
        self._callbacks: List[StatusCallback] = []

    def fail_on(self, operation: str, message: str = "engine failure") -> None:
        """Make every later call to operation raise."""
        self.failures[operation] = message

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation,) + args)
        message = self.failures.get(operation)
        if message is not None:
            error_cls = ReleaseError if operation == "release" else EngineError
            raise error_cls(message, uri=self.uri)

    async def play(self) -> None:
        """Start playback."""
        self._record("play")
        self.playing = True
        logger.debug(f"NullResource {self.resource_id}: playing")

    async def pause(self) -> None:
        """Pause playback."""
        self._record("pause")
        self.playing = False
        logger.debug(f"NullResource {self.resource_id}: paused")

    async def stop(self) -> None:
        """Stop playback."""
        self._record("stop")
        self.playing = False
        logger.debug(f"NullResource {self.resource_id}: stopped")

    async def seek(self, position_ms: float) -> None:
        """Seek to position_ms."""
        self._record("seek", position_ms)
        self.position_ms = position_ms
        logger.debug(f"NullResource {self.resource_id}: seek={position_ms}")

    async def release(self) -> None:
        """Release the resource."""
        self._record("release")
        self._callbacks.clear()
        self.released = True
        self.playing = False
        logger.debug(f"NullResource {self.resource_id}: released")

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register a status callback."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    @property
    def subscribers(self) -> Tuple[StatusCallback, ...]:
        """Currently registered callbacks."""
        return tuple(self._callbacks)

    def emit(self, event: StatusEvent) -> None:
        """Deliver event to every subscriber."""
        for callback in list(self._callbacks):
            callback(event)


class NullEngine(IAudioEngine):
    """
    Null engine implementation for testing.

    With deferred=True, acquire() suspends until the test calls resolve()
    or reject() for that acquisition, so acquisitions can finish out of
    order.
    """

    def __init__(self, deferred: bool = False):
        self.deferred = deferred
        self.mode: Optional[AudioModeConfig] = None
        self.resources: List[NullResource] = []
        self.failing_uris: Dict[str, str] = {}
        self.shut_down = False
        self._pending: List[Tuple[str, bool, "asyncio.Future[NullResource]"]] = []
        self._next_resource_id = 0

    def initialize(self, mode: AudioModeConfig) -> None:
        """Record audio mode."""
        self.mode = mode
        logger.info("NullEngine initialized")

    async def acquire(self, uri: str, autoplay: bool) -> IAudioResource:
        """Create a resource for uri, or wait for the test to resolve it."""
        if self.deferred:
            future: "asyncio.Future[NullResource]" = asyncio.get_running_loop().create_future()
            self._pending.append((uri, autoplay, future))
            return await future

        message = self.failing_uris.get(uri)
        if message is not None:
            raise EngineError(message, uri=uri)
        return self._create(uri, autoplay)

    def _create(self, uri: str, autoplay: bool) -> NullResource:
        resource = NullResource(f"null_{self._next_resource_id}", uri, playing=autoplay)
        self._next_resource_id += 1
        self.resources.append(resource)
        logger.debug(f"Created NullResource {resource.resource_id} for {uri}")
        return resource

    @property
    def pending_uris(self) -> List[str]:
        """URIs of acquisitions still waiting to be resolved."""
        return [uri for uri, _, _ in self._pending]

    def resolve(self, uri: str) -> NullResource:
        """Complete the oldest pending acquisition for uri."""
        index = self._pending_index(uri)
        _, autoplay, future = self._pending.pop(index)
        resource = self._create(uri, autoplay)
        future.set_result(resource)
        return resource

    def reject(self, uri: str, message: str = "acquisition failed") -> None:
        """Fail the oldest pending acquisition for uri."""
        index = self._pending_index(uri)
        _, _, future = self._pending.pop(index)
        future.set_exception(EngineError(message, uri=uri))

    def _pending_index(self, uri: str) -> int:
        for index, (pending_uri, _, _) in enumerate(self._pending):
            if pending_uri == uri:
                return index
        raise KeyError(f"No pending acquisition for {uri}")

    def live_resources(self) -> List[NullResource]:
        """Resources that have not been released."""
        return [r for r in self.resources if not r.released]

    async def shutdown(self) -> None:
        """Shutdown engine."""
        live = self.live_resources()
        for resource in live:
            await resource.release()
        self.shut_down = True
        logger.info(f"NullEngine shut down ({len(live)} resources released)")
