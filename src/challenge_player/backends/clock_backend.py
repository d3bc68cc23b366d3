"""Local-file engine: pydub decoding plus a simulated playback clock."""

import asyncio
import time
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import unquote, urlparse

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from challenge_player.core.exceptions import EngineError
from challenge_player.core.interfaces import IAudioEngine, IAudioResource, StatusCallback
from challenge_player.core.models import AudioModeConfig, StatusEvent
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)

SegmentLoader = Callable[[str], AudioSegment]


def uri_to_path(uri: str) -> Path:
    """
    Resolve a plain path or file:// URI to a local path.

    Raises:
        EngineError: If the URI uses another scheme.
    """
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if not parsed.scheme or len(parsed.scheme) == 1:
        # No scheme, or a Windows drive letter
        return Path(uri)
    raise EngineError(f"Unsupported URI scheme: {parsed.scheme}", uri=uri)


class ClockResource(IAudioResource):
    """
    Resource whose position advances with the monotonic clock.

    While playing, a background task emits a status event every tick and a
    final just_finished event when the position reaches the duration.
    """

    def __init__(self, uri: str, duration_ms: float, tick_interval: float):
        self.uri = uri
        self.duration_ms = duration_ms
        self._tick_interval = tick_interval
        self._position_ms = 0.0
        self._started_at: Optional[float] = None
        self._callbacks: List[StatusCallback] = []
        self._task: Optional[asyncio.Task] = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def is_playing(self) -> bool:
        return self._started_at is not None

    @property
    def position_ms(self) -> float:
        if self._started_at is None:
            return self._position_ms
        elapsed = (time.monotonic() - self._started_at) * 1000
        return min(self._position_ms + elapsed, self.duration_ms)

    def _check_alive(self) -> None:
        if self._released:
            raise EngineError("Resource already released", uri=self.uri)

    async def play(self) -> None:
        """Start or continue playback."""
        self._check_alive()
        if self.is_playing:
            return
        if self._position_ms >= self.duration_ms:
            self._position_ms = 0.0
        self._started_at = time.monotonic()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._emit()

    async def pause(self) -> None:
        """Pause playback."""
        self._check_alive()
        await self._halt()
        self._emit()

    async def stop(self) -> None:
        """Stop playback and rewind."""
        self._check_alive()
        await self._halt()
        self._position_ms = 0.0
        self._emit()

    async def seek(self, position_ms: float) -> None:
        """Jump to position_ms, clamped to [0, duration]."""
        self._check_alive()
        self._position_ms = max(0.0, min(position_ms, self.duration_ms))
        if self._started_at is not None:
            self._started_at = time.monotonic()
        self._emit()

    async def release(self) -> None:
        """Stop the clock and drop subscribers."""
        if self._released:
            return
        await self._halt()
        self._callbacks.clear()
        self._released = True
        logger.debug(f"ClockResource released: {self.uri}")

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register a status callback."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def _halt(self) -> None:
        self._position_ms = self.position_ms
        self._started_at = None
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            if self.position_ms >= self.duration_ms:
                self._position_ms = self.duration_ms
                self._started_at = None
                self._task = None
                self._emit(just_finished=True)
                return
            self._emit()

    def _emit(self, just_finished: bool = False) -> None:
        event = StatusEvent(
            is_loaded=True,
            position_ms=self.position_ms,
            duration_ms=self.duration_ms,
            is_playing=self.is_playing,
            just_finished=just_finished,
        )
        loop = asyncio.get_running_loop()
        for callback in list(self._callbacks):
            loop.call_soon(callback, event)


class ClockEngine(IAudioEngine):
    """Engine that plays local audio files against a simulated clock."""

    def __init__(
        self,
        tick_interval: float = 0.25,
        loader: Optional[SegmentLoader] = None,
    ):
        """
        Initialize clock engine.

        Args:
            tick_interval: Seconds between status events while playing.
            loader: Optional decoder (default: pydub AudioSegment.from_file).
        """
        self._tick_interval = tick_interval
        self._loader: SegmentLoader = loader or AudioSegment.from_file
        self._resources: List[ClockResource] = []
        self.mode: Optional[AudioModeConfig] = None

    def initialize(self, mode: AudioModeConfig) -> None:
        """Record audio session settings."""
        self.mode = mode
        logger.info(f"ClockEngine initialized: {mode}")

    async def acquire(self, uri: str, autoplay: bool) -> IAudioResource:
        """
        Decode uri to learn its duration and create a clock resource.

        Raises:
            EngineError: If the file is missing, unsupported or undecodable.
        """
        path = uri_to_path(uri)
        if not path.exists():
            raise EngineError(f"Audio file not found: {path}", uri=uri)

        try:
            segment = await asyncio.to_thread(self._loader, str(path))
        except FileNotFoundError as e:
            # pydub raises this when the ffmpeg tools are not on PATH
            raise EngineError(f"ffmpeg is required to decode {path.suffix} files", uri=uri) from e
        except CouldntDecodeError as e:
            raise EngineError(f"Failed to decode audio file: {e}", uri=uri) from e
        except Exception as e:
            raise EngineError(f"Failed to load audio file: {e}", uri=uri) from e

        duration_ms = float(len(segment))
        logger.info(f"Loaded {path.name}: {duration_ms / 1000:.2f}s")

        resource = ClockResource(uri, duration_ms, self._tick_interval)
        self._resources = [r for r in self._resources if not r.released]
        self._resources.append(resource)
        if autoplay:
            await resource.play()
        return resource

    async def shutdown(self) -> None:
        """Release every resource this engine created."""
        for resource in self._resources:
            try:
                await resource.release()
            except Exception as e:
                logger.warning(f"Error releasing {resource.uri}: {e}")
        self._resources.clear()
        logger.info("ClockEngine shut down")
