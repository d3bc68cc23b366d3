"""Protocol interfaces for the collaborators the player depends on."""

from typing import Any, Callable, Dict, Optional, Protocol
from challenge_player.core.models import AudioModeConfig, StatusEvent

StatusCallback = Callable[[StatusEvent], None]


class IAudioResource(Protocol):
    """Interface for one loaded, playable audio instance."""

    async def play(self) -> None:
        """Start or continue playback."""
        ...

    async def pause(self) -> None:
        """Pause playback (can be resumed)."""
        ...

    async def stop(self) -> None:
        """Halt playback without unloading."""
        ...

    async def seek(self, position_ms: float) -> None:
        """Jump to a position in milliseconds (engine clamps to duration)."""
        ...

    async def release(self) -> None:
        """Unload the resource; no status events follow."""
        ...

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register a status callback and return a function that removes it."""
        ...


class IAudioEngine(Protocol):
    """Interface for the audio engine adapter."""

    def initialize(self, mode: AudioModeConfig) -> None:
        """Apply audio session settings."""
        ...

    async def acquire(self, uri: str, autoplay: bool) -> IAudioResource:
        """
        Produce a playable resource for uri.

        Raises:
            EngineError: If the resource cannot be created.
        """
        ...

    async def shutdown(self) -> None:
        """Free engine-wide resources."""
        ...


class IRewardLedger(Protocol):
    """Interface for the component that awards completion points."""

    def complete_challenge(self, challenge_id: str) -> None:
        ...

    def add_points(self, points: int) -> None:
        ...


class IChallengeStorage(Protocol):
    """Interface for the key-value store the catalog is persisted in."""

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Return the document stored under key, or None.

        Raises:
            StorageError: If the stored document cannot be read.
        """
        ...

    def save(self, key: str, document: Dict[str, Any]) -> None:
        """
        Store document under key.

        Raises:
            StorageError: If the document cannot be written.
        """
        ...
