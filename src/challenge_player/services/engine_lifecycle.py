"""Service for managing audio engine lifecycle."""

from typing import Optional
from challenge_player.core.exceptions import EngineNotStartedError
from challenge_player.core.interfaces import IAudioEngine
from challenge_player.core.models import PlayerConfig
from challenge_player.services.playback import PlaybackController
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)


class EngineLifecycleService:
    """
    Service for managing audio engine lifecycle.

    Responsibilities:
    - Apply audio session settings once on start
    - Tear down playback before shutting the engine down
    - Ensure proper resource cleanup
    """

    def __init__(self, engine: IAudioEngine, config: PlayerConfig):
        """
        Initialize lifecycle service.

        Args:
            engine: Audio engine adapter.
            config: Player configuration.
        """
        self._engine = engine
        self._config = config
        self._started = False

    def start(self) -> None:
        """Apply audio mode settings and mark the engine usable."""
        if self._started:
            logger.warning("Engine already started")
            return

        self._engine.initialize(self._config.audio_mode)
        self._started = True
        logger.info("Audio engine started")

    async def shutdown(self, controller: Optional[PlaybackController] = None) -> None:
        """
        Tear down playback and shut the engine down.

        The controller is torn down even when the engine was never started.
        This method is idempotent and safe to call multiple times.
        """
        if controller is not None:
            try:
                await controller.teardown()
            except Exception as e:
                logger.warning(f"Error during playback teardown: {e}")

        if not self._started:
            logger.debug("Engine not started, skipping shutdown")
            return

        logger.info("Shutting down audio engine...")

        try:
            await self._engine.shutdown()
        except Exception as e:
            logger.warning(f"Error during engine shutdown: {e}")

        self._started = False
        logger.info("Audio engine shut down")

    @property
    def is_started(self) -> bool:
        """
        Check if engine is started.

        Returns:
            True if started, False otherwise.
        """
        return self._started

    @property
    def engine(self) -> IAudioEngine:
        """
        Get engine instance.

        Raises:
            EngineNotStartedError: If engine is not started.
        """
        if not self._started:
            raise EngineNotStartedError("Engine must be started before accessing it")
        return self._engine
