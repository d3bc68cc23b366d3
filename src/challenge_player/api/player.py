"""ChallengePlayer - main public API."""

from typing import Optional, Tuple
from challenge_player.core.exceptions import ChallengeNotFoundError, EngineNotStartedError
from challenge_player.core.interfaces import IAudioEngine, IChallengeStorage, IRewardLedger
from challenge_player.core.models import PlaybackSession, PlayerConfig, Track
from challenge_player.services.challenge_store import ChallengeStore
from challenge_player.services.engine_lifecycle import EngineLifecycleService
from challenge_player.services.playback import PlaybackController
from challenge_player.services.rewards import RewardLedger
from challenge_player.utils.log import get_logger, set_log_level
from challenge_player.utils.validate import clamp, format_time

logger = get_logger(__name__)


class ChallengePlayer:
    """
    Main challenge player facade.

    Wires the challenge store, reward ledger and playback controller to an
    audio engine, and adds the convenience controls a player screen needs.
    Use as an async context manager to restore the catalog on entry and
    release playback on exit.
    """

    def __init__(
        self,
        engine: IAudioEngine,
        storage: IChallengeStorage,
        ledger: Optional[IRewardLedger] = None,
        config: Optional[PlayerConfig] = None,
    ):
        """
        Initialize ChallengePlayer.

        Args:
            engine: Audio engine adapter.
            storage: Key-value storage for the catalog.
            ledger: Optional reward ledger (default: in-memory RewardLedger).
            config: Player configuration.
        """
        self._config = config or PlayerConfig()
        self._ledger = ledger if ledger is not None else RewardLedger()
        self._store = ChallengeStore(storage, key=self._config.storage_key)
        self._controller = PlaybackController(
            engine, self._store, self._ledger, autoplay=self._config.autoplay
        )
        self._lifecycle = EngineLifecycleService(engine, self._config)

    async def start(self) -> None:
        """Apply configuration, start the engine and restore the catalog."""
        if self._lifecycle.is_started:
            return
        set_log_level(self._config.log_level)
        self._lifecycle.start()
        self._store.restore()
        logger.info("ChallengePlayer started")

    async def shutdown(self) -> None:
        """Tear down playback, shut the engine down and flush pending writes."""
        await self._lifecycle.shutdown(self._controller)
        await self._store.flush()

    async def __aenter__(self) -> "ChallengePlayer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    def _require_started(self) -> None:
        if not self._lifecycle.is_started:
            raise EngineNotStartedError("ChallengePlayer must be started before use")

    @property
    def store(self) -> ChallengeStore:
        return self._store

    @property
    def controller(self) -> PlaybackController:
        return self._controller

    @property
    def ledger(self) -> IRewardLedger:
        return self._ledger

    @property
    def challenges(self) -> Tuple[Track, ...]:
        return self._store.challenges

    @property
    def session(self) -> PlaybackSession:
        return self._controller.session

    async def load_challenge(self, challenge_id: str) -> None:
        """
        Load and start a challenge from the catalog.

        Raises:
            EngineNotStartedError: If start() has not been called.
            ChallengeNotFoundError: If challenge_id is not in the catalog.
        """
        self._require_started()
        track = self._store.get(challenge_id)
        if track is None:
            raise ChallengeNotFoundError(f"Challenge not found: {challenge_id}")
        await self._controller.load(track)

    async def load(self, track: Track) -> None:
        self._require_started()
        await self._controller.load(track)

    async def play(self) -> None:
        self._require_started()
        await self._controller.play()

    async def pause(self) -> None:
        self._require_started()
        await self._controller.pause()

    async def resume(self) -> None:
        self._require_started()
        await self._controller.resume()

    async def stop(self) -> None:
        self._require_started()
        await self._controller.stop()

    async def seek(self, position_seconds: float) -> None:
        self._require_started()
        await self._controller.seek(position_seconds)

    async def teardown(self) -> None:
        await self._controller.teardown()

    async def toggle_play_pause(self) -> None:
        """Pause when playing, otherwise resume the loaded track."""
        self._require_started()
        session = self._controller.session
        if session.is_playing:
            await self._controller.pause()
        elif session.track is not None:
            await self._controller.resume()
        else:
            logger.warning("Nothing loaded to play")

    async def seek_to_percentage(self, percentage: float) -> None:
        """Seek to a percentage of the track; ignored until duration is known."""
        self._require_started()
        duration = self._controller.session.duration_seconds
        if not duration:
            logger.debug("seek_to_percentage: duration unknown, ignoring")
            return
        await self._controller.seek(clamp(percentage, 0.0, 100.0) / 100 * duration)

    async def seek_forward(self) -> None:
        """Jump ahead by the configured step, stopping at the end."""
        self._require_started()
        session = self._controller.session
        target = session.position_seconds + self._config.seek_step_seconds
        await self._controller.seek(min(session.duration_seconds, target))

    async def seek_backward(self) -> None:
        """Jump back by the configured step, stopping at the start."""
        self._require_started()
        session = self._controller.session
        target = session.position_seconds - self._config.seek_step_seconds
        await self._controller.seek(max(0.0, target))

    @property
    def progress_percent(self) -> float:
        """Display progress of the loaded track, 0 while duration is unknown."""
        session = self._controller.session
        if not session.duration_seconds:
            return 0.0
        return clamp(session.position_seconds / session.duration_seconds * 100, 0.0, 100.0)

    @property
    def elapsed_text(self) -> str:
        return format_time(self._controller.session.position_seconds)

    @property
    def duration_text(self) -> str:
        return format_time(self._controller.session.duration_seconds)
