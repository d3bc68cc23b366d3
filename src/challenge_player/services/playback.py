"""Service owning the single live audio resource and its lifecycle."""

from dataclasses import replace
from typing import Awaitable, Callable, List, Optional
from challenge_player.core.exceptions import describe_error
from challenge_player.core.interfaces import IAudioEngine, IAudioResource, IRewardLedger
from challenge_player.core.models import PlaybackSession, PlayerState, StatusEvent, Track
from challenge_player.services.challenge_store import ChallengeStore
from challenge_player.services.progress import ProgressTracker, dispatch_effects
from challenge_player.utils.log import get_logger
from challenge_player.utils.validate import clamp_seek_seconds

logger = get_logger(__name__)

SessionListener = Callable[[PlaybackSession], None]


class PlaybackController:
    """
    Service for loading and controlling one challenge at a time.

    Responsibilities:
    - Hold at most one audio resource and release it before acquiring another
    - Tag each acquisition with a generation and discard stale results/events
    - Feed status events through the progress tracker
    - Record engine failures in the session instead of raising them

    Every public coroutine completes normally: engine failures end up in
    session.last_error, release failures are logged.
    """

    def __init__(
        self,
        engine: IAudioEngine,
        store: ChallengeStore,
        ledger: Optional[IRewardLedger] = None,
        tracker: Optional[ProgressTracker] = None,
        autoplay: bool = True,
    ):
        """
        Initialize playback controller.

        Args:
            engine: Audio engine adapter.
            store: Challenge store receiving progress and completion.
            ledger: Optional reward ledger notified on completion.
            tracker: Optional progress tracker (for testing).
            autoplay: Start playback as soon as a track is loaded.
        """
        self._engine = engine
        self._store = store
        self._ledger = ledger
        self._tracker = tracker or ProgressTracker()
        self._autoplay = autoplay
        self._resource: Optional[IAudioResource] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._generation = 0
        self._session = PlaybackSession()
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> PlaybackSession:
        """Current playback session snapshot."""
        return self._session

    @property
    def has_resource(self) -> bool:
        """True while a resource is held."""
        return self._resource is not None

    @property
    def generation(self) -> int:
        """Generation of the most recent load or teardown."""
        return self._generation

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a session listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self, track: Track) -> None:
        """
        Release any held resource, then acquire and start a new one for track.

        The session shows the new track in LOADING state before acquisition
        begins. If another load or teardown supersedes this one while it is
        suspended, its late resource is released instead of adopted.
        """
        self._generation += 1
        generation = self._generation

        self._set_session(
            PlaybackSession(
                track=track,
                state=PlayerState.LOADING,
                loading=True,
                generation=generation,
            )
        )
        logger.info(f"Loading track: {track.title}")

        previous = self._detach()
        if previous is not None:
            await self._release(previous)
            if generation != self._generation:
                return

        try:
            resource = await self._engine.acquire(track.audio_uri, autoplay=self._autoplay)
        except Exception as e:
            if generation != self._generation:
                logger.debug(f"Superseded load of {track.id} failed: {e}")
                return
            message = f"Failed to load track: {describe_error(e)}"
            logger.error(message)
            self._update(
                state=PlayerState.ERROR,
                loading=False,
                is_playing=False,
                last_error=message,
            )
            return

        if generation != self._generation:
            logger.info(f"Releasing stale resource for {track.id} (generation {generation})")
            await self._release(resource)
            return

        self._resource = resource
        self._unsubscribe = resource.subscribe(
            lambda event: self._on_status(generation, track, event)
        )
        self._update(
            state=PlayerState.PLAYING if self._autoplay else PlayerState.PAUSED,
            is_playing=self._autoplay,
            loading=False,
        )
        logger.info(f"Track loaded: {track.title}")

    async def play(self) -> None:
        """Begin or continue playback of the held resource."""
        await self._control(
            "play",
            lambda r: r.play(),
            lambda: self._update(state=PlayerState.PLAYING, is_playing=True),
        )

    async def resume(self) -> None:
        """Continue playback of the held resource."""
        await self._control(
            "resume",
            lambda r: r.play(),
            lambda: self._update(state=PlayerState.PLAYING, is_playing=True),
        )

    async def pause(self) -> None:
        """Pause the held resource."""
        await self._control(
            "pause",
            lambda r: r.pause(),
            lambda: self._update(state=PlayerState.PAUSED, is_playing=False),
        )

    async def stop(self) -> None:
        """Halt the held resource without releasing it."""
        await self._control(
            "stop",
            lambda r: r.stop(),
            lambda: self._update(state=PlayerState.STOPPED, is_playing=False),
        )

    async def seek(self, position_seconds: float) -> None:
        """Jump to position_seconds (negative values become 0)."""
        position_ms = clamp_seek_seconds(position_seconds) * 1000
        await self._control("seek", lambda r: r.seek(position_ms), None)

    async def teardown(self) -> None:
        """
        Stop and release the held resource and return to IDLE.

        Idempotent. Release failures are logged, never raised.
        """
        self._generation += 1
        generation = self._generation
        resource = self._detach()
        if resource is not None:
            await self._release(resource)
        if generation == self._generation:
            self._set_session(PlaybackSession(generation=generation))
        logger.debug("Playback torn down")

    async def _control(
        self,
        verb: str,
        action: Callable[[IAudioResource], Awaitable[None]],
        on_success: Optional[Callable[[], None]],
    ) -> None:
        resource = self._resource
        if resource is None:
            logger.warning(f"No sound instance to {verb}")
            return

        try:
            await action(resource)
        except Exception as e:
            message = f"Failed to {verb}: {describe_error(e)}"
            logger.error(message)
            if resource is self._resource:
                self._update(last_error=message)
            return

        if resource is not self._resource:
            logger.debug(f"{verb} finished on a superseded resource")
            return
        if on_success is not None:
            on_success()

    def _on_status(self, generation: int, track: Track, event: StatusEvent) -> None:
        if generation != self._generation or self._resource is None:
            logger.debug(f"Dropping stale status event for {track.id} (generation {generation})")
            return

        session, effects = self._tracker.apply(self._session, track, event)
        dispatch_effects(effects, self._store, self._ledger)

        state = session.state
        if session.is_playing:
            state = PlayerState.PLAYING
        elif state is PlayerState.PLAYING:
            state = PlayerState.PAUSED

        self._set_session(
            replace(
                session,
                state=state,
                track=self._store.get(track.id) or session.track,
            )
        )

    def _detach(self) -> Optional[IAudioResource]:
        resource = self._resource
        self._resource = None
        if self._unsubscribe is not None:
            try:
                self._unsubscribe()
            except Exception as e:
                logger.warning(f"Error removing status subscription: {e}")
            self._unsubscribe = None
        return resource

    async def _release(self, resource: IAudioResource) -> None:
        try:
            await resource.stop()
        except Exception as e:
            logger.warning(f"Error stopping resource before release: {e}")
        try:
            await resource.release()
        except Exception as e:
            logger.warning(f"Error releasing resource: {e}")

    def _update(self, **changes) -> None:
        self._set_session(replace(self._session, **changes))

    def _set_session(self, session: PlaybackSession) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                logger.warning(f"Session listener failed: {e}")
