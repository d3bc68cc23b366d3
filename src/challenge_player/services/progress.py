"""Progress tracking: status events in, session state and side effects out."""

from dataclasses import replace
from typing import Iterable, List, Optional, Set, Tuple
from challenge_player.core.interfaces import IRewardLedger
from challenge_player.core.models import (
    MarkComplete,
    NotifyReward,
    PlaybackSession,
    SideEffect,
    StatusEvent,
    Track,
    UpdateProgress,
)
from challenge_player.services.challenge_store import ChallengeStore
from challenge_player.utils.log import get_logger
from challenge_player.utils.validate import clamp_progress

logger = get_logger(__name__)


class ProgressTracker:
    """
    Converts raw status events into session state and side effects.

    The tracker holds no state of its own; apply() is a pure function of
    its arguments, so the same inputs always produce the same outputs.
    """

    def apply(
        self,
        session: PlaybackSession,
        track: Track,
        event: StatusEvent,
    ) -> Tuple[PlaybackSession, List[SideEffect]]:
        """
        Derive the next session state for one status event.

        Args:
            session: Session state before the event.
            track: Track the event's resource was loaded for.
            event: Status notification from the resource.

        Returns:
            Tuple of (new session, side effects to dispatch in order).
        """
        if not event.is_loaded:
            return session, []

        effects: List[SideEffect] = []

        position = event.position_ms / 1000
        if event.duration_ms:
            duration = event.duration_ms / 1000
        else:
            duration = session.duration_seconds or 0.0
        if duration > 0:
            position = min(position, duration)

        is_playing = event.is_playing

        if duration > 0:
            progress = clamp_progress(position / duration * 100)
            effects.append(UpdateProgress(track.id, progress))

        if event.just_finished:
            effects.append(MarkComplete(track.id))
            effects.append(NotifyReward(track.id, track.points))
            is_playing = False

        new_session = replace(
            session,
            position_seconds=position,
            duration_seconds=duration,
            is_playing=is_playing,
        )
        return new_session, effects


def dispatch_effects(
    effects: Iterable[SideEffect],
    store: ChallengeStore,
    ledger: Optional[IRewardLedger] = None,
) -> Set[str]:
    """
    Apply side effects to the store and reward ledger.

    A reward is only forwarded when the store reported that the matching
    MarkComplete transitioned the challenge in this batch.

    Returns:
        Ids of challenges that became completed.
    """
    completed: Set[str] = set()
    for effect in effects:
        if isinstance(effect, UpdateProgress):
            store.update_progress(effect.track_id, effect.progress)
        elif isinstance(effect, MarkComplete):
            if store.mark_complete(effect.track_id):
                completed.add(effect.track_id)
        elif isinstance(effect, NotifyReward):
            if effect.track_id not in completed:
                logger.debug(f"Reward for {effect.track_id} already granted, skipping")
                continue
            if ledger is None:
                continue
            try:
                ledger.complete_challenge(effect.track_id)
                ledger.add_points(effect.points)
            except Exception as e:
                logger.error(f"Reward ledger failed for {effect.track_id}: {e}")
        else:
            raise TypeError(f"Unknown side effect: {effect!r}")
    return completed
