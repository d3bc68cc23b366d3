"""
challenge_player - listening challenges with progress tracking.

This package plays audio "challenges" one at a time, tracks how far each
one has been listened to, and marks a challenge complete (awarding its
points exactly once) when playback reaches the end.
"""

from challenge_player.api.player import ChallengePlayer
from challenge_player.core.models import (
    AudioModeConfig,
    PlaybackSession,
    PlayerConfig,
    PlayerState,
    StatusEvent,
    Track,
)
from challenge_player.core.exceptions import (
    ChallengeNotFoundError,
    ChallengePlayerError,
    EngineError,
    EngineNotStartedError,
    ReleaseError,
    StorageError,
)

__version__ = "0.1.0"

__all__ = [
    "ChallengePlayer",
    "AudioModeConfig",
    "PlaybackSession",
    "PlayerConfig",
    "PlayerState",
    "StatusEvent",
    "Track",
    "ChallengeNotFoundError",
    "ChallengePlayerError",
    "EngineError",
    "EngineNotStartedError",
    "ReleaseError",
    "StorageError",
]
