"""Services layer for playback orchestration."""

from challenge_player.services.challenge_store import ChallengeStore
from challenge_player.services.engine_lifecycle import EngineLifecycleService
from challenge_player.services.playback import PlaybackController
from challenge_player.services.progress import ProgressTracker, dispatch_effects
from challenge_player.services.rewards import RewardLedger

__all__ = [
    "ChallengeStore",
    "EngineLifecycleService",
    "PlaybackController",
    "ProgressTracker",
    "RewardLedger",
    "dispatch_effects",
]
