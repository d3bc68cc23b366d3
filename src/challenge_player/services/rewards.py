"""In-memory reward ledger."""

from typing import List, Tuple
from challenge_player.utils.log import get_logger

logger = get_logger(__name__)


class RewardLedger:
    """Keeps the user's point total and completed challenge ids."""

    def __init__(self, total_points: int = 0):
        self._total_points = total_points
        self._completed: List[str] = []

    def complete_challenge(self, challenge_id: str) -> None:
        if challenge_id in self._completed:
            return
        self._completed.append(challenge_id)
        logger.debug(f"Ledger: challenge {challenge_id} completed")

    def add_points(self, points: int) -> None:
        if points < 0:
            raise ValueError(f"points must be non-negative, got {points}")
        self._total_points += points
        logger.debug(f"Ledger: +{points} points (total {self._total_points})")

    @property
    def total_points(self) -> int:
        return self._total_points

    @property
    def completed_challenges(self) -> Tuple[str, ...]:
        return tuple(self._completed)
