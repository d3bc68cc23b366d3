"""Storage collaborators for the challenge catalog."""

from challenge_player.storage.json_file import JsonFileStorage
from challenge_player.storage.memory import MemoryStorage

__all__ = ["JsonFileStorage", "MemoryStorage"]
