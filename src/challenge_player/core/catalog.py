"""Built-in challenge catalog used when nothing has been persisted."""

from typing import Tuple
from challenge_player.core.models import Track

DEFAULT_CHALLENGES: Tuple[Track, ...] = (
    Track(
        id="1",
        audio_uri="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-1.mp3",
        title="Morning Focus",
        artist="SoundHelix",
        points=10,
        description="Listen to the full track to start your day.",
    ),
    Track(
        id="2",
        audio_uri="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-2.mp3",
        title="Deep Work",
        artist="SoundHelix",
        points=15,
        description="Stay with it until the last note.",
    ),
    Track(
        id="3",
        audio_uri="https://www.soundhelix.com/examples/mp3/SoundHelix-Song-3.mp3",
        title="Evening Wind-Down",
        artist="SoundHelix",
        points=20,
        description="A longer listen to close the day.",
    ),
)


def default_catalog() -> Tuple[Track, ...]:
    """Return a fresh copy of the default catalog."""
    return tuple(DEFAULT_CHALLENGES)
