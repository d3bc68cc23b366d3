"""Data models and configuration classes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class PlayerState(Enum):
    """Playback controller state enumeration."""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class AudioModeConfig:
    """Audio session settings applied once when the engine starts."""

    plays_in_silent_mode: bool = True
    """Keep playing when the device is muted."""

    stays_active_in_background: bool = True
    """Keep playing when the application is backgrounded."""

    duck_others: bool = True
    """Lower other audio while a challenge plays."""

    allows_recording: bool = False
    """Whether the audio session also allows recording."""


@dataclass
class PlayerConfig:
    """Configuration for ChallengePlayer."""

    autoplay: bool = True
    """Start playback as soon as a track is loaded. Default: True."""

    storage_key: str = "music-store"
    """Key the catalog document is persisted under."""

    seek_step_seconds: float = 10.0
    """Jump size for seek_forward() / seek_backward(). Default: 10s."""

    tick_interval_seconds: float = 0.25
    """Status event interval for clock-driven engines. Default: 0.25s."""

    log_level: str = "WARNING"
    """Level applied to package loggers on start."""

    audio_mode: AudioModeConfig = field(default_factory=AudioModeConfig)
    """Audio session settings."""


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z for UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Track:
    """A challenge: catalog entry plus its progress fields."""

    id: str
    audio_uri: str
    title: str
    artist: str
    points: int = 10
    description: str = ""
    progress: float = 0.0
    completed: bool = False
    completed_at: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the persisted record shape."""
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "uri": self.audio_uri,
            "points": self.points,
            "description": self.description,
            "progress": self.progress,
            "completed": self.completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Track":
        """
        Build a Track from a persisted record.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a field has an unusable value.
        """
        points = int(record.get("points", 10))
        if points < 0:
            raise ValueError(f"points must be non-negative, got {points}")
        completed_at = record.get("completedAt")
        return cls(
            id=str(record["id"]),
            audio_uri=str(record["uri"]),
            title=str(record["title"]),
            artist=str(record.get("artist", "")),
            points=points,
            description=str(record.get("description", "")),
            progress=float(record.get("progress", 0.0)),
            completed=bool(record.get("completed", False)),
            completed_at=parse_timestamp(completed_at) if completed_at else None,
        )


@dataclass(frozen=True)
class StatusEvent:
    """Status notification emitted by an audio resource."""

    is_loaded: bool
    """False while the resource is still loading internally."""

    position_ms: float = 0.0
    duration_ms: Optional[float] = None
    is_playing: bool = False
    just_finished: bool = False


@dataclass(frozen=True)
class PlaybackSession:
    """Observable snapshot of the controller's playback state.

    The live resource handle itself is never part of the snapshot; the
    controller keeps it privately.
    """

    track: Optional[Track] = None
    state: PlayerState = PlayerState.IDLE
    position_seconds: float = 0.0
    duration_seconds: float = 0.0
    is_playing: bool = False
    loading: bool = False
    last_error: Optional[str] = None
    generation: int = 0


@dataclass(frozen=True)
class UpdateProgress:
    """Store the latest progress percentage for a track."""

    track_id: str
    progress: float


@dataclass(frozen=True)
class MarkComplete:
    """Mark a track completed."""

    track_id: str


@dataclass(frozen=True)
class NotifyReward:
    """Award a completed track's points."""

    track_id: str
    points: int


SideEffect = Union[UpdateProgress, MarkComplete, NotifyReward]
