"""Exception classes for challenge_player."""

from typing import Optional


class ChallengePlayerError(Exception):
    """Base exception for challenge player errors."""
    pass


class EngineError(ChallengePlayerError):
    """Raised by an engine adapter when acquisition or a control call fails."""

    def __init__(self, message: str, uri: Optional[str] = None):
        self.message = message
        self.uri = uri
        super().__init__(message)


class ReleaseError(EngineError):
    """Raised by an engine adapter when stopping or unloading a resource fails."""
    pass


class EngineNotStartedError(ChallengePlayerError):
    """Raised when engine operations are attempted before start()."""
    pass


class StorageError(ChallengePlayerError):
    """Raised when the persisted catalog cannot be read or written."""
    pass


class ChallengeNotFoundError(ChallengePlayerError):
    """Raised when a challenge id is not in the catalog."""
    pass


def describe_error(error: BaseException) -> str:
    """Human-readable text for an exception, never empty."""
    text = str(error)
    return text if text else "Unknown error"
