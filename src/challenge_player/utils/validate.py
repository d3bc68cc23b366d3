"""Validation and formatting utilities."""


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value to [low, high]."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def clamp_progress(progress: float) -> float:
    """Clamp a progress percentage to [0.0, 100.0]."""
    return clamp(progress, 0.0, 100.0)


def clamp_seek_seconds(position_seconds: float) -> float:
    """Clamp a seek target to [0, +inf); the engine clamps to duration."""
    if position_seconds < 0:
        return 0.0
    return position_seconds


def format_time(seconds: float) -> str:
    """Format seconds as m:ss (negative input renders as 0:00)."""
    if seconds < 0:
        seconds = 0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
