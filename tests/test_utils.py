"""Tests for validation and logging helpers."""

import logging

import pytest

from challenge_player.utils.log import get_logger, set_log_level
from challenge_player.utils.validate import (
    clamp,
    clamp_progress,
    clamp_seek_seconds,
    format_time,
)


def test_clamp():
    """Test clamping to a range."""
    assert clamp(5, 0, 10) == 5
    assert clamp(-1, 0, 10) == 0
    assert clamp(11, 0, 10) == 10


def test_clamp_progress():
    """Test progress clamping."""
    assert clamp_progress(-3.0) == 0.0
    assert clamp_progress(42.5) == 42.5
    assert clamp_progress(120.0) == 100.0


def test_clamp_seek_seconds():
    """Test that seeks are never negative and never capped above."""
    assert clamp_seek_seconds(-2) == 0
    assert clamp_seek_seconds(12345) == 12345


def test_format_time():
    """Test m:ss formatting."""
    assert format_time(0) == "0:00"
    assert format_time(9.9) == "0:09"
    assert format_time(65) == "1:05"
    assert format_time(3600) == "60:00"
    assert format_time(-4) == "0:00"


def test_get_logger_is_cached():
    """Test that loggers are created once."""
    logger = get_logger("challenge_player.tests.cached")

    assert get_logger("challenge_player.tests.cached") is logger
    assert len(logger.handlers) == 1


def test_set_log_level():
    """Test changing the level of existing and new loggers."""
    existing = get_logger("challenge_player.tests.existing")
    try:
        set_log_level("debug")
        assert existing.level == logging.DEBUG
        assert get_logger("challenge_player.tests.new").level == logging.DEBUG
    finally:
        set_log_level(logging.WARNING)
    assert existing.level == logging.WARNING


def test_set_log_level_unknown():
    """Test that unknown level names are rejected."""
    with pytest.raises(ValueError):
        set_log_level("chatty")
