"""Tests for reminder window arithmetic."""

from datetime import time

import pytest

from hydranag.engine.errors import InvalidWindow
from hydranag.engine.time_window import TimeWindow


def test_duration_minutes():
    """Test duration of a normal daytime window."""
    window = TimeWindow(time(9, 0), time(17, 0))

    assert window.is_well_formed()
    assert window.duration_minutes() == 480


def test_degenerate_window_is_invalid():
    """Test that a window starting and ending together is malformed."""
    window = TimeWindow(time(9, 0), time(9, 0))

    assert not window.is_well_formed()
    with pytest.raises(InvalidWindow):
        window.duration_minutes()


def test_overnight_window_is_invalid():
    """Test that windows crossing midnight are rejected, not wrapped."""
    window = TimeWindow(time(22, 0), time(6, 0))

    assert not window.is_well_formed()
    with pytest.raises(InvalidWindow):
        window.duration_minutes()


def test_contains_is_half_open():
    """Test that the start is inside the window and the end is not."""
    window = TimeWindow(time(9, 0), time(17, 0))

    assert window.contains(time(9, 0))
    assert window.contains(time(16, 59))
    assert not window.contains(time(17, 0))
    assert not window.contains(time(8, 59))


def test_str():
    """Test window display format."""
    assert str(TimeWindow(time(9, 0), time(19, 30))) == "09:00-19:30"
