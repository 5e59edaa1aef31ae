"""Tests for the formatting helpers."""

from datetime import datetime

import pytest

from sleeptracker.data import SleepNight
from sleeptracker.utils import (
    convert_long_to_date_string,
    convert_numeric_quality_to_string,
    format_duration,
    format_nights,
)


@pytest.mark.parametrize(
    "quality, label",
    [(0, "Very bad"), (3, "OK"), (5, "Excellent"), (-1, "--"), (9, "--")],
)
def test_quality_labels(quality, label):
    assert convert_numeric_quality_to_string(quality) == label


def test_format_duration():
    assert format_duration(0) == "00:00:00"
    assert format_duration(8 * 3600 + 5 * 60 + 7) == "08:05:07"


def test_date_string_uses_local_time():
    ms = int(datetime(2025, 10, 6, 23, 15).timestamp() * 1000)
    assert convert_long_to_date_string(ms) == "Monday Oct-06-2025 Time: 23:15"


def test_open_night_shows_only_start():
    text = format_nights([SleepNight(start_time_milli=1_000_000)])
    assert text.startswith("Here is your sleep data:")
    assert "Start:" in text
    assert "End:" not in text
    assert "Quality:" not in text


def test_closed_night_shows_details():
    night = SleepNight(start_time_milli=0, end_time_milli=(7 * 3600 + 30 * 60) * 1000, sleep_quality=4)
    text = format_nights([night])
    assert "Quality:\tPretty good" in text
    assert "Hours:Minutes:Seconds:\t07:30:00" in text


def test_unrated_night_quality_placeholder():
    night = SleepNight(start_time_milli=0, end_time_milli=1000)
    assert "Quality:\t--" in format_nights([night])
