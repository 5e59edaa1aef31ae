"""
Formatting helpers for the sleep tracker.

This module turns stored nights into the text shown on the tracker
screen: readable timestamps, quality labels and durations.  The tracker
controller delegates all text formatting here and never builds display
strings itself.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sleeptracker.data import SleepNight


# Labels for the 0..5 rating scale offered on the quality screen.
QUALITY_LABELS = {
    0: "Very bad",
    1: "Poor",
    2: "So-so",
    3: "OK",
    4: "Pretty good",
    5: "Excellent",
}

TITLE = "Here is your sleep data:"
DATE_FORMAT = "%A %b-%d-%Y Time: %H:%M"


def convert_numeric_quality_to_string(quality: int) -> str:
    """Return the label for a rating, or ``--`` for unrated/unknown values."""
    return QUALITY_LABELS.get(quality, "--")


def convert_long_to_date_string(system_time_milli: int) -> str:
    """Format a millisecond timestamp in local time, e.g. ``Monday Oct-06-2025 Time: 23:15``."""
    return datetime.fromtimestamp(system_time_milli / 1000).strftime(DATE_FORMAT)


def format_duration(seconds: float) -> str:
    """Format seconds into ``HH:MM:SS`` for display."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_nights(nights: Iterable[SleepNight]) -> str:
    """
    Build the multi-line summary of ``nights`` shown on the tracker screen.

    Open nights only show their start.  Closed nights also list the end
    time, the quality label and how long the night lasted.
    """
    lines = [TITLE]
    for night in nights:
        lines.append("")
        lines.append(f"Start:\t{convert_long_to_date_string(night.start_time_milli)}")
        if not night.is_open:
            elapsed = (night.end_time_milli - night.start_time_milli) / 1000
            lines.append(f"End:\t{convert_long_to_date_string(night.end_time_milli)}")
            lines.append(f"Quality:\t{convert_numeric_quality_to_string(night.sleep_quality)}")
            lines.append(f"Hours:Minutes:Seconds:\t{format_duration(elapsed)}")
    return "\n".join(lines)
