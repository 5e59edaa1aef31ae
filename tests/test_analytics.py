"""Tests for the sleep analytics helpers."""

import math
from datetime import datetime

import pandas as pd

from matplotlib.figure import Figure

from sleeptracker.analytics import build_hours_figure, quality_summary, summarize_nights
from sleeptracker.data import SleepNight

HOUR = 3_600_000


def sample_nights():
    return [
        SleepNight(night_id=3, start_time_milli=3 * 24 * HOUR),
        SleepNight(night_id=2, start_time_milli=2 * 24 * HOUR, end_time_milli=2 * 24 * HOUR + 6 * HOUR),
        SleepNight(night_id=1, start_time_milli=24 * HOUR, end_time_milli=24 * HOUR + 8 * HOUR, sleep_quality=5),
    ]


def test_summary_skips_open_nights_and_sorts_oldest_first():
    df = summarize_nights(sample_nights())
    assert df["night_id"].tolist() == [1, 2]
    assert df["hours"].tolist() == [8.0, 6.0]
    assert df["quality"].iloc[0] == 5
    assert math.isnan(df["quality"].iloc[1])


def test_summary_of_nothing_is_empty():
    df = summarize_nights([])
    assert df.empty
    assert list(df.columns) == ["night_id", "start", "end", "hours", "quality"]


def test_quality_summary_groups_rated_nights():
    summary = quality_summary(summarize_nights(sample_nights()))
    assert summary.to_dict() == {"Excellent": 8.0}


def test_quality_summary_without_ratings():
    nights = [SleepNight(night_id=1, start_time_milli=0, end_time_milli=HOUR)]
    assert quality_summary(summarize_nights(nights)).empty


def test_figures_build_with_and_without_data():
    assert isinstance(build_hours_figure(summarize_nights(sample_nights())), Figure)
    empty = build_hours_figure(summarize_nights([]))
    assert empty.axes[0].get_title() == "No completed nights yet"


def test_summary_times_are_local():
    night = SleepNight(night_id=1, start_time_milli=24 * HOUR, end_time_milli=24 * HOUR + 8 * HOUR)
    df = summarize_nights([night])
    assert df["start"].iloc[0] == pd.Timestamp(datetime.fromtimestamp(24 * 3600))
    assert df["end"].iloc[0] == pd.Timestamp(datetime.fromtimestamp(32 * 3600))
