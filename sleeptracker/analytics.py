"""Analytics for tracked sleep.

Summarises closed nights with pandas and draws how long each night lasted
with matplotlib.  Open nights are left out because they have no duration
yet.  Times are local, matching the text view.  The figure is built
without pyplot so it can be embedded in the customtkinter analytics
window or saved headless.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

import pandas as pd
from matplotlib.figure import Figure

from sleeptracker.data import UNRATED, SleepNight
from sleeptracker.utils import convert_numeric_quality_to_string


SUMMARY_COLUMNS = ["night_id", "start", "end", "hours", "quality"]


def summarize_nights(nights: Iterable[SleepNight]) -> pd.DataFrame:
    """Return one row per closed night, oldest first."""
    rows = [
        {
            "night_id": night.night_id,
            "start": pd.Timestamp(datetime.fromtimestamp(night.start_time_milli / 1000)),
            "end": pd.Timestamp(datetime.fromtimestamp(night.end_time_milli / 1000)),
            "hours": (night.end_time_milli - night.start_time_milli) / 3_600_000,
            "quality": float("nan") if night.sleep_quality == UNRATED else night.sleep_quality,
        }
        for night in nights
        if not night.is_open
    ]
    df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    return df.sort_values("start").reset_index(drop=True)


def quality_summary(df: pd.DataFrame) -> pd.Series:
    """Mean hours slept per quality label; unrated nights are skipped."""
    rated = df.dropna(subset=["quality"])
    if rated.empty:
        return pd.Series(dtype=float, name="hours")
    labels = rated["quality"].astype(int).map(convert_numeric_quality_to_string)
    return rated.groupby(labels)["hours"].mean().rename("hours")


def build_hours_figure(df: pd.DataFrame) -> Figure:
    """Bar chart of hours slept per night."""
    fig = Figure(figsize=(6, 4))
    ax = fig.add_subplot(111)
    if df.empty:
        ax.set_title("No completed nights yet")
        ax.axis("off")
        return fig
    labels = df["start"].dt.strftime("%m-%d").tolist()
    ax.bar(labels, df["hours"].tolist(), color="#3b6fd2")
    ax.set_ylabel("Hours")
    ax.set_title(f"Hours slept ({len(df)} nights, avg {df['hours'].mean():0.1f}h)")
    fig.tight_layout()
    return fig
