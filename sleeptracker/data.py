"""
Data layer for the sleep tracker.

This module provides a small SQLite backend for storing sleep nights and
notifying interested parties whenever the stored data changes.  Every
write goes through ``SleepDatabase`` which serialises access with a lock
and wraps driver errors in ``StorageFailure`` so callers deal with a
single error type.
"""
from __future__ import annotations

import logging
import os
import sqlite3
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

# Locate the database at project root unless overridden from the environment.
DB_FILE = os.environ.get(
    "SLEEP_TRACKER_DB",
    os.path.join(os.path.abspath(os.path.dirname(__file__)), "..", "sleep_tracker.db"),
)

# Quality value stored for nights that have not been rated yet.
UNRATED = -1

# --- Database Schema ---
# Table: daily_sleep_quality_table
# Columns:
#   nightId           integer primary key autoincrement
#   start_time_milli  integer  -- ms since epoch when the night started
#   end_time_milli    integer  -- equal to start_time_milli while still open
#   quality_rating    integer  -- -1 until rated, then 0..5
SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_sleep_quality_table (
    nightId INTEGER PRIMARY KEY AUTOINCREMENT,
    start_time_milli INTEGER NOT NULL,
    end_time_milli INTEGER NOT NULL,
    quality_rating INTEGER NOT NULL DEFAULT -1
);
"""

COLUMNS = "nightId, start_time_milli, end_time_milli, quality_rating"


class StorageFailure(Exception):
    """Raised when a read or write against the sleep database fails."""


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class SleepNight:
    """One row of ``daily_sleep_quality_table``."""

    night_id: int = 0
    start_time_milli: int = field(default_factory=now_millis)
    end_time_milli: int = -1
    sleep_quality: int = UNRATED

    def __post_init__(self) -> None:
        # A fresh night is open: its end time mirrors its start time.
        if self.end_time_milli < 0:
            self.end_time_milli = self.start_time_milli

    @property
    def is_open(self) -> bool:
        return self.end_time_milli == self.start_time_milli

    @classmethod
    def from_row(cls, row: tuple) -> "SleepNight":
        night_id, start, end, quality = row
        return cls(night_id=night_id, start_time_milli=start, end_time_milli=end, sleep_quality=quality)


class Subscription:
    """Handle returned by ``SleepDatabase.subscribe``."""

    def __init__(self, owner: "SleepDatabase", listener: Callable[[List[SleepNight]], None]) -> None:
        self._owner = owner
        self.listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._owner._remove_subscription(self)


class SleepDatabase:
    """
    Access object for stored sleep nights.

    Each call opens a short-lived connection, mirroring how the rest of the
    application talks to SQLite.  Listeners registered with ``subscribe``
    receive a fresh snapshot of all nights after every successful write.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or DB_FILE
        self.lock = Lock()
        self._subscriptions: list[Subscription] = []
        self.init_db()

    def get_conn(self) -> sqlite3.Connection:
        """Open a connection to the SQLite database."""
        try:
            return sqlite3.connect(self.path)
        except sqlite3.Error as exc:
            raise StorageFailure(f"Cannot open sleep database at {self.path}") from exc

    def init_db(self) -> None:
        """Initialise the database schema if it does not already exist."""
        self._execute(SCHEMA)

    def _execute(self, sql: str, params: tuple = ()) -> Optional[int]:
        with self.lock:
            conn = self.get_conn()
            try:
                with conn:
                    return conn.execute(sql, params).lastrowid
            except sqlite3.Error as exc:
                logger.error("Sleep database statement failed: %s", exc)
                raise StorageFailure(str(exc)) from exc
            finally:
                conn.close()

    def _query(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self.lock:
            conn = self.get_conn()
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                logger.error("Sleep database query failed: %s", exc)
                raise StorageFailure(str(exc)) from exc
            finally:
                conn.close()

    # --- Writes ---
    def insert(self, night: SleepNight) -> int:
        """Insert a night and return the key storage assigned to it."""
        night.night_id = self._execute(
            "INSERT INTO daily_sleep_quality_table (start_time_milli, end_time_milli, quality_rating) "
            "VALUES (?, ?, ?)",
            (night.start_time_milli, night.end_time_milli, night.sleep_quality),
        )
        logger.debug("Inserted night %s", night.night_id)
        self._notify()
        return night.night_id

    def update(self, night: SleepNight) -> None:
        """Overwrite the stored row that has ``night.night_id``."""
        self._execute(
            "UPDATE daily_sleep_quality_table "
            "SET start_time_milli = ?, end_time_milli = ?, quality_rating = ? WHERE nightId = ?",
            (night.start_time_milli, night.end_time_milli, night.sleep_quality, night.night_id),
        )
        logger.debug("Updated night %s", night.night_id)
        self._notify()

    def clear(self) -> None:
        """Delete every stored night."""
        self._execute("DELETE FROM daily_sleep_quality_table")
        logger.debug("Cleared all nights")
        self._notify()

    # --- Reads ---
    def get(self, key: int) -> Optional[SleepNight]:
        rows = self._query(f"SELECT {COLUMNS} FROM daily_sleep_quality_table WHERE nightId = ?", (key,))
        return SleepNight.from_row(rows[0]) if rows else None

    def get_tonight(self) -> Optional[SleepNight]:
        """Return the most recently inserted night, if any."""
        rows = self._query(
            f"SELECT {COLUMNS} FROM daily_sleep_quality_table ORDER BY nightId DESC LIMIT 1"
        )
        return SleepNight.from_row(rows[0]) if rows else None

    def get_all_nights(self) -> List[SleepNight]:
        """Return all nights, newest first."""
        rows = self._query(f"SELECT {COLUMNS} FROM daily_sleep_quality_table ORDER BY nightId DESC")
        return [SleepNight.from_row(row) for row in rows]

    # --- Change notification ---
    def subscribe(self, listener: Callable[[List[SleepNight]], None]) -> Subscription:
        """
        Register ``listener`` for snapshots of all nights.

        The current snapshot is delivered straight away, then again after
        every insert, update or clear until the subscription is cancelled.
        """
        sub = Subscription(self, listener)
        with self.lock:
            self._subscriptions.append(sub)
        listener(self.get_all_nights())
        return sub

    def _remove_subscription(self, sub: Subscription) -> None:
        with self.lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    def _notify(self) -> None:
        with self.lock:
            subs = list(self._subscriptions)
        if not subs:
            return
        nights = self.get_all_nights()
        for sub in subs:
            if sub.active:
                sub.listener(list(nights))
