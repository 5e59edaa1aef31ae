"""Controllers for the sleep tracker screens.

``SessionTrackerController`` owns tonight's open night, keeps the list of
stored nights in sync with the database and exposes observable signals
for the tracker window to bind against.  ``SleepQualityController`` backs
the rating screen opened after a night is stopped.

Neither controller touches the database directly from the caller's
thread: storage calls go through the injected scope, and all state
changes happen in the scope's UI context.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from threading import Lock
from typing import Callable, List, Optional

from sleeptracker.data import SleepDatabase, SleepNight, StorageFailure, now_millis
from sleeptracker.observable import Observable, OneShotEvent
from sleeptracker.scope import Scope, ThreadedScope
from sleeptracker.utils import QUALITY_LABELS, format_nights


logger = logging.getLogger(__name__)


class SessionTrackerController:
    """
    Start, stop and clear sleep nights.

    The controller is either idle (``tonight`` is ``None``) or tracking a
    single open night whose end time still equals its start time.  Call
    ``on_cleared`` when the owning window goes away; after that no command
    reaches storage and no signal changes.
    """

    def __init__(
        self,
        database: SleepDatabase,
        scope: Optional[Scope] = None,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self.database = database
        self.scope = scope or ThreadedScope()
        self.scope.on_error = self._on_storage_failure
        self.clock = clock

        self.tonight: Observable[Optional[SleepNight]] = Observable(None)
        self.nights: Observable[List[SleepNight]] = Observable([])

        self.nights_string = self.nights.map(format_nights)
        self.start_button_visible = self.tonight.map(lambda night: night is None)
        self.stop_button_visible = self.tonight.map(lambda night: night is not None)
        self.clear_button_visible = self.nights.map(lambda nights: bool(nights))

        self.show_snackbar_event = OneShotEvent(False)
        self.navigate_to_sleep_quality = OneShotEvent(None)
        self.storage_error = OneShotEvent(None)

        self._subscription = None
        self._subscription_lock = Lock()
        self._resyncing = False
        self.scope.launch(self._subscribe)
        self._initialize_tonight()

    # --- Acknowledgements ---
    def done_showing_snackbar(self) -> None:
        self.show_snackbar_event.done()

    def done_navigating(self) -> None:
        self.navigate_to_sleep_quality.done()

    def done_showing_error(self) -> None:
        self.storage_error.done()

    # --- Storage plumbing (runs on the background context) ---
    def _subscribe(self) -> None:
        subscription = self.database.subscribe(
            lambda nights: self.scope.post(lambda: self.nights.set(nights))
        )
        # on_cleared may run on the UI thread at the same time.
        with self._subscription_lock:
            if self.scope.cancelled:
                subscription.cancel()
            else:
                self._subscription = subscription

    def _get_tonight_from_database(self) -> Optional[SleepNight]:
        night = self.database.get_tonight()
        if night is not None and not night.is_open:
            return None
        return night

    def _initialize_tonight(self) -> None:
        self.scope.launch(self._get_tonight_from_database, self.tonight.set)

    def _on_storage_failure(self, error: StorageFailure) -> None:
        self.storage_error.emit(error)
        # Re-sync tonight with storage once; a failing re-sync is not retried.
        if self._resyncing:
            self._resyncing = False
            return
        self._resyncing = True
        self.scope.launch(self._get_tonight_from_database, self._resynced)

    def _resynced(self, night: Optional[SleepNight]) -> None:
        self._resyncing = False
        self.tonight.set(night)

    # --- Commands ---
    def on_start_tracking(self) -> None:
        """Open a new night unless one is already being tracked."""
        if self.tonight.value is not None:
            logger.warning("Start ignored: night %s is still open", self.tonight.value.night_id)
            return

        def start() -> Optional[SleepNight]:
            current = self._get_tonight_from_database()
            if current is not None:
                logger.warning("Start ignored: storage already holds open night %s", current.night_id)
                return current
            now = self.clock()
            self.database.insert(SleepNight(start_time_milli=now, end_time_milli=now))
            return self._get_tonight_from_database()

        logger.info("Starting sleep tracking")
        self.scope.launch(start, self.tonight.set)

    def on_stop_tracking(self) -> None:
        """Close tonight's night and ask the UI to open the rating screen."""
        old_night = self.tonight.value
        if old_night is None:
            logger.debug("Stop ignored: no open night")
            return
        # A closed night always ends after it started.
        end = max(self.clock(), old_night.start_time_milli + 1)
        closed = replace(old_night, end_time_milli=end)
        # Go idle before the write so a repeated Stop is a no-op.
        self.tonight.set(None)

        def stop() -> SleepNight:
            self.database.update(closed)
            return closed

        logger.info("Stopping night %s", old_night.night_id)
        self.scope.launch(stop, self.navigate_to_sleep_quality.emit)

    def on_clear(self) -> None:
        """Delete every stored night."""

        def cleared(_: None) -> None:
            self.tonight.set(None)
            self.show_snackbar_event.emit(True)

        logger.info("Clearing all nights")
        self.scope.launch(self.database.clear, cleared)

    def on_cleared(self) -> None:
        """Cancel outstanding work and stop listening to storage."""
        with self._subscription_lock:
            self.scope.cancel()
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None
        logger.debug("Tracker controller disposed")


class SleepQualityController:
    """Store the rating chosen for a just-closed night."""

    def __init__(self, night_key: int, database: SleepDatabase, scope: Optional[Scope] = None) -> None:
        self.night_key = night_key
        self.database = database
        self.scope = scope or ThreadedScope()
        self.scope.on_error = self._on_storage_failure
        self.navigate_to_sleep_tracker = OneShotEvent(False)
        self.storage_error = OneShotEvent(None)

    def done_navigating(self) -> None:
        self.navigate_to_sleep_tracker.done()

    def done_showing_error(self) -> None:
        self.storage_error.done()

    def _on_storage_failure(self, error: StorageFailure) -> None:
        self.storage_error.emit(error)

    def on_set_sleep_quality(self, quality: int) -> None:
        if quality not in QUALITY_LABELS:
            raise ValueError(f"Sleep quality must be between 0 and 5, got {quality!r}")

        def rate() -> None:
            night = self.database.get(self.night_key)
            if night is None:
                logger.warning("Night %s no longer exists, rating dropped", self.night_key)
                return
            night.sleep_quality = quality
            self.database.update(night)

        logger.info("Rating night %s as %s", self.night_key, quality)
        self.scope.launch(rate, lambda _: self.navigate_to_sleep_tracker.emit(True))

    def on_cleared(self) -> None:
        self.scope.cancel()
