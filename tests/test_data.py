"""Tests for the SQLite sleep database."""

import pytest

from sleeptracker.data import UNRATED, SleepDatabase, SleepNight, StorageFailure


class TestSleepNight:
    def test_new_night_is_open(self):
        night = SleepNight(start_time_milli=5_000)
        assert night.end_time_milli == 5_000
        assert night.is_open
        assert night.sleep_quality == UNRATED

    def test_night_with_later_end_is_closed(self):
        night = SleepNight(start_time_milli=5_000, end_time_milli=6_000)
        assert not night.is_open


class TestSleepDatabase:
    def test_insert_assigns_increasing_keys(self, database):
        first = database.insert(SleepNight(start_time_milli=1))
        second = database.insert(SleepNight(start_time_milli=2))
        assert second > first

    def test_get_tonight_returns_latest(self, database):
        database.insert(SleepNight(start_time_milli=1, end_time_milli=2))
        database.insert(SleepNight(start_time_milli=3))
        tonight = database.get_tonight()
        assert tonight.start_time_milli == 3
        assert tonight.is_open

    def test_get_tonight_empty(self, database):
        assert database.get_tonight() is None

    def test_get_all_nights_newest_first(self, database):
        for start in (10, 20, 30):
            database.insert(SleepNight(start_time_milli=start, end_time_milli=start + 1))
        assert [n.start_time_milli for n in database.get_all_nights()] == [30, 20, 10]

    def test_update_round_trips_fields(self, database):
        night = SleepNight(start_time_milli=100)
        database.insert(night)
        night.end_time_milli = 500
        night.sleep_quality = 3
        database.update(night)
        stored = database.get(night.night_id)
        assert stored == SleepNight(night.night_id, 100, 500, 3)

    def test_get_unknown_key(self, database):
        assert database.get(999) is None

    def test_clear_removes_everything(self, database, closed_night):
        database.clear()
        assert database.get_all_nights() == []
        assert database.get_tonight() is None

    def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "persist.db")
        SleepDatabase(path).insert(SleepNight(start_time_milli=42))
        assert SleepDatabase(path).get_tonight().start_time_milli == 42


class TestSubscriptions:
    def test_subscribe_delivers_current_snapshot(self, database, closed_night):
        snapshots = []
        database.subscribe(snapshots.append)
        assert [n.night_id for n in snapshots[0]] == [closed_night.night_id]

    def test_every_write_notifies(self, database):
        snapshots = []
        database.subscribe(snapshots.append)
        night = SleepNight(start_time_milli=1)
        database.insert(night)
        night.end_time_milli = 2
        database.update(night)
        database.clear()
        assert [len(s) for s in snapshots] == [0, 1, 1, 0]
        assert not snapshots[2][0].is_open

    def test_cancelled_subscription_stops_delivery(self, database):
        snapshots = []
        sub = database.subscribe(snapshots.append)
        sub.cancel()
        database.insert(SleepNight(start_time_milli=1))
        assert len(snapshots) == 1
        assert not sub.active


class TestStorageFailure:
    def test_unopenable_path_raises_storage_failure(self, tmp_path):
        with pytest.raises(StorageFailure):
            SleepDatabase(str(tmp_path / "missing" / "dir" / "sleep.db"))

    def test_statement_errors_are_wrapped(self, database):
        with pytest.raises(StorageFailure):
            database._execute("INSERT INTO no_such_table VALUES (1)")
