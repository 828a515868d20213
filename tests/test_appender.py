import os
import logging
import threading
from datetime import datetime

import pytest

from rollbox import appender as appender_module
from rollbox.appender import RollingFileAppender, appender_from_config
from rollbox.exceptions import ConfigurationError, InvalidPatternError
from rollbox.periods import RolloverSchedule, RotationFrequency


def _names(directory):
    return sorted(p.name for p in directory.iterdir())


@pytest.fixture
def appender(log_file, clock):
    app = RollingFileAppender(str(log_file), date_pattern=".yyyy-MM-dd", clock=clock)
    yield app
    app.close()


class TestConfiguration:
    def test_initial_schedule(self, appender):
        assert appender.frequency is RotationFrequency.DAILY
        assert appender.schedule == RolloverSchedule(datetime(2024, 3, 10), datetime(2024, 3, 11))

    def test_symbolic_frequency_sets_canonical_pattern(self, appender):
        appender.set_date_pattern(RotationFrequency.MONTHLY)
        assert appender.date_pattern == ".yyyy-MM"
        assert appender.frequency is RotationFrequency.MONTHLY
        assert appender.schedule == RolloverSchedule(datetime(2024, 3, 1), datetime(2024, 4, 1))

    def test_custom_pattern_infers_frequency(self, appender):
        appender.set_date_pattern("'_'yyyyMMdd-HH")
        assert appender.frequency is RotationFrequency.HOURLY
        assert appender.schedule.next_rollover == datetime(2024, 3, 11)

    def test_invalid_pattern_keeps_previous_state(self, appender):
        before = (appender.date_pattern, appender.frequency, appender.schedule)
        with pytest.raises(InvalidPatternError):
            appender.set_date_pattern("'static'")
        assert (appender.date_pattern, appender.frequency, appender.schedule) == before

    def test_log_files_limit(self, appender):
        appender.log_files_limit = 5
        assert appender.log_files_limit == 5
        with pytest.raises(ConfigurationError):
            appender.log_files_limit = -1
        with pytest.raises(ConfigurationError):
            appender.log_files_limit = "3"

    def test_last_modified_toggle(self, appender):
        assert appender.compute_rollover_on_last_modified is False
        appender.compute_rollover_on_last_modified = True
        assert appender.compute_rollover_on_last_modified is True

    def test_set_file_name(self, appender, clock, tmp_path):
        other = tmp_path / "other" / "svc.log"
        clock.now = datetime(2024, 3, 12, 8)
        appender.set_file_name(str(other))
        assert appender.file_name == str(other)
        assert appender.schedule == RolloverSchedule(datetime(2024, 3, 12), datetime(2024, 3, 13))
        appender.write("moved\n")
        assert other.read_text() == "moved\n"


class TestRollover:
    def test_daily_rollover_at_midnight(self, appender, clock, log_file):
        appender.write("first\n")
        assert _names(log_file.parent) == ["app.log"]

        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("second\n")

        assert _names(log_file.parent) == ["app.log", "app.log.2024-03-10"]
        assert (log_file.parent / "app.log.2024-03-10").read_text() == "first\n"
        assert log_file.read_text() == "second\n"
        assert appender.schedule == RolloverSchedule(datetime(2024, 3, 11), datetime(2024, 3, 12))

    def test_rollover_leaves_fresh_empty_file(self, appender, clock, log_file):
        appender.write("first\n")
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.on_write()
        assert log_file.exists()
        assert log_file.read_text() == ""

    def test_no_rollover_within_period(self, appender, clock, log_file):
        clock.now = datetime(2024, 3, 10, 0, 0)
        appender.write("a\n")
        clock.now = datetime(2024, 3, 10, 23, 59, 59)
        appender.write("b\n")
        assert _names(log_file.parent) == ["app.log"]
        assert log_file.read_text() == "a\nb\n"

    def test_check_is_idempotent(self, appender, clock, log_file):
        appender.write("first\n")
        clock.now = datetime(2024, 3, 11, 0, 1)
        assert appender.check_and_rollover() is True
        assert appender.check_and_rollover() is False
        assert _names(log_file.parent) == ["app.log", "app.log.2024-03-10"]

    def test_first_write_forces_check(self, appender, monkeypatch):
        calls = []
        original = appender.check_and_rollover
        monkeypatch.setattr(appender, "check_and_rollover", lambda now=None: calls.append(now) or original(now))
        appender.write("a\n")
        appender.write("b\n")
        assert len(calls) == 1

    def test_no_archive_when_nothing_was_written(self, appender, clock, log_file):
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("first\n")
        assert _names(log_file.parent) == ["app.log"]
        assert appender.schedule.current_period == datetime(2024, 3, 11)

    def test_deleted_active_file_is_recreated(self, appender, clock, log_file):
        appender.write("first\n")
        os.remove(log_file)
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("second\n")
        appender.write("third\n")
        assert _names(log_file.parent) == ["app.log"]
        assert log_file.read_text() == "second\nthird\n"

    def test_writes_during_rollover_do_not_rotate_again(self, appender, clock, log_file):
        # Record the rollover message through the same appender, as a root handler would
        class WriteBack(logging.Handler):
            def emit(self, record):
                appender.write(record.getMessage() + "\n")

        rollover_logger = logging.getLogger("rollbox.appender")
        handler = WriteBack()
        previous_level = rollover_logger.level
        rollover_logger.setLevel(logging.INFO)
        rollover_logger.addHandler(handler)
        try:
            appender.write("first\n")
            clock.now = datetime(2024, 3, 11, 0, 1)
            appender.write("second\n")
        finally:
            rollover_logger.removeHandler(handler)
            rollover_logger.setLevel(previous_level)

        assert _names(log_file.parent) == ["app.log", "app.log.2024-03-10"]
        assert (log_file.parent / "app.log.2024-03-10").read_text() == "first\n"
        assert log_file.read_text() == f"Rotated {log_file} to {log_file}.2024-03-10\nsecond\n"

    def test_prune_failure_still_moves_schedule(self, appender, clock, log_file, monkeypatch, caplog):
        appender.log_files_limit = 2
        appender.write("first\n")

        def failing_prune(base_path, pattern, limit):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(appender_module, "prune", failing_prune)
        clock.now = datetime(2024, 3, 11, 0, 1)
        with caplog.at_level(logging.WARNING, logger="rollbox.appender"):
            appender.write("second\n")
        appender.write("third\n")

        assert (log_file.parent / "app.log.2024-03-10").read_text() == "first\n"
        assert log_file.read_text() == "second\nthird\n"
        assert appender.schedule.current_period == datetime(2024, 3, 11)
        assert "Could not prune" in caplog.text

    def test_existing_archive_is_replaced(self, appender, clock, log_file, make_archives):
        make_archives(".2024-03-10", content="stale")
        appender.write("first\n")
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("second\n")
        assert (log_file.parent / "app.log.2024-03-10").read_text() == "first\n"

    def test_rename_failure_keeps_original_file(self, appender, clock, log_file, monkeypatch, caplog):
        appender.write("first\n")

        def failing_rename(src, dst):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(appender_module.os, "rename", failing_rename)
        clock.now = datetime(2024, 3, 11, 0, 1)
        with caplog.at_level(logging.WARNING, logger="rollbox.appender"):
            appender.write("second\n")

        assert _names(log_file.parent) == ["app.log"]
        assert log_file.read_text() == "first\nsecond\n"
        assert "aborted" in caplog.text

    def test_undeletable_archive_aborts_rollover(self, appender, clock, log_file, make_archives, monkeypatch):
        make_archives(".2024-03-10", content="stale")
        appender.write("first\n")

        def failing_remove(path):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(appender_module.os, "remove", failing_remove)
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("second\n")

        assert log_file.read_text() == "first\nsecond\n"
        assert (log_file.parent / "app.log.2024-03-10").read_text() == "stale"

    def test_rollover_prunes_old_archives(self, appender, clock, log_file, make_archives):
        make_archives(".2024-03-01", ".2024-03-02", ".not-a-date")
        appender.log_files_limit = 2
        appender.write("first\n")
        clock.now = datetime(2024, 3, 11, 0, 1)
        appender.write("second\n")
        assert _names(log_file.parent) == ["app.log", "app.log.2024-03-10", "app.log.not-a-date"]

    def test_weekly_archive_named_after_sunday(self, log_file, clock):
        clock.now = datetime(2024, 3, 13, 10)
        app = RollingFileAppender(str(log_file), RotationFrequency.WEEKLY, clock=clock)
        app.write("week ten\n")
        clock.now = datetime(2024, 3, 17, 0, 0)
        app.write("week eleven\n")
        app.close()
        assert (log_file.parent / "app.log.2024-10").read_text() == "week ten\n"

    def test_rollover_based_on_last_modified(self, log_file, clock, set_mtime):
        log_file.write_text("yesterday\n")
        set_mtime(log_file, datetime(2024, 3, 9, 12))
        clock.now = datetime(2024, 3, 10, 10)

        app = RollingFileAppender(
            str(log_file), RotationFrequency.DAILY, compute_rollover_on_last_modified=True, clock=clock
        )
        assert app.schedule.current_period == datetime(2024, 3, 9)
        app.write("today\n")
        app.close()

        assert (log_file.parent / "app.log.2024-03-09").read_text() == "yesterday\n"
        assert log_file.read_text() == "today\n"

    def test_without_last_modified_existing_file_is_kept(self, log_file, clock, set_mtime):
        log_file.write_text("yesterday\n")
        set_mtime(log_file, datetime(2024, 3, 9, 12))
        clock.now = datetime(2024, 3, 10, 10)

        app = RollingFileAppender(str(log_file), RotationFrequency.DAILY, clock=clock)
        app.write("today\n")
        app.close()

        assert _names(log_file.parent) == ["app.log"]
        assert log_file.read_text() == "yesterday\ntoday\n"

    def test_concurrent_writers_rotate_once(self, appender, clock, log_file):
        appender.write("first\n")
        clock.now = datetime(2024, 3, 11, 0, 1)

        def worker(n):
            for i in range(50):
                appender.write(f"{n}-{i}\n")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert _names(log_file.parent) == ["app.log", "app.log.2024-03-10"]
        assert len(log_file.read_text().splitlines()) == 400


def test_appender_from_config(sample_rollbox_yaml, clock):
    app = appender_from_config(clock=clock)
    assert app.file_name == os.path.join(sample_rollbox_yaml, "logs", "app.log")
    assert app.frequency is RotationFrequency.MONTHLY
    assert app.log_files_limit == 3
    assert app.compute_rollover_on_last_modified is False


def test_appender_from_config_rejects_bad_limit(write_config, clock):
    write_config({"rollover": {"date_pattern": "daily", "log_files_limit": -2}})
    with pytest.raises(ConfigurationError):
        appender_from_config(clock=clock)
