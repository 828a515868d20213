"""
Time-based rolling log file appender.

RollingFileAppender wraps a FileSink and, before every write, checks whether
the active file belongs to a period that has ended. If it has, the file is
renamed to ``<file name><suffix>`` where the suffix is the date pattern
applied to the period being rotated out, a fresh file is opened and old
archives are pruned.

Locking contract: one re-entrant lock per appender guards the configuration,
the schedule, the whole check-and-rollover sequence and the write that
follows it. Setters take the same lock, so a writer never sees a half
applied configuration. Nothing happens in the background; rotation runs on
the thread that writes.
"""

import logging
import os
import threading
from datetime import datetime

from .config import get_config_value, resolve_path
from .date_pattern import format_datetime
from .exceptions import ConfigurationError, RolloverAbortedError
from .file_sink import FileSink
from .periods import (
    CANONICAL_PATTERNS,
    RotationFrequency,
    compute_schedule,
    infer_frequency,
    period_start,
    resolve_date_pattern,
)
from .retention import prune

logger = logging.getLogger(__name__)


class RollingFileAppender:
    """
    Append to a log file, rotating it when its period ends.

    Attributes:
        date_pattern (str): Pattern used for archive suffixes
        frequency (RotationFrequency): Rotation frequency
        log_files_limit (int): Files to keep (active + archived), 0 or 1 keeps all
        compute_rollover_on_last_modified (bool): Take the active file's period
            from its modification time instead of the current time
        schedule (RolloverSchedule): Current period start and next rollover time
    """

    def __init__(
        self,
        file_name=None,
        date_pattern=RotationFrequency.DAILY,
        log_files_limit=0,
        compute_rollover_on_last_modified=False,
        sink=None,
        clock=None,
    ):
        """
        Initialize a rolling appender.

        Args:
            file_name: Path of the active log file
            date_pattern: RotationFrequency or a custom date pattern string
            log_files_limit: Maximum number of files to keep, 0 or 1 disables pruning
            compute_rollover_on_last_modified: Use the file's mtime for its period
            sink: Writer to decorate, defaults to a FileSink on file_name
            clock: Callable returning the current datetime, defaults to datetime.now
        """
        self._lock = threading.RLock()
        self._sink = sink if sink is not None else FileSink(file_name)
        if sink is not None and file_name is not None:
            self._sink.set_file_name(file_name)
        self._clock = clock or datetime.now
        self._date_pattern = ""
        self._frequency = None
        self._schedule = None
        self._force_check = True
        self._rolling = False
        self._compute_rollover_on_last_modified = compute_rollover_on_last_modified
        self.log_files_limit = log_files_limit
        self.set_date_pattern(date_pattern)

    @property
    def date_pattern(self):
        with self._lock:
            return self._date_pattern

    @property
    def frequency(self):
        with self._lock:
            return self._frequency

    @property
    def schedule(self):
        with self._lock:
            return self._schedule

    @property
    def file_name(self):
        with self._lock:
            return self._sink.current_file_name()

    @property
    def log_files_limit(self):
        with self._lock:
            return self._log_files_limit

    @log_files_limit.setter
    def log_files_limit(self, limit):
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ConfigurationError(f"log_files_limit must be a non-negative integer, got {limit!r}")
        with self._lock:
            self._log_files_limit = limit

    @property
    def compute_rollover_on_last_modified(self):
        with self._lock:
            return self._compute_rollover_on_last_modified

    @compute_rollover_on_last_modified.setter
    def compute_rollover_on_last_modified(self, value):
        with self._lock:
            self._compute_rollover_on_last_modified = bool(value)

    def set_date_pattern(self, date_pattern):
        """
        Set the rotation frequency or a custom date pattern.

        A RotationFrequency selects its canonical pattern. A string is taken as
        a custom pattern and its frequency is inferred before anything changes.

        Raises:
            InvalidPatternError: If a custom pattern has no time-varying field;
                the previous pattern, frequency and schedule stay active
        """
        if isinstance(date_pattern, RotationFrequency):
            pattern, frequency = CANONICAL_PATTERNS[date_pattern], date_pattern
        else:
            pattern, frequency = date_pattern, infer_frequency(date_pattern)

        with self._lock:
            self._date_pattern = pattern
            self._frequency = frequency
            self._force_check = True
            self._compute_log_and_rollover_times(self._clock())

    def set_file_name(self, file_name):
        """Switch to another log file and recompute the rollover schedule."""
        with self._lock:
            self._sink.set_file_name(file_name)
            self._force_check = True
            self._compute_log_and_rollover_times(self._clock())

    def on_write(self, now=None):
        """
        Rotate the active file first if its period may have ended.

        Called before every write. Never raises for a failed rollover; the
        write then goes to the unrotated file. Writes made while a rollover is
        in progress (log records about the rollover itself) skip the check.
        """
        with self._lock:
            if self._rolling:
                return
            if now is None:
                now = self._clock()
            if self._force_check or now >= self._schedule.next_rollover:
                self.check_and_rollover(now)

    def write(self, data, now=None):
        """Write data to the active log file, rotating it first when due."""
        with self._lock:
            self.on_write(now)
            self._sink.write(data)

    def check_and_rollover(self, now=None):
        """
        Archive the active file if the current period differs from its period.

        Returns:
            bool: True if the file was rotated
        """
        with self._lock:
            assert self._date_pattern, "No active date pattern"
            if now is None:
                now = self._clock()
            self._force_check = False

            suffix_active = format_datetime(self._schedule.current_period, self._date_pattern)
            suffix_now = format_datetime(period_start(now, self._frequency), self._date_pattern)
            if suffix_active == suffix_now:
                return False

            file_name = self._sink.current_file_name()
            if not file_name or not os.path.exists(file_name):
                # Nothing to archive; a handle on a deleted file must not be kept
                self._sink.close()
                self._compute_log_and_rollover_times(now)
                return False

            self._rolling = True
            try:
                return self._rollover(file_name, suffix_active, now)
            finally:
                self._rolling = False

    def close(self):
        with self._lock:
            self._sink.close()

    def _rollover(self, file_name, suffix_active, now):
        # Records logged from here may be written back through this appender,
        # so the sink is reopened and the schedule moved on before any logging.
        self._sink.close()
        target = file_name + suffix_active
        try:
            self._archive(file_name, target)
        except RolloverAbortedError as e:
            self._sink.open()
            logger.warning(f"{e}; still writing to {file_name}")
            return False

        self._sink.open()
        self._compute_log_and_rollover_times(now)
        logger.info(f"Rotated {file_name} to {target}")
        try:
            prune(file_name, self._date_pattern, self._log_files_limit)
        except OSError as e:
            logger.warning(f"Could not prune archives of {file_name}: {e}")
        return True

    def _archive(self, file_name, target):
        if os.path.exists(target):
            try:
                os.remove(target)
            except OSError as e:
                raise RolloverAbortedError(file_name, f"cannot remove existing {target}: {e}") from e
        try:
            os.rename(file_name, target)
        except OSError as e:
            raise RolloverAbortedError(file_name, f"cannot rename to {target}: {e}") from e

    def _compute_log_and_rollover_times(self, now):
        assert self._date_pattern, "No active date pattern"
        file_time = None
        if self._compute_rollover_on_last_modified:
            file_time = self._sink.last_modified_time()
        self._schedule = compute_schedule(now, self._frequency, file_time)


def appender_from_config(file_name=None, sink=None, clock=None):
    """
    Build a RollingFileAppender from the global configuration.

    Reads paths.log_dir, paths.log_file, rollover.date_pattern,
    rollover.log_files_limit and rollover.use_last_modified.

    Args:
        file_name: Override for the log file path
        sink: Optional writer to decorate
        clock: Optional clock callable

    Raises:
        ConfigurationError: If a configured value is invalid
    """
    if file_name is None:
        log_dir = get_config_value("paths.log_dir", "logs")
        log_file = get_config_value("paths.log_file", "rollbox.log")
        file_name = resolve_path(os.path.join(log_dir, log_file))

    date_pattern = resolve_date_pattern(get_config_value("rollover.date_pattern", "daily"))
    return RollingFileAppender(
        file_name,
        date_pattern=date_pattern,
        log_files_limit=get_config_value("rollover.log_files_limit", 0),
        compute_rollover_on_last_modified=get_config_value("rollover.use_last_modified", False),
        sink=sink,
        clock=clock,
    )
