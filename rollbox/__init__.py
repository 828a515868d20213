"""
Public API for rollbox.

    from rollbox import RollingFileAppender, RotationFrequency

    appender = RollingFileAppender("logs/app.log", RotationFrequency.DAILY, log_files_limit=7)
    appender.write("started\n")
"""

from .appender import RollingFileAppender, appender_from_config
from .date_pattern import format_datetime, parse_datetime
from .exceptions import (
    RollboxError,
    ConfigurationError,
    InvalidPatternError,
    RolloverAbortedError,
    PruneFileError,
    LogError,
)
from .file_sink import FileSink
from .handler import RollingFileHandler, setup_logging
from .periods import (
    CANONICAL_PATTERNS,
    RolloverSchedule,
    RotationFrequency,
    infer_frequency,
    next_period_start,
    period_start,
)
from .retention import ArchivedFile, find_archives, prune

__version__ = "0.1.0"
