"""
Standard library logging integration.

RollingFileHandler lets a logging.Logger write through a RollingFileAppender,
so records land in a file that rotates by period.
"""

import logging

from .appender import RollingFileAppender, appender_from_config
from .config import get_config_value
from .periods import RotationFrequency


class RollingFileHandler(logging.Handler):
    """
    Logging handler writing formatted records to a rotating log file.

    Example:
        handler = RollingFileHandler("logs/app.log", RotationFrequency.DAILY, log_files_limit=7)
        logging.getLogger("app").addHandler(handler)
    """

    terminator = "\n"

    def __init__(
        self,
        filename=None,
        date_pattern=RotationFrequency.DAILY,
        log_files_limit=0,
        compute_rollover_on_last_modified=False,
        level=logging.NOTSET,
        appender=None,
    ):
        super().__init__(level)
        if appender is None:
            appender = RollingFileAppender(
                filename,
                date_pattern=date_pattern,
                log_files_limit=log_files_limit,
                compute_rollover_on_last_modified=compute_rollover_on_last_modified,
            )
        self.appender = appender

    def emit(self, record):
        try:
            message = self.format(record)
            self.appender.write(message + self.terminator)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def close(self):
        self.acquire()
        try:
            self.appender.close()
        finally:
            self.release()
        super().close()


def setup_logging(logger_name=None, file_name=None):
    """
    Attach a RollingFileHandler built from the global configuration to a logger.

    Uses logging.level and logging.format for the handler, and the rollover
    settings read by appender_from_config.

    Args:
        logger_name: Logger to configure, None for the root logger
        file_name: Override for the log file path

    Returns:
        logging.Logger: The configured logger
    """
    target = logging.getLogger(logger_name)
    level_name = str(get_config_value("logging.level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = RollingFileHandler(appender=appender_from_config(file_name))
    handler.setFormatter(logging.Formatter(get_config_value("logging.format", logging.BASIC_FORMAT)))
    target.addHandler(handler)
    target.setLevel(level)
    return target
