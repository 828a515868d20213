# Custom exceptions for rollbox
"""
Centralized exception handling for rollbox.

This module defines custom exceptions to provide consistent error handling
across the rotation engine and the CLI. All exceptions inherit from RollboxError.
"""


class RollboxError(Exception):
    """Base exception for all rollbox errors."""

    def __init__(self, message, exit_code=1):
        self.message = message
        self.exit_code = exit_code
        super().__init__(self.message)


class ConfigurationError(RollboxError):
    """Raised when configuration is invalid or cannot be loaded."""

    def __init__(self, message):
        super().__init__(message, exit_code=2)


class InvalidPatternError(ConfigurationError):
    """Raised when a date pattern has no time-varying component."""

    def __init__(self, pattern):
        self.pattern = pattern
        super().__init__(f"The pattern '{pattern}' does not specify a rollover frequency")


class RolloverAbortedError(RollboxError):
    """Raised when the active log file cannot be moved to its archive name."""

    def __init__(self, file_name, reason):
        self.file_name = file_name
        message = f"Rollover of '{file_name}' aborted: {reason}"
        super().__init__(message, exit_code=4)


class PruneFileError(RollboxError):
    """Raised when an archived log file cannot be deleted."""

    def __init__(self, file_name, reason):
        self.file_name = file_name
        message = f"Failed to remove archive '{file_name}': {reason}"
        super().__init__(message, exit_code=5)


class LogError(RollboxError):
    """Raised when log operations fail."""

    def __init__(self, message):
        super().__init__(message, exit_code=7)
