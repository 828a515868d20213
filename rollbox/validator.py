# Configuration validation for rollbox

import logging
import os

import yaml

from .config import CONFIG_FILE, get_config_value, load_global_config, resolve_path
from .exceptions import InvalidPatternError
from .periods import RotationFrequency, infer_frequency, resolve_date_pattern


class ValidationResult:
    """Container for validation results."""

    def __init__(self):
        self.errors = []
        self.warnings = []
        self.files_used = []
        self.global_config = None
        self.frequency = None

    @property
    def is_valid(self):
        """Check if configuration is valid (no errors, or no warnings if strict mode)."""
        strict_mode = get_config_value("validation.strict", False)
        return len(self.errors) == 0 and (not strict_mode or len(self.warnings) == 0)

    @property
    def has_issues(self):
        """Check if there are any errors or warnings."""
        return len(self.errors) > 0 or len(self.warnings) > 0


def validate_configuration():
    """Validate the global configuration file.

    Returns:
            ValidationResult: Object containing validation results
    """
    result = ValidationResult()

    try:
        config_file = resolve_path(CONFIG_FILE)
        if os.path.exists(config_file):
            result.files_used.append(f"{config_file} (global config)")
        else:
            result.warnings.append(f"No config file found ({config_file}), using defaults")

        result.global_config = load_global_config()

        _validate_rollover(result)
        _validate_paths(result)
        _validate_logging(result)

    except yaml.YAMLError as e:
        result.errors.append(f"YAML syntax error: {e}")
    except OSError as e:
        result.errors.append(f"Error loading config: {e}")

    return result


def _validate_rollover(result):
    """Validate rollover settings."""
    date_pattern = resolve_date_pattern(get_config_value("rollover.date_pattern", "daily"))
    if isinstance(date_pattern, RotationFrequency):
        result.frequency = date_pattern
    elif not isinstance(date_pattern, str):
        result.errors.append(f"rollover.date_pattern must be a string, got {date_pattern!r}")
    else:
        try:
            result.frequency = infer_frequency(date_pattern)
        except InvalidPatternError as e:
            result.errors.append(e.message)

    limit = get_config_value("rollover.log_files_limit", 0)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        result.errors.append(f"rollover.log_files_limit must be a non-negative integer, got {limit!r}")
    elif limit == 1:
        result.warnings.append("rollover.log_files_limit of 1 disables pruning, use 0 to make that explicit")

    use_last_modified = get_config_value("rollover.use_last_modified", False)
    if not isinstance(use_last_modified, bool):
        result.errors.append(f"rollover.use_last_modified must be true or false, got {use_last_modified!r}")


def _validate_paths(result):
    """Validate log file location."""
    log_file = get_config_value("paths.log_file", "rollbox.log")
    if not log_file or not isinstance(log_file, str):
        result.errors.append("paths.log_file must be a non-empty string")
        return
    if os.path.dirname(log_file):
        result.warnings.append(f"paths.log_file '{log_file}' contains a directory, prefer paths.log_dir")

    log_dir = resolve_path(str(get_config_value("paths.log_dir", "logs")))
    if not os.path.isdir(log_dir):
        result.warnings.append(f"Log directory does not exist yet and will be created: {log_dir}")


def _validate_logging(result):
    """Validate logging level."""
    level_name = str(get_config_value("logging.level", "INFO")).upper()
    if not isinstance(logging.getLevelName(level_name), int):
        result.warnings.append(f"Unknown logging.level '{level_name}', INFO will be used")
