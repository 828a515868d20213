"""
Pytest fixtures for rollbox tests.

This module provides shared fixtures used across test modules.
"""

import os
import pytest
import yaml
from datetime import datetime
from pathlib import Path

from rollbox.config import reset_config


class FakeClock:
    """Callable clock returning a settable datetime."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Point ROLLBOX_HOME at an empty directory so no user config leaks into tests."""
    home = tmp_path_factory.mktemp("rollbox_home")
    monkeypatch.setenv("ROLLBOX_HOME", str(home))
    reset_config()
    yield str(home)
    reset_config()


@pytest.fixture
def clock():
    """A clock set to 2024-03-10 23:59, one minute before midnight."""
    return FakeClock(datetime(2024, 3, 10, 23, 59))


@pytest.fixture
def log_file(tmp_path):
    """Path of the active log file inside a temporary log directory."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir / "app.log"


@pytest.fixture
def make_archives(log_file):
    """Create archived siblings of log_file from a list of suffixes."""

    def _make(*suffixes, content="x"):
        paths = []
        for suffix in suffixes:
            path = log_file.parent / (log_file.name + suffix)
            path.write_text(content)
            paths.append(path)
        return paths

    return _make


@pytest.fixture
def write_config(isolated_config):
    """
    Write config/rollbox.yaml under the isolated config home.

    Returns a function taking the config dict; it returns the home directory.
    """

    def _write(config_data):
        config_dir = Path(isolated_config) / "config"
        config_dir.mkdir(exist_ok=True)
        with open(config_dir / "rollbox.yaml", "w") as f:
            yaml.dump(config_data, f, default_flow_style=False, sort_keys=False)
        reset_config()
        return isolated_config

    return _write


@pytest.fixture
def sample_rollbox_yaml(write_config):
    """Create a sample rollbox.yaml configuration file."""
    return write_config(
        {
            "paths": {"log_dir": "logs", "log_file": "app.log"},
            "rollover": {"date_pattern": "monthly", "log_files_limit": 3, "use_last_modified": False},
            "logging": {"level": "DEBUG", "format": "%(levelname)s %(message)s"},
        }
    )


@pytest.fixture
def set_mtime():
    """Set a file's modification time from a naive local datetime."""

    def _set(path, when):
        stamp = when.timestamp()
        os.utime(path, (stamp, stamp))

    return _set
