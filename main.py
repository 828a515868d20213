#!/usr/bin/env python3
"""
rollbox - Time-based log file rotation

Entry point for the rollbox CLI. All logic lives in rollbox/.
"""

from rollbox.cli_commands import cli

if __name__ == '__main__':
    cli()
