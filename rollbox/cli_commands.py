# CLI command definitions for rollbox
import os
import sys
import shutil
import functools
from datetime import datetime

import click

from .appender import RollingFileAppender
from .config import CONFIG_FILE, get_config_value, load_global_config, find_config_home, write_default_config
from .date_pattern import format_datetime
from .exceptions import RollboxError, ConfigurationError
from .periods import CANONICAL_PATTERNS, RotationFrequency, infer_frequency, period_start, next_period_start, resolve_date_pattern
from .retention import find_archives, prune as prune_archives
from .validator import validate_configuration
from .cli_output import print_archive_table, print_schedule_table


def handle_exceptions(func):
	"""Report rollbox errors on stderr and exit with their exit code."""
	@functools.wraps(func)
	def wrapper(*args, **kwargs):
		try:
			return func(*args, **kwargs)
		except RollboxError as e:
			click.echo(f"Error: {e.message}", err=True)
			sys.exit(e.exit_code)
		except Exception as e:
			click.echo(f"Unexpected error: {e}", err=True)
			sys.exit(1)
	return wrapper


def _resolve_pattern(value):
	"""Turn a --pattern option (or the configured default) into (pattern, frequency)."""
	if value is None:
		value = get_config_value('rollover.date_pattern', 'daily')
	date_pattern = resolve_date_pattern(value)
	if isinstance(date_pattern, RotationFrequency):
		return CANONICAL_PATTERNS[date_pattern], date_pattern
	return date_pattern, infer_frequency(date_pattern)


def _parse_at(value):
	if value is None:
		return datetime.now()
	try:
		return datetime.fromisoformat(value)
	except ValueError:
		raise ConfigurationError(f"Invalid timestamp '{value}', expected ISO format like 2024-03-10T23:59:00")


@click.group()
def cli():
	"""rollbox - Time-based log file rotation."""
	pass

@cli.command()
def init():
	"""Initialize rollbox configuration in ~/.config/rollbox/"""
	config_dir = os.path.expanduser('~/.config/rollbox')
	
	if os.path.exists(config_dir):
		click.echo(f"Configuration directory already exists: {config_dir}")
		if not click.confirm("Do you want to reinitialize (this will backup existing config)?"):
			return
		backup_dir = f"{config_dir}.backup.{datetime.now().strftime('%Y%m%d_%H%M%S')}"
		shutil.move(config_dir, backup_dir)
		click.echo(f"Backed up existing config to: {backup_dir}")
	
	write_default_config(os.path.join(config_dir, CONFIG_FILE))
	os.makedirs(os.path.join(config_dir, 'logs'), exist_ok=True)
	
	click.echo(f"✓ Created configuration: {config_dir}/{CONFIG_FILE}")
	click.echo(f"✓ Created logs directory: {config_dir}/logs")
	click.echo()
	click.echo("rollbox initialized successfully!")

@cli.command()
@click.argument('pattern')
@handle_exceptions
def infer(pattern):
	"""Show the rotation frequency of a date pattern."""
	frequency = infer_frequency(pattern)
	click.echo(f"{pattern}: {frequency.value}")

@cli.command()
@click.argument('pattern')
@click.option('--at', 'at', default=None, help='ISO timestamp, defaults to now')
@handle_exceptions
def periods(pattern, at):
	"""Show the period containing a timestamp and the next rollover."""
	pattern, frequency = _resolve_pattern(pattern)
	timestamp = _parse_at(at)
	start = period_start(timestamp, frequency)
	end = next_period_start(timestamp, frequency)
	click.echo(f"Pattern {pattern} rotates {frequency.value}")
	print_schedule_table([
		{'label': 'current period', 'timestamp': start.isoformat(sep=' '), 'suffix': format_datetime(start, pattern)},
		{'label': 'next rollover', 'timestamp': end.isoformat(sep=' '), 'suffix': format_datetime(end, pattern)},
	])

@cli.command()
@click.argument('file_name', type=click.Path())
@click.option('--pattern', default=None, help='Date pattern or frequency name')
@click.option('--limit', type=int, default=None, help='Files to keep (active + archived)')
@handle_exceptions
def archives(file_name, pattern, limit):
	"""List archives of a log file."""
	pattern, _ = _resolve_pattern(pattern)
	if limit is None:
		limit = get_config_value('rollover.log_files_limit', 0)
	found = find_archives(file_name, pattern)
	if not found:
		click.echo(f"No archives found for {file_name}")
		return
	
	doomed = len(found) - (limit - 1) if limit > 1 else 0
	rows = []
	for index, archive in enumerate(found):
		rows.append({
			'archive': os.path.basename(archive.path),
			'period': archive.timestamp.isoformat(sep=' '),
			'size': os.path.getsize(archive.path),
			'status': 'prune' if index < doomed else 'kept',
		})
	print_archive_table(rows)

@cli.command()
@click.argument('file_name', type=click.Path())
@click.option('--pattern', default=None, help='Date pattern or frequency name')
@click.option('--limit', type=int, default=None, help='Files to keep (active + archived)')
@handle_exceptions
def prune(file_name, pattern, limit):
	"""Delete the oldest archives of a log file beyond the limit."""
	pattern, _ = _resolve_pattern(pattern)
	if limit is None:
		limit = get_config_value('rollover.log_files_limit', 0)
	removed = prune_archives(file_name, pattern, limit)
	for path in removed:
		click.echo(f"Removed {path}")
	click.echo(f"{len(removed)} archive(s) removed.")

@cli.command()
@click.argument('file_name', type=click.Path())
@click.option('--pattern', default=None, help='Date pattern or frequency name')
@click.option('--limit', type=int, default=None, help='Files to keep (active + archived)')
@click.option('--use-last-modified/--no-use-last-modified', default=None,
	help='Take the existing file\'s period from its modification time')
@handle_exceptions
def pipe(file_name, pattern, limit, use_last_modified):
	"""Copy stdin line by line into a rotating log file."""
	if pattern is None:
		pattern = get_config_value('rollover.date_pattern', 'daily')
	if limit is None:
		limit = get_config_value('rollover.log_files_limit', 0)
	if use_last_modified is None:
		use_last_modified = get_config_value('rollover.use_last_modified', False)
	
	appender = RollingFileAppender(
		file_name,
		date_pattern=resolve_date_pattern(pattern),
		log_files_limit=limit,
		compute_rollover_on_last_modified=use_last_modified,
	)
	try:
		for line in click.get_text_stream('stdin'):
			appender.write(line)
	finally:
		appender.close()

@cli.command()
def validate():
	"""Validate the configuration file."""
	result = validate_configuration()
	for filename in result.files_used:
		click.echo(f"Using: {filename}")
	for error in result.errors:
		click.echo(f"ERROR: {error}", err=True)
	for warning in result.warnings:
		click.echo(f"WARNING: {warning}")
	if result.frequency is not None:
		click.echo(f"Rollover frequency: {result.frequency.value}")
	if result.is_valid:
		click.echo("✓ Configuration is valid")
	else:
		click.echo("✗ Configuration is invalid", err=True)
		sys.exit(5)

@cli.command('show-config')
def show_config():
	"""Show the global configuration."""
	click.echo(f"Config home: {find_config_home()}")
	config = load_global_config()
	if not config:
		click.echo("No configuration file, defaults in use.")
		return
	for section, values in config.items():
		if isinstance(values, dict):
			click.echo(f"{section}:")
			for key, value in values.items():
				click.echo(f"  {key}: {value}")
		else:
			click.echo(f"{section}: {values}")
