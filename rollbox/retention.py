# Retention of archived log files for rollbox

import os
import logging
from collections import namedtuple

from .date_pattern import parse_datetime
from .exceptions import PruneFileError

logger = logging.getLogger(__name__)

ArchivedFile = namedtuple('ArchivedFile', ['timestamp', 'path'])


def find_archives(base_path, pattern):
	"""Find archived siblings of a log file.
	
	Every file in the base file's directory whose name starts with the base
	file name is a candidate; the rest of its name must parse with the date
	pattern. Files that do not parse are left out, so unrelated files sharing
	the prefix are never touched.
	
	Args:
		base_path: Path of the active log file
		pattern: Date pattern used for archive suffixes
	
	Returns:
		list: ArchivedFile tuples sorted oldest first
	"""
	directory = os.path.dirname(os.path.abspath(base_path))
	base_name = os.path.basename(base_path)
	
	if not os.path.isdir(directory):
		return []
	
	archives = []
	for filename in os.listdir(directory):
		if not filename.startswith(base_name):
			continue
		filepath = os.path.join(directory, filename)
		if not os.path.isfile(filepath):
			continue
		timestamp = parse_datetime(filename[len(base_name):], pattern)
		if timestamp is None:
			continue
		archives.append(ArchivedFile(timestamp, filepath))
	
	archives.sort(key=lambda archive: archive.timestamp)
	return archives


def prune(base_path, pattern, limit):
	"""Delete the oldest archives so at most limit files remain.
	
	The limit counts the active file too, so limit - 1 archives survive.
	A limit of 0 or 1 disables pruning.
	
	Args:
		base_path: Path of the active log file
		pattern: Date pattern used for archive suffixes
		limit: Maximum number of files (active + archived) to keep
	
	Returns:
		list: Paths of the removed archives
	"""
	if limit <= 1:
		return []
	
	archives = find_archives(base_path, pattern)
	excess = len(archives) - (limit - 1)
	if excess <= 0:
		return []
	
	removed = []
	for archive in archives[:excess]:
		try:
			_remove_archive(archive.path)
		except PruneFileError as e:
			logger.warning(str(e))
			continue
		removed.append(archive.path)
	
	if removed:
		logger.info(f"Pruned {len(removed)} archived log file(s) of {base_path}")
	return removed


def _remove_archive(filepath):
	"""Remove one archive, raising PruneFileError on failure."""
	try:
		os.remove(filepath)
	except OSError as e:
		raise PruneFileError(filepath, e.strerror or str(e)) from e
	logger.debug(f"Removed archived log file {filepath}")
