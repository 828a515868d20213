# Plain append-only log file writer for rollbox

import os
from datetime import datetime

from .exceptions import LogError


class FileSink:
	"""Append bytes to a single log file.
	
	This is the writer the rolling appender decorates. It knows nothing about
	periods; the appender closes it, renames the file and opens it again.
	"""
	
	def __init__(self, file_name=None, encoding='utf-8'):
		self._file_name = file_name
		self._encoding = encoding
		self._handle = None
	
	@property
	def is_open(self):
		return self._handle is not None
	
	def current_file_name(self):
		"""Get the path of the log file."""
		return self._file_name
	
	def set_file_name(self, file_name):
		"""Point the sink at another file, reopening it if it was open."""
		was_open = self.is_open
		self.close()
		self._file_name = file_name
		if was_open:
			self.open()
	
	def open(self, path=None):
		"""Open the log file for appending, creating parent directories.
		
		Raises:
			LogError: If no file name is set or the file cannot be opened
		"""
		if path is not None and path != self._file_name:
			self.close()
			self._file_name = path
		if not self._file_name:
			raise LogError("No log file name set")
		if self._handle is not None:
			return
		
		log_dir = os.path.dirname(os.path.abspath(self._file_name))
		try:
			if not os.path.exists(log_dir):
				os.makedirs(log_dir)
			self._handle = open(self._file_name, 'ab')
		except OSError as e:
			raise LogError(f"Cannot open log file {self._file_name}: {e}") from e
	
	def close(self):
		if self._handle is not None:
			self._handle.close()
			self._handle = None
	
	def write(self, data):
		"""Append data to the log file, opening it on first use.
		
		Args:
			data: bytes, or str encoded with the sink's encoding
		"""
		if isinstance(data, str):
			data = data.encode(self._encoding)
		if self._handle is None:
			self.open()
		self._handle.write(data)
		self._handle.flush()
	
	def last_modified_time(self):
		"""Get the log file's modification time, or None if it does not exist."""
		if not self._file_name or not os.path.exists(self._file_name):
			return None
		return datetime.fromtimestamp(os.path.getmtime(self._file_name))
