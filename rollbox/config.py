# Configuration management for rollbox
import os
import yaml

CONFIG_FILE = 'config/rollbox.yaml'

DEFAULT_CONFIG = {
	'paths': {
		'log_dir': 'logs',
		'log_file': 'rollbox.log',
	},
	'rollover': {
		'date_pattern': 'daily',
		'log_files_limit': 7,
		'use_last_modified': False,
	},
	'logging': {
		'level': 'INFO',
		'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
	},
	'validation': {'strict': False},
}


class ConfigManager:
	"""Locate, load and query the rollbox configuration.
	
	Each manager caches its own config home and global config, so tests and
	embedding applications can hold independent configurations.
	"""
	
	def __init__(self, config_home=None):
		self._config_home = config_home
		self._global_config = None
	
	def find_config_home(self):
		"""
		Find the rollbox configuration directory.
		Priority order:
		1. config_home passed to the constructor
		2. ROLLBOX_HOME environment variable
		3. ~/.config/rollbox/ if it exists
		4. Current working directory
		"""
		if self._config_home is not None:
			return self._config_home
		
		# Check ROLLBOX_HOME environment variable
		env_home = os.environ.get('ROLLBOX_HOME')
		if env_home:
			env_home = os.path.expanduser(env_home)
			if os.path.isdir(env_home):
				self._config_home = env_home
				return self._config_home
		
		# Check ~/.config/rollbox/
		user_config = os.path.expanduser('~/.config/rollbox')
		if os.path.isdir(user_config) and os.path.exists(os.path.join(user_config, CONFIG_FILE)):
			self._config_home = user_config
			return self._config_home
		
		# Fall back to current working directory
		self._config_home = os.getcwd()
		return self._config_home
	
	def resolve_path(self, path):
		"""Resolve a path relative to config home if it's not absolute."""
		path = os.path.expanduser(path)
		if os.path.isabs(path):
			return path
		return os.path.join(self.find_config_home(), path)
	
	def load_global_config(self):
		"""Load global configuration settings from config/rollbox.yaml."""
		if self._global_config is None:
			config_file = self.resolve_path(CONFIG_FILE)
			if os.path.exists(config_file):
				with open(config_file, 'r') as f:
					self._global_config = yaml.safe_load(f) or {}
			else:
				self._global_config = {}
		return self._global_config
	
	def get_config_value(self, path, default=None):
		"""Get a configuration value using dot notation (e.g., 'rollover.log_files_limit')."""
		value = self.load_global_config()
		for key in path.split('.'):
			if isinstance(value, dict) and key in value:
				value = value[key]
			else:
				return default
		return value
	
	def reset(self):
		"""Forget the cached config home and global config."""
		self._config_home = None
		self._global_config = None


_manager = ConfigManager()


def get_manager():
	return _manager


def find_config_home():
	return _manager.find_config_home()


def resolve_path(path):
	return _manager.resolve_path(path)


def load_global_config():
	return _manager.load_global_config()


def get_config_value(path, default=None):
	return _manager.get_config_value(path, default)


def reset_config():
	"""Reset the process-wide configuration so it is loaded again on next use."""
	_manager.reset()


def write_default_config(config_file):
	"""Write DEFAULT_CONFIG to a YAML file, creating its directory."""
	os.makedirs(os.path.dirname(config_file), exist_ok=True)
	with open(config_file, 'w') as f:
		yaml.dump(DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
