"""
Configuration Management

Handles loading configuration from environment variables and config files.

The configuration is built once at startup and passed to every component
that needs it; nothing reads it from module globals.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import json

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

DEFAULT_BASE_URL = 'https://api.reel.tube'
DEFAULT_TIMEOUT = 60.0


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_debug(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return _parse_bool(value)
    raise ConfigError(f"Invalid debug flag: {value!r}")


def _parse_concurrency(value) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        concurrency = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid concurrency: {value!r}")
    if concurrency < 1:
        raise ConfigError(f"Concurrency must be at least 1, got {concurrency}")
    return concurrency


def _parse_timeout(value) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout: {value!r}")
    if timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {timeout}")
    return timeout


@dataclass
class Config:
    """
    ReelTube CLI Configuration.

    Configuration priority (highest to lowest):
    1. Command-line flags
    2. Environment variables (REELTUBE_*, also read from .env)
    3. Config file (JSON)
    4. Default values
    """
    # API
    api_key: str = ''
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    # Uploads
    concurrency: Optional[int] = None  # None = derive from CPU count

    # Logging
    debug: bool = False

    @classmethod
    def env_values(cls) -> dict:
        """
        Settings found in the environment (and .env), keyed by field name.

        Only variables that are actually set appear, so a value equal to
        the default still overrides a config file.
        """
        load_dotenv(find_dotenv(usecwd=True))

        values = {}
        if 'REELTUBE_API_KEY' in os.environ:
            values['api_key'] = os.environ['REELTUBE_API_KEY']
        if 'REELTUBE_BASE_URL' in os.environ:
            values['base_url'] = os.environ['REELTUBE_BASE_URL']

        timeout = os.getenv('REELTUBE_TIMEOUT')
        if timeout:
            values['timeout'] = _parse_timeout(timeout)

        concurrency = os.getenv('REELTUBE_CONCURRENCY')
        if concurrency:
            values['concurrency'] = _parse_concurrency(concurrency)

        debug = os.getenv('REELTUBE_DEBUG')
        if debug:
            values['debug'] = _parse_bool(debug)

        return values

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        return cls(**cls.env_values())

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        config = cls()

        config.api_key = data.get('api_key', config.api_key)
        config.base_url = data.get('base_url', config.base_url)
        if 'timeout' in data:
            config.timeout = _parse_timeout(data['timeout'])
        config.concurrency = _parse_concurrency(data.get('concurrency'))
        if 'debug' in data:
            config.debug = _parse_debug(data['debug'])

        return config

    def require_api_key(self) -> str:
        """Return the API key, or fail if none was configured."""
        if not self.api_key:
            raise ConfigError(
                "API key must be provided via --api-key flag or "
                "REELTUBE_API_KEY environment variable"
            )
        return self.api_key

    def to_dict(self) -> dict:
        """Convert to dictionary (API key masked)."""
        return {
            'api_key': '***' if self.api_key else '',
            'base_url': self.base_url,
            'timeout': self.timeout,
            'concurrency': self.concurrency,
            'debug': self.debug,
        }


def load_config(config_path: Optional[Path] = None, **overrides) -> Config:
    """
    Load configuration from file, environment and explicit overrides.

    Environment variables override file settings; overrides (usually
    command-line flags) win over both. Overrides that are None are ignored.
    """
    # Start with defaults
    config = Config()

    # Load from file if provided
    if config_path:
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
        config = Config.from_file(config_path)

    # Override with environment variables that are set
    for key, value in Config.env_values().items():
        setattr(config, key, value)

    for key, value in overrides.items():
        if not hasattr(config, key):
            raise ConfigError(f"Unknown config option: {key}")
        if value is None:
            continue
        if key == 'concurrency':
            value = _parse_concurrency(value)
        elif key == 'timeout':
            value = _parse_timeout(value)
        setattr(config, key, value)

    return config
