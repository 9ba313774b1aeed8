"""
load the fetcher config from config.yaml, .env and environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any

from dotenv import find_dotenv, load_dotenv


class Config:
    """Session and logging settings: the `fetcher` and `logging` sections of config.yaml, with env overrides."""

    def __init__(self, config_path: str = None, use_dotenv: bool = True, dotenv_path: str = None):
        """Read the settings once; later changes to the file or environment are not seen.

        Args:
            config_path: Path to config.yaml file. If None, uses the config.yaml
                        shipped next to this module.
            use_dotenv: Load a .env file into the environment before applying
                        environment overrides.
            dotenv_path: .env file to load. If None, searches upward from the
                        working directory.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        if use_dotenv:
            load_dotenv(dotenv_path or find_dotenv(usecwd=True))
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Parse the YAML file, then layer the FETCHER_* / LOG_* variables on top."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        config = self._apply_env_overrides(config)

        return config

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Write each set variable into its section, creating the section if the file lacks it."""
        env_mappings = {
            'FETCHER_HOST': ('fetcher', 'host'),
            'FETCHER_HTTPS': ('fetcher', 'https'),
            'FETCHER_AUTO_HOST': ('fetcher', 'auto_host'),
            'FETCHER_CACHE_TIME': ('fetcher', 'cache_time'),
            'FETCHER_USER_AGENT': ('fetcher', 'user_agent'),
            'FETCHER_TIMEOUT': ('fetcher', 'timeout'),
            'FETCHER_MAX_REDIRECTS': ('fetcher', 'max_redirects'),
            'LOG_LEVEL': ('logging', 'level'),
            'LOG_FORMAT': ('logging', 'format'),
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                current = config
                for key in config_path[:-1]:
                    if not isinstance(current.get(key), dict):
                        current[key] = {}
                    current = current[key]

                final_key = config_path[-1]
                # hosts and agents stay text even when they look numeric
                if final_key in ('host', 'user_agent'):
                    current[final_key] = env_value
                else:
                    current[final_key] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        """Type a FETCHER_* / LOG_* override: 'true'/'false' to bool, then int, then float.

        Anything else, such as a LOG_FORMAT of 'console', stays a string.
        """
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, *keys, default=None):
        """Walk the merged settings, e.g. get('fetcher', 'cache_time') or get('logging', 'level').

        Returns `default` as soon as a key is missing or a level is not a mapping.
        """
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def fetcher(self) -> Dict[str, Any]:
        """Keyword settings for Fetcher.from_config (host, https, cache_time, ...)."""
        return self.get('fetcher', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """`level` and `format` for setup_from_config."""
        return self.get('logging', default={})


# Global configuration instance
config = Config()
