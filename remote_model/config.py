"""
Default RemoteModel options and logging settings.

Defaults ship in config.yaml next to this module; REMOTE_MODEL_* and LOG_*
environment variables override them.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Mapping


def _timeout(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"REMOTE_MODEL_TIMEOUT must be milliseconds, got {value!r}")


class Config:
    """Model defaults (url, timeout, auth, proxy, headers, label) plus logging setup."""

    # env var -> (section, option, converter); auth and urls stay strings
    ENV_MAPPINGS = {
        'REMOTE_MODEL_URL': ('model', 'url', str),
        'REMOTE_MODEL_TIMEOUT': ('model', 'timeout', _timeout),
        'REMOTE_MODEL_PROXY': ('model', 'proxy', str),
        'REMOTE_MODEL_AUTH': ('model', 'auth', str),
        'REMOTE_MODEL_LABEL': ('model', 'label', str),
        'LOG_LEVEL': ('logging', 'level', str.upper),
        'LOG_RENDERER': ('logging', 'renderer', str.lower),
    }

    def __init__(self, config_path: str = None, environ: Mapping[str, str] = None):
        """
        Args:
            config_path: YAML file to read; defaults to the config.yaml shipped
                        with the package.
            environ: Mapping to read overrides from, os.environ by default.
        """
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        config.setdefault('model', {})
        config.setdefault('logging', {})
        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for env_var, (section, option, convert) in self.ENV_MAPPINGS.items():
            env_value = self.environ.get(env_var)
            if env_value:
                if not isinstance(config.get(section), dict):
                    config[section] = {}
                config[section][option] = convert(env_value)

        return config

    def get(self, *keys, default=None):
        """Walk nested sections, e.g. get('model', 'headers', 'X-Service')."""
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def model_options(self, overrides: Mapping[str, Any] = None) -> Dict[str, Any]:
        """Fresh copy of the model defaults with `overrides` applied on top.

        Nested values (headers, logging fields) are copied, so a model that
        mutates its options never leaks into the next one.
        """
        return {**copy.deepcopy(self.model), **(overrides or {})}

    @property
    def model(self) -> Dict[str, Any]:
        return self.get('model', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.get('logging', default={})


config = Config()
