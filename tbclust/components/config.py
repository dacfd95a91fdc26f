"""
Configuration management for tbclust.

This module provides functionality for managing configuration, layering
default values, environment variables, configuration files (YAML or JSON)
and explicit overrides.
"""

import os
import json
import logging
import threading
from typing import Dict, List, Optional, Any
from copy import deepcopy

import yaml

from tbclust.errors import ParameterError

# Set up logging
logger = logging.getLogger(__name__)


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def to_list(value: Any, separator: str = ',') -> Optional[List[str]]:
    """
    Convert a value to a list.

    Args:
        value: Value to convert
        separator: Separator for string values

    Returns:
        List value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        return list(value)

    if isinstance(value, str):
        return [item.strip() for item in value.split(separator) if item.strip()]

    return None


def to_int_list(value: Any, separator: str = ',') -> Optional[List[int]]:
    """
    Convert a value to a list of integers.

    Args:
        value: Value to convert
        separator: Separator for string values

    Returns:
        List of integers, or None if conversion failed
    """
    string_list = to_list(value, separator)

    if string_list is None:
        return None

    try:
        return [int(item) for item in string_list]
    except (ValueError, TypeError):
        return None


def _env_or(name: str, current: Any, convert) -> Any:
    # Unparseable environment values fall back to the current setting
    if name not in os.environ:
        return current
    converted = convert(os.environ[name])
    if converted is None:
        logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
        return current
    return converted


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Read a configuration file.

    Args:
        filepath: Path to a .json, .yaml or .yml file

    Returns:
        Configuration dictionary

    Raises:
        ParameterError: for an unsupported extension, unparseable content
            or a top level that is not a mapping
    """
    try:
        if filepath.endswith('.json'):
            with open(filepath, 'r') as f:
                config = json.load(f)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'r') as f:
                config = yaml.safe_load(f) or {}
        else:
            raise ParameterError(f"Unsupported configuration file format: {filepath}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ParameterError(f"Cannot parse configuration file {filepath}: {e}") from e

    if not isinstance(config, dict):
        raise ParameterError(
            f"Configuration file {filepath} must hold a mapping, got {type(config).__name__}"
        )
    return config


class Config:
    """
    Configuration manager for tbclust.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            config = self._apply_inferred_values(config)

            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        """
        Get default configuration values.

        Returns:
            Default configuration
        """
        return {
            # Reducer
            'pca': {
                'n-comps': 2,
                'scale': True,
                'method': 'eigen'
            },

            # Clusterer
            'kmeans': {
                'k': 3,
                'seed': 1,
                'max-iters': 10,
                'n-init': 1,
                'init': 'random',
                'empty-cluster': 'reseed'
            },

            # Exploration over several k
            'explore': {
                'k-values': [3, 4, 5, 6]
            },

            # Second-level clustering
            'refine': {
                'k': 2,
                'seed': 1
            },

            # CSV loading
            'loader': {
                'label-column': 0,
                'thousands': ','
            },

            # Logging
            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        # Reducer
        config['pca']['n-comps'] = _env_or('TBCLUST_N_COMPS', config['pca']['n-comps'], to_int)
        config['pca']['scale'] = _env_or('TBCLUST_SCALE', config['pca']['scale'], to_bool)

        # Clusterer
        kmeans = config['kmeans']
        kmeans['k'] = _env_or('TBCLUST_K', kmeans['k'], to_int)
        kmeans['seed'] = _env_or('TBCLUST_SEED', kmeans['seed'], to_int)
        kmeans['max-iters'] = _env_or('TBCLUST_MAX_ITERS', kmeans['max-iters'], to_int)
        kmeans['n-init'] = _env_or('TBCLUST_N_INIT', kmeans['n-init'], to_int)
        kmeans['init'] = os.environ.get('TBCLUST_INIT', kmeans['init'])
        kmeans['empty-cluster'] = os.environ.get('TBCLUST_EMPTY_CLUSTER', kmeans['empty-cluster'])

        # Exploration
        config['explore']['k-values'] = _env_or(
            'TBCLUST_EXPLORE_K', config['explore']['k-values'], to_int_list
        )

        # Logging
        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, deepcopy(overrides))

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        # Exploration runs in ascending k, each k once
        k_values = to_int_list(config['explore'].get('k-values')) or []
        config['explore']['k-values'] = sorted(set(k_values))

        config['logging']['level'] = str(config['logging']['level']).lower()

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config
        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}
                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to a dictionary.

        Returns:
            Configuration dictionary
        """
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load configuration from a file.

        Args:
            filepath: Path to load configuration from
        """
        self.load_config(load_config_file(filepath))


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance so the next call reloads from scratch."""
        with cls._lock:
            cls._instance = None
