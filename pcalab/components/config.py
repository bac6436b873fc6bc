"""
Configuration management for pcalab.

Configuration is layered: built-in defaults, then environment variables,
then explicit overrides (a dict or a YAML/JSON file), then values inferred
from the others. Values are looked up by dot-separated paths such as
``mnist.k_pcs``.
"""

import os
import json
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple
from copy import deepcopy
import yaml

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


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float, or None if conversion failed.
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Strings such as 'yes', 'true', '1' and their negatives are understood.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None or isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        text = value.lower().strip()
        if text in ('true', 'yes', 'y', '1', 't'):
            return True
        if text in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def to_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# Environment variable -> (config path, converter)
ENV_VARS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    'PCALAB_SEED': ('seed', to_int),
    'PCALAB_TWINS_N': ('twins.n', to_int),
    'PCALAB_MNIST_SOURCE': ('mnist.source', to_str),
    'PCALAB_MNIST_N_TRAIN': ('mnist.n_train', to_int),
    'PCALAB_MNIST_N_TEST': ('mnist.n_test', to_int),
    'PCALAB_MNIST_K_PCS': ('mnist.k_pcs', to_int),
    'PCALAB_MNIST_VARIANCE': ('mnist.variance_threshold', to_float),
    'PCALAB_MNIST_DROP_NZV': ('mnist.drop_nzv', to_bool),
    'PCALAB_KNN_K': ('mnist.k_neighbors', to_int),
    'PORT': ('server.port', to_int),
    'HOST': ('server.host', to_str),
    'LOG_LEVEL': ('logging.level', lambda v: str(v).lower()),
}


def _get_path(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    value = config
    for component in path.split('.'):
        if isinstance(value, dict) and component in value:
            value = value[component]
        else:
            return default
    return value


def _set_path(config: Dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split('.')
    for component in parents:
        config = config.setdefault(component, {})
    config[leaf] = value


def _deep_update(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def load_config_file(filepath: str) -> Dict[str, Any]:
    """
    Load a configuration dictionary from a JSON or YAML file.

    Args:
        filepath: Path to configuration file

    Returns:
        Configuration dictionary
    """
    if filepath.endswith('.json'):
        with open(filepath, 'r') as f:
            return json.load(f)
    if filepath.endswith(('.yaml', '.yml')):
        with open(filepath, 'r') as f:
            return yaml.safe_load(f) or {}
    raise ValueError(f"Unsupported configuration file format: {filepath}")


DEFAULTS: Dict[str, Any] = {
    'seed': 1988,

    # Twin heights simulation
    'twins': {
        'n': 100,
        'adult_mean': 69.0,
        'child_mean': 55.0,
        'sd': 3.0,
        'rho': 0.9
    },

    'iris': {
        'n_pcs': 2,
        'scale': False
    },

    'mnist': {
        'source': 'digits',         # digits, openml, or a .npz path
        'n_train': None,            # subsample size, None for all
        'n_test': None,
        'k_pcs': None,              # None picks k from variance_threshold
        'variance_threshold': 0.8,
        'k_neighbors': 5,
        'drop_nzv': False
    },

    'server': {
        'port': 8080,
        'host': 'localhost'
    },

    'logging': {
        'level': 'warn'
    }
}


class Config:
    """
    Configuration for the PCA walkthroughs and the API server.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config: Dict[str, Any] = {}
        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Rebuild the configuration from defaults, environment and overrides.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = deepcopy(DEFAULTS)
            self._apply_env_vars(config)
            if overrides:
                _deep_update(config, deepcopy(overrides))
            self._apply_inferred_values(config)
            self._config = config

        logger.info("Configuration loaded")

    @staticmethod
    def _apply_env_vars(config: Dict[str, Any]) -> None:
        for env_name, (path, convert) in ENV_VARS.items():
            if env_name not in os.environ:
                continue
            value = convert(os.environ[env_name])
            if value is None:
                logger.warning(f"Ignoring invalid value for {env_name}: {os.environ[env_name]!r}")
                continue
            _set_path(config, path, value)

    @staticmethod
    def _apply_inferred_values(config: Dict[str, Any]) -> None:
        # The full MNIST download uses 36 components unless k is given
        mnist = config['mnist']
        if mnist.get('k_pcs') is None and mnist.get('source') == 'openml':
            mnist['k_pcs'] = 36

        config['server-url'] = f"http://{config['server']['host']}:{config['server']['port']}"

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        with self._lock:
            return _get_path(self._config, path, default)

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value, creating intermediate sections.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            _set_path(self._config, path, value)

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the full configuration."""
        with self._lock:
            return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a JSON or YAML file.

        Args:
            filepath: Path to save configuration
        """
        data = self.to_dict()
        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(data, f, indent=2)
        elif filepath.endswith(('.yaml', '.yml')):
            with open(filepath, 'w') as f:
                yaml.safe_dump(data, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Reload configuration with overrides read from a file.

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
            overrides: Optional configuration overrides, applied to the
                       existing instance if there is one

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
        """Drop the cached configuration instance."""
        with cls._lock:
            cls._instance = None
