"""
Configuration Management

Loads datalink configuration from a YAML file, a .env file and environment
variables, layered over built-in defaults.
"""

import copy
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from datalink.utils.file_utils import load_config as load_yaml_config
from datalink.utils.logging_utils import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / 'config' / 'pipeline_config.yaml'

DEFAULTS: Dict[str, Any] = {
    'data': {
        'raw_dir': 'data/raw',
        'outputs_dir': 'data/outputs',
        'workspace_file': 'data/workspace.json',
    },
    'logging': {
        'level': 'INFO',
        'file': {'enabled': False, 'path': 'logs/datalink.log'},
    },
    'engine': {
        'default_join_type': 'ADDITIVE',
        'max_combinations_per_key': None,
    },
    'discovery': {
        'use_llm': True,
        'min_name_similarity': 0.8,
        'min_value_overlap': 0.3,
        'max_candidates': 5,
    },
    'llm': {
        'model': 'gemini-2.5-flash',
        'provider': 'google_genai',
        'temperature': 0.2,
    },
    'verification': {
        'join_check': {
            'max_expansion_ratio': 2.0,
            'min_key_coverage': 0.5,
        },
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """
    datalink configuration manager.

    Sources, lowest precedence first:
    1. Built-in defaults
    2. YAML file (config/pipeline_config.yaml)
    3. Environment variables (optionally from .env)

    Example:
        >>> config = Config()
        >>> config.get('engine.default_join_type')
        'ADDITIVE'
    """

    def __init__(self, config_file: Optional[str] = None, env_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML config file (optional)
            env_file: Path to a .env file (optional, defaults to ./.env)
        """
        env_path = Path(env_file) if env_file else Path.cwd() / '.env'
        if env_path.exists():
            load_dotenv(env_path)
            logger.info(f"Loaded environment variables from: {env_path}")

        if config_file is None:
            config_file = DEFAULT_CONFIG_FILE

        file_config: Dict[str, Any] = {}
        if Path(config_file).exists():
            file_config = load_yaml_config(config_file)
            logger.info(f"Loaded config from: {config_file}")
        else:
            logger.warning(f"Config file not found: {config_file} - using defaults")

        self.config = _deep_merge(DEFAULTS, file_config)

        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply environment variable overrides to config."""
        if os.getenv('LOG_LEVEL'):
            self.set('logging.level', os.getenv('LOG_LEVEL'))

        if os.getenv('DATALINK_MODEL'):
            self.set('llm.model', os.getenv('DATALINK_MODEL'))

        if os.getenv('DATALINK_MODEL_PROVIDER'):
            self.set('llm.provider', os.getenv('DATALINK_MODEL_PROVIDER'))

        if os.getenv('DATALINK_MAX_COMBINATIONS'):
            self.set('engine.max_combinations_per_key', int(os.getenv('DATALINK_MAX_COMBINATIONS')))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Config key (e.g., 'llm.model')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """
        Set a configuration value using dot notation.

        Args:
            key: Config key (e.g., 'engine.max_combinations_per_key')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def get_stage_config(self, stage: str) -> Dict[str, Any]:
        """
        Get configuration for one section.

        Args:
            stage: Section name ('data', 'engine', 'discovery', 'llm', 'logging')

        Returns:
            Section dictionary (empty if absent)
        """
        return self.config.get(stage, {})

    def get_verification_config(self, verification: str) -> Dict[str, Any]:
        """Configuration for a verification check, e.g. 'join_check'."""
        return self.config.get('verification', {}).get(verification, {})

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the full configuration."""
        return copy.deepcopy(self.config)


_global_config = None


def get_config(config_file: Optional[str] = None) -> Config:
    """
    Get or create the process-wide configuration instance.

    Args:
        config_file: Path to config file (only used on first call)

    Returns:
        Config instance
    """
    global _global_config

    if _global_config is None:
        _global_config = Config(config_file)

    return _global_config


def reset_config() -> None:
    """Drop the process-wide instance so the next get_config() reloads."""
    global _global_config
    _global_config = None
