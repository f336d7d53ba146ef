"""
Configuration Management

Configuration system for the meshwarp engine. Values from a YAML file are
deep-merged over the built-in defaults below.
"""

import copy
import importlib.util
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/warp.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'store': {
        'initial_message': 'created document',
    },
    'solver': {
        'regularization': 0.0,
    },
    'evaluation': {
        'chunk_size': 4096,
        'backend': 'numpy',
        'device': 'auto',
        'show_progress': False,
    },
    'document': {
        'default_blend': 1.0,
        'use_placeholder_meshes': False,
    },
    'output': {
        'mesh_format': 'obj',
        'results_dir': './result',
    },
    'logging': {
        'level': 'INFO',
    },
}


class ConfigManager:
    """Centralized configuration manager for meshwarp."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to a YAML configuration file. When None, only the
                built-in defaults are used.
        """
        self.config_path = Path(config_path) if config_path else None
        self._config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path is not None:
            self.load_config()

        # Auto-detect device if needed
        self._resolve_device_settings()

    def load_config(self) -> None:
        """Load configuration from YAML file and merge it over the defaults."""
        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")
        self._deep_merge(self._config, loaded)

    def _resolve_device_settings(self) -> None:
        """Resolve automatic device detection for the torch backend."""
        evaluation = self._config.setdefault('evaluation', {})
        if evaluation.get('device', 'auto') != 'auto':
            return

        if evaluation.get('backend') == 'torch' and importlib.util.find_spec('torch') is not None:
            import torch
            evaluation['device'] = 'cuda' if torch.cuda.is_available() else 'cpu'
        else:
            evaluation['device'] = 'cpu'

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration key (e.g., 'solver.regularization')
            default: Default value if key is not found

        Returns:
            Configuration value
        """
        keys = key_path.split('.')
        value = self._config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_store_config(self) -> Dict[str, Any]:
        """Get undo/redo store configuration."""
        return {
            'initial_message': self.get('store.initial_message', 'created document'),
        }

    def get_solver_config(self) -> Dict[str, Any]:
        """Get TPS solver configuration."""
        return {
            'regularization': float(self.get('solver.regularization', 0.0)),
        }

    def get_evaluation_config(self) -> Dict[str, Any]:
        """Get TPS evaluation configuration (keyword arguments of `evaluate_batch`)."""
        return {
            'chunk_size': int(self.get('evaluation.chunk_size', 4096)),
            'backend': self.get('evaluation.backend', 'numpy'),
            'device': self.get('evaluation.device', 'cpu'),
            'show_progress': bool(self.get('evaluation.show_progress', False)),
        }

    def get_document_config(self) -> Dict[str, Any]:
        """Get new-document configuration."""
        return {
            'default_blend': float(self.get('document.default_blend', 1.0)),
            'use_placeholder_meshes': bool(self.get('document.use_placeholder_meshes', False)),
        }

    def get_output_config(self) -> Dict[str, Any]:
        """Get output configuration."""
        return {
            'mesh_format': self.get('output.mesh_format', 'obj'),
            'results_dir': self.get('output.results_dir', './result'),
        }

    def get_logging_config(self) -> Dict[str, Any]:
        return {
            'level': str(self.get('logging.level', 'INFO')).upper(),
        }

    def _deep_merge(self, base_dict: Dict, overlay_dict: Dict) -> None:
        """Deep merge overlay_dict into base_dict."""
        for key, value in overlay_dict.items():
            if key in base_dict and isinstance(base_dict[key], dict) and isinstance(value, dict):
                self._deep_merge(base_dict[key], value)
            else:
                base_dict[key] = value

    def update_config(self, key_path: str, value: Any) -> None:
        """
        Update a configuration value at runtime.

        Args:
            key_path: Dot-separated path to the configuration key
            value: New value to set
        """
        keys = key_path.split('.')
        config_section = self._config

        # Navigate to the parent section
        for key in keys[:-1]:
            if key not in config_section:
                config_section[key] = {}
            config_section = config_section[key]

        # Set the final value
        config_section[keys[-1]] = value

    def save_config(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save config (default: original config path)
        """
        save_path = output_path or self.config_path
        if save_path is None:
            raise ValueError("No output path given and the configuration was not loaded from a file")
        with open(save_path, 'w') as f:
            yaml.dump(self._config, f, default_flow_style=False, indent=2)


# Global configuration instance
_global_config: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        config_path: Path to configuration file (only used on first call)

    Returns:
        ConfigManager instance
    """
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_path)
    return _global_config


def reset_config() -> None:
    """Reset the global configuration instance (mainly for testing)."""
    global _global_config
    _global_config = None
