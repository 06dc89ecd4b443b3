#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management for missing artwork fixing.
Loads YAML config with environment variable support.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional


class ConfigManager:
    """
    Configuration manager that loads settings from a YAML file.
    Values written as ${VAR_NAME} are read from the environment.
    """

    def __init__(self, config_path: Optional[str] = "missing-art.yaml"):
        self.config_path = Path(config_path) if config_path else None
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration file, falling back to defaults"""
        self._config = self._default_config()

        if self.config_path is None:
            return

        if self.config_path.exists():
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file must contain a mapping: {self.config_path}")
            self._merge(self._config, loaded)
        else:
            print(f"[Config] Warning: Config file not found: {self.config_path} (using defaults)")

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            'script': {
                'handler_prefix': 'verify_track_',
                'filler': '_',
                'guard_errors': True
            },
            'runtime': {
                'backend': 'osascript',
                'osascript_path': 'osascript',
                'osacompile_path': 'osacompile',
                'timeout': None
            },
            'clipboard': {
                'backend': 'pbcopy'
            },
            'library': {
                'root': None
            },
            'images': {
                'user_agent': 'missing-art/1.0',
                'timeout': 30
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value with dot notation.

        Examples:
            config.get('runtime.backend')
            config.get('script.guard_errors')
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default

        # Expand environment variables
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.environ.get(env_var, default)

        return value

    def set(self, key: str, value: Any) -> None:
        """Override a value with dot notation (command line flags)"""
        keys = key.split('.')
        target = self._config
        for k in keys[:-1]:
            target = target.setdefault(k, {})
        target[keys[-1]] = value

    @property
    def handler_prefix(self) -> str:
        return self.get('script.handler_prefix', 'verify_track_')

    @property
    def filler(self) -> str:
        return self.get('script.filler', '_')

    @property
    def guard_errors(self) -> bool:
        return bool(self.get('script.guard_errors', True))

    @property
    def runtime_backend(self) -> str:
        return self.get('runtime.backend', 'osascript')

    @property
    def clipboard_backend(self) -> str:
        return self.get('clipboard.backend', 'pbcopy')

    @property
    def library_root(self) -> Optional[str]:
        return self.get('library.root')

    def __repr__(self) -> str:
        return f"ConfigManager(config={self.config_path})"
